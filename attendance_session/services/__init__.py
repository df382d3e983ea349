from .attendance_client import AttendanceClient
from .geofence import distance_meters, is_point_in_geofence, parse_geofence
from .location import Accuracy, DeviceLocation, FixedDeviceLocation, LocationProvider
from .reasons import Failure, FailureReason, classify_api_error, classify_validation_error
from .session import (
    AttendanceSession,
    AttendanceSessionController,
    SessionState,
    StateChanged,
    TransitionFailed,
    TransitionOutcome,
)

__all__ = [
    # attendance_client
    "AttendanceClient",
    # geofence
    "distance_meters",
    "is_point_in_geofence",
    "parse_geofence",
    # location
    "Accuracy",
    "DeviceLocation",
    "FixedDeviceLocation",
    "LocationProvider",
    # reasons
    "Failure",
    "FailureReason",
    "classify_api_error",
    "classify_validation_error",
    # session
    "AttendanceSession",
    "AttendanceSessionController",
    "SessionState",
    "StateChanged",
    "TransitionFailed",
    "TransitionOutcome",
]
