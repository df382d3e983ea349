"""Client-side attendance session controller for event check-in and check-out."""
from attendance_session.core.exceptions import (
    ApiError,
    AttendanceError,
    InvalidStateTransition,
    LocationError,
    LocationUnavailable,
    NetworkError,
    PermissionDenied,
    ServerError,
    ServicesDisabled,
    Unauthorized,
    ValidationFailed,
)
from attendance_session.schemas import AttendanceStatus, Coordinates, LocationFix
from attendance_session.services import (
    Accuracy,
    AttendanceClient,
    AttendanceSession,
    AttendanceSessionController,
    Failure,
    FailureReason,
    FixedDeviceLocation,
    LocationProvider,
    SessionState,
    StateChanged,
    TransitionFailed,
    TransitionOutcome,
)

__version__ = "1.0.0"

__all__ = [
    "ApiError",
    "AttendanceError",
    "InvalidStateTransition",
    "LocationError",
    "LocationUnavailable",
    "NetworkError",
    "PermissionDenied",
    "ServerError",
    "ServicesDisabled",
    "Unauthorized",
    "ValidationFailed",
    "AttendanceStatus",
    "Coordinates",
    "LocationFix",
    "Accuracy",
    "AttendanceClient",
    "AttendanceSession",
    "AttendanceSessionController",
    "Failure",
    "FailureReason",
    "FixedDeviceLocation",
    "LocationProvider",
    "SessionState",
    "StateChanged",
    "TransitionFailed",
    "TransitionOutcome",
]
