"""Pydantic schemas for wire payloads and value types."""
from attendance_session.schemas.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    CheckInAck,
    CheckInRequest,
    CheckOutAck,
    Coordinates,
    FixSource,
    LocationFix,
)
from attendance_session.schemas.common import ErrorResponse
from attendance_session.schemas.geofence import (
    CircleGeofenceData,
    GeofenceData,
    GeofenceType,
    Point,
    PolygonGeofenceData,
)

__all__ = [
    "AttendanceRecord",
    "AttendanceStatus",
    "CheckInAck",
    "CheckInRequest",
    "CheckOutAck",
    "Coordinates",
    "FixSource",
    "LocationFix",
    "ErrorResponse",
    "CircleGeofenceData",
    "GeofenceData",
    "GeofenceType",
    "Point",
    "PolygonGeofenceData",
]
