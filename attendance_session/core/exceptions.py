"""Exception types raised by the location provider, the API client and the controller."""
from typing import Optional


class AttendanceError(Exception):
    """Base class for all attendance session errors."""


# Location (client/sensor side)

class LocationError(AttendanceError):
    """The device could not produce a usable coordinate reading."""


class PermissionDenied(LocationError):
    """The user refused location permission."""


class ServicesDisabled(LocationError):
    """Location services are switched off at the OS level."""


class LocationUnavailable(LocationError):
    """Neither a live fix nor a fresh enough cached fix was available."""


# Remote attendance API

class ApiError(AttendanceError):
    """The attendance API call did not succeed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ValidationFailed(ApiError):
    """
    The server rejected the request on business rules.

    Examples are being outside the geofence or checking in before the
    event started. ``message`` is the server's human-readable reason and
    ``code`` the structured reason code when the server sends one.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message, status_code)
        self.code = code


class Unauthorized(ApiError):
    """Missing, expired or insufficient credentials (401/403)."""


class ServerError(ApiError):
    """The server failed (5xx) or answered with an unreadable body."""


class NetworkError(ApiError):
    """The request never produced an HTTP response."""


# Programmer errors

class InvalidStateTransition(AttendanceError):
    """A transition was requested from a state that does not allow it."""

    def __init__(self, action: str, state):
        super().__init__(f"Cannot {action} while session is {state.value}")
        self.action = action
        self.state = state
