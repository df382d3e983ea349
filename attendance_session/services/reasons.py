"""Failure reasons surfaced to the view layer."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from attendance_session.core.exceptions import (
    ApiError,
    LocationError,
    NetworkError,
    PermissionDenied,
    Unauthorized,
    ValidationFailed,
)


class FailureReason(str, Enum):
    # Client/sensor side
    PERMISSION_DENIED = "permission_denied"
    LOCATION_UNAVAILABLE = "location_unavailable"
    # Server validation
    OUTSIDE_GEOFENCE = "outside_geofence"
    EVENT_NOT_STARTED = "event_not_started"
    EVENT_ENDED = "event_ended"
    OTHER = "other"
    # Transport/auth
    UNAUTHORIZED = "unauthorized"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"


@dataclass(frozen=True)
class Failure:
    """Payload of a failed transition. ``message`` is diagnostic, not user copy."""

    reason: FailureReason
    message: Optional[str] = None


# Structured codes win over message text when the server sends them
_VALIDATION_CODES = {
    "OUTSIDE_GEOFENCE": FailureReason.OUTSIDE_GEOFENCE,
    "EVENT_NOT_STARTED": FailureReason.EVENT_NOT_STARTED,
    "EVENT_ENDED": FailureReason.EVENT_ENDED,
}

# Known server vocabulary, matched case-insensitively in order
_VALIDATION_PHRASES = (
    ("must be at the event location", FailureReason.OUTSIDE_GEOFENCE),
    ("not within event geofence", FailureReason.OUTSIDE_GEOFENCE),
    ("outside the geofence", FailureReason.OUTSIDE_GEOFENCE),
    ("has not started", FailureReason.EVENT_NOT_STARTED),
    ("already ended", FailureReason.EVENT_ENDED),
    ("event has ended", FailureReason.EVENT_ENDED),
)


def classify_validation_error(error: ValidationFailed) -> Failure:
    """Map a server validation failure to a reason code."""
    if error.code:
        reason = _VALIDATION_CODES.get(error.code.strip().upper())
        if reason is not None:
            return Failure(reason, error.message)

    text = (error.message or "").lower()
    for phrase, reason in _VALIDATION_PHRASES:
        if phrase in text:
            return Failure(reason, error.message)

    return Failure(FailureReason.OTHER, error.message)


def classify_api_error(error: ApiError) -> Failure:
    if isinstance(error, ValidationFailed):
        return classify_validation_error(error)
    if isinstance(error, Unauthorized):
        return Failure(FailureReason.UNAUTHORIZED, error.message)
    if isinstance(error, NetworkError):
        return Failure(FailureReason.NETWORK_ERROR, error.message)
    # ServerError and anything unclassified
    return Failure(FailureReason.SERVER_ERROR, error.message)


def classify_location_error(error: LocationError) -> Failure:
    # ServicesDisabled and LocationUnavailable look the same to the user: no fix
    if isinstance(error, PermissionDenied):
        return Failure(FailureReason.PERMISSION_DENIED, str(error))
    return Failure(FailureReason.LOCATION_UNAVAILABLE, str(error))
