"""Attendance schemas: coordinates, location fixes and API acknowledgements."""
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from attendance_session.core.utils import to_utc


class Coordinates(BaseModel):
    """A WGS84 coordinate pair, optionally with the reported accuracy radius."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    accuracy_m: Optional[float] = Field(None, ge=0)

    def to_payload(self) -> dict:
        """Request body for the check-in endpoint."""
        return CheckInRequest(latitude=self.latitude, longitude=self.longitude).model_dump()


class FixSource(str, Enum):
    LIVE = "live"
    CACHED = "cached"


class LocationFix(BaseModel):
    """One reading from the device."""

    model_config = ConfigDict(frozen=True)

    coordinates: Coordinates
    timestamp: datetime
    source: FixSource = FixSource.LIVE

    @field_validator('timestamp')
    @classmethod
    def timestamp_to_utc(cls, v: datetime) -> datetime:
        return to_utc(v)


class CheckInRequest(BaseModel):
    latitude: float
    longitude: float


def _stringify_id(v: Any) -> Optional[str]:
    if v is None:
        return None
    return str(v)


class CheckInAck(BaseModel):
    """Server confirmation of a check-in."""

    model_config = ConfigDict(extra="ignore")

    check_in_time: datetime = Field(
        ..., validation_alias=AliasChoices("checkinTime", "checkInTime", "check_in_time")
    )
    attendance_id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "attendanceId"))

    @field_validator('attendance_id', mode='before')
    @classmethod
    def attendance_id_to_str(cls, v: Any) -> Optional[str]:
        return _stringify_id(v)


class CheckOutAck(BaseModel):
    """Server confirmation of a check-out."""

    model_config = ConfigDict(extra="ignore")

    check_out_time: datetime = Field(
        ..., validation_alias=AliasChoices("checkoutTime", "checkOutTime", "check_out_time")
    )


class AttendanceRecord(BaseModel):
    """Attendance row as returned by the status endpoint."""

    model_config = ConfigDict(extra="ignore")

    attendance_id: Optional[str] = Field(None, validation_alias=AliasChoices("id", "attendanceId"))
    check_in_time: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("checkinTime", "checkInTime", "check_in_time")
    )
    check_out_time: Optional[datetime] = Field(
        None, validation_alias=AliasChoices("checkoutTime", "checkOutTime", "check_out_time")
    )

    @field_validator('attendance_id', mode='before')
    @classmethod
    def attendance_id_to_str(cls, v: Any) -> Optional[str]:
        return _stringify_id(v)


class AttendanceStatus(BaseModel):
    """Server-reported attendance state of the current user for one event."""

    event_id: str
    checked_in: bool
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None

    @property
    def checked_out(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is not None
