"""Geofence schemas."""
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from attendance_session.core.constants import MIN_POLYGON_POINTS


class GeofenceType(str, Enum):
    CIRCLE = "circle"
    POLYGON = "polygon"


class Point(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    latitude: float = Field(..., alias="lat", ge=-90, le=90)
    longitude: float = Field(..., alias="lng", ge=-180, le=180)


class CircleGeofenceData(BaseModel):
    center: Point
    radius: float = Field(..., gt=0)  # meters


class PolygonGeofenceData(BaseModel):
    points: List[Point] = Field(..., min_length=MIN_POLYGON_POINTS)


class GeofenceData(BaseModel):
    """Event geofence, as stored on the event record."""

    type: GeofenceType
    circle: Optional[CircleGeofenceData] = None
    polygon: Optional[PolygonGeofenceData] = None

    @model_validator(mode='after')
    def shape_matches_type(self) -> "GeofenceData":
        if self.type is GeofenceType.CIRCLE and self.circle is None:
            raise ValueError("missing circle data for circle geofence")
        if self.type is GeofenceType.POLYGON and self.polygon is None:
            raise ValueError("missing polygon data for polygon geofence")
        return self
