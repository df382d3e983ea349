"""Geofence evaluation.

The server is the authority on whether a check-in location is acceptable;
these helpers let a caller that already knows the event geofence reject an
obviously distant fix before spending a network round trip, and show the
user how far away they are.
"""
import json
import math
from typing import Union

from pydantic import ValidationError

from attendance_session.core.constants import EARTH_RADIUS_METERS
from attendance_session.schemas.attendance import Coordinates
from attendance_session.schemas.geofence import (
    CircleGeofenceData,
    GeofenceData,
    GeofenceType,
    Point,
    PolygonGeofenceData,
)

PointLike = Union[Point, Coordinates]


def parse_geofence(data: Union[str, bytes, dict]) -> GeofenceData:
    """
    Parse geofence data as stored on the event record.

    Args:
        data: JSON text or an already decoded mapping

    Returns:
        Validated GeofenceData

    Raises:
        ValueError: If the data is empty, not JSON, or describes an invalid shape
    """
    if not data:
        raise ValueError("empty geofence data")

    if isinstance(data, (str, bytes)):
        try:
            data = json.loads(data)
        except json.JSONDecodeError as e:
            raise ValueError(f"geofence data is not valid JSON: {e}") from e

    try:
        return GeofenceData.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"invalid geofence data: {e}") from e


def distance_meters(a: PointLike, b: PointLike) -> float:
    """Great-circle distance between two points using the haversine formula."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    delta_lat = math.radians(b.latitude - a.latitude)
    delta_lng = math.radians(b.longitude - a.longitude)

    h = (math.sin(delta_lat / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lng / 2) ** 2)
    return EARTH_RADIUS_METERS * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def _in_circle(point: PointLike, circle: CircleGeofenceData) -> bool:
    return distance_meters(point, circle.center) <= circle.radius


def _in_polygon(point: PointLike, polygon: PolygonGeofenceData) -> bool:
    # Ray casting over (lat, lng) treated as planar; fine at event scale
    inside = False
    points = polygon.points
    j = len(points) - 1
    for i in range(len(points)):
        pi, pj = points[i], points[j]
        if (pi.latitude > point.latitude) != (pj.latitude > point.latitude):
            crossing = (
                (pj.longitude - pi.longitude)
                * (point.latitude - pi.latitude)
                / (pj.latitude - pi.latitude)
                + pi.longitude
            )
            if point.longitude < crossing:
                inside = not inside
        j = i
    return inside


def is_point_in_geofence(point: PointLike, geofence: GeofenceData) -> bool:
    """Check whether a point lies inside the geofence (circle edge counts as inside)."""
    if geofence.type is GeofenceType.CIRCLE:
        return _in_circle(point, geofence.circle)
    if geofence.type is GeofenceType.POLYGON:
        return _in_polygon(point, geofence.polygon)
    return False
