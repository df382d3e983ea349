"""Unit tests for geofence parsing and containment."""
import json
import pytest

from attendance_session.schemas.attendance import Coordinates
from attendance_session.schemas.geofence import GeofenceType, Point
from attendance_session.services.geofence import (
    distance_meters,
    is_point_in_geofence,
    parse_geofence,
)

CIRCLE = {"type": "circle", "circle": {"center": {"lat": 40.7128, "lng": -74.0060}, "radius": 150}}
SQUARE = {
    "type": "polygon",
    "polygon": {"points": [
        {"lat": 40.0, "lng": -74.0},
        {"lat": 40.0, "lng": -73.0},
        {"lat": 41.0, "lng": -73.0},
        {"lat": 41.0, "lng": -74.0},
    ]},
}


@pytest.mark.unit
class TestParseGeofence:
    """Test parsing stored geofence data."""

    def test_parse_circle_from_json(self):
        """Circle geofences parse from JSON text."""
        geofence = parse_geofence(json.dumps(CIRCLE))

        assert geofence.type is GeofenceType.CIRCLE
        assert geofence.circle.radius == 150
        assert geofence.circle.center == Point(latitude=40.7128, longitude=-74.0060)

    def test_parse_polygon_from_dict(self):
        """Polygon geofences parse from a decoded mapping."""
        geofence = parse_geofence(SQUARE)

        assert geofence.type is GeofenceType.POLYGON
        assert len(geofence.polygon.points) == 4

    @pytest.mark.parametrize("data,match", [
        ("", "empty"),
        ("{not json", "not valid JSON"),
        ({"type": "hexagon"}, "invalid geofence"),
        ({"type": "circle"}, "missing circle data"),
        ({"type": "polygon"}, "missing polygon data"),
        ({"type": "circle", "circle": {"center": {"lat": 0, "lng": 0}, "radius": 0}}, "invalid geofence"),
        ({"type": "polygon", "polygon": {"points": [{"lat": 0, "lng": 0}, {"lat": 1, "lng": 1}]}}, "invalid geofence"),
    ])
    def test_invalid_geofence(self, data, match):
        """Invalid shapes raise ValueError."""
        with pytest.raises(ValueError, match=match):
            parse_geofence(data)


@pytest.mark.unit
class TestContainment:
    """Test point-in-geofence checks."""

    def test_distance_zero_for_same_point(self):
        """Distance from a point to itself is zero."""
        p = Coordinates(latitude=40.7128, longitude=-74.0060)
        assert distance_meters(p, p) == pytest.approx(0.0)

    def test_distance_known_value(self):
        """One degree of latitude is roughly 111 km."""
        a = Coordinates(latitude=0.0, longitude=0.0)
        b = Coordinates(latitude=1.0, longitude=0.0)
        assert distance_meters(a, b) == pytest.approx(111195, rel=1e-3)

    def test_inside_circle(self):
        """A point about 50 m from the centre is inside a 150 m circle."""
        geofence = parse_geofence(CIRCLE)
        nearby = Coordinates(latitude=40.71325, longitude=-74.0060)
        assert is_point_in_geofence(nearby, geofence)

    def test_outside_circle(self):
        """A point about 1 km away is outside."""
        geofence = parse_geofence(CIRCLE)
        far = Coordinates(latitude=40.7218, longitude=-74.0060)
        assert not is_point_in_geofence(far, geofence)

    def test_inside_polygon(self):
        """A point in the middle of the square is inside."""
        geofence = parse_geofence(SQUARE)
        assert is_point_in_geofence(Coordinates(latitude=40.5, longitude=-73.5), geofence)

    def test_outside_polygon(self):
        """A point beyond the square is outside."""
        geofence = parse_geofence(SQUARE)
        assert not is_point_in_geofence(Coordinates(latitude=42.0, longitude=-73.5), geofence)
