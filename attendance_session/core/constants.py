"""Library constants.

This module contains magic strings and numbers used throughout the library.
Centralizing these values makes them easier to maintain and modify.
"""

# Location acquisition
# A live fix that takes longer than this is abandoned in favour of a cached fix
LOCATION_FIX_TIMEOUT_SECONDS = 10.0
# Cached fixes older than 5 minutes are not accepted for check-in
LOCATION_MAX_FIX_AGE_SECONDS = 300

# HTTP
HTTP_TIMEOUT_SECONDS = 10.0
REQUEST_ID_HEADER = "X-Request-ID"

# API path prefix per role (the server mounts the same routes under each)
ROLE_PATH_PREFIXES = {
    "user": "/user/v1",
    "brand": "/brand/v1",
}
DEFAULT_PATH_PREFIX = "/api/v1"

# Geofencing
# Mean Earth radius in meters, used by the haversine distance
EARTH_RADIUS_METERS = 6371000.0
MIN_POLYGON_POINTS = 3
