"""Device location acquisition."""
import asyncio
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Protocol

from attendance_session.core.constants import (
    LOCATION_FIX_TIMEOUT_SECONDS,
    LOCATION_MAX_FIX_AGE_SECONDS,
)
from attendance_session.core.exceptions import (
    LocationUnavailable,
    PermissionDenied,
    ServicesDisabled,
)
from attendance_session.core.logging_config import get_logger
from attendance_session.core.utils import age_seconds, utc_now
from attendance_session.schemas.attendance import Coordinates, FixSource, LocationFix

logger = get_logger(__name__)

DEFAULT_MAX_FIX_AGE = timedelta(seconds=LOCATION_MAX_FIX_AGE_SECONDS)


class Accuracy(str, Enum):
    PRECISE = "precise"
    BALANCED = "balanced"


class DeviceLocation(Protocol):
    """
    Platform location API.

    ``current_position`` raises LocationUnavailable when the device cannot
    produce a fix; ``last_known_position`` returns None when it has no
    cached fix younger than ``max_age``.
    """

    async def services_enabled(self) -> bool: ...

    async def has_permission(self) -> bool: ...

    async def request_permission(self) -> bool: ...

    async def current_position(self, accuracy: Accuracy) -> LocationFix: ...

    async def last_known_position(self, max_age: timedelta) -> Optional[LocationFix]: ...


class FixedDeviceLocation:
    """Device that always reports the same position (desktop and command-line use)."""

    def __init__(self, coordinates: Coordinates, clock: Callable[[], datetime] = utc_now):
        self.coordinates = coordinates
        self._clock = clock

    async def services_enabled(self) -> bool:
        return True

    async def has_permission(self) -> bool:
        return True

    async def request_permission(self) -> bool:
        return True

    async def current_position(self, accuracy: Accuracy) -> LocationFix:
        return LocationFix(coordinates=self.coordinates, timestamp=self._clock())

    async def last_known_position(self, max_age: timedelta) -> Optional[LocationFix]:
        return LocationFix(
            coordinates=self.coordinates, timestamp=self._clock(), source=FixSource.CACHED
        )


class LocationProvider:
    """
    Produce a single, reasonably fresh coordinate reading, or fail definitively.

    Order of checks:
    1. Location services disabled -> ServicesDisabled (no prompt, no fix attempt)
    2. Permission not granted -> prompt once; refused -> PermissionDenied
    3. Live fix, bounded by ``fix_timeout`` seconds
    4. Cached fix younger than ``max_age``
    5. Nothing usable -> LocationUnavailable
    """

    def __init__(
        self,
        device: DeviceLocation,
        fix_timeout: float = LOCATION_FIX_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.device = device
        self.fix_timeout = fix_timeout
        self._clock = clock

    async def get_current_coordinates(
        self,
        accuracy: Accuracy = Accuracy.PRECISE,
        max_age: timedelta = DEFAULT_MAX_FIX_AGE,
    ) -> Coordinates:
        fix = await self.get_current_fix(accuracy, max_age)
        return fix.coordinates

    async def get_current_fix(
        self,
        accuracy: Accuracy = Accuracy.PRECISE,
        max_age: timedelta = DEFAULT_MAX_FIX_AGE,
    ) -> LocationFix:
        """
        Acquire a fix, falling back to the device cache.

        Raises:
            ServicesDisabled: Location services are off at the OS level
            PermissionDenied: The user refused the permission prompt
            LocationUnavailable: No live fix and no cached fix younger than max_age
        """
        if not await self.device.services_enabled():
            logger.info("location_services_disabled")
            raise ServicesDisabled("Location services are disabled")

        if not await self.device.has_permission():
            if not await self.device.request_permission():
                logger.info("location_permission_denied")
                raise PermissionDenied("Location permission is required to check in")

        fix = await self._live_fix(accuracy)
        if fix is not None:
            logger.debug("location_fix_acquired", source=fix.source.value, accuracy=accuracy.value)
            return fix

        fix = await self._cached_fix(max_age)
        if fix is not None:
            logger.info(
                "location_fix_from_cache",
                age_seconds=round(age_seconds(fix.timestamp, self._clock()), 1),
            )
            return fix

        logger.warning("location_unavailable", accuracy=accuracy.value)
        raise LocationUnavailable("Unable to get your location")

    async def _live_fix(self, accuracy: Accuracy) -> Optional[LocationFix]:
        try:
            fix = await asyncio.wait_for(
                self.device.current_position(accuracy), timeout=self.fix_timeout
            )
        except asyncio.TimeoutError:
            logger.info("location_live_fix_timeout", timeout_seconds=self.fix_timeout)
            return None
        except LocationUnavailable as e:
            logger.info("location_live_fix_failed", error=str(e))
            return None
        if fix is None:
            return None
        return fix.model_copy(update={"source": FixSource.LIVE})

    async def _cached_fix(self, max_age: timedelta) -> Optional[LocationFix]:
        try:
            fix = await asyncio.wait_for(
                self.device.last_known_position(max_age), timeout=self.fix_timeout
            )
        except asyncio.TimeoutError:
            logger.info("location_cached_fix_timeout", timeout_seconds=self.fix_timeout)
            return None
        if fix is None:
            return None

        # Devices are not trusted to honour max_age themselves
        if age_seconds(fix.timestamp, self._clock()) > max_age.total_seconds():
            logger.info("location_cached_fix_too_old", max_age_seconds=max_age.total_seconds())
            return None
        return fix.model_copy(update={"source": FixSource.CACHED})
