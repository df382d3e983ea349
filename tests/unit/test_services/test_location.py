"""Unit tests for the location provider."""
import pytest
from datetime import timedelta

from attendance_session.core.exceptions import (
    LocationUnavailable,
    PermissionDenied,
    ServicesDisabled,
)
from attendance_session.schemas.attendance import Coordinates, FixSource
from attendance_session.services.location import (
    Accuracy,
    FixedDeviceLocation,
    LocationProvider,
)

CACHED_COORDS = Coordinates(latitude=40.7130, longitude=-74.0055)


@pytest.mark.unit
class TestLocationProvider:
    """Test fix acquisition, permission handling and cache fallback."""

    @pytest.mark.asyncio
    async def test_live_fix_returned(self, location_provider, device, event_coords):
        """A live fix is returned as-is and requested at the given accuracy."""
        coordinates = await location_provider.get_current_coordinates(Accuracy.PRECISE)

        assert coordinates == event_coords
        assert device.live_requests == [Accuracy.PRECISE]
        assert device.cache_requests == []

    @pytest.mark.asyncio
    async def test_services_disabled_fails_fast(self, device_factory, clock):
        """Disabled services fail without prompting or acquiring a fix."""
        device = device_factory(enabled=False, permission=False)
        provider = LocationProvider(device, clock=clock)

        with pytest.raises(ServicesDisabled):
            await provider.get_current_coordinates()

        assert device.permission_requests == 0
        assert device.live_requests == []
        assert device.cache_requests == []

    @pytest.mark.asyncio
    async def test_permission_denied(self, device_factory, fix_factory, clock):
        """Refusing the prompt raises PermissionDenied without acquiring a fix."""
        device = device_factory(permission=False, grant_on_request=False, live_fix=fix_factory())
        provider = LocationProvider(device, clock=clock)

        with pytest.raises(PermissionDenied):
            await provider.get_current_coordinates()

        assert device.permission_requests == 1
        assert device.live_requests == []

    @pytest.mark.asyncio
    async def test_permission_prompted_once_when_granted(self, device_factory, fix_factory, clock):
        """A missing permission is requested exactly once per call."""
        device = device_factory(permission=False, grant_on_request=True, live_fix=fix_factory())
        provider = LocationProvider(device, clock=clock)

        await provider.get_current_coordinates()

        assert device.permission_requests == 1

    @pytest.mark.asyncio
    async def test_existing_permission_not_prompted(self, location_provider, device):
        """No prompt when permission is already granted."""
        await location_provider.get_current_coordinates()
        assert device.permission_requests == 0

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_cached_fix(self, device_factory, fix_factory, clock):
        """A live fix that times out falls back to a cached fix younger than max age."""
        device = device_factory(
            live_fix=fix_factory(),
            live_delay=1.0,
            cached_fix=fix_factory(CACHED_COORDS, age=timedelta(minutes=2)),
        )
        provider = LocationProvider(device, fix_timeout=0.01, clock=clock)

        fix = await provider.get_current_fix(Accuracy.PRECISE, timedelta(minutes=5))

        assert fix.coordinates == CACHED_COORDS
        assert fix.source is FixSource.CACHED
        assert device.cache_requests == [timedelta(minutes=5)]

    @pytest.mark.asyncio
    async def test_live_failure_falls_back_to_cached_fix(self, device_factory, fix_factory, clock):
        """A failed live fix falls back to the cache."""
        device = device_factory(
            live_fix=None,
            cached_fix=fix_factory(CACHED_COORDS, age=timedelta(seconds=30)),
        )
        provider = LocationProvider(device, clock=clock)

        coordinates = await provider.get_current_coordinates()

        assert coordinates == CACHED_COORDS

    @pytest.mark.asyncio
    async def test_stale_cached_fix_rejected(self, device_factory, fix_factory, clock):
        """A cached fix older than max age is not used even if the device returns it."""
        device = device_factory(
            live_fix=None,
            cached_fix=fix_factory(CACHED_COORDS, age=timedelta(minutes=6)),
        )
        provider = LocationProvider(device, clock=clock)

        with pytest.raises(LocationUnavailable):
            await provider.get_current_coordinates(max_age=timedelta(minutes=5))

    @pytest.mark.asyncio
    async def test_hanging_cache_times_out(self, device_factory, fix_factory, clock):
        """A device cache that never answers is bounded by the fix timeout."""
        device = device_factory(
            live_fix=None,
            cached_fix=fix_factory(CACHED_COORDS, age=timedelta(seconds=30)),
            cache_delay=5.0,
        )
        provider = LocationProvider(device, fix_timeout=0.01, clock=clock)

        with pytest.raises(LocationUnavailable):
            await provider.get_current_coordinates()

        assert device.cache_requests == [timedelta(minutes=5)]

    @pytest.mark.asyncio
    async def test_no_fix_anywhere(self, device_factory, clock):
        """No live fix and no cached fix raises LocationUnavailable."""
        device = device_factory(live_fix=None, cached_fix=None)
        provider = LocationProvider(device, clock=clock)

        with pytest.raises(LocationUnavailable):
            await provider.get_current_coordinates()

    @pytest.mark.asyncio
    async def test_live_fix_marked_live(self, location_provider):
        """Live fixes are tagged with their source."""
        fix = await location_provider.get_current_fix(Accuracy.BALANCED)
        assert fix.source is FixSource.LIVE


@pytest.mark.unit
class TestFixedDeviceLocation:
    """Test the fixed-position device."""

    @pytest.mark.asyncio
    async def test_reports_configured_position(self, event_coords, clock):
        """The provider returns the configured coordinates."""
        provider = LocationProvider(FixedDeviceLocation(event_coords, clock=clock), clock=clock)

        coordinates = await provider.get_current_coordinates()

        assert coordinates == event_coords
