"""Shared test fixtures and configuration."""
import asyncio
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from attendance_session.core.exceptions import LocationUnavailable
from attendance_session.schemas.attendance import (
    CheckInAck,
    CheckOutAck,
    Coordinates,
    FixSource,
    LocationFix,
)
from attendance_session.services.attendance_client import AttendanceClient
from attendance_session.services.location import Accuracy, LocationProvider

NOW = datetime(2025, 6, 1, 18, 0, 0, tzinfo=timezone.utc)
EVENT_COORDS = Coordinates(latitude=40.7128, longitude=-74.0060)
API_ROOT = "http://testserver/user/v1"


class FakeDevice:
    """Scriptable DeviceLocation."""

    def __init__(
        self,
        *,
        enabled: bool = True,
        permission: bool = True,
        grant_on_request: bool = True,
        live_fix: Optional[LocationFix] = None,
        live_delay: float = 0.0,
        cached_fix: Optional[LocationFix] = None,
        cache_delay: float = 0.0,
    ):
        self.enabled = enabled
        self.permission = permission
        self.grant_on_request = grant_on_request
        self.live_fix = live_fix
        self.live_delay = live_delay
        self.cached_fix = cached_fix
        self.cache_delay = cache_delay
        self.permission_requests = 0
        self.live_requests: List[Accuracy] = []
        self.cache_requests: List[timedelta] = []

    async def services_enabled(self) -> bool:
        return self.enabled

    async def has_permission(self) -> bool:
        return self.permission

    async def request_permission(self) -> bool:
        self.permission_requests += 1
        self.permission = self.grant_on_request
        return self.permission

    async def current_position(self, accuracy: Accuracy) -> LocationFix:
        self.live_requests.append(accuracy)
        if self.live_delay:
            await asyncio.sleep(self.live_delay)
        if self.live_fix is None:
            raise LocationUnavailable("no satellite fix")
        return self.live_fix

    async def last_known_position(self, max_age: timedelta) -> Optional[LocationFix]:
        self.cache_requests.append(max_age)
        if self.cache_delay:
            await asyncio.sleep(self.cache_delay)
        return self.cached_fix


class FakeAttendanceServer:
    """
    In-process implementation of the attendance REST contract.

    Each endpoint answers with the (status, body) pair currently configured,
    and records every request it receives.
    """

    def __init__(self, prefix: str = "/user/v1"):
        self.checkin_response: Tuple[int, Any] = (200, {"checkinTime": "2025-06-01T18:00:00Z"})
        self.checkout_response: Tuple[int, Any] = (200, {"checkoutTime": "2025-06-01T20:00:00Z"})
        self.status_response: Tuple[int, Any] = (404, {"error": "User is not checked in to this event"})
        self.requests: List[Dict[str, Any]] = []
        self.app = FastAPI()

        @self.app.post(prefix + "/events/{event_id}/checkin")
        async def checkin(event_id: str, request: Request):
            return await self._answer("checkin", event_id, request, self.checkin_response)

        @self.app.post(prefix + "/events/{event_id}/checkout")
        async def checkout(event_id: str, request: Request):
            return await self._answer("checkout", event_id, request, self.checkout_response)

        @self.app.get(prefix + "/events/{event_id}/attendance/status")
        async def status(event_id: str, request: Request):
            return await self._answer("status", event_id, request, self.status_response)

    async def _answer(self, endpoint: str, event_id: str, request: Request, response):
        raw = await request.body()
        self.requests.append({
            "endpoint": endpoint,
            "event_id": event_id,
            "body": raw.decode("utf-8"),
            "headers": dict(request.headers),
        })
        status_code, body = response
        return JSONResponse(status_code=status_code, content=body)

    def calls(self, endpoint: str) -> List[Dict[str, Any]]:
        return [r for r in self.requests if r["endpoint"] == endpoint]


def _make_fix(
    coordinates: Coordinates = EVENT_COORDS,
    age: timedelta = timedelta(0),
    source: FixSource = FixSource.LIVE,
) -> LocationFix:
    return LocationFix(coordinates=coordinates, timestamp=NOW - age, source=source)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def event_coords():
    return EVENT_COORDS


@pytest.fixture
def fix_factory():
    """Build LocationFix objects aged relative to the fixed clock."""
    return _make_fix


@pytest.fixture
def device_factory():
    return FakeDevice


@pytest.fixture
def server_factory():
    return FakeAttendanceServer


@pytest.fixture
def clock():
    """Fixed clock shared by the provider and fix timestamps."""
    return lambda: NOW


@pytest.fixture
def device():
    return FakeDevice(live_fix=_make_fix())


@pytest.fixture
def location_provider(device, clock):
    return LocationProvider(device, fix_timeout=0.05, clock=clock)


@pytest.fixture
def fake_server():
    return FakeAttendanceServer()


@pytest_asyncio.fixture
async def api_client(fake_server):
    """AttendanceClient wired to the in-process server."""
    client = AttendanceClient(
        API_ROOT,
        token="test-token",
        transport=httpx.ASGITransport(app=fake_server.app),
    )
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
def mock_client():
    """AttendanceClient double with successful default answers."""
    client = AsyncMock(spec=AttendanceClient)
    client.check_in.return_value = CheckInAck.model_validate({"checkinTime": "2025-06-01T18:00:00Z"})
    client.check_out.return_value = CheckOutAck.model_validate({"checkoutTime": "2025-06-01T20:00:00Z"})
    return client
