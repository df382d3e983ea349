"""Remote attendance API client."""
from typing import Optional

import httpx
from pydantic import ValidationError

from attendance_session.core.config import Settings
from attendance_session.core.constants import HTTP_TIMEOUT_SECONDS
from attendance_session.core.exceptions import (
    NetworkError,
    ServerError,
    Unauthorized,
    ValidationFailed,
)
from attendance_session.core.logging_config import get_logger
from attendance_session.middleware.logging import RequestLoggingHooks
from attendance_session.schemas.attendance import (
    AttendanceRecord,
    AttendanceStatus,
    CheckInAck,
    CheckOutAck,
    Coordinates,
)
from attendance_session.schemas.common import ErrorResponse

logger = get_logger(__name__)


class AttendanceClient:
    """
    Thin wrapper over the attendance endpoints.

    Pure request/response: no retries, no state besides the HTTP connection
    pool. Every failure is raised as an ApiError subclass decoded once from
    the response, so callers never inspect status codes or message text.

    Args:
        api_root: Base URL including the role prefix, e.g. http://host/user/v1
        token: Bearer token sent on every request
        timeout: Per-request timeout in seconds
        transport: Optional httpx transport (tests mount an ASGI app here)
    """

    def __init__(
        self,
        api_root: str,
        token: Optional[str] = None,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._hooks = RequestLoggingHooks()
        self._http = httpx.AsyncClient(
            base_url=api_root.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._hooks.install(self._http)

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "AttendanceClient":
        return cls(
            settings.get_api_root(),
            token=settings.API_TOKEN,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "AttendanceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def check_in(self, event_id: str, coordinates: Coordinates) -> CheckInAck:
        """POST /events/{event_id}/checkin with the user's coordinates."""
        response = await self._send("POST", f"/events/{event_id}/checkin", json=coordinates.to_payload())
        self._raise_for_error(response)
        return self._decode(response, CheckInAck)

    async def check_out(self, event_id: str) -> CheckOutAck:
        """POST /events/{event_id}/checkout (no body)."""
        response = await self._send("POST", f"/events/{event_id}/checkout")
        self._raise_for_error(response)
        return self._decode(response, CheckOutAck)

    async def get_status(self, event_id: str) -> AttendanceStatus:
        """
        GET /events/{event_id}/attendance/status.

        The server answers 404 when the user has no active check-in.
        """
        response = await self._send("GET", f"/events/{event_id}/attendance/status")
        if response.status_code == 404:
            return AttendanceStatus(event_id=event_id, checked_in=False)
        self._raise_for_error(response)

        record = self._decode(response, AttendanceRecord)
        return AttendanceStatus(
            event_id=event_id,
            checked_in=record.check_in_time is not None and record.check_out_time is None,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
        )

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        request = self._http.build_request(method, path, **kwargs)
        try:
            return await self._http.send(request)
        except httpx.RequestError as e:
            # Timeouts, refused connections, undecodable bodies: no usable response
            self._hooks.on_failure(request, e)
            raise NetworkError(f"Network error: {e}") from e
        finally:
            self._hooks.forget(request)

    @staticmethod
    def _raise_for_error(response: httpx.Response) -> None:
        """Translate a non-2xx response into the matching ApiError."""
        status = response.status_code
        if response.is_success:
            return

        body = _error_body(response)
        message = body.error or response.reason_phrase or f"HTTP {status}"

        if status in (401, 403):
            raise Unauthorized(message, status_code=status)
        if status >= 500:
            raise ServerError(message, status_code=status)
        if 400 <= status < 500:
            raise ValidationFailed(message, status_code=status, code=body.code)
        raise ServerError(f"Unexpected response status {status}", status_code=status)

    @staticmethod
    def _decode(response: httpx.Response, model):
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(
                "response_decode_failed",
                url=str(response.request.url),
                status_code=response.status_code,
                error=str(e),
            )
            raise ServerError("Server returned an unreadable response", status_code=response.status_code) from e


def _error_body(response: httpx.Response) -> ErrorResponse:
    try:
        data = response.json()
    except ValueError:
        return ErrorResponse(error=response.text.strip())
    if not isinstance(data, dict):
        return ErrorResponse(error=str(data))
    try:
        return ErrorResponse.model_validate(data)
    except ValidationError:
        return ErrorResponse(error=data.get("error"))
