"""HTTP client hooks for request tracking."""
import time
import uuid
from typing import Dict

import httpx
import structlog

from attendance_session.core.constants import REQUEST_ID_HEADER

logger = structlog.get_logger(__name__)


class RequestLoggingHooks:
    """httpx event hooks that tag every request with a request ID and log it."""

    def __init__(self):
        self._started: Dict[str, float] = {}

    def install(self, client: httpx.AsyncClient) -> httpx.AsyncClient:
        """Register the hooks on an existing client."""
        client.event_hooks["request"].append(self.on_request)
        client.event_hooks["response"].append(self.on_response)
        return client

    async def on_request(self, request: httpx.Request) -> None:
        """Assign a request ID and log the outgoing request."""
        # Keep an ID supplied by the caller
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.headers[REQUEST_ID_HEADER] = request_id
        self._started[request_id] = time.monotonic()

        logger.info(
            "request_started",
            request_id=request_id,
            method=request.method,
            url=str(request.url),
        )

    async def on_response(self, response: httpx.Response) -> None:
        """Log the completed request with its duration."""
        request_id = response.request.headers.get(REQUEST_ID_HEADER)
        started = self._started.pop(request_id, None)
        duration_ms = round((time.monotonic() - started) * 1000, 2) if started is not None else None

        logger.info(
            "request_completed",
            request_id=request_id,
            method=response.request.method,
            url=str(response.request.url),
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

    def forget(self, request: httpx.Request) -> None:
        """Drop timing state for a request that will never reach on_response."""
        self._started.pop(request.headers.get(REQUEST_ID_HEADER), None)

    def on_failure(self, request: httpx.Request, exc: Exception) -> None:
        """Log a request that never produced a response."""
        request_id = request.headers.get(REQUEST_ID_HEADER)
        started = self._started.pop(request_id, None)
        duration_ms = round((time.monotonic() - started) * 1000, 2) if started is not None else None

        logger.error(
            "request_failed",
            request_id=request_id,
            method=request.method,
            url=str(request.url),
            exception=str(exc),
            exception_type=type(exc).__name__,
            duration_ms=duration_ms,
        )
