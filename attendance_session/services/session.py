"""Attendance session state machine."""
import asyncio
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Union

from attendance_session.core.exceptions import (
    ApiError,
    InvalidStateTransition,
    LocationError,
)
from attendance_session.core.logging_config import get_logger
from attendance_session.core.utils import to_utc
from attendance_session.schemas.attendance import AttendanceStatus, Coordinates
from attendance_session.schemas.geofence import GeofenceData
from attendance_session.services.attendance_client import AttendanceClient
from attendance_session.services.geofence import is_point_in_geofence
from attendance_session.services.location import (
    DEFAULT_MAX_FIX_AGE,
    Accuracy,
    LocationProvider,
)
from attendance_session.services.reasons import (
    Failure,
    FailureReason,
    classify_api_error,
    classify_location_error,
)

logger = get_logger(__name__)


class SessionState(str, Enum):
    NOT_CHECKED_IN = "not_checked_in"
    CHECKING_IN = "checking_in"
    CHECKED_IN = "checked_in"
    CHECKING_OUT = "checking_out"
    CHECKED_OUT = "checked_out"


# In-flight state -> stable state restored on failure or cancellation
_ROLLBACK = {
    SessionState.CHECKING_IN: SessionState.NOT_CHECKED_IN,
    SessionState.CHECKING_OUT: SessionState.CHECKED_IN,
}


@dataclass(frozen=True)
class AttendanceSession:
    """Volatile projection of one user's attendance record for one event."""

    event_id: str
    user_id: str
    state: SessionState = SessionState.NOT_CHECKED_IN
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    last_known_location: Optional[Coordinates] = None


@dataclass(frozen=True)
class StateChanged:
    previous: SessionState
    current: SessionState


@dataclass(frozen=True)
class TransitionFailed:
    """A transition failed; ``state`` is the stable state the session returned to."""

    failure: Failure
    state: SessionState


SessionEvent = Union[StateChanged, TransitionFailed]
Listener = Callable[[SessionEvent], None]


@dataclass(frozen=True)
class TransitionOutcome:
    state: SessionState
    failure: Optional[Failure] = None
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return self.failure is None and not self.cancelled


class AttendanceSessionController:
    """
    Drive check-in and check-out for one (user, event) pair.

    NOT_CHECKED_IN -> CHECKING_IN -> CHECKED_IN -> CHECKING_OUT -> CHECKED_OUT

    Failures are emitted as TransitionFailed events and roll the session back
    to the last stable state; they are never stored. Only one transition may
    be in flight: a second request raises InvalidStateTransition before any
    I/O. Nothing is retried automatically.

    Each transition carries an attempt number. ``cancel()`` invalidates the
    current attempt so that a late location or API result is discarded.
    """

    def __init__(
        self,
        event_id: str,
        user_id: str,
        location_provider: LocationProvider,
        client: AttendanceClient,
        geofence: Optional[GeofenceData] = None,
        max_fix_age: timedelta = DEFAULT_MAX_FIX_AGE,
    ):
        self._session = AttendanceSession(event_id=str(event_id), user_id=str(user_id))
        self._locations = location_provider
        self._client = client
        self._geofence = geofence
        self._max_fix_age = max_fix_age
        self._attempt = 0
        self._in_flight: Optional[int] = None
        self._listeners: List[Listener] = []
        self._log = logger.bind(event_id=self._session.event_id, user_id=self._session.user_id)

    @classmethod
    def from_status(
        cls,
        status: AttendanceStatus,
        user_id: str,
        location_provider: LocationProvider,
        client: AttendanceClient,
        **kwargs,
    ) -> "AttendanceSessionController":
        """Build a controller seeded from server-reported status (e.g. after relaunch)."""
        controller = cls(status.event_id, user_id, location_provider, client, **kwargs)
        if status.checked_in and status.check_in_time is not None:
            state = SessionState.CHECKED_IN
        elif status.checked_out:
            state = SessionState.CHECKED_OUT
        else:
            return controller

        controller._session = replace(
            controller._session,
            state=state,
            check_in_time=status.check_in_time,
            check_out_time=status.check_out_time if state is SessionState.CHECKED_OUT else None,
        )
        controller._log.info("session_restored", state=state.value)
        return controller

    @property
    def session(self) -> AttendanceSession:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for session events; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def request_check_in(self) -> TransitionOutcome:
        """
        Check the user in: locate, optionally pre-check the geofence, call the API.

        Raises:
            InvalidStateTransition: If the session is not NOT_CHECKED_IN
        """
        self._require(SessionState.NOT_CHECKED_IN, "check in")
        attempt = self._begin(SessionState.CHECKING_IN)
        try:
            return await self._check_in(attempt)
        except (Exception, asyncio.CancelledError):
            self._abandon(attempt)
            raise

    async def request_check_out(self) -> TransitionOutcome:
        """
        Check the user out. No location is required.

        Raises:
            InvalidStateTransition: If the session is not CHECKED_IN
        """
        self._require(SessionState.CHECKED_IN, "check out")
        attempt = self._begin(SessionState.CHECKING_OUT)
        try:
            return await self._check_out(attempt)
        except (Exception, asyncio.CancelledError):
            self._abandon(attempt)
            raise

    def cancel(self) -> bool:
        """
        Discard the in-flight attempt and return to the last stable state.

        Returns:
            True if an attempt was cancelled, False if nothing was in flight
        """
        if self._in_flight is None:
            return False

        attempt = self._in_flight
        self._in_flight = None
        self._log.info("transition_cancelled", attempt=attempt, state=self.state.value)
        self._set_state(_ROLLBACK[self.state])
        return True

    async def _check_in(self, attempt: int) -> TransitionOutcome:
        log = self._log.bind(attempt=attempt, transition="check_in")

        try:
            coordinates = await self._locations.get_current_coordinates(
                Accuracy.PRECISE, self._max_fix_age
            )
        except LocationError as e:
            return self._fail(attempt, classify_location_error(e), log)

        if self._is_stale(attempt):
            return self._discarded(log)
        self._session = replace(self._session, last_known_location=coordinates)

        if self._geofence is not None and not is_point_in_geofence(coordinates, self._geofence):
            return self._fail(
                attempt,
                Failure(FailureReason.OUTSIDE_GEOFENCE, "Location is outside the event geofence"),
                log,
            )

        try:
            ack = await self._client.check_in(self._session.event_id, coordinates)
        except ApiError as e:
            return self._fail(attempt, classify_api_error(e), log)

        if self._is_stale(attempt):
            return self._discarded(log)

        # Server time is authoritative; never substitute the local clock
        self._session = replace(self._session, check_in_time=ack.check_in_time)
        self._complete(SessionState.CHECKED_IN)
        log.info("checked_in", check_in_time=ack.check_in_time.isoformat())
        return TransitionOutcome(SessionState.CHECKED_IN)

    async def _check_out(self, attempt: int) -> TransitionOutcome:
        log = self._log.bind(attempt=attempt, transition="check_out")

        try:
            ack = await self._client.check_out(self._session.event_id)
        except ApiError as e:
            return self._fail(attempt, classify_api_error(e), log)

        if self._is_stale(attempt):
            return self._discarded(log)

        check_in_time = self._session.check_in_time
        if check_in_time is not None and to_utc(ack.check_out_time) < to_utc(check_in_time):
            return self._fail(
                attempt,
                Failure(FailureReason.SERVER_ERROR, "Server check-out time precedes check-in time"),
                log,
            )

        self._session = replace(self._session, check_out_time=ack.check_out_time)
        self._complete(SessionState.CHECKED_OUT)
        log.info("checked_out", check_out_time=ack.check_out_time.isoformat())
        return TransitionOutcome(SessionState.CHECKED_OUT)

    def _require(self, expected: SessionState, action: str) -> None:
        if self._in_flight is not None or self.state is not expected:
            raise InvalidStateTransition(action, self.state)

    def _begin(self, state: SessionState) -> int:
        self._attempt += 1
        self._in_flight = self._attempt
        self._set_state(state)
        return self._attempt

    def _is_stale(self, attempt: int) -> bool:
        return self._in_flight != attempt

    def _complete(self, state: SessionState) -> None:
        self._in_flight = None
        self._set_state(state)

    def _fail(self, attempt: int, failure: Failure, log) -> TransitionOutcome:
        if self._is_stale(attempt):
            return self._discarded(log)

        self._in_flight = None
        restored = _ROLLBACK[self.state]
        self._set_state(restored)
        log.info("transition_failed", reason=failure.reason.value, message=failure.message)
        self._emit(TransitionFailed(failure, restored))
        return TransitionOutcome(restored, failure=failure)

    def _discarded(self, log) -> TransitionOutcome:
        log.info("stale_result_discarded")
        return TransitionOutcome(self.state, cancelled=True)

    def _abandon(self, attempt: int) -> None:
        # Unexpected error or task cancellation: restore the stable state, let it propagate
        if self._is_stale(attempt):
            return
        self._in_flight = None
        self._log.warning("transition_aborted", attempt=attempt, state=self.state.value)
        self._set_state(_ROLLBACK[self.state])

    def _set_state(self, state: SessionState) -> None:
        previous = self._session.state
        if previous is state:
            return
        self._session = replace(self._session, state=state)
        self._emit(StateChanged(previous, state))

    def _emit(self, event: SessionEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                self._log.exception("session_listener_failed", event_type=type(event).__name__)
