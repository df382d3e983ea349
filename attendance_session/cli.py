"""Command-line caller for the attendance session controller.

Usage:
  attendance-session check-in 42 --lat 40.7128 --lng -74.0060
  attendance-session check-out 42
  attendance-session status 42
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import httpx

from attendance_session.core.config import Settings, get_settings
from attendance_session.core.exceptions import ApiError
from attendance_session.core.logging_config import setup_logging
from attendance_session.schemas.attendance import Coordinates
from attendance_session.services.attendance_client import AttendanceClient
from attendance_session.services.geofence import distance_meters, parse_geofence
from attendance_session.services.location import FixedDeviceLocation, LocationProvider
from attendance_session.services.reasons import classify_api_error
from attendance_session.services.session import (
    AttendanceSessionController,
    SessionState,
    TransitionOutcome,
)

EXIT_OK = 0
EXIT_FAILED = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="attendance-session",
        description="Check in to and out of events from the command line.",
    )
    parser.add_argument("--user-id", default="cli", help="Identifier recorded in logs")
    parser.add_argument("--log-level", default=None, help="Overrides LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    check_in = subparsers.add_parser("check-in", help="Check in at the given coordinates")
    check_in.add_argument("event_id")
    check_in.add_argument("--lat", type=float, required=True)
    check_in.add_argument("--lng", type=float, required=True)
    check_in.add_argument("--accuracy", type=float, default=None, help="Accuracy radius in meters")
    check_in.add_argument(
        "--geofence", type=Path, default=None,
        help="JSON file with the event geofence; checked locally before calling the API",
    )

    check_out = subparsers.add_parser("check-out", help="Check out of an event")
    check_out.add_argument("event_id")

    status = subparsers.add_parser("status", help="Show server-side attendance status")
    status.add_argument("event_id")

    return parser


def _report(outcome: TransitionOutcome) -> int:
    if outcome.succeeded:
        print(f"✅ {outcome.state.value}")
        return EXIT_OK
    if outcome.cancelled:
        print(f"❌ cancelled, session is {outcome.state.value}")
        return EXIT_FAILED

    failure = outcome.failure
    line = f"❌ {failure.reason.value}"
    if failure.message:
        line += f": {failure.message}"
    print(line)
    return EXIT_FAILED


async def run(
    args: argparse.Namespace,
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> int:
    """Execute one parsed command against the configured API."""
    async with AttendanceClient.from_settings(settings, transport=transport) as client:
        if args.command == "status":
            try:
                status = await client.get_status(args.event_id)
            except ApiError as e:
                failure = classify_api_error(e)
                print(f"❌ {failure.reason.value}: {failure.message}")
                return EXIT_FAILED
            print(f"event {status.event_id}: {'checked in' if status.checked_in else 'not checked in'}")
            if status.check_in_time:
                print(f"  check-in time:  {status.check_in_time.isoformat()}")
            if status.check_out_time:
                print(f"  check-out time: {status.check_out_time.isoformat()}")
            return EXIT_OK

        if args.command == "check-in":
            coordinates = Coordinates(latitude=args.lat, longitude=args.lng, accuracy_m=args.accuracy)
            geofence = None
            if args.geofence is not None:
                geofence = parse_geofence(args.geofence.read_text(encoding="utf-8"))
                if geofence.circle is not None:
                    distance = distance_meters(coordinates, geofence.circle.center)
                    print(f"distance to event center: {distance:.0f} m")

            locations = LocationProvider(
                FixedDeviceLocation(coordinates),
                fix_timeout=settings.LOCATION_FIX_TIMEOUT_SECONDS,
            )
            controller = AttendanceSessionController(
                args.event_id, args.user_id, locations, client, geofence=geofence,
            )
            return _report(await controller.request_check_in())

        # check-out: the session is volatile, so rebuild it from the server first
        try:
            status = await client.get_status(args.event_id)
        except ApiError as e:
            failure = classify_api_error(e)
            print(f"❌ {failure.reason.value}: {failure.message}")
            return EXIT_FAILED

        # Check-out never reads the location
        locations = LocationProvider(FixedDeviceLocation(Coordinates(latitude=0, longitude=0)))
        controller = AttendanceSessionController.from_status(status, args.user_id, locations, client)
        if controller.state is not SessionState.CHECKED_IN:
            print(f"❌ not checked in to event {args.event_id}")
            return EXIT_FAILED
        return _report(await controller.request_check_out())


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ValueError as e:
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILED

    setup_logging(level=args.log_level or settings.LOG_LEVEL, json_logs=settings.LOG_JSON)

    try:
        return asyncio.run(run(args, settings))
    except (ValueError, OSError) as e:
        # Bad coordinates or an unreadable geofence file
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
