"""General utility functions."""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC timezone."""
    if dt.tzinfo is None:
        # Assume UTC if no timezone
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def age_seconds(timestamp: datetime, now: datetime) -> float:
    """Seconds elapsed between ``timestamp`` and ``now`` (negative if in the future)."""
    return (to_utc(now) - to_utc(timestamp)).total_seconds()
