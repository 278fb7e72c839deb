"""Datetime utilities for consistent timestamp handling."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union

TimestampLike = Union[datetime, str, int, float]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def parse_timestamp(timestamp: Optional[TimestampLike]) -> Optional[datetime]:
    """Parse a timestamp into a timezone-aware datetime.

    Accepts datetimes, ISO 8601 strings (a trailing ``Z`` is accepted) and
    unix timestamps in milliseconds or seconds. Naive values are taken as UTC.

    Args:
        timestamp: Value to parse, or None

    Returns:
        datetime object (UTC-aware) or None if timestamp is None or empty

    Raises:
        ValueError: If a string is not valid ISO 8601
    """
    if timestamp is None or timestamp == "":
        return None

    if isinstance(timestamp, datetime):
        dt = timestamp
    elif isinstance(timestamp, str):
        value = timestamp.strip()
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
    else:
        # Convert milliseconds to seconds if needed (timestamps > 1e10 are in ms)
        ts = timestamp / 1000.0 if timestamp > 1e10 else timestamp
        return datetime.fromtimestamp(ts, tz=timezone.utc)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_epoch_ms(dt: datetime) -> float:
    """Convert a datetime to milliseconds since the unix epoch.

    Naive datetimes are taken as UTC so mixed inputs order consistently.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    # Integer microseconds keep whole-millisecond deltas exact
    return ((dt - _EPOCH) // timedelta(microseconds=1)) / 1000


def format_iso(dt: Optional[datetime] = None) -> str:
    """Format datetime as ISO 8601 string.

    Args:
        dt: datetime object, or None for current time

    Returns:
        ISO 8601 formatted string
    """
    if dt is None:
        dt = datetime.now(tz=timezone.utc)
    return dt.isoformat()
