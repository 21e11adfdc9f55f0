"""
Time Utilities

Exchanges report time in different shapes:
- Liqui: seconds since epoch (e.g., 1704110400)
- ItBit: ISO-8601 strings with 7-digit fractions (e.g., "2024-01-01T12:00:00.1230000Z")
- Signing: whole seconds since epoch for timestamps and nonces

The helpers here normalize all of them into timezone-aware UTC datetimes for
the Pydantic schemas.
"""

from datetime import datetime, timezone
from typing import Union

from dateutil import parser as dateparser


def to_utc_datetime(timestamp: Union[int, float]) -> datetime:
    """
    Convert a timestamp (seconds or milliseconds) to a UTC datetime.

    Timestamps above 1e12 are treated as milliseconds.

    Raises:
        ValueError: If the timestamp is negative or out of range

    Examples:
        >>> to_utc_datetime(1704110400)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
        >>> to_utc_datetime(1704110400000)
        datetime.datetime(2024, 1, 1, 12, 0, tzinfo=datetime.timezone.utc)
    """
    if timestamp < 0:
        raise ValueError(f"Timestamp cannot be negative: {timestamp}")

    if timestamp > 1e12:
        timestamp = timestamp / 1000.0

    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OSError, OverflowError, ValueError) as e:
        raise ValueError(f"Invalid timestamp: {timestamp}. Error: {e}")


def parse_utc_datetime(value: str) -> datetime:
    """
    Parse an ISO-8601 string into a UTC datetime.

    Naive values are assumed to be UTC.

    Raises:
        ValueError: If the string is not a valid ISO-8601 datetime

    Example:
        >>> parse_utc_datetime("2024-01-01T12:00:00.1230000Z")
        datetime.datetime(2024, 1, 1, 12, 0, 0, 123000, tzinfo=datetime.timezone.utc)
    """
    dt = dateparser.isoparse(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)
