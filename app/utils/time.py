"""Utility functions for time handling.

All persisted timestamps are UTC and timezone-aware, stored as ISO-8601
strings with offsets (e.g., "+00:00") via iso_now(). Calendar concepts
(the "current day", an irrigation time-of-day) are evaluated in the farm's
local timezone, resolved once from configuration.
"""

from __future__ import annotations

import logging
import math
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Return current UTC time as an aware datetime."""
    return datetime.now(timezone.utc)


def iso_now(*, timespec: str | None = None) -> str:
    """Return current UTC time as an ISO8601 string (timezone-aware)."""
    now = utc_now()
    if timespec:
        return now.isoformat(timespec=timespec)
    return now.isoformat()


def to_utc_iso(dt: datetime) -> str:
    """Serialize a datetime as a UTC ISO string (naive values are assumed UTC)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def resolve_timezone(name: str | None) -> tzinfo:
    """Resolve an IANA timezone name, falling back to UTC."""
    if not name or name.upper() in {"UTC", "Z", "GMT"}:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return timezone.utc


def coerce_datetime(value: Any) -> datetime | None:
    """
    Coerce value to datetime, returning None on failure.

    Args:
        value: String or datetime to coerce

    Returns:
        Datetime in timezone.utc or None if invalid
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw.replace("Z", "+00:00")
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed


def parse_time_of_day(value: str) -> time:
    """Parse an "HH:MM" string into a time. Raises ValueError when malformed."""
    if not isinstance(value, str):
        raise ValueError(f"time of day must be a string, got {type(value).__name__}")
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: {value!r}")
    return time(hour=hour, minute=minute)


def at_time_of_day(day: date, time_of_day: str, tz: tzinfo) -> datetime:
    """Combine a calendar date with an "HH:MM" time in the given timezone."""
    return datetime.combine(day, parse_time_of_day(time_of_day), tzinfo=tz)


def local_date(dt: datetime, tz: tzinfo) -> date:
    """Calendar date of an instant as seen in the given timezone."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz).date()


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))
