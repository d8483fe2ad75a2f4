"""Shared validation utilities"""

import re
from datetime import datetime, time, timezone
from typing import Optional

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(:([0-5]\d))?$")


def parse_clock_time(value) -> time:
    """
    Parse an "HH:MM" or "HH:MM:SS" wall-clock string.

    Args:
        value: String from a form/JSON payload, or an existing ``time``

    Returns:
        ``datetime.time`` instance

    Raises:
        ValueError: If the value is not a valid 24h clock time
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValueError("Time must be a string in HH:MM format")

    match = TIME_PATTERN.match(value.strip())
    if not match:
        raise ValueError("Time must be in HH:MM format")

    return time(int(match.group(1)), int(match.group(2)), int(match.group(4) or 0))


def validate_day_of_week(day: int) -> int:
    """Validate a 0-6 day index (0 = Sunday, 6 = Saturday)"""
    if isinstance(day, bool) or not isinstance(day, int) or not 0 <= day <= 6:
        raise ValueError("day_of_week must be an integer between 0 (Sunday) and 6 (Saturday)")
    return day


def validate_rating(rating) -> int:
    """
    Validate a review rating.

    Booleans are rejected explicitly since ``True`` is an ``int`` in Python.
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValueError("Rating must be an integer between 1 and 5")
    if not 1 <= rating <= 5:
        raise ValueError("Rating must be an integer between 1 and 5")
    return rating


def as_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC; convert aware values on the way in"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def clean_optional_text(value: Optional[str]) -> Optional[str]:
    """Trim free text; blank strings become None"""
    if value is None:
        return None
    value = value.strip()
    return value or None
