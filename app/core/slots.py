"""Bookable time slots.

A clinic day has nine hourly slots, 08:00 through 16:00. The catalog is
generated on demand and never stored.
"""

import re
from datetime import time

FIRST_SLOT_HOUR = 8
LAST_SLOT_HOUR = 16

_TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})(?::(\d{2}))?$")


def allowed_slots() -> list[time]:
    """Return the bookable times of a day in ascending order."""
    return [time(hour=hour) for hour in range(FIRST_SLOT_HOUR, LAST_SLOT_HOUR + 1)]


def normalize_time(value: object) -> time | None:
    """
    Normalize a client supplied time string.

    ``"HH:MM"`` is read as ``"HH:MM:00"`` and ``"HH:MM:SS"`` is taken as is.
    Anything else, including an unpadded hour such as ``"9:00"``, is invalid.

    Args:
        value: Raw value from the request

    Returns:
        Parsed time of day, or None when the shape or range is invalid
    """
    if isinstance(value, time):
        return value.replace(microsecond=0)
    if not isinstance(value, str):
        return None

    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None

    hours, minutes, seconds = (int(part) if part else 0 for part in match.groups())
    try:
        return time(hour=hours, minute=minutes, second=seconds)
    except ValueError:
        return None


def parse_slot(value: object) -> time:
    """
    Normalize a time and require it to be one of the bookable slots.

    Raises:
        ValueError: If the value is malformed or outside the catalog
    """
    normalized = normalize_time(value)
    if normalized is None:
        raise ValueError("Session time must use the HH:MM format.")
    if normalized not in allowed_slots():
        raise ValueError("Session time must be on the hour between 08:00 and 16:00.")
    return normalized


def format_slot(value: time) -> str:
    """Render a slot in ``HH:MM`` display form."""
    return value.strftime("%H:%M")
