from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def sunday_based_weekday(value: datetime) -> int:
    """Weekday with 0=Sunday .. 6=Saturday (Python's weekday() starts on Monday)."""
    return (value.weekday() + 1) % 7


def is_aware(value: datetime) -> bool:
    return value.tzinfo is not None and value.tzinfo.utcoffset(value) is not None


def safe_timezone(name: str | None, fallback: str = "UTC") -> ZoneInfo:
    if not name:
        return ZoneInfo(fallback)
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone -> falling back", extra={"timezone": name, "fallback": fallback})
        return ZoneInfo(fallback)


def format_day(value: datetime) -> str:
    return f"{value.strftime('%b')} {value.day}, {value.year}"
