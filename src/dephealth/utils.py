"""Shared numeric and date helpers."""

import logging
import math
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def days_between(later: datetime, earlier: datetime) -> float:
    """Fractional days from earlier to later."""
    return (ensure_utc(later) - ensure_utc(earlier)).total_seconds() / SECONDS_PER_DAY


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves rounding up.

    Scores use this instead of round() so 82.5 becomes 83, not 82.
    """
    return math.floor(value + 0.5)


def parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the GitHub API.

    Unparseable values are treated as missing.
    """
    if not value:
        return None
    try:
        return ensure_utc(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError:
        logger.debug(f"Ignoring unparseable timestamp: {value!r}")
        return None
