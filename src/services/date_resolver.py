"""Date resolution for feed items.

Handles:
- Publication dates in ISO, RFC 822 and other common formats
- Fallback to today for missing or unparseable dates
- Recency window filtering (fail-open)
"""

import re
from datetime import date, datetime, timedelta
from typing import Final

import pytz
from dateutil import parser as dateutil_parser

from src.domain.deduplication_constants import (
    DEFAULT_RECENCY_FUTURE_DAYS,
    DEFAULT_RECENCY_PAST_DAYS,
    DEFAULT_TIMEZONE,
)

ISO_DATE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\d{4}-\d{2}-\d{2}$")
"""Pattern for dates already in YYYY-MM-DD form."""


def today_in(tz_name: str = DEFAULT_TIMEZONE, now: datetime | None = None) -> date:
    """Current calendar day in a time zone.

    Args:
        tz_name: IANA zone name
        now: Reference instant (aware; defaults to the current time)

    Returns:
        Local date
    """
    tz = pytz.timezone(tz_name)
    reference = now or datetime.now(pytz.UTC)
    if reference.tzinfo is None:
        reference = pytz.UTC.localize(reference)
    return reference.astimezone(tz).date()


def parse_pub_date(raw: str, tz_name: str = DEFAULT_TIMEZONE) -> date | None:
    """Parse a feed publication date.

    Args:
        raw: Date string (``2025-10-28``, ``Tue, 28 Oct 2025 09:30:00 +0900``...)
        tz_name: Zone the resulting day is expressed in

    Returns:
        Calendar day, or None if empty or unparseable
    """
    value = (raw or "").strip()
    if not value:
        return None

    if ISO_DATE_PATTERN.match(value):
        try:
            return date.fromisoformat(value)
        except ValueError:
            return None

    try:
        parsed = dateutil_parser.parse(value)
    except (ValueError, OverflowError):
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(pytz.timezone(tz_name))
    return parsed.date()


def normalize_pub_date(
    raw: str, tz_name: str = DEFAULT_TIMEZONE, now: datetime | None = None
) -> str:
    """Normalize a publication date to YYYY-MM-DD.

    Missing or unparseable dates fall back to today.

    Example:
        >>> normalize_pub_date("2025-10-28")
        '2025-10-28'
    """
    parsed = parse_pub_date(raw, tz_name)
    if parsed is None:
        parsed = today_in(tz_name, now)
    return parsed.isoformat()


def is_within_recency_window(
    pub_date: str,
    now: datetime | None = None,
    past_days: int = DEFAULT_RECENCY_PAST_DAYS,
    future_days: int = DEFAULT_RECENCY_FUTURE_DAYS,
    tz_name: str = DEFAULT_TIMEZONE,
) -> bool:
    """Check whether a publication date is recent enough to process.

    The window is ``[today - past_days, today + future_days]``, inclusive on
    both ends. Empty or unparseable dates are accepted (fail-open).

    Args:
        pub_date: Raw publication date
        now: Reference instant
        past_days: Days back that are still processed
        future_days: Days ahead that are still processed
        tz_name: Zone used to compute "today"

    Returns:
        True if the item should be processed
    """
    parsed = parse_pub_date(pub_date, tz_name)
    if parsed is None:
        return True

    today = today_in(tz_name, now)
    return today - timedelta(days=past_days) <= parsed <= today + timedelta(
        days=future_days
    )
