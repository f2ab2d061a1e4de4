"""Temporal range extraction and overlap gating.

Timed events are compared as half-open instant intervals. All-day events have
no range and are compared by calendar day only.
"""

from datetime import date, datetime, time

import pytz

from src.domain.deduplication_constants import DEFAULT_END_TIME, DEFAULT_TIMEZONE
from src.domain.exceptions import MalformedTimestampError
from src.domain.models import CandidateEvent, ExistingEvent, TimeRange

_DEFAULT_END = time.fromisoformat(DEFAULT_END_TIME)


def _resolve_tz(tz_name: str) -> pytz.BaseTzInfo:
    try:
        return pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        return pytz.timezone(DEFAULT_TIMEZONE)


def parse_date_time(value: str, tz_name: str = DEFAULT_TIMEZONE) -> datetime:
    """Parse an ISO 8601 date-time into an aware datetime.

    Values carrying an offset (``2025-10-22T09:00:00+09:00``, ``...Z``) keep it;
    naive values are interpreted in ``tz_name``.

    Args:
        value: ISO 8601 string
        tz_name: Zone for naive values

    Returns:
        Timezone-aware datetime

    Raises:
        MalformedTimestampError: If the value cannot be parsed
    """
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError) as e:
        raise MalformedTimestampError(str(value)) from e

    if parsed.tzinfo is None:
        parsed = _resolve_tz(tz_name).localize(parsed)
    return parsed


def event_time_range(
    event: ExistingEvent, tz_name: str = DEFAULT_TIMEZONE
) -> TimeRange | None:
    """Time range of a published event.

    Returns None for all-day events, events without start/end date-times and
    events whose timestamps cannot be parsed.
    """
    if event.start is None or event.start.date:
        return None
    if not event.start.date_time or event.end is None or not event.end.date_time:
        return None

    try:
        return TimeRange(
            start=parse_date_time(event.start.date_time, tz_name),
            end=parse_date_time(event.end.date_time, tz_name),
        )
    except MalformedTimestampError:
        return None


def candidate_time_range(
    candidate: CandidateEvent, day: date, tz_name: str = DEFAULT_TIMEZONE
) -> TimeRange | None:
    """Time range of a candidate anchored on ``day``.

    The end falls on the candidate's end date at its end time, or at 23:59
    when no end time is given. Both ends are in ``tz_name``.

    Args:
        candidate: Candidate event
        day: Anchor date (normally the candidate's start date)
        tz_name: Civil time zone of the clock times

    Returns:
        Time range, or None for all-day candidates
    """
    if candidate.start_time is None:
        return None

    tz = _resolve_tz(tz_name)
    end_day = candidate.end_date or day
    start = tz.localize(datetime.combine(day, candidate.start_time))
    end = tz.localize(datetime.combine(end_day, candidate.end_time or _DEFAULT_END))
    return TimeRange(start=start, end=end)


def overlaps(first: TimeRange, second: TimeRange) -> bool:
    """Half-open interval intersection test.

    Ranges that only touch at a boundary do not overlap.

    Example:
        >>> nine = datetime(2025, 10, 22, 9, tzinfo=pytz.UTC)
        >>> ten = datetime(2025, 10, 22, 10, tzinfo=pytz.UTC)
        >>> eleven = datetime(2025, 10, 22, 11, tzinfo=pytz.UTC)
        >>> overlaps(TimeRange(nine, ten), TimeRange(ten, eleven))
        False
    """
    return first.start < second.end and second.start < first.end
