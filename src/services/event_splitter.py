"""Long event splitting.

Events spanning more than a few days are replaced by two single-day markers,
one on the first day and one on the last day, before fingerprinting and
duplicate detection.
"""

from datetime import date

from src.domain.deduplication_constants import LONG_EVENT_MAX_DAYS
from src.domain.models import CandidateEvent


def calculate_days_duration(start_date: date, end_date: date) -> int:
    """Inclusive number of days between two dates.

    Example:
        >>> calculate_days_duration(date(2025, 10, 30), date(2025, 11, 2))
        4
    """
    return (end_date - start_date).days + 1


def split_long_event(
    candidate: CandidateEvent, max_days: int = LONG_EVENT_MAX_DAYS
) -> list[CandidateEvent]:
    """Split a long candidate into start and end markers.

    Args:
        candidate: Candidate event (not modified)
        max_days: Longest span kept as a single event

    Returns:
        ``[candidate]`` when the span is at most ``max_days`` days, otherwise
        ``[start_marker, end_marker]``: the start marker is titled
        ``"<title> (~<end>)"`` on the first day, the end marker
        ``"<title> (<start>~)"`` on the last day. Times and description are
        kept on both.
    """
    duration = calculate_days_duration(candidate.start_date, candidate.end_date)
    if duration <= max_days:
        return [candidate]

    start_marker = candidate.model_copy(
        update={
            "title": f"{candidate.title} (~{candidate.end_date.isoformat()})",
            "end_date": candidate.start_date,
        }
    )
    end_marker = candidate.model_copy(
        update={
            "title": f"{candidate.title} ({candidate.start_date.isoformat()}~)",
            "start_date": candidate.end_date,
        }
    )
    return [start_marker, end_marker]
