"""Duplicate detection service.

Decides whether a freshly extracted candidate is already on the calendar.

Rules, checked per existing event in order, first match wins:
1. Same source item id -> duplicate (strongest signal)
2. Different calendar day -> not this one
3. Timed vs all-day mismatch -> not this one;
   both timed without clock overlap -> not this one
4. max(title similarity, description similarity) >= threshold -> duplicate
"""

import hashlib
from collections.abc import Sequence
from datetime import date

from rapidfuzz.distance import Levenshtein

from src.config.logging_config import get_logger
from src.domain.deduplication_constants import (
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_TIMEZONE,
    FINGERPRINT_SEPARATOR,
)
from src.domain.models import CandidateEvent, ExistingEvent
from src.services.text_normalizer import normalize_whitespace
from src.services.time_ranges import candidate_time_range, event_time_range, overlaps

logger = get_logger(__name__)


def normalized_levenshtein_similarity(a: str, b: str) -> float:
    """Normalized edit-distance similarity in [0, 1].

    Both inputs are trimmed and lower-cased. Equal strings score exactly 1.0
    (including two empty strings); an empty string against a non-empty one
    scores 0.0. Otherwise ``1 - distance / max(len(a), len(b))`` with unit
    costs for insertion, deletion and substitution.

    Args:
        a: First string
        b: Second string

    Returns:
        Similarity score, symmetric in its arguments

    Example:
        >>> normalized_levenshtein_similarity("Exam", "exam ")
        1.0
        >>> normalized_levenshtein_similarity("abcd", "abce")
        0.75
    """
    source = a.strip().lower()
    target = b.strip().lower()
    if source == target:
        return 1.0
    if not source or not target:
        return 0.0

    distance = Levenshtein.distance(source, target)
    return 1 - distance / max(len(source), len(target))


def compute_fingerprint(title: str, start_date: date | str, description: str) -> str:
    """Generate the content fingerprint of a candidate.

    Based on: title + start date + description. End date, times and
    attachments do not participate; temporal disambiguation is the job of
    :func:`is_duplicate`.

    Args:
        title: Event title
        start_date: First day (date or YYYY-MM-DD)
        description: Event description

    Returns:
        SHA-256 hex digest (64 lowercase characters)
    """
    key_material = FINGERPRINT_SEPARATOR.join((title, str(start_date), description))
    return hashlib.sha256(key_material.encode("utf-8")).hexdigest()


def fingerprint_candidate(candidate: CandidateEvent) -> str:
    """Fingerprint of a candidate's title, start date and description."""
    return compute_fingerprint(
        candidate.title, candidate.start_date, candidate.description
    )


def is_duplicate(
    existing: Sequence[ExistingEvent],
    candidate: CandidateEvent,
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    source_item_id: str | None = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> bool:
    """Determine whether a candidate duplicates any existing event.

    Args:
        existing: Window of published events (not modified)
        candidate: Candidate event (not modified)
        threshold: Minimum similarity for a duplicate (0.0-1.0)
        source_item_id: Feed item the candidate came from
        tz_name: Civil time zone of the candidate's clock times

    Returns:
        True if the candidate is the same real-world event as one in the window

    Note:
        Events on different days are never duplicates, even when titles are
        identical. Malformed timestamps on existing events are treated as
        all-day.
    """
    title = normalize_whitespace(candidate.title)
    description = normalize_whitespace(candidate.description)
    day = candidate.start_date.isoformat()
    candidate_range = candidate_time_range(candidate, candidate.start_date, tz_name)

    for event in existing:
        if source_item_id and event.source_item_id == source_item_id:
            logger.debug(
                "duplicate_detected",
                reason="source_item_match",
                event_id=event.event_id,
                source_item_id=source_item_id,
            )
            return True

        if event.start is None or event.start.day != day:
            continue

        event_range = event_time_range(event, tz_name)
        if (event_range is None) != (candidate_range is None):
            continue
        if event_range is not None and candidate_range is not None:
            if not overlaps(event_range, candidate_range):
                continue

        title_score = normalized_levenshtein_similarity(
            title, normalize_whitespace(event.title)
        )
        description_score = normalized_levenshtein_similarity(
            description, normalize_whitespace(event.description)
        )
        score = max(title_score, description_score)
        if score >= threshold:
            logger.debug(
                "duplicate_detected",
                reason="similarity",
                event_id=event.event_id,
                score=round(score, 4),
                threshold=threshold,
            )
            return True

    return False
