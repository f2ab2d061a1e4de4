"""Decoding of LLM JSON payloads into domain models.

The LLM may answer with ``{"events": [...]}``, a bare list, or a single event
object, and may omit fields. Everything is normalized here so that the rest
of the pipeline only ever sees ``list[CandidateEvent]``.
"""

from datetime import date, time
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.config.logging_config import get_logger
from src.domain.models import SUMMARY_FALLBACK_TEXT, CandidateEvent, NoticeSummary

FALLBACK_TITLE: Final[str] = "제목 없음"
FALLBACK_DESCRIPTION: Final[str] = "설명 없음"

logger = get_logger(__name__)


class LLMEventPayload(BaseModel):
    """One event as returned by the LLM (camelCase keys, all optional)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str | None = None
    description: str | None = None
    start_date: str | None = Field(default=None, alias="startDate")
    end_date: str | None = Field(default=None, alias="endDate")
    start_time: str | None = Field(default=None, alias="startTime")
    end_time: str | None = Field(default=None, alias="endTime")

    @field_validator("*", mode="before")
    @classmethod
    def _only_strings(cls, v: Any) -> str | None:
        """Drop non-string values and blank strings."""
        if isinstance(v, str) and v.strip():
            return v.strip()
        return None


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _parse_time(value: str | None) -> time | None:
    if not value:
        return None
    try:
        return time.fromisoformat(value)
    except ValueError:
        return None


def to_candidate(payload: LLMEventPayload, pub_date: str) -> CandidateEvent:
    """Convert one payload into a well-formed candidate.

    Defaults: missing title/description get placeholder text, missing start
    date is the publication date, missing end date is the start date, an end
    date before the start date is clamped, a missing end time is the start
    time, and an end time without a start time is dropped.

    Args:
        payload: Raw event payload
        pub_date: Publication date (YYYY-MM-DD)

    Returns:
        Candidate event that is either fully timed or fully all-day
    """
    fallback_day = _parse_date(pub_date) or date.today()
    start_date = _parse_date(payload.start_date) or fallback_day
    end_date = _parse_date(payload.end_date) or start_date
    if end_date < start_date:
        logger.warning(
            "event_end_before_start",
            title=payload.title,
            start_date=start_date.isoformat(),
            end_date=end_date.isoformat(),
        )
        end_date = start_date

    start_time = _parse_time(payload.start_time)
    end_time = _parse_time(payload.end_time) if start_time else None
    if start_time and end_time is None:
        end_time = start_time

    return CandidateEvent(
        title=payload.title or FALLBACK_TITLE,
        description=payload.description or FALLBACK_DESCRIPTION,
        start_date=start_date,
        end_date=end_date,
        start_time=start_time,
        end_time=end_time,
    )


def _event_entries(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        events = payload.get("events")
        if isinstance(events, list):
            return events
        return [payload]
    return []


def decode_event_payload(payload: Any, pub_date: str) -> list[CandidateEvent]:
    """Decode an LLM event-extraction payload.

    Args:
        payload: Parsed JSON (object, list or anything else)
        pub_date: Publication date used as date fallback

    Returns:
        Candidate events; non-object entries are ignored

    Example:
        >>> events = decode_event_payload({"title": "수강신청"}, "2025-10-28")
        >>> events[0].start_date.isoformat()
        '2025-10-28'
    """
    candidates: list[CandidateEvent] = []
    for entry in _event_entries(payload):
        if not isinstance(entry, dict):
            logger.warning("llm_event_entry_ignored", entry_type=type(entry).__name__)
            continue
        candidates.append(to_candidate(LLMEventPayload.model_validate(entry), pub_date))
    return candidates


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(entry) for entry in value if isinstance(entry, str) and entry.strip()]


def decode_summary_payload(payload: Any) -> NoticeSummary:
    """Decode an LLM summary payload, tolerating missing keys."""
    if not isinstance(payload, dict):
        return NoticeSummary.fallback()

    summary = payload.get("summary")
    return NoticeSummary(
        summary=summary if isinstance(summary, str) and summary else SUMMARY_FALLBACK_TEXT,
        highlights=_string_list(payload.get("highlights")),
        action_items=_string_list(payload.get("actionItems")),
        links=_string_list(payload.get("links")),
    )
