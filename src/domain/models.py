"""Domain models for the notice calendar harvester.

All models use Pydantic v2 for validation and serialization.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum

from pydantic import BaseModel, Field

from src.domain.deduplication_constants import DUPLICATE_SKIP_EVENT_ID

SUMMARY_FALLBACK_TEXT = "요약 정보를 생성하지 못했습니다."


class SplitGroupPolicy(str, Enum):
    """What to do when one part of a split event group is a duplicate."""

    SKIP_GROUP = "skip_group"
    SKIP_PART = "skip_part"


class FeedAttachment(BaseModel):
    """Attachment metadata carried by a feed item."""

    filename: str = Field(default="", description="Attachment file name")
    url: str = Field(default="", description="Direct download URL")
    preview: str = Field(default="", description="Preview page URL")


class FeedItem(BaseModel):
    """Announcement item parsed from the RSS feed."""

    item_id: str = Field(..., description="Stable identifier of the notice")
    title: str = Field(default="", description="Notice title")
    link: str = Field(default="", description="Notice URL")
    pub_date: str = Field(default="", description="Raw publication date")
    description_html: str = Field(default="", description="Notice body as HTML")
    department: str | None = Field(default=None, description="Posting department")
    attachment: FeedAttachment | None = Field(
        default=None, description="First attachment, if any"
    )


class NoticeSummary(BaseModel):
    """Structured summary of a notice produced by the LLM."""

    summary: str = Field(default=SUMMARY_FALLBACK_TEXT)
    highlights: list[str] = Field(default_factory=list)
    action_items: list[str] = Field(default_factory=list)
    links: list[str] = Field(default_factory=list)

    @classmethod
    def fallback(cls) -> "NoticeSummary":
        """Summary used when the LLM could not produce one."""
        return cls()


class CandidateEvent(BaseModel):
    """Calendar event extracted from a notice, pending duplicate classification.

    Timed when ``start_time`` is set, all-day otherwise. Dates are an
    inclusive range; callers guarantee ``end_date >= start_date``.
    """

    title: str = Field(..., min_length=1, description="Display title")
    description: str = Field(default="", description="Display description")
    start_date: date = Field(..., description="First day (inclusive)")
    end_date: date = Field(..., description="Last day (inclusive)")
    start_time: time | None = Field(default=None, description="Start clock time")
    end_time: time | None = Field(default=None, description="End clock time")

    @property
    def is_timed(self) -> bool:
        return self.start_time is not None


class EventTime(BaseModel):
    """Start or end of a calendar event, as returned by the calendar API.

    Exactly one of ``date`` (all-day) and ``date_time`` (timed, ISO 8601 with
    offset) is normally set. Values are kept as raw strings because the
    calendar is not controlled by this system.
    """

    date: str | None = Field(default=None, description="YYYY-MM-DD for all-day")
    date_time: str | None = Field(default=None, description="ISO 8601 date-time")

    @property
    def day(self) -> str | None:
        """Calendar day portion, regardless of timed/all-day."""
        if self.date:
            return self.date
        if self.date_time:
            return self.date_time[:10]
        return None


class ExistingEvent(BaseModel):
    """Read-only view of an event already published on the calendar."""

    event_id: str = Field(..., description="Calendar event identifier")
    title: str = Field(default="", description="Event summary")
    description: str = Field(default="", description="Event description")
    start: EventTime | None = Field(default=None)
    end: EventTime | None = Field(default=None)
    source_item_id: str | None = Field(
        default=None, description="Feed item that produced this event"
    )
    fingerprint: str | None = Field(default=None, description="Content fingerprint")
    html_link: str | None = Field(default=None, description="Calendar UI link")


@dataclass(frozen=True)
class TimeRange:
    """Half-open instant interval ``[start, end)`` of a timed event."""

    start: datetime
    end: datetime


class ProcessedRecord(BaseModel):
    """Idempotency record written once per processed feed item."""

    event_id: str = Field(
        ..., description="Created event id, 'duplicate-skip' or '' (no events)"
    )
    source_item_id: str = Field(..., description="Feed item identifier")
    processed_at: datetime = Field(..., description="Processing timestamp (UTC)")
    fingerprint: str = Field(default="", description="Fingerprint of last candidate")

    @property
    def is_duplicate_skip(self) -> bool:
        return self.event_id == DUPLICATE_SKIP_EVENT_ID


class RunResult(BaseModel):
    """Result of one feed processing run."""

    processed: int = Field(default=0, description="Items handled or already done")
    created: int = Field(default=0, description="Calendar events created")
    duplicates: int = Field(default=0, description="Candidates skipped as duplicate")
    skipped: int = Field(default=0, description="Items outside the recency window")
    errors: list[str] = Field(default_factory=list)
