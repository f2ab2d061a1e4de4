"""Protocol definitions for dependency inversion.

These abstract interfaces define contracts that adapters must implement.
The orchestration use case depends only on these protocols.
"""

from datetime import datetime
from typing import Protocol

from src.domain.models import (
    CandidateEvent,
    ExistingEvent,
    FeedItem,
    NoticeSummary,
    ProcessedRecord,
)


class FeedClientProtocol(Protocol):
    """Protocol for announcement feed sources."""

    def fetch_items(self) -> list[FeedItem]:
        """Fetch and parse the current feed.

        Returns:
            Feed items in feed order

        Raises:
            FeedFetchError: On download or parse errors
        """
        ...


class EventExtractorProtocol(Protocol):
    """Protocol for the LLM collaborator."""

    def summarize(self, item: FeedItem, description_text: str) -> NoticeSummary:
        """Summarize a notice.

        Args:
            item: Feed item
            description_text: Plain-text notice body

        Returns:
            Structured summary

        Raises:
            LLMAPIError: On API communication errors
            ValidationError: On undecodable responses
        """
        ...

    def extract_events(
        self, item: FeedItem, description_text: str, pub_date: str
    ) -> list[CandidateEvent]:
        """Extract calendar events from a notice.

        Args:
            item: Feed item
            description_text: Plain-text notice body
            pub_date: Normalized publication date (YYYY-MM-DD)

        Returns:
            Candidate events (possibly empty)

        Raises:
            LLMAPIError: On API communication errors
            ValidationError: On undecodable responses
        """
        ...


class CalendarClientProtocol(Protocol):
    """Protocol for the downstream calendar."""

    def list_events(
        self, time_min: datetime, time_max: datetime
    ) -> list[ExistingEvent]:
        """List events in a window.

        Raises:
            CalendarAPIError: On API communication errors
        """
        ...

    def create_event(
        self,
        candidate: CandidateEvent,
        record: ProcessedRecord,
        item: FeedItem | None = None,
    ) -> ExistingEvent:
        """Publish a candidate event.

        Args:
            candidate: Event to publish
            record: Idempotency metadata stored on the event
            item: Source feed item (for attachments)

        Returns:
            The created event

        Raises:
            CalendarAPIError: On API communication errors
        """
        ...


class NotifierProtocol(Protocol):
    """Protocol for chat notifications about published events."""

    def notify_event_created(self, event: ExistingEvent, item: FeedItem) -> None:
        """Announce a created event. Must not raise."""
        ...


class ProcessedStoreProtocol(Protocol):
    """Protocol for the idempotency key-value store."""

    def get(self, key: str) -> ProcessedRecord | None:
        """Load the record for a feed item, if any.

        Raises:
            StoreError: On storage errors
        """
        ...

    def put(self, key: str, record: ProcessedRecord) -> None:
        """Write the record for a feed item.

        Raises:
            StoreError: On storage errors
        """
        ...
