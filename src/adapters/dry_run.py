"""Dry-run adapters that read real data but never write."""

from datetime import datetime

from src.config.logging_config import get_logger
from src.domain.models import (
    CandidateEvent,
    EventTime,
    ExistingEvent,
    FeedItem,
    ProcessedRecord,
)
from src.domain.protocols import CalendarClientProtocol

logger = get_logger(__name__)


class DryRunCalendarClient:
    """Lists events from a real calendar; creation is only logged."""

    def __init__(self, inner: CalendarClientProtocol) -> None:
        self.inner = inner
        self._counter = 0

    def list_events(
        self, time_min: datetime, time_max: datetime
    ) -> list[ExistingEvent]:
        return self.inner.list_events(time_min, time_max)

    def create_event(
        self,
        candidate: CandidateEvent,
        record: ProcessedRecord,
        item: FeedItem | None = None,
    ) -> ExistingEvent:
        self._counter += 1
        event_id = f"dry-run-{self._counter}"
        logger.info(
            "dry_run_event_skipped",
            event_id=event_id,
            title=candidate.title,
            start_date=candidate.start_date.isoformat(),
            end_date=candidate.end_date.isoformat(),
            timed=candidate.is_timed,
        )
        if candidate.start_time is not None:
            start = EventTime(
                date_time=f"{candidate.start_date.isoformat()}T{candidate.start_time:%H:%M}:00"
            )
        else:
            start = EventTime(date=candidate.start_date.isoformat())
        return ExistingEvent(
            event_id=event_id,
            title=candidate.title,
            description=candidate.description,
            start=start,
            source_item_id=record.source_item_id,
            fingerprint=record.fingerprint,
        )


class LoggingNotifier:
    """Notifier that only logs."""

    def notify_event_created(self, event: ExistingEvent, item: FeedItem) -> None:
        logger.info(
            "dry_run_notification_skipped",
            event_id=event.event_id,
            title=event.title,
            link=item.link,
        )
