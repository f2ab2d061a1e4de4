"""Process feed use case.

Turns new notices into calendar events, skipping duplicates of what is
already on the calendar.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta

import pytz

from src.config.logging_config import get_logger
from src.config.settings import Settings
from src.domain.deduplication_constants import DUPLICATE_SKIP_EVENT_ID
from src.domain.exceptions import LLMAPIError, RateLimitError, ValidationError
from src.domain.models import (
    CandidateEvent,
    ExistingEvent,
    FeedItem,
    NoticeSummary,
    ProcessedRecord,
    RunResult,
    SplitGroupPolicy,
)
from src.domain.protocols import (
    CalendarClientProtocol,
    EventExtractorProtocol,
    FeedClientProtocol,
    NotifierProtocol,
    ProcessedStoreProtocol,
)
from src.observability.tracing import item_scope, run_scope
from src.services import deduplicator
from src.services.date_resolver import is_within_recency_window, normalize_pub_date
from src.services.description_builder import build_description
from src.services.event_splitter import split_long_event
from src.services.text_normalizer import html_to_text

logger = get_logger(__name__)


@dataclass
class PreparedPart:
    """One publishable part of an extracted event, with its classification."""

    candidate: CandidateEvent
    fingerprint: str
    duplicate: bool


@dataclass
class ItemOutcome:
    """What happened to a single feed item."""

    created: list[ExistingEvent] = field(default_factory=list)
    duplicates: int = 0
    last_fingerprint: str = ""
    extracted: int = 0


def prepare_groups(
    candidates: list[CandidateEvent],
    window: list[ExistingEvent],
    item_id: str,
    threshold: float,
    tz_name: str,
) -> list[list[PreparedPart]]:
    """Split, fingerprint and classify every candidate of a notice.

    All parts are classified against the same window, before anything is
    published for the notice.

    Args:
        candidates: Candidates extracted from one notice
        window: Existing events (not modified)
        item_id: Source feed item
        threshold: Similarity threshold
        tz_name: Civil time zone of candidate times

    Returns:
        One group per candidate, each holding one or two parts
    """
    groups: list[list[PreparedPart]] = []
    for candidate in candidates:
        parts: list[PreparedPart] = []
        for part in split_long_event(candidate):
            parts.append(
                PreparedPart(
                    candidate=part,
                    fingerprint=deduplicator.fingerprint_candidate(part),
                    duplicate=deduplicator.is_duplicate(
                        window,
                        part,
                        threshold=threshold,
                        source_item_id=item_id,
                        tz_name=tz_name,
                    ),
                )
            )
        groups.append(parts)
    return groups


def select_parts(
    groups: list[list[PreparedPart]], policy: SplitGroupPolicy
) -> tuple[list[PreparedPart], int]:
    """Apply the split-group policy.

    Returns:
        Parts to publish, and the number of parts skipped as duplicates
    """
    accepted: list[PreparedPart] = []
    skipped = 0
    for parts in groups:
        if policy == SplitGroupPolicy.SKIP_GROUP and any(p.duplicate for p in parts):
            skipped += len(parts)
            continue
        for part in parts:
            if part.duplicate:
                skipped += 1
            else:
                accepted.append(part)
    return accepted, skipped


def _summarize(
    extractor: EventExtractorProtocol, item: FeedItem, description_text: str
) -> NoticeSummary:
    try:
        return extractor.summarize(item, description_text)
    except (LLMAPIError, RateLimitError, ValidationError) as e:
        logger.warning("summary_fallback_used", error=str(e))
        return NoticeSummary.fallback()


def process_item(
    item: FeedItem,
    extractor: EventExtractorProtocol,
    calendar: CalendarClientProtocol,
    notifier: NotifierProtocol,
    window: list[ExistingEvent],
    settings: Settings,
    now: datetime,
) -> ItemOutcome:
    """Extract, classify and publish the events of one notice.

    Created events are appended to ``window``.

    Raises:
        LLMAPIError: If event extraction fails
        ValidationError: If the extraction response is undecodable
        CalendarAPIError: If publishing fails
    """
    outcome = ItemOutcome()
    description_text = html_to_text(item.description_html)
    pub_date = normalize_pub_date(item.pub_date, settings.tz_default, now)

    summary = _summarize(extractor, item, description_text)
    candidates = extractor.extract_events(item, description_text, pub_date)
    outcome.extracted = len(candidates)
    if not candidates:
        return outcome

    description = build_description(item, summary, description_text)
    candidates = [c.model_copy(update={"description": description}) for c in candidates]

    groups = prepare_groups(
        candidates,
        window,
        item.item_id,
        settings.similarity_threshold,
        settings.tz_default,
    )
    accepted, outcome.duplicates = select_parts(groups, settings.split_group_policy)
    if outcome.duplicates:
        logger.info(
            "duplicates_skipped",
            count=outcome.duplicates,
            policy=settings.split_group_policy.value,
        )

    for part in accepted:
        record = ProcessedRecord(
            event_id="",
            source_item_id=item.item_id,
            processed_at=now,
            fingerprint=part.fingerprint,
        )
        try:
            created = calendar.create_event(part.candidate, record, item)
        except Exception as e:
            if outcome.created:
                # Already-published events stay; the retry may duplicate them
                logger.error(
                    "item_partially_published",
                    item_id=item.item_id,
                    created_event_ids=[event.event_id for event in outcome.created],
                    failed_title=part.candidate.title,
                    error=str(e),
                )
            raise
        window.append(created)
        outcome.created.append(created)
        outcome.last_fingerprint = part.fingerprint
        notifier.notify_event_created(created, item)

    if not outcome.created:
        outcome.last_fingerprint = groups[-1][-1].fingerprint

    return outcome


def build_record(item: FeedItem, outcome: ItemOutcome, now: datetime) -> ProcessedRecord:
    """Idempotency record for a processed item."""
    if outcome.created:
        event_id = outcome.created[-1].event_id
    elif outcome.extracted:
        event_id = DUPLICATE_SKIP_EVENT_ID
    else:
        event_id = ""

    return ProcessedRecord(
        event_id=event_id,
        source_item_id=item.item_id,
        processed_at=now,
        fingerprint=outcome.last_fingerprint,
    )


def process_feed_use_case(
    feed_client: FeedClientProtocol,
    extractor: EventExtractorProtocol,
    calendar: CalendarClientProtocol,
    notifier: NotifierProtocol,
    store: ProcessedStoreProtocol,
    settings: Settings,
    now: datetime | None = None,
) -> RunResult:
    """Process the notice feed once.

    1. Fetch items and list the calendar window once
    2. Skip items already recorded or outside the recency window
    3. Summarize, extract, split and classify all parts of a notice
    4. Publish accepted parts, growing the in-memory window
    5. Record the item

    A failure while processing one item is logged and counted; the item is
    not recorded, so the next run retries it.

    Args:
        feed_client: Feed source
        extractor: LLM summary/event extractor
        calendar: Calendar client
        notifier: Event-created notifier
        store: Processed-item store
        settings: Application settings
        now: Reference instant (defaults to the current time)

    Returns:
        RunResult with counts

    Raises:
        FeedFetchError: If the feed cannot be fetched
        CalendarAPIError: If the calendar window cannot be listed

    Example:
        >>> result = process_feed_use_case(feed, llm, calendar, notifier, store, settings)
        >>> result.created
        2
    """
    now = now or datetime.now(pytz.UTC)
    result = RunResult()

    with run_scope() as run_id:
        items = feed_client.fetch_items()
        window = calendar.list_events(
            now - timedelta(days=settings.calendar_lookback_days),
            now + timedelta(days=settings.calendar_lookahead_days),
        )
        logger.info(
            "feed_run_started",
            run_id=run_id,
            item_count=len(items),
            window_size=len(window),
            threshold=settings.similarity_threshold,
        )

        for item in items:
            with item_scope(item.item_id):
                if store.get(item.item_id) is not None:
                    result.processed += 1
                    continue

                if not is_within_recency_window(
                    item.pub_date,
                    now,
                    settings.recency_past_days,
                    settings.recency_future_days,
                    settings.tz_default,
                ):
                    logger.info("item_outside_recency_window", pub_date=item.pub_date)
                    result.skipped += 1
                    continue

                try:
                    outcome = process_item(
                        item, extractor, calendar, notifier, window, settings, now
                    )
                    store.put(item.item_id, build_record(item, outcome, now))
                except Exception as e:
                    logger.error(
                        "item_processing_failed",
                        title=item.title,
                        error=str(e),
                        exc_info=True,
                    )
                    result.errors.append(f"{item.item_id}: {e}")
                    continue

                result.processed += 1
                result.created += len(outcome.created)
                result.duplicates += outcome.duplicates
                logger.info(
                    "item_processed",
                    extracted=outcome.extracted,
                    created=len(outcome.created),
                    duplicates=outcome.duplicates,
                )

        logger.info(
            "feed_run_completed",
            processed=result.processed,
            created=result.created,
            duplicates=result.duplicates,
            skipped=result.skipped,
            errors=len(result.errors),
        )

    return result
