"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Any

import pytest
import pytz

from src.config.settings import Settings
from src.domain.models import (
    CandidateEvent,
    EventTime,
    ExistingEvent,
    FeedAttachment,
    FeedItem,
    NoticeSummary,
    ProcessedRecord,
)

KST = pytz.timezone("Asia/Seoul")


@pytest.fixture
def settings() -> Settings:
    """Settings with test secrets and default tuning."""

    return Settings(openai_api_key="sk-test")  # type: ignore[call-arg]


@pytest.fixture
def now() -> datetime:
    """Fixed reference instant: 2025-10-28 10:00 KST."""

    return KST.localize(datetime(2025, 10, 28, 10, 0))


@pytest.fixture
def sample_item() -> FeedItem:
    """Notice with an attachment."""

    return create_test_item()


def create_test_item(
    item_id: str = "12345",
    title: str = "2025학년도 봄학기 수강신청 안내",
    pub_date: str = "2025-10-28",
    description_html: str = "<p>수강신청 일정: 2025-11-01 ~ 2025-11-03</p>",
    attachment: FeedAttachment | None = None,
) -> FeedItem:
    """Build a feed item with sensible defaults."""

    return FeedItem(
        item_id=item_id,
        title=title,
        link=f"https://www.knue.ac.kr/www/selectBbsNttView.do?nttNo={item_id}",
        pub_date=pub_date,
        description_html=description_html,
        department="학사관리과",
        attachment=attachment,
    )


def create_candidate(
    title: str = "수강신청",
    description: str = "봄학기 수강신청",
    start: date = date(2025, 11, 1),
    end: date | None = None,
    start_time: time | None = None,
    end_time: time | None = None,
) -> CandidateEvent:
    """Build a candidate event (all-day unless times are given)."""

    return CandidateEvent(
        title=title,
        description=description,
        start_date=start,
        end_date=end or start,
        start_time=start_time,
        end_time=end_time,
    )


def create_all_day_event(
    event_id: str,
    title: str,
    day: str,
    description: str = "",
    source_item_id: str | None = None,
) -> ExistingEvent:
    """Existing all-day event on a single day."""

    return ExistingEvent(
        event_id=event_id,
        title=title,
        description=description,
        start=EventTime(date=day),
        end=EventTime(date=day),
        source_item_id=source_item_id,
    )


def create_timed_event(
    event_id: str,
    title: str,
    start: str,
    end: str,
    description: str = "",
    source_item_id: str | None = None,
) -> ExistingEvent:
    """Existing timed event; ``start``/``end`` are ISO date-times."""

    return ExistingEvent(
        event_id=event_id,
        title=title,
        description=description,
        start=EventTime(date_time=start),
        end=EventTime(date_time=end),
        source_item_id=source_item_id,
    )


class FakeFeedClient:
    """Feed client returning fixed items."""

    def __init__(self, items: list[FeedItem]) -> None:
        self.items = items

    def fetch_items(self) -> list[FeedItem]:
        return list(self.items)


class FakeExtractor:
    """Extractor returning canned candidates per item id."""

    def __init__(
        self,
        events: dict[str, list[CandidateEvent]] | None = None,
        summary: NoticeSummary | None = None,
        summary_error: Exception | None = None,
        extract_error: Exception | None = None,
    ) -> None:
        self.events = events or {}
        self.summary = summary or NoticeSummary(summary="요약")
        self.summary_error = summary_error
        self.extract_error = extract_error
        self.extract_calls: list[tuple[str, str]] = []

    def summarize(self, item: FeedItem, description_text: str) -> NoticeSummary:
        if self.summary_error:
            raise self.summary_error
        return self.summary

    def extract_events(
        self, item: FeedItem, description_text: str, pub_date: str
    ) -> list[CandidateEvent]:
        self.extract_calls.append((item.item_id, pub_date))
        if self.extract_error:
            raise self.extract_error
        return list(self.events.get(item.item_id, []))


class FakeCalendar:
    """In-memory calendar recording created events."""

    def __init__(self, existing: list[ExistingEvent] | None = None) -> None:
        self.existing = list(existing or [])
        self.created: list[tuple[CandidateEvent, ProcessedRecord]] = []
        self.list_calls: list[tuple[datetime, datetime]] = []
        self.fail_on_title: str | None = None

    def list_events(
        self, time_min: datetime, time_max: datetime
    ) -> list[ExistingEvent]:
        self.list_calls.append((time_min, time_max))
        return list(self.existing)

    def create_event(
        self,
        candidate: CandidateEvent,
        record: ProcessedRecord,
        item: FeedItem | None = None,
    ) -> ExistingEvent:
        if self.fail_on_title and candidate.title == self.fail_on_title:
            raise RuntimeError("calendar unavailable")
        self.created.append((candidate, record))
        start: dict[str, Any]
        if candidate.start_time is not None:
            start = {
                "date_time": KST.localize(
                    datetime.combine(candidate.start_date, candidate.start_time)
                ).isoformat()
            }
        else:
            start = {"date": candidate.start_date.isoformat()}
        return ExistingEvent(
            event_id=f"evt-{len(self.created)}",
            title=candidate.title,
            description=candidate.description,
            start=EventTime(**start),
            source_item_id=record.source_item_id,
            fingerprint=record.fingerprint,
            html_link=f"https://calendar.google.com/event?eid=evt-{len(self.created)}",
        )


class RecordingNotifier:
    """Notifier collecting notifications."""

    def __init__(self) -> None:
        self.sent: list[tuple[ExistingEvent, FeedItem]] = []

    def notify_event_created(self, event: ExistingEvent, item: FeedItem) -> None:
        self.sent.append((event, item))
