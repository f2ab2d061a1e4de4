"""Tests for Google Calendar adapter."""

from datetime import date, datetime, time
from types import SimpleNamespace
from typing import Any

import pytest
from googleapiclient.errors import HttpError

from src.adapters.google_calendar_client import (
    GoogleCalendarClient,
    build_calendar_service,
    build_event_body,
    map_event,
)
from src.domain.exceptions import CalendarAPIError
from src.domain.models import FeedAttachment, ProcessedRecord
from tests.conftest import KST, create_candidate, create_test_item


def _http_error(status: int = 500) -> HttpError:
    resp = SimpleNamespace(status=status, reason="Server Error")
    return HttpError(resp, b'{"error": {"message": "boom"}}')


class StubRequest:
    def __init__(self, result: Any = None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error

    def execute(self) -> Any:
        if self.error:
            raise self.error
        return self.result


class StubEvents:
    """Stub for service.events() with canned list pages."""

    def __init__(self, pages: list[dict[str, Any]], error: Exception | None = None) -> None:
        self.pages = pages
        self.error = error
        self.list_calls: list[dict[str, Any]] = []
        self.insert_calls: list[dict[str, Any]] = []

    def list(self, **kwargs: Any) -> StubRequest:
        self.list_calls.append(kwargs)
        page = self.pages[len(self.list_calls) - 1] if self.pages else {}
        return StubRequest(page, self.error)

    def insert(self, **kwargs: Any) -> StubRequest:
        self.insert_calls.append(kwargs)
        body = kwargs["body"]
        created = {
            "id": "created-1",
            "htmlLink": "https://calendar.google.com/event?eid=created-1",
            **body,
        }
        return StubRequest(created, self.error)


class StubService:
    def __init__(self, events: StubEvents) -> None:
        self._events = events

    def events(self) -> StubEvents:
        return self._events


def _record() -> ProcessedRecord:
    return ProcessedRecord(
        event_id="",
        source_item_id="12345",
        processed_at=datetime(2025, 10, 28, 1, 0),
        fingerprint="abc",
    )


def test_map_event_reads_private_properties() -> None:
    event = map_event(
        {
            "id": "evt-1",
            "summary": "수강신청",
            "start": {"date": "2025-11-01"},
            "end": {"date": "2025-11-02"},
            "extendedProperties": {
                "private": {"sourceItemId": "12345", "fingerprint": "ff"}
            },
            "htmlLink": "https://calendar.google.com/x",
        }
    )

    assert event.event_id == "evt-1"
    assert event.title == "수강신청"
    assert event.description == ""
    assert event.start is not None and event.start.date == "2025-11-01"
    assert event.source_item_id == "12345"
    assert event.fingerprint == "ff"


def test_map_event_without_start() -> None:
    event = map_event({"id": "evt-2"})

    assert event.start is None
    assert event.source_item_id is None


def test_build_event_body_all_day_end_is_exclusive() -> None:
    candidate = create_candidate(start=date(2025, 11, 1), end=date(2025, 11, 3))

    body = build_event_body(candidate, _record())

    assert body["start"] == {"date": "2025-11-01"}
    assert body["end"] == {"date": "2025-11-04"}
    assert body["extendedProperties"]["private"] == {
        "sourceItemId": "12345",
        "fingerprint": "abc",
    }
    assert "attachments" not in body


def test_build_event_body_timed_uses_zone() -> None:
    candidate = create_candidate(
        start=date(2025, 11, 1), start_time=time(9, 0), end_time=time(10, 30)
    )

    body = build_event_body(candidate, _record(), tz_name="Asia/Seoul")

    assert body["start"] == {
        "dateTime": "2025-11-01T09:00:00+09:00",
        "timeZone": "Asia/Seoul",
    }
    assert body["end"]["dateTime"] == "2025-11-01T10:30:00+09:00"


def test_build_event_body_attachment() -> None:
    item = create_test_item(
        attachment=FeedAttachment(
            filename="안내.pdf", url="https://www.knue.ac.kr/files/1.pdf"
        )
    )

    body = build_event_body(create_candidate(), _record(), item)

    assert body["attachments"] == [
        {
            "fileUrl": "https://www.knue.ac.kr/files/1.pdf",
            "mimeType": "application/pdf",
            "title": "안내.pdf",
        }
    ]


def test_list_events_follows_pages() -> None:
    events = StubEvents(
        [
            {
                "items": [{"id": "a", "summary": "A", "start": {"date": "2025-11-01"}}],
                "nextPageToken": "page-2",
            },
            {"items": [{"id": "b", "summary": "B", "start": {"date": "2025-11-02"}}]},
        ]
    )
    client = GoogleCalendarClient("cal-id", service=StubService(events), max_results=50)
    time_min = KST.localize(datetime(2025, 9, 1))
    time_max = KST.localize(datetime(2025, 12, 1))

    result = client.list_events(time_min, time_max)

    assert [event.event_id for event in result] == ["a", "b"]
    assert len(events.list_calls) == 2
    first = events.list_calls[0]
    assert first["calendarId"] == "cal-id"
    assert first["singleEvents"] is True
    assert first["orderBy"] == "startTime"
    assert first["maxResults"] == 50
    assert first["pageToken"] is None
    assert events.list_calls[1]["pageToken"] == "page-2"


def test_list_events_http_error() -> None:
    events = StubEvents([], error=_http_error())
    client = GoogleCalendarClient("cal-id", service=StubService(events))

    with pytest.raises(CalendarAPIError):
        client.list_events(datetime(2025, 9, 1), datetime(2025, 12, 1))


def test_create_event_returns_mapped_event() -> None:
    events = StubEvents([])
    client = GoogleCalendarClient("cal-id", service=StubService(events))

    created = client.create_event(create_candidate(title="수강신청"), _record())

    assert created.event_id == "created-1"
    assert created.title == "수강신청"
    assert created.source_item_id == "12345"
    assert created.html_link is not None
    assert events.insert_calls[0]["supportsAttachments"] is False


def test_create_event_with_attachment_enables_support() -> None:
    events = StubEvents([])
    client = GoogleCalendarClient("cal-id", service=StubService(events))
    item = create_test_item(
        attachment=FeedAttachment(filename="a.hwp", url="https://x/a.hwp")
    )

    client.create_event(create_candidate(), _record(), item)

    assert events.insert_calls[0]["supportsAttachments"] is True


def test_create_event_http_error() -> None:
    events = StubEvents([], error=_http_error(403))
    client = GoogleCalendarClient("cal-id", service=StubService(events))

    with pytest.raises(CalendarAPIError):
        client.create_event(create_candidate(), _record())


def test_client_requires_credentials() -> None:
    with pytest.raises(CalendarAPIError):
        GoogleCalendarClient("cal-id")


def test_build_service_rejects_invalid_json() -> None:
    with pytest.raises(CalendarAPIError):
        build_calendar_service("{not json")


def test_build_service_rejects_incomplete_key() -> None:
    with pytest.raises(CalendarAPIError):
        build_calendar_service('{"type": "service_account"}')
