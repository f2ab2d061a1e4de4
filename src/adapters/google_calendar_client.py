"""Google Calendar adapter.

Implements CalendarClientProtocol on top of google-api-python-client with
service-account credentials (google-auth).
"""

import json
from datetime import date, datetime, timedelta
from typing import Any, Final

import pytz
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from src.config.logging_config import get_logger
from src.domain.deduplication_constants import (
    DEFAULT_TIMEZONE,
    FINGERPRINT_PROPERTY,
    SOURCE_ITEM_PROPERTY,
)
from src.domain.exceptions import CalendarAPIError
from src.domain.models import (
    CandidateEvent,
    EventTime,
    ExistingEvent,
    FeedItem,
    ProcessedRecord,
)
from src.services.attachments import build_calendar_attachment

SCOPES: Final[list[str]] = ["https://www.googleapis.com/auth/calendar"]

logger = get_logger(__name__)


def build_calendar_service(service_account_json: str) -> Any:
    """Build an authorized Calendar v3 service from a service-account key.

    Args:
        service_account_json: Service account key document (JSON string)

    Returns:
        googleapiclient Resource for the Calendar API

    Raises:
        CalendarAPIError: If the key is not valid JSON or is incomplete
    """
    try:
        info = json.loads(service_account_json)
    except json.JSONDecodeError as e:
        raise CalendarAPIError(f"Invalid service account JSON: {e}") from e

    if not isinstance(info, dict) or not info.get("client_email") or not info.get(
        "private_key"
    ):
        raise CalendarAPIError("Service account JSON lacks client_email/private_key")

    try:
        creds = service_account.Credentials.from_service_account_info(
            info, scopes=SCOPES
        )
    except ValueError as e:
        raise CalendarAPIError(f"Invalid service account credentials: {e}") from e

    return build("calendar", "v3", credentials=creds, cache_discovery=False)


def _event_time(raw: dict[str, Any] | None) -> EventTime | None:
    if not raw:
        return None
    return EventTime(date=raw.get("date"), date_time=raw.get("dateTime"))


def map_event(raw: dict[str, Any]) -> ExistingEvent:
    """Map a Calendar API event resource to ExistingEvent."""
    private = (raw.get("extendedProperties") or {}).get("private") or {}
    return ExistingEvent(
        event_id=raw.get("id", ""),
        title=raw.get("summary") or "",
        description=raw.get("description") or "",
        start=_event_time(raw.get("start")),
        end=_event_time(raw.get("end")),
        source_item_id=private.get(SOURCE_ITEM_PROPERTY),
        fingerprint=private.get(FINGERPRINT_PROPERTY),
        html_link=raw.get("htmlLink"),
    )


def _local_iso(day: date, clock: Any, tz_name: str) -> str:
    tz = pytz.timezone(tz_name)
    moment = tz.localize(datetime.combine(day, clock.replace(second=0, microsecond=0)))
    return moment.isoformat()


def build_event_body(
    candidate: CandidateEvent,
    record: ProcessedRecord,
    item: FeedItem | None = None,
    tz_name: str = DEFAULT_TIMEZONE,
) -> dict[str, Any]:
    """Calendar API request body for a candidate.

    Timed candidates (both times set) get ``dateTime`` values in ``tz_name``;
    everything else becomes an all-day event whose end date is exclusive.

    Example:
        >>> from datetime import date, datetime
        >>> body = build_event_body(
        ...     CandidateEvent(title="t", start_date=date(2025, 11, 1), end_date=date(2025, 11, 3)),
        ...     ProcessedRecord(event_id="", source_item_id="1", processed_at=datetime(2025, 1, 1)),
        ... )
        >>> body["end"]
        {'date': '2025-11-04'}
    """
    if candidate.start_time is not None and candidate.end_time is not None:
        start: dict[str, str] = {
            "dateTime": _local_iso(candidate.start_date, candidate.start_time, tz_name),
            "timeZone": tz_name,
        }
        end: dict[str, str] = {
            "dateTime": _local_iso(candidate.end_date, candidate.end_time, tz_name),
            "timeZone": tz_name,
        }
    else:
        start = {"date": candidate.start_date.isoformat()}
        end = {"date": (candidate.end_date + timedelta(days=1)).isoformat()}

    body: dict[str, Any] = {
        "summary": candidate.title,
        "description": candidate.description,
        "start": start,
        "end": end,
        "extendedProperties": {
            "private": {
                SOURCE_ITEM_PROPERTY: record.source_item_id,
                FINGERPRINT_PROPERTY: record.fingerprint,
            }
        },
    }

    if item is not None:
        attachment = build_calendar_attachment(item)
        if attachment:
            body["attachments"] = [attachment]

    return body


class GoogleCalendarClient:
    """Google Calendar client (implements CalendarClientProtocol)."""

    def __init__(
        self,
        calendar_id: str,
        service: Any | None = None,
        service_account_json: str | None = None,
        max_results: int = 250,
        tz_name: str = DEFAULT_TIMEZONE,
    ) -> None:
        """Initialize calendar client.

        Args:
            calendar_id: Target calendar
            service: Pre-built Calendar API resource (tests)
            service_account_json: Service account key used when no service is given
            max_results: Page size for listing
            tz_name: Zone for timed events

        Raises:
            CalendarAPIError: If neither a service nor credentials are available
        """
        if service is None:
            if not service_account_json:
                raise CalendarAPIError("GOOGLE_SERVICE_ACCOUNT_JSON is not configured")
            service = build_calendar_service(service_account_json)

        self.service = service
        self.calendar_id = calendar_id
        self.max_results = max_results
        self.tz_name = tz_name

    def list_events(
        self, time_min: datetime, time_max: datetime
    ) -> list[ExistingEvent]:
        """List single events between two instants, following pagination.

        Raises:
            CalendarAPIError: On API errors
        """
        events: list[ExistingEvent] = []
        page_token: str | None = None

        while True:
            try:
                response = (
                    self.service.events()
                    .list(
                        calendarId=self.calendar_id,
                        timeMin=time_min.isoformat(),
                        timeMax=time_max.isoformat(),
                        singleEvents=True,
                        orderBy="startTime",
                        maxResults=self.max_results,
                        pageToken=page_token,
                    )
                    .execute()
                )
            except HttpError as e:
                raise CalendarAPIError(f"Google Calendar list error: {e}") from e

            events.extend(map_event(raw) for raw in response.get("items", []))
            page_token = response.get("nextPageToken")
            if not page_token:
                break

        logger.info(
            "calendar_events_listed",
            calendar_id=self.calendar_id,
            count=len(events),
            time_min=time_min.isoformat(),
            time_max=time_max.isoformat(),
        )
        return events

    def create_event(
        self,
        candidate: CandidateEvent,
        record: ProcessedRecord,
        item: FeedItem | None = None,
    ) -> ExistingEvent:
        """Create a calendar event for a candidate.

        Raises:
            CalendarAPIError: On API errors
        """
        body = build_event_body(candidate, record, item, self.tz_name)
        try:
            created = (
                self.service.events()
                .insert(
                    calendarId=self.calendar_id,
                    body=body,
                    supportsAttachments="attachments" in body,
                )
                .execute()
            )
        except HttpError as e:
            raise CalendarAPIError(f"Google Calendar create error: {e}") from e

        event = map_event(created)
        logger.info(
            "calendar_event_created",
            event_id=event.event_id,
            source_item_id=record.source_item_id,
            title=candidate.title,
        )
        return event
