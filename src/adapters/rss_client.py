"""RSS feed adapter.

Downloads the notice board feed with requests and parses it with feedparser.
Board-specific elements (``department``, ``filename1``, ``url1``,
``preview1``) are carried by feedparser as plain entry keys.
"""

import base64
from typing import Any
from urllib.parse import parse_qs, urlsplit

import feedparser
import requests

from src.config.logging_config import get_logger
from src.domain.exceptions import FeedFetchError
from src.domain.models import FeedAttachment, FeedItem

ID_QUERY_PARAMS = ("nttNo", "articleNo")

logger = get_logger(__name__)


def extract_item_id(link: str) -> str:
    """Stable identifier for a notice link.

    Uses the ``nttNo`` or ``articleNo`` query parameter when present,
    otherwise the URL-safe base64 of the link without padding.

    Example:
        >>> extract_item_id("https://www.knue.ac.kr/www/selectBbsNttView.do?nttNo=12345")
        '12345'
    """
    query = parse_qs(urlsplit(link).query)
    for param in ID_QUERY_PARAMS:
        values = query.get(param)
        if values and values[0]:
            return values[0]
    return base64.urlsafe_b64encode(link.encode("utf-8")).decode("ascii").rstrip("=")


def _text(entry: Any, key: str) -> str:
    value = entry.get(key)
    if value is None:
        return ""
    return str(value).strip()


def entry_to_item(entry: Any) -> FeedItem:
    """Map a feedparser entry to a FeedItem."""
    link = _text(entry, "link")

    attachment = FeedAttachment(
        filename=_text(entry, "filename1"),
        url=_text(entry, "url1"),
        preview=_text(entry, "preview1"),
    )
    has_attachment = bool(attachment.filename or attachment.url or attachment.preview)

    return FeedItem(
        item_id=extract_item_id(link),
        title=_text(entry, "title"),
        link=link,
        pub_date=_text(entry, "published"),
        description_html=_text(entry, "summary") or _text(entry, "description"),
        department=_text(entry, "department") or None,
        attachment=attachment if has_attachment else None,
    )


def parse_feed(content: bytes | str) -> list[FeedItem]:
    """Parse RSS content into feed items.

    Entries without a link have no stable id and are dropped.

    Raises:
        FeedFetchError: If the document is malformed and yields no entries, or
            only partially recovered ones
    """
    parsed = feedparser.parse(content)
    if parsed.bozo and (
        not parsed.entries or any(not _text(entry, "link") for entry in parsed.entries)
    ):
        raise FeedFetchError(f"Malformed feed: {parsed.get('bozo_exception')}")

    items: list[FeedItem] = []
    for entry in parsed.entries:
        if not _text(entry, "link"):
            logger.warning("feed_entry_without_link", title=_text(entry, "title"))
            continue
        items.append(entry_to_item(entry))
    return items


class RssFeedClient:
    """Notice board RSS client (implements FeedClientProtocol)."""

    def __init__(
        self,
        url: str,
        user_agent: str,
        timeout: int = 30,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize RSS client.

        Args:
            url: Feed URL
            user_agent: User-Agent header value
            timeout: Request timeout in seconds
            session: Optional requests session (tests)
        """
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch_items(self) -> list[FeedItem]:
        """Download and parse the feed.

        Returns:
            Feed items in feed order

        Raises:
            FeedFetchError: On network errors, HTTP status >= 400 or an
                unparseable document
        """
        try:
            response = self.session.get(
                self.url,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise FeedFetchError(f"RSS fetch failed: {e}") from e

        if response.status_code >= 400:
            raise FeedFetchError(f"RSS fetch failed: {response.status_code}")

        items = parse_feed(response.content)
        logger.info("feed_fetched", url=self.url, item_count=len(items))
        return items
