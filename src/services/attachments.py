"""Attachment helpers for published calendar events."""

from pathlib import PurePosixPath
from typing import Any, Final

from src.domain.models import FeedItem

DEFAULT_MIME_TYPE: Final[str] = "application/octet-stream"

MIME_TYPES: Final[dict[str, str]] = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".pdf": "application/pdf",
    ".hwp": "application/x-hwp",
    ".hwpx": "application/x-hwp",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}
"""MIME types by lower-case file extension (Korean office formats included)."""


def _suffix(filename: str | None) -> str:
    return PurePosixPath(filename or "").suffix.lower()


def guess_mime_type(filename: str | None) -> str:
    """MIME type for an attachment file name.

    Example:
        >>> guess_mime_type("안내문.HWP")
        'application/x-hwp'
    """
    return MIME_TYPES.get(_suffix(filename), DEFAULT_MIME_TYPE)


def build_calendar_attachment(item: FeedItem) -> dict[str, Any] | None:
    """Calendar attachment payload for a feed item.

    Args:
        item: Feed item

    Returns:
        ``{"fileUrl", "mimeType", "title"}`` or None when the item has no
        downloadable or previewable attachment
    """
    if item.attachment is None:
        return None

    file_url = item.attachment.url or item.attachment.preview
    if not file_url:
        return None

    return {
        "fileUrl": file_url,
        "mimeType": guess_mime_type(item.attachment.filename),
        "title": item.attachment.filename or "attachment",
    }
