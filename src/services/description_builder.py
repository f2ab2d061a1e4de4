"""Calendar description builder.

Combines the LLM summary, related links, attachment metadata and the original
notice text into the description of every event published for a notice.
"""

from src.domain.models import FeedItem, NoticeSummary
from src.services.text_normalizer import deduplicate_links

HIGHLIGHTS_HEADER = "주요 포인트:"
ACTION_ITEMS_HEADER = "확인/신청 사항:"
LINKS_HEADER = "관련 링크:"
ATTACHMENT_PREFIX = "첨부파일:"
ORIGINAL_TEXT_HEADER = "원문 본문:"


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def attachment_text(item: FeedItem) -> str:
    """Short attachment line for a notice, or "" when it has none."""
    if item.attachment and item.attachment.filename:
        return f"{ATTACHMENT_PREFIX} {item.attachment.filename}"
    return ""


def build_description(
    item: FeedItem, summary: NoticeSummary, description_text: str = ""
) -> str:
    """Build the calendar description for a notice.

    Sections are separated by blank lines and only included when they have
    content. The notice link always comes first among related links.

    Args:
        item: Source feed item
        summary: LLM summary (or its fallback)
        description_text: Plain-text notice body

    Returns:
        Description text
    """
    parts: list[str] = [summary.summary]

    if summary.highlights:
        parts.append(f"{HIGHLIGHTS_HEADER}\n{_bullets(summary.highlights)}")
    if summary.action_items:
        parts.append(f"{ACTION_ITEMS_HEADER}\n{_bullets(summary.action_items)}")

    links = deduplicate_links(item.link or None, summary.links)
    if links:
        parts.append(f"{LINKS_HEADER}\n{_bullets(links)}")

    attachment_line = attachment_text(item)
    if attachment_line:
        parts.append(attachment_line)

    if description_text:
        parts.append(f"{ORIGINAL_TEXT_HEADER}\n{description_text}")

    return "\n\n".join(parts)
