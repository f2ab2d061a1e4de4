"""Text normalization service for notices.

Handles:
- Whitespace normalization for similarity comparison
- HTML to plain text conversion
- URL normalization and link deduplication
"""

import re
from urllib.parse import urlsplit

from bs4 import BeautifulSoup

_WHITESPACE_RE = re.compile(r"\s+")
_BLOCK_TAGS = ["p", "div", "li"]


def normalize_whitespace(text: str | None) -> str:
    """Collapse whitespace runs and trim.

    Used only before similarity scoring; display text is never rewritten.

    Args:
        text: Raw text or None

    Returns:
        Normalized text ("" for None)

    Example:
        >>> normalize_whitespace("  Open   house\\n day ")
        'Open house day'
    """
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def html_to_text(html: str) -> str:
    """Convert notice HTML to plain text.

    Script and style elements are dropped, line breaks and block ends become
    newlines, list items are prefixed with ``- `` and blank lines are removed.

    Args:
        html: HTML fragment

    Returns:
        Plain text, one trimmed line per block

    Example:
        >>> html_to_text("<p>First</p><ul><li>a</li></ul>")
        'First\\n- a'
    """
    if not html:
        return ""

    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style"]):
        tag.decompose()
    for br in soup.find_all("br"):
        br.replace_with("\n")
    for li in soup.find_all("li"):
        li.insert(0, "- ")
    for tag in soup.find_all(_BLOCK_TAGS):
        tag.append("\n")

    text = soup.get_text().replace("\r", "").replace("\xa0", " ")
    lines = (line.strip() for line in text.split("\n"))
    return "\n".join(line for line in lines if line)


def normalize_url(url: str) -> str:
    """Reduce a URL to scheme + host + path for comparison.

    Query strings and fragments are ignored. Unparseable input is returned
    unchanged.

    Example:
        >>> normalize_url("https://Example.com/a?b=1#c")
        'https://example.com/a'
    """
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.hostname:
        return url
    return f"{parts.scheme}://{parts.hostname}{parts.path}"


def deduplicate_links(primary_link: str | None, secondary_links: list[str]) -> list[str]:
    """Merge links, keeping the primary link first and dropping duplicates.

    Args:
        primary_link: Original notice link (takes precedence)
        secondary_links: Links found by the LLM

    Returns:
        Links in first-seen order, unique by normalized URL
    """
    seen: set[str] = set()
    result: list[str] = []

    candidates = ([primary_link] if primary_link else []) + secondary_links
    for link in candidates:
        normalized = normalize_url(link)
        if normalized in seen:
            continue
        seen.add(normalized)
        result.append(link)

    return result
