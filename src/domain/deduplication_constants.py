"""Business rules and constants for duplicate detection and event splitting.

All thresholds and rules used to decide whether a freshly extracted event is
already on the calendar are centralized here so that the decision engine, the
splitter and the orchestration layer agree on them.
"""

from typing import Final

# Similarity threshold
DEFAULT_SIMILARITY_THRESHOLD: Final[float] = 0.85
"""Minimum normalized Levenshtein similarity for a duplicate (0.0-1.0).

The score is the maximum of the title score and the description score, so a
verbose AI-generated title does not hide an identical description.

Example:
    - "2025학년도 수강신청" vs "2025학년도 수강 신청"
    - Similarity: 0.92 -> Duplicate (>= 0.85)
"""

# Long event splitting
LONG_EVENT_MAX_DAYS: Final[int] = 3
"""Longest inclusive span (in days) that is published as a single event.

Business rule: a notice spanning more than three days (e.g. an exhibition
week) clutters every day of the calendar. It is replaced by two single-day
markers on its first and last day.

Example:
    - 2025-10-28 ~ 2025-10-30 (3 days) -> one event
    - 2025-10-28 ~ 2025-11-03 (7 days) -> "학술제 (~2025-11-03)" on 10-28
                                         and "학술제 (2025-10-28~)" on 11-03
"""

DEFAULT_END_TIME: Final[str] = "23:59"
"""End-of-day clock time used when a timed candidate has no end time."""

# Calendar window
DEFAULT_LOOKBACK_DAYS: Final[int] = 60
"""How many days back existing calendar events are fetched for comparison."""

DEFAULT_LOOKAHEAD_DAYS: Final[int] = 30
"""How many days ahead existing calendar events are fetched for comparison."""

# Feed recency window
DEFAULT_RECENCY_PAST_DAYS: Final[int] = 7
"""Oldest publication day (relative to today) that is still processed."""

DEFAULT_RECENCY_FUTURE_DAYS: Final[int] = 30
"""Furthest future publication day that is still processed."""

# Idempotency records
DUPLICATE_SKIP_EVENT_ID: Final[str] = "duplicate-skip"
"""Event id stored for a feed item whose events were all duplicates."""

FINGERPRINT_SEPARATOR: Final[str] = "::"
"""Separator between title, start date and description in fingerprints."""

# Extended property keys on published calendar events
SOURCE_ITEM_PROPERTY: Final[str] = "sourceItemId"
FINGERPRINT_PROPERTY: Final[str] = "fingerprint"

DEFAULT_TIMEZONE: Final[str] = "Asia/Seoul"
"""Civil time zone (KST, UTC+9) of candidate clock times and feed dates."""
