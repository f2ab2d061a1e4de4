"""Custom exception hierarchy for the notice calendar harvester.

Following error taxonomy: retryable, non-retryable, validation, rate-limit.
"""


class NoticeCalendarError(Exception):
    """Base exception for all application errors."""

    pass


class RetryableError(NoticeCalendarError):
    """Errors that can be retried (network issues, temporary failures)."""

    pass


class NonRetryableError(NoticeCalendarError):
    """Errors that should not be retried (validation, auth, logic errors)."""

    pass


class ValidationError(NonRetryableError):
    """Data validation errors."""

    pass


class MalformedTimestampError(NonRetryableError):
    """A date-time string could not be parsed into an instant."""

    def __init__(self, value: str) -> None:
        """Initialize with the offending value."""
        self.value = value
        super().__init__(f"Failed to parse datetime: {value!r}")


class RateLimitError(RetryableError):
    """API rate limit exceeded."""

    def __init__(self, retry_after: int | None = None) -> None:
        """Initialize with optional retry_after seconds."""
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Retry after: {retry_after}s")


class FeedFetchError(RetryableError):
    """RSS feed download or parsing errors."""

    pass


class LLMAPIError(RetryableError):
    """LLM API communication errors."""

    pass


class CalendarAPIError(RetryableError):
    """Calendar API communication errors."""

    pass


class NotificationError(RetryableError):
    """Chat notification errors."""

    pass


class StoreError(RetryableError):
    """Processed-record store errors."""

    pass
