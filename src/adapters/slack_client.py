"""Slack notification adapter."""

from typing import Any

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError

from src.config.logging_config import get_logger
from src.domain.exceptions import NotificationError, RateLimitError
from src.domain.models import ExistingEvent, FeedItem

logger = get_logger(__name__)

NEW_EVENT_HEADER = "📅 새 일정이 등록되었습니다"


class SlackClient:
    """Thin Slack Web API client."""

    def __init__(self, bot_token: str, client: WebClient | None = None) -> None:
        """Initialize Slack client.

        Args:
            bot_token: Slack bot user OAuth token
            client: Pre-built WebClient (tests)
        """
        self.client = client or WebClient(token=bot_token)

    def post_message(
        self, channel_id: str, blocks: list[dict[str, Any]], text: str = ""
    ) -> str:
        """Post message with Block Kit to channel.

        Args:
            channel_id: Target channel ID
            blocks: Slack Block Kit blocks
            text: Fallback text for notifications

        Returns:
            Message timestamp

        Raises:
            NotificationError: On API communication errors
            RateLimitError: When Slack rate-limits the request
        """
        try:
            response = self.client.chat_postMessage(
                channel=channel_id, blocks=blocks, text=text or NEW_EVENT_HEADER
            )

            if not response["ok"]:
                raise NotificationError(
                    f"Failed to post message: {response.get('error')}"
                )

            return response["ts"]

        except SlackApiError as e:
            if e.response.get("error") == "ratelimited":
                retry_after = int(e.response.headers.get("Retry-After", 60))
                raise RateLimitError(retry_after=retry_after) from e

            raise NotificationError(f"Failed to post message: {e}") from e


def build_event_blocks(event: ExistingEvent, item: FeedItem) -> list[dict[str, Any]]:
    """Block Kit payload announcing a created event.

    Args:
        event: Created calendar event
        item: Notice the event came from

    Returns:
        Header, title section and a context block with the notice and
        calendar links (links are omitted when unknown)
    """
    links: list[str] = []
    if item.link:
        links.append(f"<{item.link}|공지 원문>")
    if event.html_link:
        links.append(f"<{event.html_link}|캘린더에서 보기>")

    blocks: list[dict[str, Any]] = [
        {
            "type": "header",
            "text": {"type": "plain_text", "text": NEW_EVENT_HEADER, "emoji": True},
        },
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": f"*{event.title or item.title}*"},
        },
    ]
    if links:
        blocks.append(
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": " | ".join(links)}],
            }
        )
    return blocks


class SlackNotifier:
    """Event-created notifications (implements NotifierProtocol).

    Failures are logged and never raised to the caller.
    """

    def __init__(
        self, client: SlackClient | None, channel_id: str | None
    ) -> None:
        self.client = client
        self.channel_id = channel_id

    def notify_event_created(self, event: ExistingEvent, item: FeedItem) -> None:
        if self.client is None:
            logger.warning("slack_notifier_token_missing", event_id=event.event_id)
            return
        if not self.channel_id:
            logger.warning("slack_notifier_channel_missing", event_id=event.event_id)
            return

        try:
            self.client.post_message(
                self.channel_id,
                build_event_blocks(event, item),
                text=f"{NEW_EVENT_HEADER}: {event.title}",
            )
        except (NotificationError, RateLimitError) as e:
            logger.error(
                "slack_notification_failed",
                event_id=event.event_id,
                item_id=item.item_id,
                error=str(e),
            )
            return

        logger.info(
            "slack_notification_sent", event_id=event.event_id, item_id=item.item_id
        )
