"""Main pipeline runner script.

Polls the notice feed and publishes new events to Google Calendar:
1. Fetch RSS items
2. Summarize and extract events (LLM)
3. Skip duplicates of events already on the calendar
4. Create events and notify Slack

Can run once or continuously with configurable interval.
"""

import argparse
import signal
import sys
import time
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.adapters.dry_run import DryRunCalendarClient, LoggingNotifier
from src.adapters.google_calendar_client import GoogleCalendarClient
from src.adapters.llm_client import LLMClient
from src.adapters.processed_store import InMemoryProcessedStore, SQLiteProcessedStore
from src.adapters.rss_client import RssFeedClient
from src.adapters.slack_client import SlackClient, SlackNotifier
from src.config.logging_config import get_logger, setup_logging
from src.config.settings import Settings, get_settings
from src.domain.exceptions import NoticeCalendarError
from src.domain.protocols import (
    CalendarClientProtocol,
    NotifierProtocol,
    ProcessedStoreProtocol,
)
from src.use_cases.process_feed import process_feed_use_case

logger = get_logger("run_pipeline")

# Global flag for graceful shutdown
_shutdown_requested = False


def signal_handler(signum: int, frame: object) -> None:
    """Handle SIGTERM/SIGINT for graceful shutdown."""
    global _shutdown_requested
    logger.warning("shutdown_requested", signal=signal.Signals(signum).name)
    _shutdown_requested = True


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Publish university notices to Google Calendar",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run once
  python scripts/run_pipeline.py --once

  # Run continuously every 30 minutes
  python scripts/run_pipeline.py --interval 1800

  # See what would be created without touching the calendar
  python scripts/run_pipeline.py --dry-run --log-level DEBUG
        """,
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run a single iteration and exit (default)",
    )
    mode.add_argument(
        "--interval",
        type=int,
        default=0,
        metavar="SECONDS",
        help="Run continuously with this many seconds between iterations",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override configured log level",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Render logs as JSON",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Read feed and calendar but create no events, records or messages",
    )
    return parser.parse_args(argv)


def build_components(
    settings: Settings, dry_run: bool
) -> tuple[
    RssFeedClient,
    LLMClient,
    CalendarClientProtocol,
    NotifierProtocol,
    ProcessedStoreProtocol,
]:
    """Wire adapters from settings."""
    feed_client = RssFeedClient(
        url=settings.feed_url,
        user_agent=settings.feed_user_agent,
        timeout=settings.feed_timeout_seconds,
    )
    llm_client = LLMClient(
        api_key=settings.openai_api_key.get_secret_value(),
        model=settings.llm_content_model,
        temperature=settings.llm_temperature,
        timeout=settings.llm_timeout_seconds,
        base_url=settings.ai_gateway_base_url,
    )
    calendar: CalendarClientProtocol = GoogleCalendarClient(
        calendar_id=settings.google_calendar_id,
        service_account_json=(
            settings.google_service_account_json.get_secret_value()
            if settings.google_service_account_json
            else None
        ),
        max_results=settings.calendar_max_results,
        tz_name=settings.tz_default,
    )
    store: ProcessedStoreProtocol = SQLiteProcessedStore.from_path(
        settings.processed_store_path
    )

    notifier: NotifierProtocol
    if dry_run:
        calendar = DryRunCalendarClient(calendar)
        notifier = LoggingNotifier()
        store = InMemoryProcessedStore(backing=store)
    else:
        slack_client = (
            SlackClient(settings.slack_bot_token.get_secret_value())
            if settings.slack_bot_token
            else None
        )
        notifier = SlackNotifier(slack_client, settings.slack_notify_channel_id)

    return feed_client, llm_client, calendar, notifier, store


def main(argv: list[str] | None = None) -> int:
    """Run pipeline (once or continuously).

    Returns:
        Exit code (0 = success, 1 = error)
    """
    global _shutdown_requested

    args = parse_args(argv)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        settings = get_settings()
    except ValueError as e:
        setup_logging(log_level=args.log_level or "INFO", json_logs=args.json_logs)
        logger.error("settings_load_failed", error=str(e))
        return 1

    setup_logging(
        log_level=args.log_level or settings.log_level,
        json_logs=args.json_logs or settings.log_json,
    )

    try:
        components = build_components(settings, args.dry_run)
    except (NoticeCalendarError, OSError) as e:
        logger.error("client_initialization_failed", error=str(e))
        return 1

    feed_client, llm_client, calendar, notifier, store = components
    logger.info(
        "pipeline_starting",
        interval_seconds=args.interval,
        dry_run=args.dry_run,
        calendar_id=settings.google_calendar_id,
    )

    iteration = 0
    while not _shutdown_requested:
        iteration += 1
        start_time = time.time()

        try:
            result = process_feed_use_case(
                feed_client, llm_client, calendar, notifier, store, settings
            )
            logger.info(
                "pipeline_iteration_completed",
                iteration=iteration,
                elapsed_seconds=round(time.time() - start_time, 2),
                processed=result.processed,
                created=result.created,
                duplicates=result.duplicates,
                skipped=result.skipped,
                errors=len(result.errors),
            )
        except NoticeCalendarError as e:
            logger.error("pipeline_iteration_failed", iteration=iteration, error=str(e))
            if args.interval <= 0:
                return 1

        if args.interval <= 0:
            break

        sleep_start = time.time()
        while time.time() - sleep_start < args.interval:
            if _shutdown_requested:
                break
            time.sleep(min(1, args.interval))

    logger.info("pipeline_stopped", iterations=iteration)
    return 0


if __name__ == "__main__":
    sys.exit(main())
