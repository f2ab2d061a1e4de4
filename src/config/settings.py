"""Application settings with Pydantic Settings validation.

Secrets (tokens, API keys) are loaded from .env file.
Non-sensitive configuration is loaded from config/main.yaml and config/*.yaml files.
All configs are automatically merged and validated against JSON schemas.
"""

import json
from pathlib import Path
from typing import Any, Final, cast

import pytz
import yaml
from jsonschema import ValidationError as JSONSchemaValidationError
from jsonschema import validate
from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.config.logging_config import get_logger
from src.domain.deduplication_constants import (
    DEFAULT_LOOKAHEAD_DAYS,
    DEFAULT_LOOKBACK_DAYS,
    DEFAULT_RECENCY_FUTURE_DAYS,
    DEFAULT_RECENCY_PAST_DAYS,
    DEFAULT_SIMILARITY_THRESHOLD,
    DEFAULT_TIMEZONE,
)
from src.domain.models import SplitGroupPolicy

FEED_URL_DEFAULT: Final[str] = "https://www.knue.ac.kr/rssBbsNtt.do?bbsNo=28"
FEED_USER_AGENT_DEFAULT: Final[str] = "knue-event-harvester/1.0"
FEED_TIMEOUT_SECONDS_DEFAULT: Final[int] = 30

CALENDAR_MAX_RESULTS_DEFAULT: Final[int] = 250

logger = cast(Any, get_logger(__name__))


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary to merge into base (takes precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_schema(schema_name: str) -> dict[str, Any]:
    """Load JSON Schema from config/schemas/.

    Args:
        schema_name: Schema name without extension (e.g., "main")

    Returns:
        JSON Schema dictionary or empty dict if not found
    """
    schema_path = Path("config/schemas") / f"{schema_name}.schema.json"
    if not schema_path.exists():
        return {}

    try:
        with open(schema_path, encoding="utf-8") as f:
            return json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(
            "config_schema_load_failed",
            schema=schema_name,
            error=str(e),
        )
        return {}


def validate_config_section(
    config: dict[str, Any], schema_name: str, file_path: str = ""
) -> None:
    """Validate config section against JSON Schema.

    Args:
        config: Configuration dictionary to validate
        schema_name: Name of schema to validate against
        file_path: Optional file path for error messages

    Raises:
        ValueError: If validation fails
    """
    schema = load_schema(schema_name)
    if not schema:
        # No schema available, skip validation
        return

    try:
        validate(instance=config, schema=schema)
        logger.debug("config_validation_succeeded", schema=schema_name)
    except JSONSchemaValidationError as e:
        error_msg = f"Config validation failed for {schema_name}"
        if file_path:
            error_msg += f" (file: {file_path})"
        error_msg += f": {e.message}"
        raise ValueError(error_msg) from e


def load_all_configs() -> dict[str, Any]:
    """Load and merge all YAML configs from config/ directory.

    Loading order (later overrides earlier):
    1. config/main.yaml (main config)
    2. All other config/*.yaml files (sorted alphabetically)

    Each config is validated against its JSON Schema if available.

    Returns:
        Merged configuration dictionary
    """
    merged_config: dict[str, Any] = {}

    # 1. Load main config from config/main.yaml
    main_path = Path("config/main.yaml")
    if main_path.exists():
        try:
            with open(main_path, encoding="utf-8") as f:
                main_config = yaml.safe_load(f) or {}
                validate_config_section(main_config, "main", str(main_path))
                merged_config = main_config
                logger.debug(
                    "config_file_loaded",
                    path=str(main_path),
                    schema="main",
                )
        except (yaml.YAMLError, OSError) as e:
            logger.warning(
                "config_file_load_failed",
                path=str(main_path),
                error=str(e),
            )

    # 2. Load config directory files
    config_dir = Path("config")
    yaml_files: list[Path] = []
    if config_dir.exists() and config_dir.is_dir():
        # Get all YAML files, excluding already loaded main.yaml
        yaml_files = sorted(
            [f for f in config_dir.glob("*.yaml") if f.name != "main.yaml"]
        )

        for yaml_file in yaml_files:
            try:
                with open(yaml_file, encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}

                    # Determine schema name from filename
                    schema_name = yaml_file.stem  # e.g., "calendar"
                    validate_config_section(file_config, schema_name, str(yaml_file))

                    # Deep merge
                    merged_config = deep_merge(merged_config, file_config)
                    logger.debug(
                        "config_file_loaded",
                        path=str(yaml_file),
                        schema=schema_name,
                    )
            except (yaml.YAMLError, OSError) as e:
                logger.warning(
                    "config_file_load_failed",
                    path=str(yaml_file),
                    error=str(e),
                )
            except ValueError as e:
                logger.error(
                    "config_validation_failed",
                    path=str(yaml_file),
                    schema=schema_name,
                    error=str(e),
                )
                raise

    file_count = (1 if main_path.exists() else 0) + (
        len(yaml_files) if config_dir.exists() and config_dir.is_dir() else 0
    )
    logger.info("config_load_complete", file_count=file_count)
    return merged_config


def check_timezone(value: str) -> str:
    """Return ``value`` if pytz knows it, else raise ValueError."""
    try:
        pytz.timezone(value)
    except pytz.UnknownTimeZoneError as e:
        raise ValueError(f"Unknown timezone: {value}") from e
    return value


class Settings(BaseSettings):
    """Application settings.

    Secrets are loaded from .env file.
    Non-sensitive config is loaded from config/*.yaml with fallback to defaults.
    """

    model_config = SettingsConfigDict(
        env_file=".env" if Path(".env").exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === SECRETS (from .env) ===

    # OpenAI configuration
    openai_api_key: SecretStr = Field(..., description="OpenAI API key (from .env)")

    # Slack configuration (notifications are disabled without a token)
    slack_bot_token: SecretStr | None = Field(
        default=None, description="Slack Bot User OAuth Token (from .env, optional)"
    )

    # Google service account key (JSON document)
    google_service_account_json: SecretStr | None = Field(
        default=None,
        description="Google service account key as a JSON string (from .env)",
    )

    # === NON-SENSITIVE CONFIG (from config/*.yaml or defaults) ===

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def _ensure_secret(
        cls, value: SecretStr | str | None, info: ValidationInfo
    ) -> SecretStr:
        if value is None:
            raise ValueError(f"{info.field_name} must be provided")

        if isinstance(value, SecretStr):
            secret_value = value.get_secret_value()
        else:
            secret_value = str(value)

        if not secret_value.strip():
            raise ValueError(f"{info.field_name} must not be empty")

        return value if isinstance(value, SecretStr) else SecretStr(secret_value)

    @field_validator("tz_default")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        return check_timezone(value)

    def __init__(self, **data: Any):
        """Initialize settings with auto-loaded configs from all YAML files."""
        config = load_all_configs()

        super().__init__(**data)
        self._apply_yaml_defaults(config)

    def _apply_yaml_defaults(self, config: dict[str, Any]) -> None:
        """Apply YAML-sourced defaults without overriding env-provided values."""

        fields_from_env = set(self.model_fields_set)

        def _assign(field_name: str, value: Any) -> None:
            if value is None:
                return
            if field_name in fields_from_env:
                return

            object.__setattr__(self, field_name, value)
            self.model_fields_set.add(field_name)

        feed_config = config.get("feed") or {}
        _assign("feed_url", feed_config.get("url"))
        _assign("feed_user_agent", feed_config.get("user_agent"))
        _assign("feed_timeout_seconds", feed_config.get("timeout_seconds"))
        _assign("recency_past_days", feed_config.get("recency_past_days"))
        _assign("recency_future_days", feed_config.get("recency_future_days"))

        llm_config = config.get("llm") or {}
        _assign("llm_content_model", llm_config.get("model"))
        _assign("llm_temperature", llm_config.get("temperature"))
        _assign("llm_timeout_seconds", llm_config.get("timeout_seconds"))
        _assign("cloudflare_account_id", llm_config.get("cloudflare_account_id"))
        _assign(
            "cloudflare_ai_gateway_name", llm_config.get("cloudflare_ai_gateway_name")
        )

        calendar_config = config.get("calendar") or {}
        _assign("google_calendar_id", calendar_config.get("calendar_id"))
        _assign("calendar_lookback_days", calendar_config.get("lookback_days"))
        _assign("calendar_lookahead_days", calendar_config.get("lookahead_days"))
        _assign("calendar_max_results", calendar_config.get("max_results"))

        dedupe_config = config.get("deduplication") or {}
        _assign("similarity_threshold", dedupe_config.get("similarity_threshold"))
        policy = dedupe_config.get("split_group_policy")
        if policy is not None:
            _assign("split_group_policy", SplitGroupPolicy(policy))

        slack_config = config.get("slack") or {}
        _assign("slack_notify_channel_id", slack_config.get("notify_channel_id"))

        storage_config = config.get("storage") or {}
        _assign("processed_store_path", storage_config.get("processed_store_path"))

        processing_config = config.get("processing") or {}
        tz_default = processing_config.get("tz_default")
        if tz_default is not None:
            _assign("tz_default", check_timezone(tz_default))

        logging_config = config.get("logging") or {}
        _assign("log_level", logging_config.get("level"))
        _assign("log_json", logging_config.get("json"))

    # Feed configuration
    feed_url: str = Field(default=FEED_URL_DEFAULT, description="RSS feed URL")
    feed_user_agent: str = Field(
        default=FEED_USER_AGENT_DEFAULT,
        description="User-Agent header sent when fetching the feed",
    )
    feed_timeout_seconds: int = Field(
        default=FEED_TIMEOUT_SECONDS_DEFAULT, ge=1, description="Feed request timeout"
    )
    recency_past_days: int = Field(
        default=DEFAULT_RECENCY_PAST_DAYS,
        ge=0,
        description="Items published more than this many days ago are skipped",
    )
    recency_future_days: int = Field(
        default=DEFAULT_RECENCY_FUTURE_DAYS,
        ge=0,
        description="Items dated more than this many days ahead are skipped",
    )

    # LLM configuration
    llm_content_model: str = Field(
        default="gpt-4o-mini", description="OpenAI model for summaries and events"
    )
    llm_temperature: float = Field(default=0.2, description="LLM temperature")
    llm_timeout_seconds: int = Field(default=60, description="LLM request timeout")
    cloudflare_account_id: str | None = Field(
        default=None, description="Cloudflare account for the AI gateway (optional)"
    )
    cloudflare_ai_gateway_name: str | None = Field(
        default=None, description="Cloudflare AI gateway name (optional)"
    )

    # Calendar configuration
    google_calendar_id: str = Field(
        default="primary", description="Target Google Calendar ID"
    )
    calendar_lookback_days: int = Field(
        default=DEFAULT_LOOKBACK_DAYS,
        ge=0,
        description="Days before now included in the duplicate comparison window",
    )
    calendar_lookahead_days: int = Field(
        default=DEFAULT_LOOKAHEAD_DAYS,
        ge=0,
        description="Days after now included in the duplicate comparison window",
    )
    calendar_max_results: int = Field(
        default=CALENDAR_MAX_RESULTS_DEFAULT,
        ge=1,
        le=2500,
        description="Page size for calendar event listing",
    )

    # Deduplication configuration
    similarity_threshold: float = Field(
        default=DEFAULT_SIMILARITY_THRESHOLD,
        ge=0.0,
        le=1.0,
        description="Minimum title/description similarity for a duplicate (0.0-1.0)",
    )
    split_group_policy: SplitGroupPolicy = Field(
        default=SplitGroupPolicy.SKIP_GROUP,
        description="What to do when only some markers of a split event are duplicates",
    )

    # Slack notifications
    slack_notify_channel_id: str | None = Field(
        default=None, description="Channel for event-created notifications"
    )

    # Storage
    processed_store_path: str = Field(
        default="data/processed.sqlite",
        description="SQLite file holding processed-item records",
    )

    # Processing configuration
    tz_default: str = Field(
        default=DEFAULT_TIMEZONE, description="Timezone used for dates and times"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=False, description="Render logs as JSON")

    @property
    def notifications_enabled(self) -> bool:
        """True when both a Slack token and a target channel are configured."""
        return bool(self.slack_bot_token and self.slack_notify_channel_id)

    @property
    def ai_gateway_base_url(self) -> str | None:
        """OpenAI-compatible base URL of the Cloudflare AI gateway, if configured."""
        if not (self.cloudflare_account_id and self.cloudflare_ai_gateway_name):
            return None
        return (
            f"https://gateway.ai.cloudflare.com/v1/account/{self.cloudflare_account_id}/"
            f"ai-gateway/{self.cloudflare_ai_gateway_name}/openai"
        )


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore[call-arg]
    return _settings
