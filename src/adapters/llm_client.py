"""LLM client adapter for notice summaries and event extraction.

Implements EventExtractorProtocol with OpenAI integration.
"""

import hashlib
import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final

import yaml
from openai import APIError, OpenAI
from openai import RateLimitError as OpenAIRateLimitError

from src.config.logging_config import get_logger
from src.domain.exceptions import LLMAPIError, RateLimitError, ValidationError
from src.domain.models import CandidateEvent, FeedItem, NoticeSummary
from src.services.description_builder import attachment_text
from src.services.payload_decoder import decode_event_payload, decode_summary_payload

PREVIEW_LENGTH_RESPONSE: Final[int] = 1000
"""Maximum characters of a raw response included in debug logs."""

SUMMARY_PROMPT_PATH: Final[Path] = Path("config/prompts/summary.yaml")
EVENTS_PROMPT_PATH: Final[Path] = Path("config/prompts/events.yaml")

logger = get_logger(__name__)


@dataclass(frozen=True)
class PromptFileData:
    """Loaded prompt payload with metadata."""

    content: str
    version: str | None
    checksum: str
    path: Path


@dataclass
class _PromptCacheEntry:
    """Cache entry storing metadata for a prompt file."""

    mtime: float
    data: PromptFileData


_PROMPT_CACHE: dict[Path, _PromptCacheEntry] = {}


def load_prompt_from_file(file_path: str | Path) -> PromptFileData:
    """Load a system prompt from a YAML or text file, with caching.

    Relative paths are resolved against the working directory first and the
    repository root second.

    Args:
        file_path: Path to the prompt file

    Returns:
        Prompt payload metadata

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If YAML prompt file has invalid structure
    """
    raw_path = Path(file_path).expanduser()
    path = raw_path if raw_path.is_absolute() else (Path.cwd() / raw_path).resolve()

    if not path.exists():
        repo_root = Path(__file__).resolve().parents[2]
        alt_path = (repo_root / raw_path).resolve()
        if alt_path.exists():
            path = alt_path
        else:
            raise FileNotFoundError(f"Prompt file not found: {file_path}")

    stat_result = path.stat()
    cache_entry = _PROMPT_CACHE.get(path)
    if cache_entry and cache_entry.mtime == stat_result.st_mtime:
        return cache_entry.data

    if path.suffix.lower() in {".yaml", ".yml"}:
        parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        if not isinstance(parsed, dict):
            raise ValueError(f"Prompt YAML must be a mapping: {path}")

        version = parsed.get("version")
        if not isinstance(version, str):
            raise ValueError(f"Prompt YAML missing 'version' string: {path}")

        system_prompt = parsed.get("system")
        if not isinstance(system_prompt, str):
            raise ValueError(f"Prompt YAML missing 'system' string: {path}")
    else:
        system_prompt = path.read_text(encoding="utf-8")
        version = None

    prompt_data = PromptFileData(
        content=system_prompt,
        version=version,
        checksum=hashlib.sha256(system_prompt.encode("utf-8")).hexdigest(),
        path=path,
    )
    _PROMPT_CACHE[path] = _PromptCacheEntry(
        mtime=stat_result.st_mtime, data=prompt_data
    )
    return prompt_data


class LLMClient:
    """OpenAI LLM client for notice summaries and event extraction."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.2,
        timeout: int = 60,
        base_url: str | None = None,
        summary_prompt_file: str | Path = SUMMARY_PROMPT_PATH,
        events_prompt_file: str | Path = EVENTS_PROMPT_PATH,
        client: Any | None = None,
    ) -> None:
        """Initialize LLM client.

        Args:
            api_key: OpenAI API key
            model: Model name
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            base_url: Alternative API base URL (e.g. an AI gateway)
            summary_prompt_file: System prompt for summaries
            events_prompt_file: System prompt for event extraction
            client: Pre-built OpenAI-compatible client (tests)
        """
        self.client = client or OpenAI(
            api_key=api_key, timeout=timeout, base_url=base_url
        )
        self.model = model
        self.temperature = temperature

        self._summary_prompt = load_prompt_from_file(summary_prompt_file)
        self._events_prompt = load_prompt_from_file(events_prompt_file)

        logger.info(
            "llm_prompts_ready",
            model=model,
            gateway=bool(base_url),
            summary_prompt_version=self._summary_prompt.version,
            events_prompt_version=self._events_prompt.version,
        )

    def summarize(self, item: FeedItem, description_text: str) -> NoticeSummary:
        """Summarize a notice.

        Args:
            item: Feed item
            description_text: Plain-text notice body

        Returns:
            Notice summary; missing keys fall back to defaults

        Raises:
            LLMAPIError: On API communication errors
            ValidationError: On undecodable responses
        """
        prompt = self._build_summary_prompt(item, description_text)
        payload = self._complete_json(self._summary_prompt.content, prompt, item)
        return decode_summary_payload(payload)

    def extract_events(
        self, item: FeedItem, description_text: str, pub_date: str
    ) -> list[CandidateEvent]:
        """Extract calendar events from a notice.

        Args:
            item: Feed item
            description_text: Plain-text notice body
            pub_date: Normalized publication date (YYYY-MM-DD)

        Returns:
            Candidate events (possibly empty)

        Raises:
            LLMAPIError: On API communication errors
            ValidationError: On undecodable responses
        """
        prompt = self._build_events_prompt(item, description_text, pub_date)
        payload = self._complete_json(self._events_prompt.content, prompt, item)
        events = decode_event_payload(payload, pub_date)
        logger.info("llm_events_extracted", item_id=item.item_id, count=len(events))
        return events

    def _complete_json(self, system_prompt: str, prompt: str, item: FeedItem) -> Any:
        start_time = time.time()
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIRateLimitError as e:
            logger.warning("llm_rate_limited", item_id=item.item_id, error=str(e))
            raise RateLimitError() from e
        except APIError as e:
            logger.error("llm_api_error", item_id=item.item_id, error=str(e))
            raise LLMAPIError(f"OpenAI API error: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)
        content = response.choices[0].message.content if response.choices else None
        usage = getattr(response, "usage", None)
        logger.debug(
            "llm_response_received",
            item_id=item.item_id,
            latency_ms=latency_ms,
            tokens_in=usage.prompt_tokens if usage else 0,
            tokens_out=usage.completion_tokens if usage else 0,
            preview=(content or "")[:PREVIEW_LENGTH_RESPONSE],
        )

        if not content:
            raise ValidationError("Empty response from LLM")

        try:
            return json.loads(content)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON from LLM: {e}") from e

    def _build_summary_prompt(self, item: FeedItem, description_text: str) -> str:
        attachment_line = attachment_text(item) or "(없음)"
        return (
            "다음은 한국교원대학교 공지사항입니다. 핵심 정보를 JSON 으로 구성해 주세요.\n\n"
            f"제목: {item.title}\n"
            f"게시일: {item.pub_date}\n"
            f"본문:\n{description_text}\n\n"
            f"첨부 메타:\n{attachment_line}\n\n"
            f"원문 링크: {item.link}"
        )

    def _build_events_prompt(
        self, item: FeedItem, description_text: str, pub_date: str
    ) -> str:
        prompt_parts = [
            f"제목: {item.title}",
            f"게시일: {pub_date}",
            f"게시 부서: {item.department}" if item.department else "",
            f"\n본문:\n{description_text}",
        ]
        return "\n".join(part for part in prompt_parts if part)
