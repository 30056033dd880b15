"""Claude API summarizer."""

import logging

import httpx

from pulseflow.adapters.llm.prompts import build_system_prompt, build_user_prompt
from pulseflow.config import Settings
from pulseflow.core.entities import ContentType, SummaryResult, utcnow
from pulseflow.core.errors import ErrorKind, PulseflowError, Result
from pulseflow.core.interfaces import Summarizer
from pulseflow.core.retry import error_message, retry_with_backoff

logger = logging.getLogger(__name__)

PROVIDER_NAME = "claude"
DRY_RUN_SUMMARY = "[DRY RUN] Summary would be generated here. Content received and validated."

RATE_LIMIT_MARKERS = ("rate limit", "quota", "429", "too many requests")
AUTH_MARKERS = ("api key", "unauthorized", "401", "invalid key", "authentication")


def map_api_error(error: Exception) -> PulseflowError:
    """Classify an API failure by its message."""
    if isinstance(error, PulseflowError):
        return error
    message = error_message(error)
    lowered = message.lower()

    if any(marker in lowered for marker in RATE_LIMIT_MARKERS):
        return PulseflowError(f"LLM rate limit exceeded: {message}", ErrorKind.RATE_LIMIT)
    if any(marker in lowered for marker in AUTH_MARKERS):
        return PulseflowError(f"LLM authentication error: {message}", ErrorKind.AUTH_ERROR)
    if "empty" in lowered:
        return PulseflowError("LLM returned empty response", ErrorKind.EMPTY_RESPONSE)
    return PulseflowError(
        f"LLM API error: {message}",
        ErrorKind.API_ERROR,
        context={"original_error": message},
    )


class ClaudeSummarizer(Summarizer):
    """Summarizer backed by the Claude Messages API."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.api_key = settings.anthropic_api_key
        self.model = settings.claude.model
        self.max_tokens = settings.claude.max_tokens
        self.temperature = settings.claude.temperature
        self.max_retries = settings.claude.max_retries
        self.min_content_length = settings.summary.min_content_length
        self.max_input_length = settings.summary.max_input_length
        self.base_url = "https://api.anthropic.com/v1"

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def summarize(
        self,
        content: str,
        content_type: ContentType = ContentType.GENERIC,
        max_length: int = 500,
        dry_run: bool = False,
    ) -> Result[SummaryResult]:
        if not self.is_available():
            return Result.fail(PulseflowError(
                f"LLM provider {PROVIDER_NAME} is not available (missing API key)",
                ErrorKind.PROVIDER_UNAVAILABLE,
            ))

        text = (content or "").strip()
        if len(text) < self.min_content_length:
            return Result.fail(PulseflowError(
                f"Content too short for summarization (min {self.min_content_length} chars)",
                ErrorKind.CONTENT_TOO_SHORT,
                context={"content_length": len(text)},
            ))

        if len(text) > self.max_input_length:
            logger.info("Content truncated from %d to %d chars", len(text), self.max_input_length)
            text = text[: self.max_input_length]

        if dry_run:
            logger.info("[DRY RUN] Would summarize %d chars with %s/%s", len(text), PROVIDER_NAME, self.model)
            return Result.ok(SummaryResult(
                summary=DRY_RUN_SUMMARY,
                provider=PROVIDER_NAME,
                model=self.model,
                generated_at=utcnow(),
                dry_run=True,
            ))

        system = build_system_prompt(content_type, max_length, self.settings.prompts)
        prompt = build_user_prompt(text)

        def exhausted(error: Exception, attempts: int) -> PulseflowError:
            return PulseflowError(
                f"Summarization failed after {attempts} retries: {error_message(error)}",
                ErrorKind.SUMMARIZE_FAILED,
            )

        async def attempt() -> Result[SummaryResult]:
            summary, tokens_used = await self._call_api(prompt=prompt, system=system)
            return Result.ok(SummaryResult(
                summary=summary,
                provider=PROVIDER_NAME,
                model=self.model,
                generated_at=utcnow(),
                tokens_used=tokens_used,
            ))

        return await retry_with_backoff(
            attempt,
            max_retries=self.max_retries,
            on_exhausted=exhausted,
            map_error=map_api_error,
            label=f"[{PROVIDER_NAME}] summarize",
        )

    async def _call_api(self, prompt: str, system: str) -> tuple[str, int | None]:
        """Call Claude API once. Raises on any failure."""
        async with httpx.AsyncClient(timeout=60.0) as client:
            response = await client.post(
                f"{self.base_url}/messages",
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": "2023-06-01",
                    "content-type": "application/json",
                },
                json={
                    "model": self.model,
                    "max_tokens": self.max_tokens,
                    "temperature": self.temperature,
                    "system": system,
                    "messages": [
                        {"role": "user", "content": prompt}
                    ],
                },
            )

        if response.status_code != 200:
            raise RuntimeError(f"HTTP {response.status_code}: {response.text[:200]}")

        data = response.json()
        blocks = data.get("content") or []
        text = "".join(block.get("text", "") for block in blocks if block.get("type") == "text").strip()
        if not text:
            raise ValueError("Empty response from Claude API")

        usage = data.get("usage") or {}
        tokens_used = None
        if usage:
            tokens_used = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)
        return text, tokens_used
