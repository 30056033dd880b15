"""Tests for Claude summarizer."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pulseflow.adapters.llm import ClaudeSummarizer, map_api_error
from pulseflow.adapters.llm.claude_client import DRY_RUN_SUMMARY
from pulseflow.adapters.llm.prompts import build_system_prompt, build_user_prompt
from pulseflow.config import PromptsConfig, Settings
from pulseflow.core import ContentType, ErrorKind

CONTENT = "Python 3.14 was released today with a new interpreter and faster startup times."


@pytest.fixture
def mock_settings() -> Settings:
    """Create settings with an API key."""
    settings = Settings(anthropic_api_key="test-key")
    settings.claude.max_retries = 3
    return settings


def _response(status_code: int, data: dict | None = None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = data or {}
    response.text = text
    return response


def _mock_client(mock_client_class: MagicMock, *responses: MagicMock) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.__aenter__.return_value = mock_client
    mock_client.post.side_effect = list(responses)
    mock_client_class.return_value = mock_client
    return mock_client


@pytest.mark.asyncio
async def test_summarize_success(mock_settings: Settings) -> None:
    """Test text blocks and token usage are read from the response."""
    summarizer = ClaudeSummarizer(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class, _response(200, {
            "content": [{"type": "text", "text": "  Python 3.14 released.  "}],
            "usage": {"input_tokens": 120, "output_tokens": 15},
        }))

        result = await summarizer.summarize(CONTENT, ContentType.RSS, max_length=200)

    assert result.success
    assert result.value.summary == "Python 3.14 released."
    assert result.value.tokens_used == 135
    assert result.value.provider == "claude"
    assert not result.value.dry_run

    body = mock_client.post.call_args.kwargs["json"]
    assert body["model"] == mock_settings.claude.model
    assert "RSS feed content" in body["system"]
    assert body["system"].endswith("Maximum summary length: 200 characters.")
    assert CONTENT in body["messages"][0]["content"]
    assert mock_client.post.call_args.kwargs["headers"]["x-api-key"] == "test-key"


@pytest.mark.asyncio
async def test_unavailable_without_key() -> None:
    """Test missing API key fails before any request."""
    summarizer = ClaudeSummarizer(Settings(anthropic_api_key=""))

    with patch("httpx.AsyncClient") as mock_client_class:
        result = await summarizer.summarize(CONTENT)

    assert not summarizer.is_available()
    assert result.error.kind == ErrorKind.PROVIDER_UNAVAILABLE
    mock_client_class.assert_not_called()


@pytest.mark.asyncio
async def test_content_too_short(mock_settings: Settings) -> None:
    """Test short content is rejected even in dry run."""
    summarizer = ClaudeSummarizer(mock_settings)

    result = await summarizer.summarize("   too short   ", dry_run=True)

    assert result.error.kind == ErrorKind.CONTENT_TOO_SHORT
    assert result.error.context["content_length"] == len("too short")


@pytest.mark.asyncio
async def test_dry_run_placeholder(mock_settings: Settings) -> None:
    """Test dry run returns the placeholder without calling the API."""
    summarizer = ClaudeSummarizer(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        result = await summarizer.summarize(CONTENT, dry_run=True)

    assert result.value.summary == DRY_RUN_SUMMARY
    assert result.value.dry_run
    mock_client_class.assert_not_called()


@pytest.mark.asyncio
async def test_long_content_is_truncated(mock_settings: Settings) -> None:
    """Test input above the limit is cut before sending."""
    mock_settings.summary.max_input_length = 100
    summarizer = ClaudeSummarizer(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = _mock_client(mock_client_class, _response(200, {
            "content": [{"type": "text", "text": "Summary"}],
        }))

        result = await summarizer.summarize("x" * 500)

    assert result.value.tokens_used is None
    prompt = mock_client.post.call_args.kwargs["json"]["messages"][0]["content"]
    assert "x" * 100 in prompt
    assert "x" * 101 not in prompt


@pytest.mark.asyncio
async def test_auth_error_not_retried(mock_settings: Settings) -> None:
    """Test 401 responses fail immediately as AUTH_ERROR."""
    summarizer = ClaudeSummarizer(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class, \
            patch("pulseflow.core.retry.sleep", new_callable=AsyncMock) as mock_sleep:
        mock_client = _mock_client(
            mock_client_class, _response(401, text='{"error": "invalid x-api-key"}')
        )

        result = await summarizer.summarize(CONTENT)

    assert result.error.kind == ErrorKind.AUTH_ERROR
    assert mock_client.post.await_count == 1
    mock_sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_rate_limit_not_retried(mock_settings: Settings) -> None:
    """Test 429 responses fail immediately as RATE_LIMIT."""
    summarizer = ClaudeSummarizer(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class, \
            patch("pulseflow.core.retry.sleep", new_callable=AsyncMock):
        mock_client = _mock_client(mock_client_class, _response(429, text="slow down"))

        result = await summarizer.summarize(CONTENT)

    assert result.error.kind == ErrorKind.RATE_LIMIT
    assert result.error.status_code == 429
    assert mock_client.post.await_count == 1


@pytest.mark.asyncio
async def test_server_error_retried_then_succeeds(mock_settings: Settings) -> None:
    """Test transient API errors are retried with backoff."""
    summarizer = ClaudeSummarizer(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class, \
            patch("pulseflow.core.retry.sleep", new_callable=AsyncMock) as mock_sleep:
        _mock_client(
            mock_client_class,
            _response(500, text="overloaded"),
            _response(200, {"content": [{"type": "text", "text": "Recovered"}]}),
        )

        result = await summarizer.summarize(CONTENT)

    assert result.value.summary == "Recovered"
    mock_sleep.assert_awaited_once_with(1.0)


@pytest.mark.asyncio
async def test_exhausted_retries(mock_settings: Settings) -> None:
    """Test persistent failures end in SUMMARIZE_FAILED."""
    summarizer = ClaudeSummarizer(mock_settings)

    with patch("httpx.AsyncClient") as mock_client_class, \
            patch("pulseflow.core.retry.sleep", new_callable=AsyncMock):
        mock_client = _mock_client(
            mock_client_class, *[_response(500, text="overloaded") for _ in range(3)]
        )

        result = await summarizer.summarize(CONTENT)

    assert result.error.kind == ErrorKind.SUMMARIZE_FAILED
    assert result.error.message.startswith("Summarization failed after 3 retries: LLM API error")
    assert mock_client.post.await_count == 3


def test_map_api_error() -> None:
    """Test message-based classification."""
    assert map_api_error(RuntimeError("Rate limit reached")).kind == ErrorKind.RATE_LIMIT
    assert map_api_error(RuntimeError("quota exceeded")).kind == ErrorKind.RATE_LIMIT
    assert map_api_error(RuntimeError("Invalid API key")).kind == ErrorKind.AUTH_ERROR
    assert map_api_error(ValueError("Empty response from Claude API")).kind == ErrorKind.EMPTY_RESPONSE

    other = map_api_error(RuntimeError("boom"))
    assert other.kind == ErrorKind.API_ERROR
    assert other.message == "LLM API error: boom"


def test_system_prompt_layout() -> None:
    """Test base prompt, type instructions and length cap order."""
    prompts = PromptsConfig(summary_system="BASE", content_types={"GENERIC": "GEN", "SOCIAL": "SOC"})

    assert build_system_prompt(ContentType.SOCIAL, 300, prompts) == (
        "BASE\n\nSOC\n\nMaximum summary length: 300 characters."
    )
    assert build_system_prompt(ContentType.ARTICLE, 300, prompts).startswith("BASE\n\nGEN\n\n")
    assert build_user_prompt("body") == "Content to summarize:\n---\nbody\n---\n\nProvide a concise summary:"
