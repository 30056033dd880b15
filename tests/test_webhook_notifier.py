"""Tests for the webhook alert provider."""

import asyncio
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest

from pulseflow.adapters.notifications import WebhookAlertProvider, build_webhook_payload
from pulseflow.core import ErrorKind

WEBHOOK_URL = "https://hooks.example.com/pulse"


def _response(status_code: int, reason: str = "OK") -> Mock:
    response = Mock()
    response.status_code = status_code
    response.reason_phrase = reason
    return response


def test_validate_destination() -> None:
    """Test only http(s) URLs are accepted."""
    provider = WebhookAlertProvider()

    assert provider.validate_destination("https://hooks.example.com/x")
    assert provider.validate_destination("http://localhost:8080/hook")
    assert not provider.validate_destination("ftp://example.com/")
    assert not provider.validate_destination("https://")


def test_payload_shape(alert_options) -> None:
    """Test the JSON body carries signal, change and pulse id."""
    payload = build_webhook_payload(alert_options(WEBHOOK_URL))

    assert payload["event"] == "pulse.change_detected"
    assert payload["pulseId"] == "pulse-1"
    assert payload["signal"] == {
        "id": "sig-1",
        "name": "Example Blog",
        "url": "https://blog.example.com/feed",
    }
    assert payload["change"]["type"] == "NEW_ITEMS"
    assert payload["change"]["summary"] == "1 new item detected"
    assert payload["change"]["stats"]["addedCount"] == 1
    assert payload["change"]["items"]["added"][0]["author"] == "Alice"
    assert payload["change"]["items"]["removed"] == []
    assert "timestamp" in payload


@pytest.mark.asyncio
async def test_send_success(alert_options) -> None:
    """Test a 2xx response is a delivery."""
    provider = WebhookAlertProvider()

    with patch("httpx.AsyncClient") as mock_client:
        mock_post = AsyncMock(return_value=_response(204, "No Content"))
        mock_client.return_value.__aenter__.return_value.post = mock_post

        result = await provider.send(alert_options(WEBHOOK_URL))

    assert result.success
    assert result.value.destination == WEBHOOK_URL
    assert not result.value.dry_run
    assert mock_post.call_args.args[0] == WEBHOOK_URL
    headers = mock_post.call_args.kwargs["headers"]
    assert headers["X-PulseFlow-Event"] == "pulse.change_detected"
    assert headers["Content-Type"] == "application/json"
    assert mock_client.call_args.kwargs["timeout"] == 10.0


@pytest.mark.asyncio
async def test_server_error_is_webhook_error(alert_options) -> None:
    """Test a 500 response fails with WEBHOOK_ERROR naming the status."""
    provider = WebhookAlertProvider()

    with patch("httpx.AsyncClient") as mock_client:
        mock_post = AsyncMock(return_value=_response(500, "Internal Server Error"))
        mock_client.return_value.__aenter__.return_value.post = mock_post

        result = await provider.send(alert_options(WEBHOOK_URL))

    assert not result.success
    assert result.error.kind == ErrorKind.WEBHOOK_ERROR
    assert "500" in result.error.message
    assert result.error.message == "Webhook returned status 500: Internal Server Error"
    assert mock_post.await_count == 1


@pytest.mark.asyncio
async def test_timeout_is_distinct(alert_options) -> None:
    """Test a timeout fails with WEBHOOK_TIMEOUT."""
    provider = WebhookAlertProvider()

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(
            side_effect=httpx.ReadTimeout("timed out")
        )

        result = await provider.send(alert_options(WEBHOOK_URL))

    assert result.error.kind == ErrorKind.WEBHOOK_TIMEOUT
    assert result.error.status_code == 504


@pytest.mark.asyncio
async def test_connection_errors_are_retried(alert_options) -> None:
    """Test transport errors are retried until the ceiling."""
    provider = WebhookAlertProvider(max_retries=3)

    with patch("httpx.AsyncClient") as mock_client, \
            patch("pulseflow.core.retry.sleep", new_callable=AsyncMock) as mock_sleep:
        mock_post = AsyncMock(side_effect=httpx.ConnectError("connection refused"))
        mock_client.return_value.__aenter__.return_value.post = mock_post

        result = await provider.send(alert_options(WEBHOOK_URL))

    assert result.error.kind == ErrorKind.DELIVERY_FAILED
    assert result.error.message == "Alert delivery failed after 3 retries: connection refused"
    assert mock_post.await_count == 3
    assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]


@pytest.mark.asyncio
async def test_dry_run_skips_delivery(alert_options) -> None:
    """Test dry run returns a synthetic success without posting."""
    provider = WebhookAlertProvider()

    with patch("httpx.AsyncClient") as mock_client:
        result = await provider.send(alert_options(WEBHOOK_URL, dry_run=True))

    assert result.success
    assert result.value.dry_run
    mock_client.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_url_rejected_even_in_dry_run(alert_options) -> None:
    """Test validation happens before the dry-run short circuit."""
    provider = WebhookAlertProvider()

    result = await provider.send(alert_options("not a url", dry_run=True))

    assert result.error.kind == ErrorKind.INVALID_DESTINATION


@pytest.mark.asyncio
async def test_slow_response_hits_total_timeout(alert_options) -> None:
    """Test the timeout bounds the whole request, not each phase."""
    provider = WebhookAlertProvider(timeout=0.05)

    async def trickle(*args, **kwargs):
        await asyncio.sleep(1)
        return _response(200)

    with patch("httpx.AsyncClient") as mock_client:
        mock_client.return_value.__aenter__.return_value.post = AsyncMock(side_effect=trickle)

        result = await provider.send(alert_options(WEBHOOK_URL))

    assert result.error.kind == ErrorKind.WEBHOOK_TIMEOUT
    assert result.error.message == "Webhook request timed out after 0.05s"
