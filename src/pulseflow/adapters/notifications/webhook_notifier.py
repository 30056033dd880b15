"""Webhook alert provider."""

import asyncio
import re
from typing import Any

import httpx

from pulseflow.adapters.notifications.base import BaseAlertProvider
from pulseflow.core.entities import AlertChannel, AlertDeliveryResult, AlertOptions, utcnow
from pulseflow.core.errors import ErrorKind, PulseflowError, Result
from pulseflow.core.retry import DEFAULT_MAX_RETRIES

WEBHOOK_URL_REGEX = re.compile(r"^https?://.+")
WEBHOOK_TIMEOUT = 10.0
WEBHOOK_EVENT_HEADER = "X-PulseFlow-Event"
WEBHOOK_EVENT_NAME = "pulse.change_detected"


def build_webhook_payload(options: AlertOptions) -> dict[str, Any]:
    """JSON body posted to the destination."""
    signal = options.signal
    change = options.change
    details = change.details.to_dict()
    return {
        "event": WEBHOOK_EVENT_NAME,
        "timestamp": utcnow().isoformat(),
        "signal": {
            "id": signal.id,
            "name": signal.name,
            "url": signal.url,
        },
        "change": {
            "type": change.change_type.value if change.change_type else None,
            "summary": change.summary,
            "stats": details["stats"],
            "items": {
                "added": details["added"],
                "removed": details["removed"],
                "updated": details["updated"],
            },
        },
        "pulseId": options.pulse_id,
    }


class WebhookAlertProvider(BaseAlertProvider):
    """POST change notifications as JSON to an http(s) endpoint."""

    channel = AlertChannel.WEBHOOK

    def __init__(self, timeout: float = WEBHOOK_TIMEOUT, max_retries: int = DEFAULT_MAX_RETRIES) -> None:
        super().__init__(max_retries=max_retries)
        self.timeout = timeout

    def validate_destination(self, destination: str) -> bool:
        return bool(WEBHOOK_URL_REGEX.match(destination))

    async def deliver(self, options: AlertOptions) -> Result[AlertDeliveryResult]:
        url = options.destination
        payload = build_webhook_payload(options)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                # The httpx timeout is per phase; bound the whole request too.
                response = await asyncio.wait_for(
                    client.post(
                        url,
                        json=payload,
                        headers={
                            "Content-Type": "application/json",
                            WEBHOOK_EVENT_HEADER: WEBHOOK_EVENT_NAME,
                        },
                    ),
                    timeout=self.timeout,
                )
            except (httpx.TimeoutException, asyncio.TimeoutError):
                return Result.fail(PulseflowError(
                    f"Webhook request timed out after {self.timeout:g}s",
                    ErrorKind.WEBHOOK_TIMEOUT,
                    context={"url": url, "timeout": self.timeout},
                ))

        if not 200 <= response.status_code < 300:
            return Result.fail(PulseflowError(
                f"Webhook returned status {response.status_code}: {response.reason_phrase}",
                ErrorKind.WEBHOOK_ERROR,
                context={"url": url, "status_code": response.status_code},
            ))

        return Result.ok(self._delivered(url))
