"""Delivery wrapper shared by alert providers."""

import logging
from abc import abstractmethod

from pulseflow.core.entities import AlertChannel, AlertDeliveryResult, AlertOptions, utcnow
from pulseflow.core.errors import ErrorKind, PulseflowError, Result
from pulseflow.core.interfaces import AlertProvider
from pulseflow.core.retry import DEFAULT_MAX_RETRIES, error_message, retry_with_backoff

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("rate limit", "429", "too many requests")

CHANNEL_ERROR_KINDS = {
    AlertChannel.EMAIL: ErrorKind.EMAIL_ERROR,
    AlertChannel.WEBHOOK: ErrorKind.WEBHOOK_ERROR,
}


def is_rate_limit_error(error: Exception) -> bool:
    message = error_message(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def map_delivery_error(error: Exception, channel: AlertChannel) -> PulseflowError:
    """Classify a raised delivery error. Rate limits are terminal."""
    if isinstance(error, PulseflowError):
        return error
    message = error_message(error)
    if is_rate_limit_error(error):
        return PulseflowError(message, ErrorKind.RATE_LIMIT, context={"channel": channel.value})
    return PulseflowError(message, CHANNEL_ERROR_KINDS[channel], context={"channel": channel.value})


class BaseAlertProvider(AlertProvider):
    """Validate, honour dry run, then deliver with bounded retry.

    Subclasses implement `validate_destination` and `deliver`. `deliver`
    either raises (retried unless rate limited) or returns a failed Result,
    which is terminal.
    """

    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES) -> None:
        self.max_retries = max_retries

    @abstractmethod
    async def deliver(self, options: AlertOptions) -> Result[AlertDeliveryResult]:
        pass

    async def send(self, options: AlertOptions) -> Result[AlertDeliveryResult]:
        destination = options.destination

        if not self.validate_destination(destination):
            return Result.fail(PulseflowError(
                f"Invalid {self.channel.value.lower()} destination: {destination}",
                ErrorKind.INVALID_DESTINATION,
                context={"destination": destination},
            ))

        if options.dry_run:
            logger.info(
                "[DRY RUN] Would send %s alert to %s: %s",
                self.channel.value, destination, options.change.summary,
            )
            return Result.ok(AlertDeliveryResult(
                success=True,
                channel=self.channel,
                destination=destination,
                delivered_at=utcnow(),
                dry_run=True,
            ))

        def exhausted(error: Exception, attempts: int) -> PulseflowError:
            return PulseflowError(
                f"Alert delivery failed after {attempts} retries: {error_message(error)}",
                ErrorKind.DELIVERY_FAILED,
                context={"destination": destination, "channel": self.channel.value},
            )

        return await retry_with_backoff(
            lambda: self.deliver(options),
            max_retries=self.max_retries,
            on_exhausted=exhausted,
            map_error=lambda exc: map_delivery_error(exc, self.channel),
            label=f"[{self.channel.value}] {destination}",
        )

    def _delivered(self, destination: str) -> AlertDeliveryResult:
        return AlertDeliveryResult(
            success=True,
            channel=self.channel,
            destination=destination,
            delivered_at=utcnow(),
        )
