"""Bounded retry with a fixed exponential backoff schedule."""

import logging
from asyncio import sleep
from typing import Awaitable, Callable, Optional, TypeVar

from pulseflow.core.errors import PulseflowError, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")

RETRY_DELAYS: tuple[float, ...] = (1.0, 2.0, 4.0)
DEFAULT_MAX_RETRIES = 3


def backoff_delay(attempt: int, delays: tuple[float, ...] = RETRY_DELAYS) -> float:
    """Delay after the failed attempt with 0-based index `attempt`.

    The last value of the schedule is reused once it runs out.
    """
    if attempt < len(delays):
        return delays[attempt]
    return delays[-1]


async def retry_with_backoff(
    operation: Callable[[], Awaitable[Result[T]]],
    *,
    max_retries: int,
    on_exhausted: Callable[[Exception, int], PulseflowError],
    map_error: Optional[Callable[[Exception], Exception]] = None,
    label: str = "operation",
    delays: tuple[float, ...] = RETRY_DELAYS,
) -> Result[T]:
    """Run `operation` until it returns, at most `max_retries` times.

    A returned Result (success or failure) ends the loop immediately; only
    raised exceptions are retried. Errors mapped to a non-retryable
    PulseflowError are returned without further attempts.
    """
    attempts = max(1, max_retries)
    last_error: Optional[Exception] = None

    for attempt in range(attempts):
        try:
            return await operation()
        except Exception as exc:  # noqa: BLE001 - every failure is retried or mapped
            last_error = map_error(exc) if map_error else exc
            logger.warning(
                "%s: attempt %d/%d failed: %s", label, attempt + 1, attempts, last_error
            )

            if isinstance(last_error, PulseflowError) and not last_error.retryable:
                return Result.fail(last_error)

            if attempt < attempts - 1:
                await sleep(backoff_delay(attempt, delays))

    assert last_error is not None
    terminal = on_exhausted(last_error, attempts)
    logger.error("%s: giving up after %d attempts: %s", label, attempts, terminal.message)
    return Result.fail(terminal)


def error_message(error: Exception) -> str:
    """Plain message of an exception, without the PulseflowError repr."""
    if isinstance(error, PulseflowError):
        return error.message
    return str(error) or error.__class__.__name__
