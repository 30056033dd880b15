"""Error taxonomy and explicit result values."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Kind of failure, independent of the exception type that carries it."""

    BLOCKED_DOMAIN = "BLOCKED_DOMAIN"
    ROBOTS_DISALLOWED = "ROBOTS_DISALLOWED"
    SCRAPE_FAILED = "SCRAPE_FAILED"
    INVALID_DESTINATION = "INVALID_DESTINATION"
    DELIVERY_FAILED = "DELIVERY_FAILED"
    WEBHOOK_TIMEOUT = "WEBHOOK_TIMEOUT"
    WEBHOOK_ERROR = "WEBHOOK_ERROR"
    EMAIL_ERROR = "EMAIL_ERROR"
    RATE_LIMIT = "RATE_LIMIT"
    AUTH_ERROR = "AUTH_ERROR"
    CONTENT_TOO_SHORT = "CONTENT_TOO_SHORT"
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    EMPTY_RESPONSE = "EMPTY_RESPONSE"
    API_ERROR = "API_ERROR"
    SUMMARIZE_FAILED = "SUMMARIZE_FAILED"


STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.BLOCKED_DOMAIN: 403,
    ErrorKind.ROBOTS_DISALLOWED: 403,
    ErrorKind.SCRAPE_FAILED: 500,
    ErrorKind.INVALID_DESTINATION: 400,
    ErrorKind.DELIVERY_FAILED: 500,
    ErrorKind.WEBHOOK_TIMEOUT: 504,
    ErrorKind.WEBHOOK_ERROR: 502,
    ErrorKind.EMAIL_ERROR: 502,
    ErrorKind.RATE_LIMIT: 429,
    ErrorKind.AUTH_ERROR: 401,
    ErrorKind.CONTENT_TOO_SHORT: 400,
    ErrorKind.PROVIDER_UNAVAILABLE: 503,
    ErrorKind.EMPTY_RESPONSE: 500,
    ErrorKind.API_ERROR: 500,
    ErrorKind.SUMMARIZE_FAILED: 500,
}

# Kinds that must short-circuit any retry loop.
NON_RETRYABLE_KINDS = frozenset({
    ErrorKind.BLOCKED_DOMAIN,
    ErrorKind.ROBOTS_DISALLOWED,
    ErrorKind.INVALID_DESTINATION,
    ErrorKind.RATE_LIMIT,
    ErrorKind.AUTH_ERROR,
    ErrorKind.PROVIDER_UNAVAILABLE,
    ErrorKind.CONTENT_TOO_SHORT,
})


class PulseflowError(Exception):
    """Failure with a stable kind, an HTTP-like status and context."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        status_code: Optional[int] = None,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.status_code = status_code if status_code is not None else STATUS_CODES.get(kind, 500)
        self.context = context or {}

    @property
    def retryable(self) -> bool:
        return self.kind not in NON_RETRYABLE_KINDS

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.message,
            "kind": self.kind.value,
            "statusCode": self.status_code,
        }

    def __repr__(self) -> str:
        return f"PulseflowError({self.kind.value}: {self.message!r})"


class SignalNotFoundError(LookupError):
    """Raised when a pipeline is started for a signal that does not exist."""

    def __init__(self, signal_id: str) -> None:
        super().__init__(f"Signal not found: {signal_id}")
        self.signal_id = signal_id


@dataclass
class Result(Generic[T]):
    """Success value or a PulseflowError, never both."""

    value: Optional[T] = None
    error: Optional[PulseflowError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: PulseflowError) -> "Result[T]":
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
