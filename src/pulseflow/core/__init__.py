"""Core domain layer."""

from pulseflow.core.change_detector import detect_changes
from pulseflow.core.entities import (
    Alert,
    AlertChannel,
    AlertDeliveryResult,
    AlertDestination,
    AlertOptions,
    AlertStatus,
    ChangeDetails,
    ChangeDetectionResult,
    ChangeStats,
    ChangeType,
    ComparableItem,
    ContentType,
    Pulse,
    PulseStatus,
    ScrapedItem,
    ScrapeOptions,
    ScrapeResult,
    ScraperStrategy,
    Signal,
    SummaryResult,
    UpdatedItem,
)
from pulseflow.core.errors import ErrorKind, PulseflowError, Result, SignalNotFoundError
from pulseflow.core.interfaces import (
    AlertProvider,
    ContentSource,
    EmailTransport,
    SignalStore,
    Summarizer,
)
from pulseflow.core.store import YamlSignalStore

__all__ = [
    "Alert",
    "AlertChannel",
    "AlertDeliveryResult",
    "AlertDestination",
    "AlertOptions",
    "AlertProvider",
    "AlertStatus",
    "ChangeDetails",
    "ChangeDetectionResult",
    "ChangeStats",
    "ChangeType",
    "ComparableItem",
    "ContentSource",
    "ContentType",
    "EmailTransport",
    "ErrorKind",
    "Pulse",
    "PulseStatus",
    "PulseflowError",
    "Result",
    "ScrapedItem",
    "ScrapeOptions",
    "ScrapeResult",
    "ScraperStrategy",
    "Signal",
    "SignalNotFoundError",
    "SignalStore",
    "Summarizer",
    "SummaryResult",
    "UpdatedItem",
    "YamlSignalStore",
    "detect_changes",
]
