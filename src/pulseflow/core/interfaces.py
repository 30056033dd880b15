"""Core interfaces for adapters and collaborators."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from pulseflow.core.entities import (
    Alert,
    AlertChannel,
    AlertDeliveryResult,
    AlertDestination,
    AlertOptions,
    AlertStatus,
    ChangeType,
    ContentType,
    Pulse,
    PulseStatus,
    ScrapeOptions,
    ScrapeResult,
    ScraperStrategy,
    Signal,
    SummaryResult,
)
from pulseflow.core.errors import Result


class ContentSource(ABC):
    """Interface for turning a URL into normalized content items."""

    strategy: ScraperStrategy

    @abstractmethod
    def can_handle(self, url: str) -> bool:
        """Whether this source understands the URL."""
        pass

    @abstractmethod
    async def scrape(self, options: ScrapeOptions) -> Result[ScrapeResult]:
        """Fetch and extract items."""
        pass


class AlertProvider(ABC):
    """Interface for delivering a change notification to one destination."""

    channel: AlertChannel

    @abstractmethod
    def validate_destination(self, destination: str) -> bool:
        """Check destination format."""
        pass

    @abstractmethod
    async def send(self, options: AlertOptions) -> Result[AlertDeliveryResult]:
        """Deliver the alert."""
        pass


class Summarizer(ABC):
    """Interface for LLM summarization."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the summarizer is configured."""
        pass

    @abstractmethod
    async def summarize(
        self,
        content: str,
        content_type: ContentType = ContentType.GENERIC,
        max_length: int = 500,
        dry_run: bool = False,
    ) -> Result[SummaryResult]:
        """Summarize content."""
        pass


class EmailTransport(ABC):
    """Interface for sending a rendered email."""

    @abstractmethod
    async def send(self, to: str, subject: str, html: str, text: str) -> str:
        """Send an email and return the message id."""
        pass


class SignalStore(ABC):
    """Persistence collaborator for signals, pulses, destinations and alerts."""

    @abstractmethod
    async def get_signal(self, signal_id: str) -> Optional[Signal]:
        pass

    @abstractmethod
    async def list_active_signals(self) -> list[Signal]:
        pass

    @abstractmethod
    async def create_pulse(
        self,
        signal_id: str,
        raw_data: str,
        status: PulseStatus,
        summary: Optional[str] = None,
        dry_run: bool = False,
    ) -> Pulse:
        pass

    @abstractmethod
    async def update_signal_last_scraped(self, signal_id: str, scraped_at: datetime) -> None:
        pass

    @abstractmethod
    async def record_pulse(
        self,
        signal_id: str,
        raw_data: str,
        status: PulseStatus,
        summary: Optional[str],
        scraped_at: datetime,
        dry_run: bool = False,
    ) -> Pulse:
        """Create a pulse and stamp the signal's last scrape time as one unit."""
        pass

    @abstractmethod
    async def find_latest_success_pulse(
        self, signal_id: str, exclude_pulse_id: Optional[str] = None
    ) -> Optional[Pulse]:
        """Newest successful pulse, ignoring dry runs."""
        pass

    @abstractmethod
    async def find_active_destinations(self, signal_id: str) -> list[AlertDestination]:
        pass

    @abstractmethod
    async def create_alert(
        self,
        pulse_id: str,
        destination: AlertDestination,
        change_type: Optional[ChangeType],
        change_summary: str,
        change_details: str,
        status: AlertStatus,
        delivered_at: Optional[datetime] = None,
        error_message: Optional[str] = None,
    ) -> Alert:
        pass
