"""Core domain entities."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional


class ScraperStrategy(str, Enum):
    """Content extraction method of a signal."""

    RSS = "RSS"
    REDDIT = "REDDIT"
    HACKERNEWS = "HACKERNEWS"
    HTML = "HTML"
    AUTO = "AUTO"


class PulseStatus(str, Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"


class AlertChannel(str, Enum):
    EMAIL = "EMAIL"
    WEBHOOK = "WEBHOOK"


class AlertStatus(str, Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


class ChangeType(str, Enum):
    NEW_ITEMS = "NEW_ITEMS"
    REMOVED = "REMOVED"
    UPDATED = "UPDATED"
    MIXED = "MIXED"


class ContentType(str, Enum):
    """Content flavour passed to the summarizer."""

    RSS = "RSS"
    SOCIAL = "SOCIAL"
    ARTICLE = "ARTICLE"
    GENERIC = "GENERIC"

    @classmethod
    def for_strategy(cls, strategy: str) -> "ContentType":
        """Map a scraper strategy to the summarizer content type."""
        value = strategy.value if isinstance(strategy, Enum) else str(strategy)
        value = value.upper()
        if value == ScraperStrategy.RSS.value:
            return cls.RSS
        if value in (ScraperStrategy.REDDIT.value, ScraperStrategy.HACKERNEWS.value):
            return cls.SOCIAL
        if value == ScraperStrategy.HTML.value:
            return cls.ARTICLE
        return cls.GENERIC


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


@dataclass
class ComparableItem:
    """Normalized unit compared across snapshots. `id` is usually the URL."""

    id: str
    title: str
    content: Optional[str] = None
    url: Optional[str] = None
    author: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "title": self.title}
        for key in ("content", "url", "author"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ComparableItem":
        return cls(
            id=str(data["id"]),
            title=data.get("title", ""),
            content=data.get("content"),
            url=data.get("url"),
            author=data.get("author"),
        )


@dataclass
class ScrapedItem:
    """Provider output unit."""

    title: str
    url: str
    content: Optional[str] = None
    author: Optional[str] = None
    published_at: Optional[datetime] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_comparable(self) -> ComparableItem:
        return ComparableItem(
            id=self.url,
            title=self.title,
            content=self.content,
            url=self.url,
            author=self.author,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "content": self.content,
            "author": self.author,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScrapedItem":
        return cls(
            title=data.get("title") or "Untitled",
            url=data["url"],
            content=data.get("content"),
            author=data.get("author"),
            published_at=_parse_datetime(data.get("published_at")),
            metadata=data.get("metadata") or {},
        )


@dataclass
class ScrapeOptions:
    """Options for a single provider run. None means the provider default."""

    url: str
    dry_run: bool = False
    delay: Optional[float] = None
    max_retries: Optional[int] = None
    selector: Optional[str] = None


@dataclass
class ScrapeResult:
    items: list[ScrapedItem]
    scraped_at: datetime
    provider: ScraperStrategy
    dry_run: bool = False


@dataclass
class Signal:
    """A monitored target."""

    id: str
    name: str
    url: str
    strategy: ScraperStrategy = ScraperStrategy.AUTO
    interval: int = 60
    is_active: bool = True
    selector: Optional[str] = None
    last_scraped_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Name cannot be empty")
        if not self.url:
            raise ValueError("URL cannot be empty")
        if self.interval < 1:
            raise ValueError("Interval must be at least one minute")
        self.strategy = ScraperStrategy(self.strategy)

    def is_due(self, now: datetime) -> bool:
        """Never scraped, or the interval has elapsed since the last scrape."""
        if self.last_scraped_at is None:
            return True
        return self.last_scraped_at + timedelta(minutes=self.interval) < now

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "strategy": self.strategy.value,
            "interval": self.interval,
            "is_active": self.is_active,
            "selector": self.selector,
            "last_scraped_at": self.last_scraped_at.isoformat() if self.last_scraped_at else None,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Signal":
        return cls(
            id=data["id"],
            name=data["name"],
            url=data["url"],
            strategy=ScraperStrategy(data.get("strategy", "AUTO")),
            interval=int(data.get("interval", 60)),
            is_active=bool(data.get("is_active", True)),
            selector=data.get("selector"),
            last_scraped_at=_parse_datetime(data.get("last_scraped_at")),
            created_at=_parse_datetime(data.get("created_at")) or utcnow(),
        )


@dataclass
class Pulse:
    """Immutable snapshot of one scrape execution."""

    id: str
    signal_id: str
    raw_data: str
    status: PulseStatus
    summary: Optional[str] = None
    dry_run: bool = False
    created_at: datetime = field(default_factory=utcnow)

    def items(self) -> list[ScrapedItem]:
        """Scraped items of a successful pulse; empty for failures."""
        if self.status != PulseStatus.SUCCESS:
            return []
        data = json.loads(self.raw_data or "[]")
        if not isinstance(data, list):
            return []
        return [ScrapedItem.from_dict(entry) for entry in data]

    def comparable_items(self) -> list[ComparableItem]:
        return [item.to_comparable() for item in self.items()]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "signal_id": self.signal_id,
            "raw_data": self.raw_data,
            "status": self.status.value,
            "summary": self.summary,
            "dry_run": self.dry_run,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Pulse":
        return cls(
            id=data["id"],
            signal_id=data["signal_id"],
            raw_data=data.get("raw_data", ""),
            status=PulseStatus(data["status"]),
            summary=data.get("summary"),
            dry_run=bool(data.get("dry_run", False)),
            created_at=_parse_datetime(data.get("created_at")) or utcnow(),
        )


@dataclass
class AlertDestination:
    """Configured delivery target for a signal."""

    id: str
    signal_id: str
    channel: AlertChannel
    destination: str
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "signal_id": self.signal_id,
            "channel": self.channel.value,
            "destination": self.destination,
            "is_active": self.is_active,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AlertDestination":
        return cls(
            id=data["id"],
            signal_id=data["signal_id"],
            channel=AlertChannel(data["channel"]),
            destination=data["destination"],
            is_active=bool(data.get("is_active", True)),
        )


@dataclass
class Alert:
    """Persisted outcome of one delivery attempt to one destination."""

    id: str
    pulse_id: str
    destination_id: str
    channel: AlertChannel
    change_type: Optional[ChangeType]
    change_summary: str
    change_details: str
    status: AlertStatus = AlertStatus.PENDING
    delivered_at: Optional[datetime] = None
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pulse_id": self.pulse_id,
            "destination_id": self.destination_id,
            "channel": self.channel.value,
            "change_type": self.change_type.value if self.change_type else None,
            "change_summary": self.change_summary,
            "change_details": self.change_details,
            "status": self.status.value,
            "delivered_at": self.delivered_at.isoformat() if self.delivered_at else None,
            "error_message": self.error_message,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Alert":
        change_type = data.get("change_type")
        return cls(
            id=data["id"],
            pulse_id=data["pulse_id"],
            destination_id=data["destination_id"],
            channel=AlertChannel(data["channel"]),
            change_type=ChangeType(change_type) if change_type else None,
            change_summary=data.get("change_summary", ""),
            change_details=data.get("change_details", ""),
            status=AlertStatus(data.get("status", "PENDING")),
            delivered_at=_parse_datetime(data.get("delivered_at")),
            error_message=data.get("error_message"),
            created_at=_parse_datetime(data.get("created_at")) or utcnow(),
        )


@dataclass
class ChangeStats:
    added_count: int
    removed_count: int
    updated_count: int
    previous_total: int
    current_total: int

    def to_dict(self) -> dict[str, int]:
        return {
            "addedCount": self.added_count,
            "removedCount": self.removed_count,
            "updatedCount": self.updated_count,
            "previousTotal": self.previous_total,
            "currentTotal": self.current_total,
        }


@dataclass
class UpdatedItem:
    item: ComparableItem
    previous_content: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"item": self.item.to_dict()}
        if self.previous_content is not None:
            data["previousContent"] = self.previous_content
        return data


@dataclass
class ChangeDetails:
    added: list[ComparableItem]
    removed: list[ComparableItem]
    updated: list[UpdatedItem]
    stats: ChangeStats

    def to_dict(self) -> dict[str, Any]:
        return {
            "added": [item.to_dict() for item in self.added],
            "removed": [item.to_dict() for item in self.removed],
            "updated": [entry.to_dict() for entry in self.updated],
            "stats": self.stats.to_dict(),
        }


@dataclass
class ChangeDetectionResult:
    has_changes: bool
    change_type: Optional[ChangeType]
    summary: str
    details: ChangeDetails


@dataclass
class AlertOptions:
    """Everything an alert provider needs for one delivery."""

    destination: str
    signal: Signal
    change: ChangeDetectionResult
    pulse_id: str
    dry_run: bool = False


@dataclass
class AlertDeliveryResult:
    success: bool
    channel: AlertChannel
    destination: str
    delivered_at: datetime
    dry_run: bool = False
    error_message: Optional[str] = None


@dataclass
class SummaryResult:
    summary: str
    provider: str
    model: str
    generated_at: datetime
    tokens_used: Optional[int] = None
    dry_run: bool = False
