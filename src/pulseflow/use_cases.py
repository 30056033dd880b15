"""Business logic use cases."""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol

from pulseflow.core import (
    Alert,
    AlertChannel,
    AlertDestination,
    AlertOptions,
    AlertProvider,
    AlertStatus,
    ChangeDetectionResult,
    ContentSource,
    ContentType,
    ErrorKind,
    Pulse,
    PulseflowError,
    PulseStatus,
    ScrapedItem,
    ScrapeOptions,
    Signal,
    SignalNotFoundError,
    SignalStore,
    Summarizer,
    detect_changes,
)
from pulseflow.core.entities import utcnow

logger = logging.getLogger(__name__)


class SourceResolver(Protocol):
    def for_signal(self, signal: Signal) -> ContentSource:
        ...


@dataclass
class PipelineOutcome:
    """What one pipeline execution did."""

    signal_id: str
    status: str
    pulse: Optional[Pulse] = None
    item_count: int = 0
    error: Optional[PulseflowError] = None
    summary: Optional[str] = None
    change: Optional[ChangeDetectionResult] = None
    alerts: list[Alert] = field(default_factory=list)
    dry_run: bool = False

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"


def items_to_text(items: list[ScrapedItem]) -> str:
    """Flatten scraped items into the text handed to the summarizer."""
    blocks = []
    for item in items:
        lines = [item.title]
        if item.author:
            lines.append(f"by {item.author}")
        if item.content:
            lines.append(item.content)
        lines.append(item.url)
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks)


class ScrapeSignalService:
    """Run one signal through scrape, summarize, store, detect and alert.

    Steps are strictly sequential; only alert fan-out runs concurrently.
    Scrape, summarization and delivery failures are recorded, never raised.
    A missing signal raises SignalNotFoundError.
    """

    def __init__(
        self,
        store: SignalStore,
        sources: SourceResolver,
        alert_providers: Optional[dict[AlertChannel, AlertProvider]] = None,
        summarizer: Optional[Summarizer] = None,
        min_new_items: int = 1,
        detect_removals: bool = False,
        detect_updates: bool = False,
        summary_max_length: int = 500,
        scrape_delay: Optional[float] = None,
        scrape_max_retries: Optional[int] = None,
    ) -> None:
        self.store = store
        self.sources = sources
        self.alert_providers = alert_providers or {}
        self.summarizer = summarizer
        self.min_new_items = min_new_items
        self.detect_removals = detect_removals
        self.detect_updates = detect_updates
        self.summary_max_length = summary_max_length
        self.scrape_delay = scrape_delay
        self.scrape_max_retries = scrape_max_retries

    async def run(self, signal_id: str, dry_run: bool = False) -> PipelineOutcome:
        signal = await self.store.get_signal(signal_id)
        if signal is None:
            raise SignalNotFoundError(signal_id)

        if not signal.is_active:
            logger.info("Signal %s is inactive, skipping", signal_id)
            return PipelineOutcome(signal_id=signal_id, status="skipped", dry_run=dry_run)

        source = self.sources.for_signal(signal)
        logger.info("Scraping signal %s (%s) with %s", signal.name, signal.url, source.strategy.value)
        result = await source.scrape(ScrapeOptions(
            url=signal.url,
            dry_run=dry_run,
            delay=self.scrape_delay,
            max_retries=self.scrape_max_retries,
            selector=signal.selector,
        ))
        items = result.value.items if result.success else []

        summary = None
        if result.success and items:
            summary = await self._summarize(items, ContentType.for_strategy(source.strategy), dry_run)

        if result.success:
            raw_data = json.dumps([item.to_dict() for item in items], ensure_ascii=False)
            status = PulseStatus.SUCCESS
        else:
            raw_data = json.dumps({"error": result.error.message, "kind": result.error.kind.value})
            status = PulseStatus.FAILED
            logger.error("Scrape of %s failed: %s", signal.url, result.error.message)

        pulse = await self.store.record_pulse(
            signal.id, raw_data, status, summary, utcnow(), dry_run=dry_run
        )

        outcome = PipelineOutcome(
            signal_id=signal_id,
            status="success" if result.success else "failed",
            pulse=pulse,
            item_count=len(items),
            error=result.error,
            summary=summary,
            dry_run=dry_run,
        )
        if not (result.success and items):
            return outcome

        previous = await self.store.find_latest_success_pulse(signal.id, exclude_pulse_id=pulse.id)
        change = detect_changes(
            previous.comparable_items() if previous else [],
            [item.to_comparable() for item in items],
            min_new_items=self.min_new_items,
            detect_removals=self.detect_removals,
            detect_updates=self.detect_updates,
        )
        outcome.change = change
        logger.info("Signal %s: %s", signal.name, change.summary)

        if change.has_changes:
            outcome.alerts = await self._send_alerts(signal, pulse, change, dry_run)
        return outcome

    async def _summarize(
        self, items: list[ScrapedItem], content_type: ContentType, dry_run: bool
    ) -> Optional[str]:
        if self.summarizer is None or not self.summarizer.is_available():
            return None
        result = await self.summarizer.summarize(
            items_to_text(items),
            content_type=content_type,
            max_length=self.summary_max_length,
            dry_run=dry_run,
        )
        if not result.success:
            logger.warning("Summarization failed (%s): %s", result.error.kind.value, result.error.message)
            return None
        return result.value.summary

    async def _send_alerts(
        self, signal: Signal, pulse: Pulse, change: ChangeDetectionResult, dry_run: bool
    ) -> list[Alert]:
        destinations = await self.store.find_active_destinations(signal.id)
        if not destinations:
            return []
        return list(await asyncio.gather(*(
            self._deliver(destination, signal, pulse, change, dry_run)
            for destination in destinations
        )))

    async def _deliver(
        self,
        destination: AlertDestination,
        signal: Signal,
        pulse: Pulse,
        change: ChangeDetectionResult,
        dry_run: bool,
    ) -> Alert:
        delivered_at: Optional[datetime] = None
        error_message: Optional[str] = None

        provider = self.alert_providers.get(destination.channel)
        if provider is None:
            error_message = f"No alert provider for channel {destination.channel.value}"
        else:
            try:
                result = await provider.send(AlertOptions(
                    destination=destination.destination,
                    signal=signal,
                    change=change,
                    pulse_id=pulse.id,
                    dry_run=dry_run,
                ))
            except Exception as e:
                logger.exception("Alert delivery to %s crashed", destination.destination)
                error_message = str(e) or e.__class__.__name__
            else:
                if result.success:
                    delivered_at = result.value.delivered_at
                else:
                    error_message = result.error.message

        if error_message:
            logger.warning("Alert to %s failed: %s", destination.destination, error_message)

        return await self.store.create_alert(
            pulse_id=pulse.id,
            destination=destination,
            change_type=change.change_type,
            change_summary=change.summary,
            change_details=json.dumps(change.details.to_dict(), ensure_ascii=False),
            status=AlertStatus.SENT if error_message is None else AlertStatus.FAILED,
            delivered_at=delivered_at,
            error_message=error_message,
        )


class SchedulerService:
    """Pick due signals and run their pipelines."""

    def __init__(
        self,
        store: SignalStore,
        pipeline: ScrapeSignalService,
        max_concurrency: int = 4,
        tick_seconds: float = 60.0,
    ) -> None:
        self.store = store
        self.pipeline = pipeline
        self.max_concurrency = max(1, max_concurrency)
        self.tick_seconds = tick_seconds

    async def due_signals(self, now: Optional[datetime] = None) -> list[Signal]:
        now = now or utcnow()
        return [signal for signal in await self.store.list_active_signals() if signal.is_due(now)]

    async def trigger(self, signal_id: str, dry_run: bool = False) -> PipelineOutcome:
        """Run one signal now, regardless of its schedule."""
        return await self.pipeline.run(signal_id, dry_run=dry_run)

    async def sweep(self, now: Optional[datetime] = None, dry_run: bool = False) -> list[PipelineOutcome]:
        """Run every due signal. One failing execution never stops the others."""
        signals = await self.due_signals(now)
        if not signals:
            logger.info("No signals due")
            return []

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run_one(signal: Signal) -> PipelineOutcome:
            async with semaphore:
                try:
                    return await self.pipeline.run(signal.id, dry_run=dry_run)
                except Exception as e:
                    logger.exception("Pipeline for signal %s crashed", signal.id)
                    return PipelineOutcome(
                        signal_id=signal.id,
                        status="error",
                        error=PulseflowError(str(e) or e.__class__.__name__, ErrorKind.SCRAPE_FAILED),
                        dry_run=dry_run,
                    )

        return list(await asyncio.gather(*(run_one(signal) for signal in signals)))

    async def watch(self, dry_run: bool = False, iterations: Optional[int] = None) -> None:
        """Sweep every `tick_seconds`; forever unless `iterations` is given."""
        count = 0
        while iterations is None or count < iterations:
            await self.sweep(dry_run=dry_run)
            count += 1
            if iterations is None or count < iterations:
                await asyncio.sleep(self.tick_seconds)

