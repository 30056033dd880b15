"""CLI entry point for PulseFlow."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from pulseflow.adapters.llm import ClaudeSummarizer
from pulseflow.adapters.notifications import (
    EmailAlertProvider,
    SmtpEmailTransport,
    WebhookAlertProvider,
)
from pulseflow.adapters.sources import SourceFactory, build_default_sources
from pulseflow.adapters.web import HttpClient, RateLimiter, RobotsChecker
from pulseflow.config import Settings, get_settings
from pulseflow.core import (
    AlertChannel,
    ScrapeOptions,
    ScraperStrategy,
    Signal,
    SignalNotFoundError,
    YamlSignalStore,
)
from pulseflow.core.store import new_id
from pulseflow.use_cases import PipelineOutcome, SchedulerService, ScrapeSignalService

app = typer.Typer(help="Monitor web sources, detect changes and send alerts.", no_args_is_help=True)

STATUS_ICONS = {"success": "✅", "failed": "❌", "skipped": "⏭️ ", "error": "💥"}


def build_sources(settings: Settings) -> SourceFactory:
    http_client = HttpClient(
        user_agent=settings.scraper.user_agent,
        timeout=settings.scraper.request_timeout,
    )
    robots_checker = RobotsChecker(
        http_client,
        user_agent=settings.scraper.user_agent,
        timeout=settings.scraper.robots_timeout,
        cache_ttl=settings.scraper.robots_cache_ttl,
    )
    return build_default_sources(
        http_client=http_client,
        rate_limiter=RateLimiter(),
        robots_checker=robots_checker,
        default_delay=settings.scraper.delay_seconds,
        default_max_retries=settings.scraper.max_retries,
        blocked_domains=settings.scraper.blocked_domains,
    )


def build_services(settings: Settings) -> tuple[YamlSignalStore, SchedulerService]:
    """Wire the store, sources, alert providers and summarizer from settings."""
    store = YamlSignalStore(settings.data_dir)

    transport = None
    if settings.email_configured:
        transport = SmtpEmailTransport(
            host=settings.smtp.host,
            port=settings.smtp.port,
            username=settings.smtp.username,
            password=settings.smtp.password,
            use_tls=settings.smtp.use_tls,
            sender=settings.alerts.email_from,
        )

    alert_providers = {
        AlertChannel.EMAIL: EmailAlertProvider(transport, max_retries=settings.alerts.max_retries),
        AlertChannel.WEBHOOK: WebhookAlertProvider(
            timeout=settings.alerts.webhook_timeout,
            max_retries=settings.alerts.max_retries,
        ),
    }

    pipeline = ScrapeSignalService(
        store=store,
        sources=build_sources(settings),
        alert_providers=alert_providers,
        summarizer=ClaudeSummarizer(settings) if settings.summary.enabled else None,
        min_new_items=settings.alerts.min_new_items,
        detect_removals=settings.alerts.detect_removals,
        detect_updates=settings.alerts.detect_updates,
        summary_max_length=settings.summary.max_length,
    )
    scheduler = SchedulerService(
        store,
        pipeline,
        max_concurrency=settings.scheduler.max_concurrency,
        tick_seconds=settings.scheduler.tick_seconds,
    )
    return store, scheduler


def print_outcome(outcome: PipelineOutcome) -> None:
    icon = STATUS_ICONS.get(outcome.status, "•")
    dry = " [DRY RUN]" if outcome.dry_run else ""
    print(f"{icon} {outcome.signal_id}: {outcome.status}{dry}")
    if outcome.error:
        print(f"  └─ {outcome.error.kind.value}: {outcome.error.message}")
    if outcome.pulse:
        print(f"  • Pulse: {outcome.pulse.id} ({outcome.item_count} items)")
    if outcome.summary:
        print(f"  • Summary: {outcome.summary}")
    if outcome.change:
        print(f"  • Changes: {outcome.change.summary}")
    for alert in outcome.alerts:
        mark = "✓" if alert.error_message is None else "✗"
        detail = f" ({alert.error_message})" if alert.error_message else ""
        print(f"    {mark} {alert.channel.value} alert {alert.status.value}{detail}")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path = typer.Option(Path("config.yaml"), "--config", "-c", help="Path to config.yaml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """PulseFlow command line."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = get_settings(config)


@app.command()
def scrape(
    ctx: typer.Context,
    url: str,
    strategy: ScraperStrategy = typer.Option(ScraperStrategy.AUTO, help="Extraction strategy"),
    selector: Optional[str] = typer.Option(None, help="CSS selector for HTML pages"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Validate without network access"),
) -> None:
    """Scrape a URL once and print the items."""
    settings: Settings = ctx.obj
    sources = build_sources(settings)
    source = sources.for_url(url) if strategy == ScraperStrategy.AUTO else sources.for_strategy(strategy)

    print(f"\n🔍 {url} ({source.strategy.value})")
    result = asyncio.run(source.scrape(ScrapeOptions(url=url, dry_run=dry_run, selector=selector)))
    if not result.success:
        print(f"❌ {result.error.kind.value}: {result.error.message}")
        raise typer.Exit(code=1)

    if result.value.dry_run:
        print("✓ [DRY RUN] nothing fetched")
        return
    print(f"✓ Found {len(result.value.items)} items")
    for item in result.value.items:
        print(f"  • {item.title}")
        print(f"    {item.url}")


@app.command("add-signal")
def add_signal(
    ctx: typer.Context,
    name: str,
    url: str,
    strategy: ScraperStrategy = typer.Option(ScraperStrategy.AUTO, help="Extraction strategy"),
    interval: int = typer.Option(60, help="Minutes between scrapes"),
    selector: Optional[str] = typer.Option(None, help="CSS selector for HTML pages"),
) -> None:
    """Register a new signal."""
    settings: Settings = ctx.obj
    store = YamlSignalStore(settings.data_dir)
    try:
        signal = Signal(
            id=new_id(),
            name=name,
            url=url,
            strategy=strategy,
            interval=interval,
            selector=selector,
        )
    except ValueError as e:
        print(f"❌ {e}")
        raise typer.Exit(code=1)
    asyncio.run(store.save_signal(signal))
    print(f"✓ Signal created: {signal.id}")


@app.command("add-destination")
def add_destination(
    ctx: typer.Context,
    signal_id: str,
    channel: AlertChannel,
    destination: str,
) -> None:
    """Attach an email address or webhook URL to a signal."""
    settings: Settings = ctx.obj
    store = YamlSignalStore(settings.data_dir)
    provider = EmailAlertProvider() if channel == AlertChannel.EMAIL else WebhookAlertProvider()
    if not provider.validate_destination(destination):
        print(f"❌ Invalid {channel.value.lower()} destination: {destination}")
        raise typer.Exit(code=1)
    try:
        record = asyncio.run(store.add_destination(signal_id, channel, destination))
    except LookupError as e:
        print(f"❌ {e}")
        raise typer.Exit(code=1)
    print(f"✓ Destination added: {record.id}")


@app.command("list-signals")
def list_signals(ctx: typer.Context) -> None:
    """Show every signal and when it was last scraped."""
    settings: Settings = ctx.obj
    store = YamlSignalStore(settings.data_dir)
    signals = asyncio.run(store.list_signals())
    if not signals:
        print("No signals yet. Add one with `pulseflow add-signal`.")
        return
    for signal in signals:
        state = "active" if signal.is_active else "paused"
        last = signal.last_scraped_at.isoformat() if signal.last_scraped_at else "never"
        print(f"📡 {signal.id}  {signal.name} [{signal.strategy.value}, {state}]")
        print(f"   {signal.url}")
        print(f"   every {signal.interval} min, last scraped: {last}")


@app.command()
def run(
    ctx: typer.Context,
    signal_id: str,
    dry_run: bool = typer.Option(False, "--dry-run", help="No network or delivery side effects"),
) -> None:
    """Run the pipeline for one signal now."""
    _, scheduler = build_services(ctx.obj)
    try:
        outcome = asyncio.run(scheduler.trigger(signal_id, dry_run=dry_run))
    except SignalNotFoundError as e:
        print(f"❌ {e}")
        raise typer.Exit(code=1)
    print_outcome(outcome)


@app.command()
def sweep(
    ctx: typer.Context,
    watch: bool = typer.Option(False, "--watch", help="Keep sweeping every tick"),
    dry_run: bool = typer.Option(False, "--dry-run", help="No network or delivery side effects"),
) -> None:
    """Run every signal that is due."""
    settings: Settings = ctx.obj
    _, scheduler = build_services(settings)
    if watch:
        print(f"👀 Sweeping every {settings.scheduler.tick_seconds:g}s (Ctrl+C to stop)")
        try:
            asyncio.run(scheduler.watch(dry_run=dry_run))
        except KeyboardInterrupt:
            print("\nStopped.")
        return

    outcomes = asyncio.run(scheduler.sweep(dry_run=dry_run))
    if not outcomes:
        print("✓ No signals due")
    for outcome in outcomes:
        print_outcome(outcome)


if __name__ == "__main__":
    app()
