"""Execution wrapper shared by every content source."""

import logging
from abc import abstractmethod
from typing import Optional

from pulseflow.adapters.sources.filters import BLOCKED_DOMAINS, extract_domain, is_blocked_domain
from pulseflow.adapters.web import HttpClient, RateLimiter, RobotsChecker
from pulseflow.core.entities import ScrapedItem, ScrapeOptions, ScrapeResult, utcnow
from pulseflow.core.errors import ErrorKind, PulseflowError, Result
from pulseflow.core.interfaces import ContentSource
from pulseflow.core.retry import DEFAULT_MAX_RETRIES, error_message, retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 2.0


class BaseSource(ContentSource):
    """Add dry run, domain blocking, robots.txt, rate limiting and retries.

    Subclasses implement `can_handle` and `extract`; `extract` raises on
    failure and is retried with backoff.
    """

    # Sources backed by a structured public API rather than HTML scraping.
    skip_robots_check: bool = False

    def __init__(
        self,
        http_client: Optional[HttpClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
        robots_checker: Optional[RobotsChecker] = None,
        default_delay: float = DEFAULT_DELAY,
        default_max_retries: int = DEFAULT_MAX_RETRIES,
        blocked_domains: tuple[str, ...] | list[str] = BLOCKED_DOMAINS,
    ) -> None:
        self.http_client = http_client or HttpClient()
        self.rate_limiter = rate_limiter or RateLimiter()
        self.robots_checker = robots_checker or RobotsChecker(self.http_client)
        self.default_delay = default_delay
        self.default_max_retries = default_max_retries
        self.blocked_domains = tuple(blocked_domains)

    @abstractmethod
    async def extract(self, options: ScrapeOptions) -> list[ScrapedItem]:
        """Fetch the URL and turn it into items. Raise on failure."""
        pass

    async def scrape(self, options: ScrapeOptions) -> Result[ScrapeResult]:
        url = options.url

        if options.dry_run:
            logger.info("[DRY RUN] Would scrape %s with provider %s", url, self.strategy.value)
            return Result.ok(self._result([], dry_run=True))

        if is_blocked_domain(url, self.blocked_domains):
            return Result.fail(PulseflowError(
                f"Domain is blocked: {extract_domain(url)}",
                ErrorKind.BLOCKED_DOMAIN,
                context={"url": url},
            ))

        if not self.skip_robots_check and not await self.robots_checker.is_allowed(url):
            return Result.fail(PulseflowError(
                f"URL disallowed by robots.txt: {url}",
                ErrorKind.ROBOTS_DISALLOWED,
                context={"url": url},
            ))

        delay = options.delay if options.delay is not None else self.default_delay
        await self.rate_limiter.wait(url, delay)

        max_retries = (
            options.max_retries if options.max_retries is not None else self.default_max_retries
        )

        async def attempt() -> Result[ScrapeResult]:
            items = await self.extract(options)
            return Result.ok(self._result(items))

        def exhausted(error: Exception, attempts: int) -> PulseflowError:
            message = error_message(error)
            return PulseflowError(
                f"Scrape failed after {attempts} retries: {message}",
                ErrorKind.SCRAPE_FAILED,
                context={"url": url, "last_error": message},
            )

        return await retry_with_backoff(
            attempt,
            max_retries=max_retries,
            on_exhausted=exhausted,
            label=f"[{self.strategy.value}] {url}",
        )

    def _result(self, items: list[ScrapedItem], dry_run: bool = False) -> ScrapeResult:
        return ScrapeResult(
            items=items,
            scraped_at=utcnow(),
            provider=self.strategy,
            dry_run=dry_run,
        )
