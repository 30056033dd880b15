"""Strategy resolution for AUTO signals and the source factory."""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from pulseflow.adapters.sources.base import BaseSource
from pulseflow.adapters.sources.hackernews_source import HackerNewsSource
from pulseflow.adapters.sources.html_source import HTMLSource
from pulseflow.adapters.sources.reddit_source import RedditSource
from pulseflow.adapters.sources.rss_source import RSSSource
from pulseflow.adapters.web import HttpClient, RateLimiter, RobotsChecker
from pulseflow.core.entities import ScraperStrategy, Signal


@dataclass(frozen=True)
class SiteRule:
    pattern: re.Pattern
    strategy: ScraperStrategy

    def matches(self, url: str) -> bool:
        return self.pattern.search(url) is not None


def _rule(pattern: str, strategy: ScraperStrategy) -> SiteRule:
    return SiteRule(re.compile(pattern, re.IGNORECASE), strategy)


DEFAULT_SITE_RULES: tuple[SiteRule, ...] = (
    _rule(r"reddit\.com", ScraperStrategy.REDDIT),
    _rule(r"news\.ycombinator\.com", ScraperStrategy.HACKERNEWS),
    _rule(r"hn\.algolia\.com", ScraperStrategy.HACKERNEWS),
    _rule(r"/feed/?$", ScraperStrategy.RSS),
    _rule(r"/rss/?$", ScraperStrategy.RSS),
    _rule(r"\.xml$", ScraperStrategy.RSS),
    _rule(r"/atom/?$", ScraperStrategy.RSS),
)


class SiteRegistry:
    """Ordered URL pattern table. First match wins; HTML when nothing matches."""

    def __init__(self, rules: Iterable[SiteRule] = DEFAULT_SITE_RULES) -> None:
        self._rules: list[SiteRule] = list(rules)

    @property
    def rules(self) -> list[SiteRule]:
        return list(self._rules)

    def register(self, pattern: str | re.Pattern, strategy: ScraperStrategy) -> None:
        """Add a rule that takes precedence over every existing rule."""
        if strategy == ScraperStrategy.AUTO:
            raise ValueError("A site rule must map to a concrete strategy")
        compiled = pattern if isinstance(pattern, re.Pattern) else re.compile(pattern, re.IGNORECASE)
        self._rules.insert(0, SiteRule(compiled, strategy))

    def strategy_for_url(self, url: str) -> ScraperStrategy:
        for rule in self._rules:
            if rule.matches(url):
                return rule.strategy
        return ScraperStrategy.HTML


class SourceFactory:
    """Hands out the concrete source for a strategy, URL or signal.

    All sources share one HTTP client, rate limiter and robots checker so
    per-domain politeness holds across strategies.
    """

    def __init__(
        self,
        sources: Iterable[BaseSource],
        registry: Optional[SiteRegistry] = None,
    ) -> None:
        self._sources = {source.strategy: source for source in sources}
        self.registry = registry or SiteRegistry()

    def for_strategy(self, strategy: ScraperStrategy) -> BaseSource:
        if strategy == ScraperStrategy.AUTO:
            raise ValueError("AUTO must be resolved from a URL before picking a source")
        try:
            return self._sources[strategy]
        except KeyError:
            raise ValueError(f"No source registered for strategy: {strategy.value}") from None

    def for_url(self, url: str) -> BaseSource:
        return self.for_strategy(self.registry.strategy_for_url(url))

    def for_signal(self, signal: Signal) -> BaseSource:
        if signal.strategy == ScraperStrategy.AUTO:
            return self.for_url(signal.url)
        return self.for_strategy(signal.strategy)

    def all(self) -> list[BaseSource]:
        return list(self._sources.values())


def build_default_sources(
    http_client: Optional[HttpClient] = None,
    rate_limiter: Optional[RateLimiter] = None,
    robots_checker: Optional[RobotsChecker] = None,
    default_delay: float = 2.0,
    default_max_retries: int = 3,
    blocked_domains: Optional[Iterable[str]] = None,
    registry: Optional[SiteRegistry] = None,
) -> SourceFactory:
    """Wire the four concrete sources around shared web infrastructure."""
    http_client = http_client or HttpClient()
    rate_limiter = rate_limiter or RateLimiter()
    robots_checker = robots_checker or RobotsChecker(http_client)

    kwargs = {
        "http_client": http_client,
        "rate_limiter": rate_limiter,
        "robots_checker": robots_checker,
        "default_delay": default_delay,
        "default_max_retries": default_max_retries,
    }
    if blocked_domains is not None:
        kwargs["blocked_domains"] = tuple(blocked_domains)

    sources = [
        RSSSource(**kwargs),
        RedditSource(**kwargs),
        HackerNewsSource(**kwargs),
        HTMLSource(**kwargs),
    ]
    return SourceFactory(sources, registry)
