"""Source adapters for fetching content items."""

from pulseflow.adapters.sources.base import BaseSource
from pulseflow.adapters.sources.hackernews_source import HackerNewsSource
from pulseflow.adapters.sources.html_source import HTMLSource
from pulseflow.adapters.sources.reddit_source import RedditSource
from pulseflow.adapters.sources.registry import (
    DEFAULT_SITE_RULES,
    SiteRegistry,
    SiteRule,
    SourceFactory,
    build_default_sources,
)
from pulseflow.adapters.sources.rss_source import RSSSource

__all__ = [
    "BaseSource",
    "DEFAULT_SITE_RULES",
    "HackerNewsSource",
    "HTMLSource",
    "RedditSource",
    "RSSSource",
    "SiteRegistry",
    "SiteRule",
    "SourceFactory",
    "build_default_sources",
]
