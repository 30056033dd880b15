"""RSS/Atom feed source."""

import calendar
from datetime import datetime, timezone
from typing import Any, Optional

import feedparser
from bs4 import BeautifulSoup

from pulseflow.adapters.sources.base import BaseSource
from pulseflow.core.entities import ScrapedItem, ScrapeOptions, ScraperStrategy


def is_rss_url(url: str) -> bool:
    lower_url = url.lower()
    return (
        "/feed" in lower_url
        or "/rss" in lower_url
        or lower_url.endswith(".xml")
        or "atom" in lower_url
    )


def _plain_text(markup: str) -> str:
    """Strip markup the way feed readers build a content snippet."""
    if "<" not in markup:
        return markup.strip()
    return BeautifulSoup(markup, "html.parser").get_text(" ", strip=True)


def _entry_datetime(entry: Any) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if not parsed:
        return None
    return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc)


def _entry_content(entry: Any) -> Optional[str]:
    summary = entry.get("summary")
    if summary:
        return _plain_text(summary) or None
    contents = entry.get("content") or []
    if contents:
        return _plain_text(contents[0].get("value", "")) or None
    return None


class RSSSource(BaseSource):
    """Parse RSS 2.0 and Atom feeds."""

    strategy = ScraperStrategy.RSS

    def can_handle(self, url: str) -> bool:
        return is_rss_url(url)

    async def extract(self, options: ScrapeOptions) -> list[ScrapedItem]:
        response = await self.http_client.get(options.url)
        if not response.ok:
            raise RuntimeError(f"HTTP {response.status_code}: Failed to fetch {options.url}")
        return self.parse_feed(response.text, options.url)

    def parse_feed(self, xml_content: str, feed_url: str) -> list[ScrapedItem]:
        """Map feed entries to items. Raises ValueError for unreadable feeds."""
        feed = feedparser.parse(xml_content)
        if feed.bozo and not feed.entries:
            raise ValueError(f"Invalid feed at {feed_url}: {feed.get('bozo_exception')}")

        items = []
        for entry in feed.entries:
            items.append(ScrapedItem(
                title=(entry.get("title") or "").strip() or "Untitled",
                url=entry.get("link") or feed_url,
                content=_entry_content(entry),
                author=entry.get("author") or None,
                published_at=_entry_datetime(entry),
                metadata={
                    "guid": entry.get("id"),
                    "categories": [tag.get("term") for tag in entry.get("tags", []) if tag.get("term")],
                },
            ))
        return items
