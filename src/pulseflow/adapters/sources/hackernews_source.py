"""Hacker News source backed by the Algolia search API."""

from datetime import datetime
from typing import Any, Optional
from urllib.parse import parse_qs, urlencode, urlparse

from pulseflow.adapters.sources.base import BaseSource
from pulseflow.core.entities import ScrapedItem, ScrapeOptions, ScraperStrategy

HN_ALGOLIA_API = "https://hn.algolia.com/api/v1"
HN_ITEM_URL = "https://news.ycombinator.com/item?id={id}"
HITS_PER_PAGE = 30


def is_hackernews_url(url: str) -> bool:
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        return False
    return "news.ycombinator.com" in hostname or "hn.algolia.com" in hostname


def build_algolia_query(url: str) -> str:
    """Map an HN page URL to the equivalent search API call."""
    parsed = urlparse(url)
    path = parsed.path

    if "/newest" in path:
        endpoint, params = "search_by_date", {"tags": "story"}
    elif "/show" in path:
        endpoint, params = "search", {"tags": "show_hn"}
    elif "/ask" in path:
        endpoint, params = "search", {"tags": "ask_hn"}
    else:
        query = parse_qs(parsed.query).get("q", [""])[0]
        if query:
            endpoint, params = "search", {"query": query}
        else:
            endpoint, params = "search", {"tags": "front_page"}

    params["hitsPerPage"] = str(HITS_PER_PAGE)
    return f"{HN_ALGOLIA_API}/{endpoint}?{urlencode(params)}"


def _parse_created_at(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class HackerNewsSource(BaseSource):
    """Front page, newest, Show HN, Ask HN or search results."""

    strategy = ScraperStrategy.HACKERNEWS

    def can_handle(self, url: str) -> bool:
        return is_hackernews_url(url)

    async def extract(self, options: ScrapeOptions) -> list[ScrapedItem]:
        response = await self.http_client.get_json(build_algolia_query(options.url))
        return [self._create_item(hit) for hit in response.get("hits") or []]

    def _create_item(self, hit: dict[str, Any]) -> ScrapedItem:
        object_id = str(hit.get("objectID", ""))
        hn_url = HN_ITEM_URL.format(id=object_id)
        return ScrapedItem(
            title=hit.get("title") or "Untitled",
            url=hit.get("url") or hn_url,
            content=hit.get("story_text") or None,
            author=hit.get("author") or None,
            published_at=_parse_created_at(hit.get("created_at")),
            metadata={
                "object_id": object_id,
                "points": hit.get("points") or 0,
                "num_comments": hit.get("num_comments") or 0,
                "hn_url": hn_url,
            },
        )
