"""Reddit listing source via the public JSON endpoints."""

from datetime import datetime, timezone
from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from pulseflow.adapters.sources.base import BaseSource
from pulseflow.core.entities import ScrapedItem, ScrapeOptions, ScraperStrategy

# www.reddit.com answers generic bots with a block page; old.reddit.com
# serves the same listing JSON.
JSON_HOST = "old.reddit.com"
PERMALINK_BASE = "https://www.reddit.com"


def is_reddit_url(url: str) -> bool:
    try:
        hostname = urlparse(url).hostname or ""
    except ValueError:
        return False
    return "reddit.com" in hostname.lower()


def to_json_url(url: str) -> str:
    """Listing JSON URL: trailing slash dropped, ``.json`` appended, raw_json set."""
    parsed = urlparse(url)
    path = parsed.path.rstrip("/")
    if not path.endswith(".json"):
        path += ".json"

    query = [(k, v) for k, v in parse_qsl(parsed.query, keep_blank_values=True) if k != "raw_json"]
    query.append(("raw_json", "1"))

    return urlunparse(("https", JSON_HOST, path, "", urlencode(query), ""))


class RedditSource(BaseSource):
    """Fetch posts from a subreddit or listing page.

    Reddit's robots.txt blocks generic bots from every path, including the
    JSON API this source reads, so the robots check is skipped.
    """

    strategy = ScraperStrategy.REDDIT
    skip_robots_check = True

    def can_handle(self, url: str) -> bool:
        return is_reddit_url(url)

    async def extract(self, options: ScrapeOptions) -> list[ScrapedItem]:
        listing = await self.http_client.get_json(to_json_url(options.url))
        children = (listing.get("data") or {}).get("children") or []
        return [self._create_item(child.get("data") or {}) for child in children]

    def _create_item(self, post: dict[str, Any]) -> ScrapedItem:
        metadata: dict[str, Any] = {
            "score": post.get("score", 0),
            "num_comments": post.get("num_comments", 0),
            "subreddit": post.get("subreddit", ""),
        }
        if not post.get("is_self", False) and post.get("url"):
            metadata["original_url"] = post["url"]

        created_utc = post.get("created_utc")
        return ScrapedItem(
            title=post.get("title") or "Untitled",
            url=f"{PERMALINK_BASE}{post.get('permalink', '')}",
            content=post.get("selftext") or None,
            author=post.get("author") or None,
            published_at=(
                datetime.fromtimestamp(float(created_utc), tz=timezone.utc)
                if created_utc is not None
                else None
            ),
            metadata=metadata,
        )
