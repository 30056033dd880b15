"""Generic HTML page source using CSS selectors."""

import logging
from datetime import datetime
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser

from pulseflow.adapters.sources.base import BaseSource
from pulseflow.core.entities import ScrapedItem, ScrapeOptions, ScraperStrategy

logger = logging.getLogger(__name__)

DEFAULT_SELECTOR = "article, .post, .entry, main, .content"
TITLE_SELECTOR = "h1, h2, h3, .title, [class*='title']"
CONTENT_SELECTOR = "p, .summary, .excerpt, .description"
AUTHOR_SELECTOR = ".author, [class*='author'], [rel='author']"
DATE_SELECTOR = ".date, [class*='date'], time"
MAX_CONTENT_LENGTH = 500


def _text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return element.get_text(" ", strip=True)


def parse_date(value: str) -> Optional[datetime]:
    """Parse a date string; None unless the whole text is a date."""
    if not value:
        return None
    try:
        return date_parser.parse(value)
    except (ValueError, OverflowError):
        return None


class HTMLSource(BaseSource):
    """Last-resort source for pages without a feed or API.

    Each element matching the selector becomes one item. When nothing
    matches, the page itself becomes a single fallback item.
    """

    strategy = ScraperStrategy.HTML

    def can_handle(self, url: str) -> bool:
        return True

    async def extract(self, options: ScrapeOptions) -> list[ScrapedItem]:
        response = await self.http_client.get(options.url)
        if not response.ok:
            raise RuntimeError(f"HTTP {response.status_code}: Failed to fetch {options.url}")
        return self.parse_page(response.text, options.url, options.selector)

    def parse_page(self, html: str, base_url: str, selector: Optional[str] = None) -> list[ScrapedItem]:
        soup = BeautifulSoup(html, "html.parser")

        items = []
        for element in soup.select(selector or DEFAULT_SELECTOR):
            item = self._extract_item(element, base_url)
            if item is not None:
                items.append(item)

        if not items:
            logger.debug("No elements matched on %s, using page fallback", base_url)
            items.append(self._fallback_item(soup, base_url))

        return items

    def _extract_item(self, element: Tag, base_url: str) -> Optional[ScrapedItem]:
        link = element.select_one("a[href]")

        title = _text(element.select_one(TITLE_SELECTOR)) or _text(element.select_one("a"))
        if not title:
            return None

        url = urljoin(base_url, link["href"]) if link is not None else base_url

        content = _text(element.select_one(CONTENT_SELECTOR))
        if not content:
            content = _text(element)[:MAX_CONTENT_LENGTH]

        return ScrapedItem(
            title=title,
            url=url,
            content=content or None,
            author=_text(element.select_one(AUTHOR_SELECTOR)) or None,
            published_at=self._extract_date(element),
        )

    def _extract_date(self, element: Tag) -> Optional[datetime]:
        time_tag = element.select_one("time[datetime]")
        if time_tag is not None:
            parsed = parse_date(str(time_tag.get("datetime", "")))
            if parsed is not None:
                return parsed
        return parse_date(_text(element.select_one(DATE_SELECTOR)))

    def _fallback_item(self, soup: BeautifulSoup, base_url: str) -> ScrapedItem:
        title = _text(soup.select_one("title")) or _text(soup.select_one("h1")) or "Untitled"

        description = soup.select_one("meta[name='description']")
        content = str(description.get("content", "")).strip() if description is not None else ""
        if not content:
            content = _text(soup.select_one("p"))

        return ScrapedItem(
            title=title,
            url=base_url,
            content=content or None,
            metadata={"fallback": True},
        )
