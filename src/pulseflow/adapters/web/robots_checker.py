"""robots.txt compliance checking with a per-origin cache.

The checker is fail-open: when robots.txt cannot be fetched, is not a 200,
or cannot be parsed, every URL on that origin is allowed.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse
import httpx
from protego import Protego

from pulseflow.adapters.web.http_client import USER_AGENT, HttpClient

logger = logging.getLogger(__name__)

ROBOTS_TIMEOUT = 5.0
ROBOTS_CACHE_TTL = 60 * 60.0


def extract_origin(url: str) -> str:
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url
    return f"{parsed.scheme}://{parsed.netloc}"


@dataclass
class _CacheEntry:
    parser: Optional[Protego]
    fetched_at: float


class RobotsChecker:
    """Answer whether our user agent may fetch a URL."""

    def __init__(
        self,
        http_client: Optional[HttpClient] = None,
        user_agent: str = USER_AGENT,
        timeout: float = ROBOTS_TIMEOUT,
        cache_ttl: float = ROBOTS_CACHE_TTL,
    ) -> None:
        self.http_client = http_client or HttpClient(user_agent=user_agent)
        self.user_agent = user_agent
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._cache: dict[str, _CacheEntry] = {}

    async def is_allowed(self, url: str) -> bool:
        parser = await self._get_parser(url)
        if parser is None:
            return True
        return parser.can_fetch(url, self.user_agent)

    async def _get_parser(self, url: str) -> Optional[Protego]:
        origin = extract_origin(url)
        now = time.monotonic()
        cached = self._cache.get(origin)
        if cached is not None and now - cached.fetched_at < self.cache_ttl:
            logger.debug("robots.txt cache hit for %s", origin)
            return cached.parser

        parser = await self._fetch_and_parse(origin)
        self._cache[origin] = _CacheEntry(parser=parser, fetched_at=now)
        return parser

    async def _fetch_and_parse(self, origin: str) -> Optional[Protego]:
        robots_url = f"{origin}/robots.txt"
        try:
            response = await self.http_client.get(robots_url, timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            logger.info("Could not fetch %s (%s), allowing all", robots_url, e)
            return None

        if response.status_code != 200:
            logger.debug("%s returned HTTP %d, allowing all", robots_url, response.status_code)
            return None

        try:
            return Protego.parse(response.text)
        except (ValueError, TypeError) as e:
            logger.info("Could not parse %s (%s), allowing all", robots_url, e)
            return None

    def clear_cache(self) -> None:
        self._cache.clear()
