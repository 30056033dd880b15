"""Per-domain minimum delay between requests."""

import asyncio
import logging
import time
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_DELAY = 2.0


def extract_hostname(url: str) -> str:
    """Hostname of a URL (scheme and port ignored); the input if unparsable."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return url
    return hostname or url


class RateLimiter:
    """Enforce a minimum delay between requests to the same domain.

    Calls for one domain are serialized: each waiter holds the domain lock
    until it has slept and stamped the new request time, so overlapping
    calls accumulate delay instead of racing on a stale timestamp. Domains
    never block each other.
    """

    def __init__(self) -> None:
        self._last_request: dict[str, float] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, domain: str) -> asyncio.Lock:
        lock = self._locks.get(domain)
        if lock is None:
            lock = self._locks[domain] = asyncio.Lock()
        return lock

    async def wait(self, url: str, min_delay: float = DEFAULT_DELAY) -> None:
        """Block until `min_delay` seconds have passed since the last request."""
        domain = extract_hostname(url)
        async with self._lock_for(domain):
            last = self._last_request.get(domain)
            if last is not None:
                remaining = min_delay - (time.monotonic() - last)
                if remaining > 0:
                    logger.debug("Rate limit: waiting %.2fs for %s", remaining, domain)
                    await asyncio.sleep(remaining)
            self._last_request[domain] = time.monotonic()

    def last_request_time(self, url: str) -> Optional[float]:
        """Monotonic timestamp of the last request to the URL's domain."""
        return self._last_request.get(extract_hostname(url))

    def clear(self) -> None:
        self._last_request.clear()
        self._locks.clear()
