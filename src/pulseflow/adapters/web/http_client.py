"""Timed HTTP GET client with a fixed identifying user agent."""

from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

USER_AGENT = "PulseFlow/1.0 (+https://pulseflow.app/bot)"
DEFAULT_TIMEOUT = 30.0

HTML_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
JSON_ACCEPT = "application/json"


class FetchError(Exception):
    """Non-2xx response from a fetch that requires success."""

    def __init__(self, status_code: int, reason: str, url: str) -> None:
        super().__init__(f"HTTP {status_code}: {reason}")
        self.status_code = status_code
        self.url = url


@dataclass
class HttpResponse:
    status_code: int
    text: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class HttpClient:
    """Thin wrapper over httpx that always identifies itself."""

    def __init__(self, user_agent: str = USER_AGENT, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.user_agent = user_agent
        self.timeout = timeout

    def _headers(self, accept: str, extra: Optional[dict[str, str]]) -> dict[str, str]:
        headers = {"User-Agent": self.user_agent, "Accept": accept}
        if extra:
            headers.update(extra)
        return headers

    async def get(
        self,
        url: str,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> HttpResponse:
        """GET a URL as text. Non-2xx responses are returned, not raised."""
        async with httpx.AsyncClient(
            timeout=timeout or self.timeout, follow_redirects=True
        ) as client:
            response = await client.get(url, headers=self._headers(HTML_ACCEPT, headers))
            return HttpResponse(
                status_code=response.status_code,
                text=response.text,
                url=str(response.url),
                headers=dict(response.headers),
            )

    async def get_json(
        self,
        url: str,
        headers: Optional[dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """GET a URL and decode JSON. Raises FetchError on non-2xx."""
        async with httpx.AsyncClient(
            timeout=timeout or self.timeout, follow_redirects=True
        ) as client:
            response = await client.get(url, headers=self._headers(JSON_ACCEPT, headers))
            if not 200 <= response.status_code < 300:
                raise FetchError(response.status_code, response.reason_phrase, url)
            return response.json()
