"""HTTP fetching, politeness and robots.txt infrastructure."""

from pulseflow.adapters.web.http_client import (
    USER_AGENT,
    FetchError,
    HttpClient,
    HttpResponse,
)
from pulseflow.adapters.web.rate_limiter import RateLimiter
from pulseflow.adapters.web.robots_checker import RobotsChecker

__all__ = [
    "USER_AGENT",
    "FetchError",
    "HttpClient",
    "HttpResponse",
    "RateLimiter",
    "RobotsChecker",
]
