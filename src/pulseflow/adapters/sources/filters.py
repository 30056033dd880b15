"""Shared filtering utilities for sources."""

from urllib.parse import urlparse

BLOCKED_DOMAINS = (
    "amazon.com",
    "linkedin.com",
    "twitter.com",
    "x.com",
    "facebook.com",
    "instagram.com",
    "tiktok.com",
    "netflix.com",
)


def extract_domain(url: str) -> str:
    """Hostname without a leading ``www.``; the input itself if unparsable."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return url
    if not hostname:
        return url
    return hostname.removeprefix("www.")


def is_blocked_domain(url: str, blocked_domains: tuple[str, ...] | list[str] = BLOCKED_DOMAINS) -> bool:
    """
    Check if a URL belongs to a blocked platform or one of its subdomains.

    Args:
        url: URL to check
        blocked_domains: Deny-list of registrable domains

    Returns:
        True if the host equals a blocked domain or ends with ``.<blocked>``
    """
    domain = extract_domain(url).lower()
    return any(
        domain == blocked or domain.endswith(f".{blocked}")
        for blocked in blocked_domains
    )
