"""
Exception hierarchy for SEOScout.

Per-URL and per-sitemap failures (:class:`FetchError`, :class:`SitemapParseError`)
are recovered where they happen; only :class:`CrawlError` aborts a crawl.
"""
from __future__ import annotations

from typing import Optional


class SEOScoutError(Exception):
    """Base class for all SEOScout errors."""


class CrawlError(SEOScoutError):
    """Crawl-fatal condition: the crawl is aborted and reported as failed."""


class NoUrlsFoundError(CrawlError):
    def __init__(self, sitemap_url: str = "") -> None:
        self.sitemap_url = sitemap_url
        where = f" in {sitemap_url}" if sitemap_url else ""
        super().__init__(f"No URLs found{where}")


class InvalidSitemapUrlError(CrawlError):
    def __init__(self, value: object) -> None:
        self.value = value
        super().__init__(f"Invalid sitemap URL: {value!r}")


class SitemapParseError(SEOScoutError):
    """Sitemap body is not well-formed XML."""


class FetchError(SEOScoutError):
    """Transient failure while fetching one page; retried by the scheduler."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        self.url = url
        self.status = status
        super().__init__(message)


class FetchTimeoutError(FetchError):
    def __init__(self, url: str) -> None:
        super().__init__(url, f"timeout of {url}")


class RateLimitedError(FetchError):
    def __init__(self, url: str) -> None:
        super().__init__(url, "HTTP 429 Too Many Requests", status=429)


__all__ = [
    "SEOScoutError",
    "CrawlError",
    "NoUrlsFoundError",
    "InvalidSitemapUrlError",
    "SitemapParseError",
    "FetchError",
    "FetchTimeoutError",
    "RateLimitedError",
]
