# File: seo_scout/utils.py
"""seo_scout.utils: URL validation, deduplication and batching helpers."""

from __future__ import annotations

from typing import Iterator, List, Sequence, TypeVar
from urllib.parse import urlparse

from seo_scout.exceptions import NoUrlsFoundError
from seo_scout.logger import logger
from seo_scout.models import DebugInfo

__all__: Sequence[str] = (
    "is_valid_url",
    "remove_duplicates",
    "dedupe",
    "chunked",
)

T = TypeVar("T")


def is_valid_url(url: object) -> bool:
    """True for absolute http(s) URLs with a host."""
    if not isinstance(url, str) or not url or url != url.strip():
        return False
    try:
        parsed = urlparse(url)
        # .port raises ValueError for out-of-range ports
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def remove_duplicates(urls: Sequence[str]) -> List[str]:
    """Remove duplicate URLs while keeping first-occurrence order."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique


def dedupe(urls: Sequence[str], debug: DebugInfo, source: str = "") -> List[str]:
    """
    Reduce expanded sitemap entries to the unique, well-formed page URLs.

    Each rejected entry is recorded once in ``debug.parsing_errors``.
    Raises NoUrlsFoundError when nothing survives.
    """
    valid: List[str] = []
    for url in remove_duplicates(urls):
        if is_valid_url(url):
            valid.append(url)
        else:
            debug.add_parsing_error(f"Invalid URL skipped: {url}")
    if not valid:
        raise NoUrlsFoundError(source)
    logger.info("%d unique URLs to analyze", len(valid))
    return valid


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of *items* of at most *size* elements."""
    for start in range(0, len(items), size):
        yield items[start:start + size]
