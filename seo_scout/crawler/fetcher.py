# seo_scout/crawler/fetcher.py
"""
Fetcher module: fetches one page, extracts its SEO metadata and classifies issues.

Retries and pacing are the scheduler's job; a failed fetch is reported by
raising a :class:`~seo_scout.exceptions.FetchError` subclass.
"""
from __future__ import annotations

import asyncio
import time
from typing import List, Tuple

from aiohttp import ClientError, ClientSession

from seo_scout.config import CrawlerConfig, IssueChecks
from seo_scout.exceptions import FetchError, FetchTimeoutError, RateLimitedError
from seo_scout.models import AnalysisResult, DebugInfo, Metadata, TechnicalSpecs
from seo_scout.parser.html_parser import extract_metadata

MISSING_TITLE = "Missing title"
MISSING_DESCRIPTION = "Missing meta description"
MISSING_KEYWORDS = "Missing keywords"
MISSING_OG_IMAGE = "Missing OpenGraph image"
MISSING_OG_SITE_NAME = "Missing OpenGraph site name"


def title_too_long(limit: int) -> str:
    return f"Title too long (>{limit} chars)"


def description_too_long(limit: int) -> str:
    return f"Meta description too long (>{limit} chars)"


def classify_issues(metadata: Metadata, checks: IssueChecks) -> Tuple[str, ...]:
    """Return the SEO issues of a page: title, description, keywords, then Open Graph."""
    issues: List[str] = []
    if not metadata.title:
        issues.append(MISSING_TITLE)
    elif len(metadata.title) > checks.title_max_length:
        issues.append(title_too_long(checks.title_max_length))
    if not metadata.description:
        issues.append(MISSING_DESCRIPTION)
    elif len(metadata.description) > checks.description_max_length:
        issues.append(description_too_long(checks.description_max_length))
    if checks.keywords and not metadata.keywords:
        issues.append(MISSING_KEYWORDS)
    if checks.og_image and not metadata.og_image:
        issues.append(MISSING_OG_IMAGE)
    if checks.og_site_name and not metadata.og_site_name:
        issues.append(MISSING_OG_SITE_NAME)
    return tuple(issues)


class FetchWorker:
    """Performs one GET per call and turns the page into an AnalysisResult."""

    def __init__(self, session: ClientSession, config: CrawlerConfig, debug: DebugInfo) -> None:
        self.session = session
        self.config = config
        self.debug = debug

    async def fetch(self, url: str) -> AnalysisResult:
        """
        Fetch and analyze *url*.

        Raises RateLimitedError on HTTP 429, FetchTimeoutError on timeout and
        FetchError on any other HTTP status >= 400 or transport error.
        """
        start = time.monotonic()
        try:
            async with self.session.get(url, max_redirects=self.config.max_redirects) as resp:
                body = await resp.read()
                status = resp.status
                text = await resp.text(errors="replace") if status < 400 else ""
        except asyncio.TimeoutError as exc:
            raise FetchTimeoutError(url) from exc
        except ClientError as exc:
            raise FetchError(url, str(exc) or type(exc).__name__) from exc
        duration_ms = (time.monotonic() - start) * 1000
        self.debug.add_request_log(url, status, duration_ms)

        if status == 429:
            raise RateLimitedError(url)
        if status >= 400:
            raise FetchError(url, f"HTTP {status}", status=status)

        metadata = extract_metadata(text)
        return AnalysisResult(
            url=url,
            issues=classify_issues(metadata, self.config.checks),
            metadata=metadata,
            technical_specs=TechnicalSpecs(load_speed_ms=duration_ms, page_size_bytes=len(body)),
        )


__all__ = [
    "FetchWorker",
    "classify_issues",
    "title_too_long",
    "description_too_long",
    "MISSING_TITLE",
    "MISSING_DESCRIPTION",
    "MISSING_KEYWORDS",
    "MISSING_OG_IMAGE",
    "MISSING_OG_SITE_NAME",
]
