# File: seo_scout/engine.py
"""seo_scout.engine: orchestration of one sitemap crawl.

URL → SitemapExpander → dedupe → BatchScheduler[FetchWorker] → ResultAggregator,
with progress streamed through a ProgressEmitter along the way.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from aiohttp import ClientSession, ClientTimeout

from seo_scout.aggregator import ResultAggregator
from seo_scout.config import CrawlerConfig
from seo_scout.crawler.fetcher import FetchWorker
from seo_scout.crawler.scheduler import BatchScheduler
from seo_scout.crawler.sitemap import SitemapExpander
from seo_scout.exceptions import CrawlError, InvalidSitemapUrlError
from seo_scout.history import HistoryStore
from seo_scout.logger import logger
from seo_scout.models import DebugInfo, ProgressEvent, ProgressStatus
from seo_scout.progress import Channel, ProgressEmitter
from seo_scout.utils import dedupe, is_valid_url

__all__ = ["SiteAuditor", "run_audit"]


class SiteAuditor:
    """Owns the HTTP session; one ``audit()`` call is one crawl."""

    def __init__(self, config: CrawlerConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> SiteAuditor:
        if self.session is None:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.config.request_timeout),
                headers={"User-Agent": self.config.user_agent},
                raise_for_status=False,
            )
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session is not None and not self.session.closed:
            await self.session.close()

    async def audit(
        self,
        sitemap_url: Any,
        channel: Channel,
        history: Optional[HistoryStore] = None,
        record_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Crawl *sitemap_url*, streaming events to *channel*.

        Returns the complete payload. Crawl-fatal conditions are reported as a
        single ``error`` event and re-raised as :class:`CrawlError`. The channel
        is closed in every case.
        """
        if self.session is None:
            raise RuntimeError("Session not initialized")
        debug = DebugInfo()
        emitter = ProgressEmitter(channel)
        aggregator = ResultAggregator(debug, history, record_id)
        logger.info("Starting crawl of %s", sitemap_url)

        try:
            if not is_valid_url(sitemap_url):
                raise InvalidSitemapUrlError(sitemap_url)

            async def report_found(found: int) -> None:
                await emitter.progress(ProgressEvent(total=found, current=0, status=ProgressStatus.STARTING))

            on_discovered = report_found if self.config.progress_total == "incremental" else None

            expander = SitemapExpander(self.session, self.config, debug, on_discovered=on_discovered)
            urls = dedupe(await expander.expand(sitemap_url), debug, source=sitemap_url)
            await emitter.progress(ProgressEvent(total=len(urls), current=0, status=ProgressStatus.STARTING))

            scheduler = BatchScheduler(FetchWorker(self.session, self.config, debug), self.config, debug)
            should_stop = emitter.is_disconnected if self.config.stop_on_disconnect else None
            aggregator.extend(await scheduler.run(urls, emitter.progress, should_stop=should_stop))

            payload = aggregator.complete()
            await emitter.complete(payload)
            return payload
        except CrawlError as exc:
            await emitter.error(str(exc), debug.snapshot())
            aggregator.fail(str(exc))
            raise
        except Exception as exc:
            logger.exception("Crawl of %s crashed", sitemap_url)
            await emitter.error(f"Unexpected error: {exc}", debug.snapshot())
            aggregator.fail(f"Unexpected error: {exc}")
            raise
        finally:
            await emitter.close()


async def run_audit(
    sitemap_url: str,
    config: CrawlerConfig,
    channel: Channel,
    history: Optional[HistoryStore] = None,
    record_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Convenience wrapper: open a SiteAuditor, run one crawl, close the session."""
    async with SiteAuditor(config) as auditor:
        return await auditor.audit(sitemap_url, channel, history=history, record_id=record_id)
