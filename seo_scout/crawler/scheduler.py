# seo_scout/crawler/scheduler.py
"""
Batched crawl: runs the FetchWorker over the unique URL set in fixed-size
concurrent batches, with bounded retries and an adaptive delay between batches
and retries.
"""
from __future__ import annotations

import asyncio
import threading
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence

from seo_scout.config import CrawlerConfig
from seo_scout.exceptions import FetchError, FetchTimeoutError, RateLimitedError
from seo_scout.logger import get_logger
from seo_scout.models import (
    AnalysisResult,
    DebugInfo,
    FailedResult,
    FetchAttempt,
    PageResult,
    ProgressEvent,
    ProgressStatus,
)
from seo_scout.utils import chunked

log = get_logger("scheduler")

ProgressCallback = Callable[[ProgressEvent], Awaitable[None]]


class PageFetcher(Protocol):
    async def fetch(self, url: str) -> AnalysisResult: ...


class AdaptiveDelay:
    """Delay heuristic shared by all fetches of one crawl.

    Shrinks after clean successes, grows after failures, doubles on HTTP 429.
    Every update is clamped to ``[minimum, maximum]``.
    """

    def __init__(self, minimum: float, maximum: float, step_down: float, step_up: float) -> None:
        self.minimum = minimum
        self.maximum = maximum
        self.step_down = step_down
        self.step_up = step_up
        self._current = minimum
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: CrawlerConfig) -> AdaptiveDelay:
        return cls(config.min_delay, config.max_delay, config.delay_step_down, config.delay_step_up)

    @property
    def current(self) -> float:
        return self._current

    def _update(self, fn: Callable[[float], float]) -> None:
        with self._lock:
            self._current = min(self.maximum, max(self.minimum, fn(self._current)))

    def on_success(self) -> None:
        self._update(lambda d: d - self.step_down)

    def on_failure(self) -> None:
        self._update(lambda d: d + self.step_up)

    def on_rate_limit(self) -> None:
        self._update(lambda d: d * 2)


class BatchScheduler:
    """Runs pages in sequential batches of ``config.concurrency`` concurrent fetches."""

    def __init__(
        self,
        worker: PageFetcher,
        config: CrawlerConfig,
        debug: DebugInfo,
        delay: Optional[AdaptiveDelay] = None,
    ) -> None:
        self.worker = worker
        self.config = config
        self.debug = debug
        self.delay = delay or AdaptiveDelay.from_config(config)
        self._sleep = asyncio.sleep

    async def run(
        self,
        urls: Sequence[str],
        on_progress: ProgressCallback,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> List[PageResult]:
        """Process every URL and return one result per URL, in input order."""
        total = len(urls)
        processed = 0
        results: List[PageResult] = []

        for batch in chunked(urls, self.config.concurrency):
            if should_stop is not None and should_stop():
                log.warning("Crawl stopped after %d of %d URLs", processed, total)
                break
            results.extend(await asyncio.gather(*(self._process(url) for url in batch)))
            processed += len(batch)
            status = ProgressStatus.COMPLETE if processed == total else ProgressStatus.ANALYZING
            await on_progress(ProgressEvent(total=total, current=processed, status=status))
            if processed < total:
                await self._sleep(self.delay.current)

        return results

    async def _process(self, url: str) -> PageResult:
        attempt = FetchAttempt(url)
        while True:
            attempt.start()
            cooldown = 0.0
            try:
                result = await self.worker.fetch(url)
            except RateLimitedError as exc:
                self.debug.add_rate_limit_issue(f"Rate limit hit for {url}")
                self.delay.on_rate_limit()
                attempt.fail(exc, self.config.max_retries)
                cooldown = self.config.rate_limit_cooldown
            except FetchTimeoutError as exc:
                self.debug.add_network_error(f"Timeout for {url}")
                self.delay.on_failure()
                attempt.fail(exc, self.config.max_retries)
            except FetchError as exc:
                self.debug.add_network_error(f"Error fetching {url}: {exc}")
                self.delay.on_failure()
                attempt.fail(exc, self.config.max_retries)
            else:
                if attempt.retries == 0:
                    self.delay.on_success()
                attempt.succeed()
                return result

            if attempt.exhausted:
                log.warning("Giving up on %s after %d attempts: %s", url, attempt.retries, attempt.last_error)
                return FailedResult(url=url, error=str(attempt.last_error))
            log.debug("Retry %d/%d for %s", attempt.retries, self.config.max_retries, url)
            await self._sleep(cooldown + self.delay.current)


__all__ = ["AdaptiveDelay", "BatchScheduler", "PageFetcher", "ProgressCallback"]
