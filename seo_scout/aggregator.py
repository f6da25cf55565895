# File: seo_scout/aggregator.py
"""seo_scout.aggregator: collects per-URL results into the final crawl payload."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, TypedDict

from seo_scout.history import HistoryStore
from seo_scout.logger import logger
from seo_scout.models import DebugInfo, PageResult


class Summary(TypedDict):
    urlsAnalyzed: int
    issues: int


class ResultAggregator:
    """Accumulates page results and hands the outcome to the history store."""

    def __init__(
        self,
        debug: DebugInfo,
        history: Optional[HistoryStore] = None,
        record_id: Optional[str] = None,
    ) -> None:
        self.debug = debug
        self.history = history
        self.record_id = record_id
        self.results: List[PageResult] = []

    def add(self, result: PageResult) -> None:
        self.results.append(result)

    def extend(self, results: Iterable[PageResult]) -> None:
        self.results.extend(results)

    def summary(self) -> Summary:
        return {
            "urlsAnalyzed": len(self.results),
            "issues": sum(len(r.issues) for r in self.results),
        }

    def payload(self) -> Dict[str, Any]:
        return {
            **self.summary(),
            "results": [r.to_dict() for r in self.results],
            "debugInfo": self.debug.snapshot(),
        }

    def complete(self) -> Dict[str, Any]:
        """Build the final payload and persist it as ``complete``."""
        data = self.payload()
        self._persist("complete", data)
        logger.info("Crawl complete: %d URLs, %d issues", data["urlsAnalyzed"], data["issues"])
        return data

    def fail(self, reason: str) -> Dict[str, Any]:
        """Persist a crawl-level failure; returns the stored error payload."""
        data = {"error": reason, "debugInfo": self.debug.snapshot()}
        self._persist("failed", data)
        logger.error("Crawl failed: %s", reason)
        return data

    def _persist(self, status: str, data: Dict[str, Any]) -> bool:
        if self.history is None or self.record_id is None:
            return False
        # storage failures are logged, never raised
        try:
            self.history.update(self.record_id, status, data)  # type: ignore[arg-type]
        except Exception:
            logger.exception("Could not store %s crawl for record %s", status, self.record_id)
            return False
        return True


__all__ = ["ResultAggregator", "Summary"]
