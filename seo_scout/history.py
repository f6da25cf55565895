"""
seo_scout.history: the persistence and discovery collaborators of a crawl.

The crawl core only talks to the :class:`HistoryStore` and
:class:`SitemapDiscovery` protocols. :class:`InMemoryHistoryStore` is the
store used by the bundled server and the tests.
"""
from __future__ import annotations

import json
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Mapping, Optional, Protocol

HistoryStatus = Literal["pending", "complete", "failed"]


def _stringify_numbers(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, Mapping):
        return {k: _stringify_numbers(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_stringify_numbers(v) for v in value]
    if isinstance(value, BaseException):
        return str(value)
    return value


def serialize_for_storage(data: Mapping[str, Any]) -> str:
    """JSON text with every number rendered as a string."""
    return json.dumps(_stringify_numbers(data), ensure_ascii=False)


def deserialize_from_storage(text: Optional[str]) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    return json.loads(text)


class HistoryStore(Protocol):
    def create(self, sitemap_url: str) -> str: ...

    def update(self, record_id: str, status: HistoryStatus, data: Mapping[str, Any]) -> None: ...


class SitemapDiscovery(Protocol):
    """Finds candidate sitemap URLs for a bare domain (robots.txt, common paths)."""

    async def find(self, domain: str) -> List[str]: ...


@dataclass(slots=True)
class HistoryRecord:
    id: str
    sitemap_url: str
    status: HistoryStatus
    created_at: datetime
    results: Optional[str] = None

    def parsed_results(self) -> Optional[Dict[str, Any]]:
        return deserialize_from_storage(self.results)


class InMemoryHistoryStore:
    """Thread-safe dict-backed :class:`HistoryStore`."""

    def __init__(self) -> None:
        self._records: Dict[str, HistoryRecord] = {}
        self._lock = threading.Lock()

    def create(self, sitemap_url: str) -> str:
        record = HistoryRecord(
            id=uuid.uuid4().hex,
            sitemap_url=sitemap_url,
            status="pending",
            created_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._records[record.id] = record
        return record.id

    def update(self, record_id: str, status: HistoryStatus, data: Mapping[str, Any]) -> None:
        with self._lock:
            record = self._records[record_id]
            record.status = status
            record.results = serialize_for_storage(data)

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        with self._lock:
            return self._records.get(record_id)

    def __len__(self) -> int:
        return len(self._records)


__all__ = [
    "HistoryStore",
    "HistoryRecord",
    "HistoryStatus",
    "InMemoryHistoryStore",
    "SitemapDiscovery",
    "serialize_for_storage",
    "deserialize_from_storage",
]
