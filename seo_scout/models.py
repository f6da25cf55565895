# seo_scout/models.py
"""
Data models for SEOScout: sitemap nodes, per-URL retry state, page analysis
results, progress events and the per-crawl debug accumulator.
"""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import psutil

FAILED_TO_ANALYZE = "Failed to analyze page"


# --------------------------------------------------------------------------- #
# Sitemap                                                                     #
# --------------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class UrlEntry:
    """<url><loc> of a urlset: a page to analyze."""

    loc: str


@dataclass(slots=True, frozen=True)
class IndexEntry:
    """<sitemap><loc> of a sitemapindex: a child sitemap to expand."""

    loc: str


SitemapNode = Union[UrlEntry, IndexEntry]


# --------------------------------------------------------------------------- #
# Per-URL retry state                                                         #
# --------------------------------------------------------------------------- #


class UrlState(str, Enum):
    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"


@dataclass(slots=True)
class FetchAttempt:
    """Retry bookkeeping of one URL; lives only while the URL is processed."""

    url: str
    retries: int = 0
    succeeded: bool = False
    last_error: Optional[Exception] = None
    state: UrlState = UrlState.PENDING

    def start(self) -> None:
        self.state = UrlState.IN_FLIGHT

    def succeed(self) -> None:
        self.succeeded = True
        self.state = UrlState.SUCCEEDED

    def fail(self, error: Exception, max_retries: int) -> None:
        """Record a failed attempt and move to RETRYING or EXHAUSTED."""
        self.retries += 1
        self.last_error = error
        self.state = UrlState.EXHAUSTED if self.retries >= max_retries else UrlState.RETRYING

    @property
    def exhausted(self) -> bool:
        return self.state is UrlState.EXHAUSTED


# --------------------------------------------------------------------------- #
# Analysis results                                                            #
# --------------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class Metadata:
    """SEO fields of one page; ``""`` means the tag is absent."""

    title: str = ""
    description: str = ""
    keywords: str = ""
    news_keywords: str = ""
    og_site_name: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""

    _WIRE = (
        ("title", "title"),
        ("description", "description"),
        ("keywords", "keywords"),
        ("news_keywords", "newsKeywords"),
        ("og_site_name", "ogSiteName"),
        ("og_title", "ogTitle"),
        ("og_description", "ogDescription"),
        ("og_image", "ogImage"),
    )

    def to_dict(self) -> Dict[str, str]:
        return {wire: getattr(self, attr) for attr, wire in self._WIRE}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Metadata:
        return cls(**{attr: str(data.get(wire) or "") for attr, wire in cls._WIRE})


@dataclass(slots=True, frozen=True)
class TechnicalSpecs:
    load_speed_ms: float = 0.0
    page_size_bytes: int = 0

    def to_dict(self) -> Dict[str, Union[int, float]]:
        return {"loadSpeed": self.load_speed_ms, "pageSize": self.page_size_bytes}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TechnicalSpecs:
        # storage renders numbers as strings, accept both
        return cls(
            load_speed_ms=float(data.get("loadSpeed", 0)),
            page_size_bytes=int(float(data.get("pageSize", 0))),
        )


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    """Outcome of one successfully fetched page."""

    url: str
    issues: Tuple[str, ...] = ()
    metadata: Metadata = field(default_factory=Metadata)
    technical_specs: TechnicalSpecs = field(default_factory=TechnicalSpecs)

    @property
    def status(self) -> str:
        return "fail" if self.issues else "pass"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "status": self.status,
            "issues": list(self.issues),
            "metadata": self.metadata.to_dict(),
            "technicalSpecs": self.technical_specs.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AnalysisResult:
        return cls(
            url=data["url"],
            issues=tuple(data.get("issues", ())),
            metadata=Metadata.from_dict(data.get("metadata", {})),
            technical_specs=TechnicalSpecs.from_dict(data.get("technicalSpecs", {})),
        )


@dataclass(slots=True, frozen=True)
class FailedResult:
    """Placeholder for a page whose retries were exhausted."""

    url: str
    error: str
    issues: Tuple[str, ...] = (FAILED_TO_ANALYZE,)

    @property
    def status(self) -> str:
        return "fail"

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "status": self.status, "error": self.error, "issues": list(self.issues)}


PageResult = Union[AnalysisResult, FailedResult]


def result_from_dict(data: Mapping[str, Any]) -> PageResult:
    """Inverse of ``to_dict`` for both result kinds."""
    if "error" in data:
        return FailedResult(url=data["url"], error=str(data["error"]), issues=tuple(data.get("issues", ())))
    return AnalysisResult.from_dict(data)


# --------------------------------------------------------------------------- #
# Progress                                                                    #
# --------------------------------------------------------------------------- #


class ProgressStatus(str, Enum):
    STARTING = "starting"
    ANALYZING = "analyzing"
    COMPLETE = "complete"


@dataclass(slots=True, frozen=True)
class ProgressEvent:
    total: int
    current: int
    status: ProgressStatus

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "progress", "total": self.total, "current": self.current, "status": self.status.value}


# --------------------------------------------------------------------------- #
# Debug info                                                                  #
# --------------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class RequestLog:
    url: str
    http_status: int
    duration_ms: float


class DebugInfo:
    """
    Diagnostics accumulated by every component during one crawl.

    Concurrent fetches append to the same instance, so every mutation goes
    through a method holding ``_lock``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started = time.monotonic()
        self._process = psutil.Process()
        self._peak_rss = 0
        self.xml_parsing_status: str = "pending"
        self.http_status: int = 0
        self.network_errors: List[str] = []
        self.parsing_errors: List[str] = []
        self.rate_limiting_issues: List[str] = []
        self.request_logs: List[RequestLog] = []

    def add_network_error(self, message: str) -> None:
        with self._lock:
            self.network_errors.append(message)

    def add_parsing_error(self, message: str) -> None:
        with self._lock:
            self.parsing_errors.append(message)

    def add_rate_limit_issue(self, message: str) -> None:
        with self._lock:
            self.rate_limiting_issues.append(message)

    def add_request_log(self, url: str, http_status: int, duration_ms: float) -> None:
        with self._lock:
            self.request_logs.append(RequestLog(url, http_status, duration_ms))

    def set_root_status(self, http_status: int) -> None:
        with self._lock:
            self.http_status = http_status

    def set_xml_status(self, status: str) -> None:
        with self._lock:
            self.xml_parsing_status = status

    @property
    def processing_time(self) -> float:
        """Seconds since the crawl started."""
        return time.monotonic() - self._started

    def memory_usage(self) -> Dict[str, int]:
        """Resident and virtual size of this process in bytes, plus the peak RSS seen so far."""
        info = self._process.memory_info()
        with self._lock:
            self._peak_rss = max(self._peak_rss, info.rss)
            return {"rss": info.rss, "vms": info.vms, "peakRss": self._peak_rss}

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready copy, safe to hand out while the crawl is running."""
        memory = self.memory_usage()
        with self._lock:
            return {
                "xmlParsingStatus": self.xml_parsing_status,
                "httpStatus": self.http_status,
                "networkErrors": list(self.network_errors),
                "parsingErrors": list(self.parsing_errors),
                "rateLimitingIssues": list(self.rate_limiting_issues),
                "processingTime": round(self.processing_time, 3),
                "memoryUsage": memory,
                "requestLogs": [
                    {"url": log.url, "status": log.http_status, "duration": round(log.duration_ms, 1)}
                    for log in self.request_logs
                ],
            }
