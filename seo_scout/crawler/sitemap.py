# seo_scout/crawler/sitemap.py
"""
Sitemap expansion: resolves a sitemap (or a tree of sitemap indexes) into a
flat list of leaf page URLs.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional, Set

from aiohttp import ClientError, ClientSession

from seo_scout.config import CrawlerConfig
from seo_scout.exceptions import SitemapParseError
from seo_scout.logger import get_logger
from seo_scout.models import DebugInfo, IndexEntry, UrlEntry
from seo_scout.parser.sitemap_parser import parse_sitemap
from seo_scout.utils import chunked

log = get_logger("sitemap")


class SitemapHTTPError(ClientError):
    """Sitemap answered with HTTP status >= 400."""

    def __init__(self, status: int) -> None:
        self.status = status
        super().__init__(f"HTTP {status}")


class SitemapExpander:
    """Recursive, concurrency-bounded sitemap index expansion.

    Failures of one sitemap node are recorded in :class:`DebugInfo` and turn
    that subtree into an empty list; siblings are still expanded.
    """

    def __init__(
        self,
        session: ClientSession,
        config: CrawlerConfig,
        debug: DebugInfo,
        on_discovered: Optional[Callable[[int], Awaitable[None]]] = None,
    ) -> None:
        self.session = session
        self.config = config
        self.debug = debug
        self._on_discovered = on_discovered
        self._gate = asyncio.Semaphore(config.concurrency)
        self._visited: Set[str] = set()
        self._discovered = 0

    async def expand(self, sitemap_url: str) -> List[str]:
        """Return every leaf URL reachable from *sitemap_url*."""
        self._visited.clear()
        self._discovered = 0
        urls = await self._expand(sitemap_url, depth=0)
        self.debug.set_xml_status("complete" if urls else "failed")
        log.info("Sitemap %s expanded to %d URLs", sitemap_url, len(urls))
        return urls

    async def _expand(self, sitemap_url: str, depth: int) -> List[str]:
        if sitemap_url in self._visited:
            log.debug("Sitemap %s already expanded, skipping", sitemap_url)
            return []
        self._visited.add(sitemap_url)

        try:
            body = await self._download(sitemap_url, is_root=depth == 0)
        except asyncio.TimeoutError:
            self.debug.add_network_error(f"Timeout fetching sitemap {sitemap_url}")
            return []
        except ClientError as exc:
            self.debug.add_network_error(f"Error fetching sitemap {sitemap_url}: {exc}")
            return []

        try:
            nodes = parse_sitemap(body)
        except SitemapParseError as exc:
            self.debug.add_parsing_error(f"Error parsing XML from {sitemap_url}: {exc}")
            return []

        leaves = [node.loc for node in nodes if isinstance(node, UrlEntry)]
        children = [node.loc for node in nodes if isinstance(node, IndexEntry)]
        if leaves:
            await self._report(len(leaves))
        if not children:
            return leaves

        if depth >= self.config.sitemap_max_depth:
            self.debug.add_parsing_error(
                f"Sitemap index {sitemap_url} nested deeper than {self.config.sitemap_max_depth}, "
                f"{len(children)} child sitemaps skipped"
            )
            return leaves

        log.debug("Sitemap index %s: %d child sitemaps", sitemap_url, len(children))
        for batch in chunked(children, self.config.concurrency):
            nested = await asyncio.gather(*(self._expand(child, depth + 1) for child in batch))
            for child_urls in nested:
                leaves.extend(child_urls)
        return leaves

    async def _download(self, url: str, *, is_root: bool) -> bytes:
        # the gate spans the whole recursion, nested fan-out cannot exceed it
        async with self._gate:
            async with self.session.get(url, max_redirects=self.config.max_redirects) as resp:
                if is_root:
                    self.debug.set_root_status(resp.status)
                if resp.status >= 400:
                    raise SitemapHTTPError(resp.status)
                return await resp.read()

    async def _report(self, count: int) -> None:
        self._discovered += count
        if self._on_discovered is not None:
            await self._on_discovered(self._discovered)


__all__ = ["SitemapExpander", "SitemapHTTPError"]
