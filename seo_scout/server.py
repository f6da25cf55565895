# seo_scout/server.py
"""
HTTP boundary: ``POST /api/analyze`` runs one crawl and streams its events
back as ``text/event-stream``.
"""
from __future__ import annotations

import json
from typing import Optional

from aiohttp import web

from seo_scout.config import CrawlerConfig
from seo_scout.engine import SiteAuditor
from seo_scout.exceptions import CrawlError
from seo_scout.history import HistoryStore, InMemoryHistoryStore
from seo_scout.logger import logger
from seo_scout.progress import StreamResponseChannel

CONFIG_KEY = web.AppKey("config", CrawlerConfig)
HISTORY_KEY = web.AppKey("history", HistoryStore)

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def _bad_request(message: str) -> web.Response:
    return web.json_response({"error": message, "status": "failed"}, status=400)


async def analyze(request: web.Request) -> web.StreamResponse:
    """Read ``{"url": ...}`` and stream the crawl of that sitemap."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _bad_request("Request body must be JSON")
    url = body.get("url") if isinstance(body, dict) else None
    if not isinstance(url, str) or not url.strip():
        return _bad_request("Field 'url' is required")

    config = request.app[CONFIG_KEY]
    history = request.app[HISTORY_KEY]
    record_id = history.create(url)

    response = web.StreamResponse(status=200, headers=SSE_HEADERS)
    await response.prepare(request)
    channel = StreamResponseChannel(request, response)

    async with SiteAuditor(config) as auditor:
        try:
            await auditor.audit(url.strip(), channel, history=history, record_id=record_id)
        except CrawlError as exc:
            # already reported on the stream and in history
            logger.info("Analysis %s failed: %s", record_id, exc)
    return response


def create_app(config: Optional[CrawlerConfig] = None, history: Optional[HistoryStore] = None) -> web.Application:
    app = web.Application()
    app[CONFIG_KEY] = config or CrawlerConfig()
    app[HISTORY_KEY] = history if history is not None else InMemoryHistoryStore()
    app.router.add_post("/api/analyze", analyze)
    return app


def run_server(config: CrawlerConfig, host: Optional[str] = None, port: Optional[int] = None) -> None:
    """Blocking: serve the application until interrupted."""
    host = host or config.server.host
    port = port or config.server.port
    logger.info("Serving on http://%s:%d", host, port)
    web.run_app(create_app(config), host=host, port=port, print=None)


__all__ = ["create_app", "run_server", "analyze", "CONFIG_KEY", "HISTORY_KEY"]
