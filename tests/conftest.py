# File: tests/conftest.py
from __future__ import annotations

import asyncio
import threading
from collections.abc import AsyncIterator, Iterator
from contextlib import contextmanager

import pytest
from aiohttp import web

from seo_scout.config import CrawlerConfig
from seo_scout.models import DebugInfo


def pytest_configure(config):
    """Register custom markers so that `--strict-markers` does not fail."""
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')",
    )


def urlset(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'
    )


def sitemapindex(*locs: str) -> str:
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f'<sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'
    )


def page(title: str = "Home", description: str = "A page", og_image: str = "/img.png") -> str:
    head = f"<title>{title}</title>" if title else ""
    if description:
        head += f'<meta name="description" content="{description}">'
    if og_image:
        head += f'<meta property="og:image" content="{og_image}">'
    return f"<html><head>{head}</head><body><h1>Hi</h1></body></html>"


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@contextmanager
def serve_app_in_thread(app: web.Application, port: int) -> Iterator[str]:
    """Run *app* on its own event loop in a background thread.

    For code under test that calls ``asyncio.run`` itself, such as the CLI.
    """
    loop = asyncio.new_event_loop()
    runner = web.AppRunner(app)
    ready = threading.Event()

    def run() -> None:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(runner.setup())
        loop.run_until_complete(web.TCPSite(runner, "localhost", port).start())
        ready.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    assert ready.wait(5), "test server did not start"
    try:
        yield f"http://localhost:{port}"
    finally:
        loop.call_soon_threadsafe(loop.stop)
        thread.join(5)


@pytest.fixture()
def fast_config() -> CrawlerConfig:
    """Config without pauses so retry tests finish instantly."""
    return CrawlerConfig(
        request_timeout=2.0,
        min_delay=0.0,
        max_delay=0.0,
        delay_step_down=0.0,
        delay_step_up=0.0,
        rate_limit_cooldown=0.0,
        user_agent="TestAgent/1.0",
    )


@pytest.fixture()
def debug() -> DebugInfo:
    return DebugInfo()
