# File: tests/test_sitemap.py
from __future__ import annotations

import asyncio
import gzip
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, ClientTimeout, web

from conftest import serve_app, sitemapindex, urlset
from seo_scout.config import CrawlerConfig
from seo_scout.crawler.sitemap import SitemapExpander
from seo_scout.exceptions import SitemapParseError
from seo_scout.models import DebugInfo, IndexEntry, UrlEntry
from seo_scout.parser.sitemap_parser import UnknownSitemapFormat, parse_sitemap


# --------------------------------------------------------------------------- #
#                                  Parser                                     #
# --------------------------------------------------------------------------- #


def test_parse_urlset():
    body = urlset("https://a.com/1", "https://a.com/2").encode()
    assert parse_sitemap(body) == [UrlEntry("https://a.com/1"), UrlEntry("https://a.com/2")]


def test_parse_sitemapindex():
    body = sitemapindex("https://a.com/s1.xml").encode()
    assert parse_sitemap(body) == [IndexEntry("https://a.com/s1.xml")]


def test_parse_drops_missing_and_blank_loc():
    body = (
        b'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">'
        b"<url><loc>  https://a.com/1  </loc></url>"
        b"<url><lastmod>2024-01-01</lastmod></url>"
        b"<url><loc>   </loc></url>"
        b"</urlset>"
    )
    assert parse_sitemap(body) == [UrlEntry("https://a.com/1")]


def test_parse_without_namespace():
    body = b"<urlset><url><loc>https://a.com/x</loc></url></urlset>"
    assert parse_sitemap(body) == [UrlEntry("https://a.com/x")]


def test_parse_gzip_body():
    body = gzip.compress(urlset("https://a.com/gz").encode())
    assert parse_sitemap(body) == [UrlEntry("https://a.com/gz")]


@pytest.mark.parametrize("body", [b"", b"<html><body>oops", b"not xml at all"])
def test_parse_invalid_xml(body):
    with pytest.raises(SitemapParseError):
        parse_sitemap(body)


def test_parse_unknown_root():
    with pytest.raises(UnknownSitemapFormat):
        parse_sitemap(b"<rss><channel/></rss>")


# --------------------------------------------------------------------------- #
#                                 Expander                                    #
# --------------------------------------------------------------------------- #


def xml_response(text: str) -> web.Response:
    return web.Response(text=text, content_type="application/xml")


@pytest_asyncio.fixture
async def sitemap_server(unused_tcp_port: int) -> AsyncIterator[str]:
    app = web.Application()
    base = f"http://localhost:{unused_tcp_port}"

    async def flat(_):
        return xml_response(urlset(f"{base}/a", f"{base}/b", f"{base}/a"))

    async def index(_):
        return xml_response(sitemapindex(f"{base}/child-ok.xml", f"{base}/child-missing.xml"))

    async def child_ok(_):
        return xml_response(urlset(f"{base}/c1", f"{base}/c2"))

    async def broken(_):
        return xml_response("<urlset><url><loc>unterminated")

    async def loop(_):
        return xml_response(sitemapindex(f"{base}/loop.xml", f"{base}/child-ok.xml"))

    async def slow(_):
        await asyncio.sleep(2)
        return xml_response(urlset(f"{base}/late"))

    async def mixed(_):
        return xml_response(sitemapindex(f"{base}/slow.xml", f"{base}/broken.xml", f"{base}/child-ok.xml"))

    app.router.add_get("/flat.xml", flat)
    app.router.add_get("/index.xml", index)
    app.router.add_get("/child-ok.xml", child_ok)
    app.router.add_get("/broken.xml", broken)
    app.router.add_get("/loop.xml", loop)
    app.router.add_get("/slow.xml", slow)
    app.router.add_get("/mixed.xml", mixed)

    async for url in serve_app(app, unused_tcp_port):
        yield url


async def expand(url: str, config: CrawlerConfig, debug: DebugInfo, **kwargs) -> list[str]:
    async with ClientSession(timeout=ClientTimeout(total=config.request_timeout)) as session:
        return await SitemapExpander(session, config, debug, **kwargs).expand(url)


@pytest.mark.asyncio()
async def test_expand_urlset(sitemap_server: str, debug: DebugInfo):
    urls = await expand(f"{sitemap_server}/flat.xml", CrawlerConfig(), debug)
    assert urls == [f"{sitemap_server}/a", f"{sitemap_server}/b", f"{sitemap_server}/a"]
    assert debug.http_status == 200
    assert debug.xml_parsing_status == "complete"
    assert not debug.network_errors and not debug.parsing_errors


@pytest.mark.asyncio()
async def test_expand_index_with_failing_child(sitemap_server: str, debug: DebugInfo):
    urls = await expand(f"{sitemap_server}/index.xml", CrawlerConfig(), debug)
    assert sorted(urls) == [f"{sitemap_server}/c1", f"{sitemap_server}/c2"]
    assert len(debug.network_errors) == 1
    assert "child-missing.xml" in debug.network_errors[0]
    assert "HTTP 404" in debug.network_errors[0]


@pytest.mark.asyncio()
async def test_expand_isolates_parse_and_timeout_failures(sitemap_server: str, debug: DebugInfo):
    config = CrawlerConfig(request_timeout=0.5)
    urls = await expand(f"{sitemap_server}/mixed.xml", config, debug)
    assert sorted(urls) == [f"{sitemap_server}/c1", f"{sitemap_server}/c2"]
    assert any("slow.xml" in e and e.startswith("Timeout") for e in debug.network_errors)
    assert any("broken.xml" in e for e in debug.parsing_errors)


@pytest.mark.asyncio()
async def test_expand_cycle_terminates(sitemap_server: str, debug: DebugInfo):
    urls = await expand(f"{sitemap_server}/loop.xml", CrawlerConfig(), debug)
    assert sorted(urls) == [f"{sitemap_server}/c1", f"{sitemap_server}/c2"]


@pytest.mark.asyncio()
async def test_expand_depth_limit(sitemap_server: str, debug: DebugInfo):
    urls = await expand(f"{sitemap_server}/index.xml", CrawlerConfig(sitemap_max_depth=0), debug)
    assert urls == []
    assert "nested deeper than 0" in debug.parsing_errors[0]
    assert debug.xml_parsing_status == "failed"


@pytest.mark.asyncio()
async def test_expand_unreachable_root(unused_tcp_port: int, debug: DebugInfo):
    urls = await expand(f"http://localhost:{unused_tcp_port}/sitemap.xml", CrawlerConfig(), debug)
    assert urls == []
    assert len(debug.network_errors) == 1


@pytest.mark.asyncio()
async def test_expand_reports_discovered_count(sitemap_server: str, debug: DebugInfo):
    seen: list[int] = []

    async def on_discovered(count: int) -> None:
        seen.append(count)

    await expand(f"{sitemap_server}/index.xml", CrawlerConfig(), debug, on_discovered=on_discovered)
    assert seen == [2]


@pytest.mark.asyncio()
async def test_expand_bounds_concurrent_downloads(unused_tcp_port: int, debug: DebugInfo):
    base = f"http://localhost:{unused_tcp_port}"
    state = {"active": 0, "peak": 0}

    async def index(_):
        return xml_response(sitemapindex(*(f"{base}/child{i}.xml" for i in range(12))))

    async def child(request: web.Request):
        state["active"] += 1
        state["peak"] = max(state["peak"], state["active"])
        await asyncio.sleep(0.05)
        state["active"] -= 1
        return xml_response(urlset(f"{base}/{request.match_info['n']}"))

    app = web.Application()
    app.router.add_get("/index.xml", index)
    app.router.add_get("/child{n}.xml", child)

    async for url in serve_app(app, unused_tcp_port):
        urls = await expand(f"{url}/index.xml", CrawlerConfig(concurrency=3), debug)

    assert len(urls) == 12
    assert state["peak"] <= 3
