# File: tests/test_cli.py
"""Tests for the CLI (`seo_scout.cli`) using click.testing.CliRunner.
Cover `audit`, `config`, `serve`, `--version` and error handling.
"""
import json

import pytest
import seo_scout.cli as cli_module
from aiohttp import web
from click.testing import CliRunner
from conftest import page, serve_app_in_thread, urlset
from seo_scout.cli import cli
from seo_scout.exceptions import NoUrlsFoundError
from seo_scout.logger import configure
from seo_scout.progress import parse_event

PAYLOAD = {
    "urlsAnalyzed": 1,
    "issues": 0,
    "results": [{"url": "https://example.com/", "status": "pass", "issues": []}],
    "debugInfo": {},
}


@pytest.fixture()
def fake_audit(monkeypatch):
    """Patch audit_with_output so no crawl happens."""
    calls = []

    async def fake(url, cfg, raw_events):
        calls.append((url, cfg, raw_events))
        return PAYLOAD

    monkeypatch.setattr(cli_module, "audit_with_output", fake)
    return calls


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    yield
    # restore the default level and format after --log-* options
    configure()


def test_version_option():
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "SEOScout" in result.output


def test_show_config(tmp_path):
    cfg_file = tmp_path / "custom.json"
    cfg_file.write_text(json.dumps({"concurrency": 2, "user_agent": "Agent/1.0"}), encoding="utf-8")

    runner = CliRunner()
    result = runner.invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["concurrency"] == 2
    assert data["user_agent"] == "Agent/1.0"


def test_invalid_config_exits(tmp_path):
    cfg_file = tmp_path / "bad.yaml"
    cfg_file.write_text("concurrency: -1", encoding="utf-8")

    result = CliRunner().invoke(cli, ["--config", str(cfg_file), "config"])
    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_audit_writes_output_file(tmp_path, fake_audit):
    out = tmp_path / "reports" / "report.json"
    result = CliRunner().invoke(cli, ["audit", "https://example.com/sitemap.xml", "--output", str(out), "--pretty"])
    assert result.exit_code == 0, result.output
    assert json.loads(out.read_text(encoding="utf-8")) == PAYLOAD
    assert fake_audit[0][0] == "https://example.com/sitemap.xml"
    assert fake_audit[0][2] is False


def test_audit_passes_events_flag(tmp_path, fake_audit):
    out = tmp_path / "report.json"
    result = CliRunner().invoke(cli, ["audit", "https://example.com/sitemap.xml", "--events", "-o", str(out)])
    assert result.exit_code == 0
    assert fake_audit[0][2] is True


def test_audit_crawl_failure_exits(monkeypatch):
    async def failing(url, cfg, raw_events):
        raise NoUrlsFoundError(url)

    monkeypatch.setattr(cli_module, "audit_with_output", failing)
    result = CliRunner().invoke(cli, ["audit", "https://example.com/sitemap.xml"])
    assert result.exit_code == 1
    assert "Crawl failed: No URLs found" in result.output


def test_serve_uses_config(monkeypatch):
    seen = {}

    def fake_run_server(cfg, host=None, port=None):
        seen.update(cfg=cfg, host=host, port=port)

    monkeypatch.setattr(cli_module, "run_server", fake_run_server)
    result = CliRunner().invoke(cli, ["serve", "--port", "9999"])
    assert result.exit_code == 0
    assert seen["port"] == 9999
    assert seen["host"] is None
    assert seen["cfg"].concurrency == 5


@pytest.fixture()
def one_page_site(unused_tcp_port):
    app = web.Application()
    base = f"http://localhost:{unused_tcp_port}"

    async def sitemap(_):
        return web.Response(text=urlset(f"{base}/"), content_type="application/xml")

    async def home(_):
        return web.Response(text=page(), content_type="text/html")

    app.router.add_get("/sitemap.xml", sitemap)
    app.router.add_get("/", home)

    with serve_app_in_thread(app, unused_tcp_port) as url:
        yield url


def test_audit_stdout_is_the_report(one_page_site):
    result = CliRunner().invoke(cli, ["audit", f"{one_page_site}/sitemap.xml"])
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    assert payload["urlsAnalyzed"] == 1
    assert payload["results"][0]["url"] == f"{one_page_site}/"
    assert "Starting crawl" in result.stderr


def test_audit_events_stdout_carries_only_events(one_page_site):
    result = CliRunner().invoke(cli, ["audit", f"{one_page_site}/sitemap.xml", "--events"])
    assert result.exit_code == 0, result.output

    events = [parse_event(block) for block in result.stdout.split("\n\n") if block.strip()]
    assert [e["type"] for e in events] == ["progress", "progress", "complete"]
    assert "Crawl complete" in result.stderr
