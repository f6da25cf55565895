# === FILE: seo_scout/cli.py ===
#!/usr/bin/env python3
"""
Command-line entry point of SEOScout.

Commands:
  audit SITEMAP_URL   Crawl a sitemap and print or save the analysis
  serve               Run the HTTP/SSE server (POST /api/analyze)
  config              Show the effective configuration

Common options:
  --config PATH       Path to a YAML/JSON config (default: configs/default.yaml if present)
  --log-level LEVEL   Logging level (DEBUG, INFO, ...)
  --log-file PATH     Log file (stderr only when omitted)
  --log-format FORMAT Logging format string

audit options:
  --output PATH       Save the final JSON payload to a file
  --pretty            Indent JSON output (2 spaces)
  --events            Print raw server-sent events instead of a progress line

Also:
  --version, -v       Show the SEOScout version

Example:
  seo-scout audit https://example.com/sitemap.xml --output report.json --pretty
"""
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click

from seo_scout import __version__
from seo_scout.config import CrawlerConfig, load_config
from seo_scout.engine import run_audit
from seo_scout.exceptions import CrawlError
from seo_scout.logger import init_logging
from seo_scout.progress import QueueChannel, parse_event
from seo_scout.server import run_server

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


async def audit_with_output(url: str, cfg: CrawlerConfig, raw_events: bool) -> Dict[str, Any]:
    """Run one crawl while echoing its event stream to the terminal."""
    channel = QueueChannel()
    task = asyncio.create_task(run_audit(url, cfg, channel))
    task.add_done_callback(lambda _: channel.close_nowait())
    async for line in channel:
        if raw_events:
            click.echo(line, nl=False)
            continue
        event = parse_event(line)
        if event.get("type") == "progress":
            click.echo(f"[{event['status']}] {event['current']}/{event['total']}", err=True)
    return await task


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SEOScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Path to a YAML or JSON configuration file.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Logging level'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Log file path (logs go to stderr if omitted)'
)
@click.option(
    '--log-format', 'log_format',
    default='%(asctime)s %(levelname)s %(message)s',
    show_default=True,
    help='Logging format string'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """SEOScout: sitemap crawler and SEO metadata checker."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Failed to load configuration: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('audit', context_settings=CONTEXT_SETTINGS)
@click.argument('sitemap_url')
@click.option(
    '--output', '-o', 'output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Save the final JSON payload to a file'
)
@click.option('--pretty', is_flag=True, help='Indent JSON output (2 spaces)')
@click.option('--events', 'raw_events', is_flag=True, help='Print raw server-sent events')
@click.pass_context
def audit(ctx, sitemap_url: str, output: Optional[Path], pretty: bool, raw_events: bool):
    """Crawl SITEMAP_URL and check every listed page."""
    cfg = ctx.obj['config']
    try:
        payload = asyncio.run(audit_with_output(sitemap_url, cfg, raw_events))
    except CrawlError as e:
        print_error(f'Crawl failed: {e}')
    except Exception as e:
        print_error(f'Error during crawl: {e}')

    indent = 2 if pretty else None
    text = json.dumps(payload, ensure_ascii=False, indent=indent)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding='utf-8')
        click.echo(f'Report: {output}', err=True)
    elif not raw_events:
        click.echo(text)
    click.echo(f"{payload['urlsAnalyzed']} URLs analyzed, {payload['issues']} issues", err=True)


@cli.command('serve', context_settings=CONTEXT_SETTINGS)
@click.option('--host', default=None, help='Bind address (default from config)')
@click.option('--port', default=None, type=int, help='Port (default from config)')
@click.pass_context
def serve(ctx, host, port):
    """Run the HTTP server exposing POST /api/analyze."""
    run_server(ctx.obj['config'], host=host, port=port)


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Show the current configuration as JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


def main():
    cli()


if __name__ == "__main__":
    main()
