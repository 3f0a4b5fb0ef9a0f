"""
Command-line interface for one-off scrapes, preloads and the API server.
Usage examples:
  python -m cricket_pipeline.apps.cli scrape points-table --year 2024
  python -m cricket_pipeline.apps.cli scrape teams
  python -m cricket_pipeline.apps.cli preload --year 2024 --year 2025
  python -m cricket_pipeline.apps.cli serve --port 3002
"""

import asyncio
import json
import sys

import click

from ..common.logging_utils import configure_logging
from ..core.config import Settings, settings
from ..data_collection.scrapers.scraping_orchestrator import MATCHES, NEWS, POINTS_TABLE, TEAMS
from .ipl_data_app import IplDataApp

KIND_CHOICES = {
    "points-table": POINTS_TABLE,
    "matches": MATCHES,
    "teams": TEAMS,
    "news": NEWS,
}


def _build_app(cfg: Settings) -> IplDataApp:
    configure_logging(level=cfg.log_level, fmt=cfg.log_format, log_file=cfg.log_file_path)
    return IplDataApp(cfg)


def _echo_json(payload) -> None:
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


@click.group()
def cli():
    """IPL data pipeline commands"""


@cli.command()
@click.argument("kind", type=click.Choice(sorted(KIND_CHOICES)))
@click.option("--year", type=int, default=None, help="Season (defaults to the configured default year)")
def scrape(kind: str, year):
    """Scrape one data kind and print the normalized result (cache untouched)."""
    app = _build_app(settings)

    async def run():
        async with app.session_manager.shared():
            return await app.scrape_once(KIND_CHOICES[kind], year)

    try:
        _echo_json(asyncio.run(run()))
    except Exception as e:
        click.echo(f"Scrape failed: {type(e).__name__}: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--year", "years", multiple=True, type=int, help="Limit the preload to these seasons")
def preload(years: tuple):
    """Run one full preload pass and print per-key outcomes."""
    app = _build_app(settings)
    summary = asyncio.run(app.orchestrator.preload(list(years) or None))
    _echo_json({key: r["status"] for key, r in summary["results"].items()})
    failed = any(r["status"] == "error" for r in summary["results"].values())
    sys.exit(1 if failed else 0)


@cli.command("cache-status")
def cache_status():
    """Print the state of the (persisted) cache."""
    app = _build_app(settings)
    _echo_json(app.cache_status())


@cli.command()
@click.option("--host", default=None, help="Bind address (default from settings)")
@click.option("--port", type=int, default=None, help="Port (default from settings)")
def serve(host, port):
    """Start the FastAPI server with uvicorn."""
    import uvicorn

    from ..api.main import create_fastapi_app

    configure_logging(level=settings.log_level, fmt=settings.log_format, log_file=settings.log_file_path)
    uvicorn.run(
        create_fastapi_app(settings),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    cli()
