"""Command-line driver for the scraping core."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import click
import structlog
from rich.console import Console
from rich.table import Table

from vaultscrape import __version__
from vaultscrape.config.config import Settings, find_config_file
from vaultscrape.extractor.validation import validate_content
from vaultscrape.models import ScrapeOutcome
from vaultscrape.observability.logging import configure_logging
from vaultscrape.orchestrator import ScrapeOrchestrator

console = Console()
logger = structlog.get_logger(__name__)


def load_settings(config_path: Optional[Path]) -> Settings:
    path = config_path or find_config_file()
    if path is not None:
        return Settings.from_yaml(path)
    return Settings()


async def _scrape_urls(settings: Settings, urls: Sequence[str], concurrency: Optional[int]) -> List[ScrapeOutcome]:
    async with ScrapeOrchestrator(settings.scraper) as orchestrator:
        return await orchestrator.scrape_many(urls, concurrency=concurrency)


def _outcomes_table(outcomes: Sequence[ScrapeOutcome]) -> Table:
    table = Table(title="Scrape results")
    table.add_column("URL", style="cyan", overflow="fold")
    table.add_column("Status")
    table.add_column("Strategy")
    table.add_column("Title / Error", overflow="fold")

    for outcome in outcomes:
        if outcome.success and outcome.record is not None:
            table.add_row(outcome.url, "[green]ok[/green]", outcome.record.strategy.value, outcome.record.title)
        else:
            category = outcome.category.value if outcome.category else "error"
            table.add_row(outcome.url, f"[red]{category}[/red]", "-", outcome.error or "")
    return table


@click.group()
@click.version_option(version=__version__)
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, path_type=Path), help="Configuration file path")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides the configuration file)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], log_level: Optional[str]) -> None:
    """VaultScrape - resilient page scraping for knowledge vaults."""
    ctx.ensure_object(dict)
    try:
        settings = load_settings(config_path)
    except (FileNotFoundError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    monitoring = settings.monitoring
    if log_level:
        monitoring = monitoring.model_copy(update={"log_level": log_level.upper()})
    configure_logging(monitoring)

    ctx.obj["settings"] = settings


@cli.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--render/--no-render", default=None, help="Enable or disable the browser rendering fallback")
@click.option("--concurrency", "-n", type=click.IntRange(min=1), default=None, help="Number of concurrent workers")
@click.option("--json", "as_json", is_flag=True, help="Print outcomes as JSON")
@click.pass_context
def scrape(
    ctx: click.Context,
    urls: Sequence[str],
    render: Optional[bool],
    concurrency: Optional[int],
    as_json: bool,
) -> None:
    """Scrape one or more URLs."""
    settings: Settings = ctx.obj["settings"]
    if render is not None:
        settings = settings.model_copy(
            update={"scraper": settings.scraper.model_copy(update={"use_playwright_fallback": render})}
        )

    outcomes = asyncio.run(_scrape_urls(settings, urls, concurrency))

    if as_json:
        click.echo(json.dumps([outcome.to_dict() for outcome in outcomes], indent=2, ensure_ascii=False))
    else:
        console.print(_outcomes_table(outcomes))

    if not all(outcome.success for outcome in outcomes):
        sys.exit(1)


@cli.command()
@click.argument("url")
@click.pass_context
def validate(ctx: click.Context, url: str) -> None:
    """Scrape URL and report content validation issues."""
    settings: Settings = ctx.obj["settings"]
    [outcome] = asyncio.run(_scrape_urls(settings, [url], concurrency=1))

    if not outcome.success or outcome.record is None:
        console.print(f"[red]Scrape failed ({outcome.category.value if outcome.category else 'error'}):[/red] {outcome.error}")
        sys.exit(1)

    result = validate_content(outcome.record)
    summary: Dict[str, Any] = {"url": outcome.url, "title": outcome.record.title, "valid": result.valid}
    if result.valid:
        console.print(f"[green]Valid[/green] {summary['url']} - {summary['title']}")
        return

    console.print(f"[yellow]Invalid[/yellow] {summary['url']} - {summary['title']}")
    for issue in result.issues:
        console.print(f"  - {issue}")
    sys.exit(2)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
