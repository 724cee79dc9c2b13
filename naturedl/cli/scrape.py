"""Scrape commands for journal and volume metadata.

Prints (or writes) JSON metadata. The output of `scrape journal` is the
batch file consumed by `naturedl download`.
"""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import BaseModel

from naturedl.cli.utils import (
    browser_settings,
    display_error,
    display_success,
    handle_errors,
    load_config,
)
from naturedl.models.catalog import JournalId, VolumeId
from naturedl.services.scraper_service import ScraperService
from naturedl.utils.exceptions import InvalidIdError

# Create scrape sub-app
scrape_app = typer.Typer(help="Scrape journal and volume metadata")


@scrape_app.command(name="journal")
@handle_errors
def scrape_journal(
    ids: List[str] = typer.Argument(..., help="Journal IDs, e.g. nature:555:7698"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config YAML"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write JSON to this file instead of stdout"
    ),
    show_window: bool = typer.Option(False, "--show-window"),
    no_sandbox: bool = typer.Option(False, "--no-sandbox"),
):
    """Scrape the article lists of journal issues."""
    try:
        journal_ids = [JournalId.parse(value) for value in ids]
    except InvalidIdError as e:
        display_error(str(e))
        raise typer.Exit(code=1)

    config = load_config(config_path)
    scraper = ScraperService(
        browser_settings(config, show_window, no_sandbox),
        timeout_seconds=config.download.timeout,
    )

    async def scrape_all():
        return [await scraper.scrape_journal(j) for j in journal_ids]

    journals = asyncio.run(scrape_all())
    _emit(journals, output)

    if any(j.error for j in journals):
        raise typer.Exit(code=1)


@scrape_app.command(name="volume")
@handle_errors
def scrape_volume(
    ids: List[str] = typer.Argument(..., help="Volume IDs, e.g. nature:555"),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config YAML"
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write JSON to this file instead of stdout"
    ),
    show_window: bool = typer.Option(False, "--show-window"),
    no_sandbox: bool = typer.Option(False, "--no-sandbox"),
):
    """Scrape the issue lists of volumes."""
    try:
        volume_ids = [VolumeId.parse(value) for value in ids]
    except InvalidIdError as e:
        display_error(str(e))
        raise typer.Exit(code=1)

    config = load_config(config_path)
    scraper = ScraperService(
        browser_settings(config, show_window, no_sandbox),
        timeout_seconds=config.download.timeout,
    )

    async def scrape_all():
        return [await scraper.scrape_volume(v) for v in volume_ids]

    volumes = asyncio.run(scrape_all())
    _emit(volumes, output)

    if any(v.error for v in volumes):
        raise typer.Exit(code=1)


def _emit(items: List[BaseModel], output: Optional[Path]) -> None:
    payload = json.dumps(
        [item.model_dump(mode="json", exclude_none=True) for item in items],
        indent=2,
        ensure_ascii=False,
    )
    if output is None:
        typer.echo(payload)
        return
    output.write_text(payload + "\n", encoding="utf-8")
    display_success(f"Saved metadata of {len(items)} entries to {output}")
