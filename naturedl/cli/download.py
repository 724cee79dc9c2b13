"""Download command for a batch of journals.

Runs the downloader on a batch file and exits with the run status.
"""

import asyncio
import os
import signal
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError

from naturedl.cli.utils import (
    browser_settings,
    display_error,
    display_info,
    display_success,
    display_warning,
    handle_errors,
    load_config,
    logger,
)
from naturedl.models.catalog import Journal
from naturedl.models.config import DownloadSettings
from naturedl.observability import run_id_context
from naturedl.orchestration import Downloader, DownloadResult
from naturedl.services.config_manager import ConfigManager

# Interrupts after which the process is killed without waiting for the
# article in flight
HARD_KILL_AFTER = 3


@handle_errors
def download_command(
    batch_path: Path = typer.Argument(
        ..., help="Batch JSON written by `naturedl scrape journal`"
    ),
    config_path: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to config YAML"
    ),
    outdir: Optional[Path] = typer.Option(
        None, "--outdir", "-o", help="Output directory"
    ),
    retry: Optional[int] = typer.Option(
        None, "--retry", help="Number of retries per article"
    ),
    retry_interval: Optional[float] = typer.Option(
        None, "--retry-interval", help="Seconds between retries"
    ),
    sleep: Optional[float] = typer.Option(
        None, "--sleep", help="Seconds to wait after each saved article"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout for a PDF download in seconds"
    ),
    show_window: bool = typer.Option(
        False, "--show-window", help="Show the browser window"
    ),
    no_sandbox: bool = typer.Option(
        False, "--no-sandbox", help="Disable the Chromium sandbox"
    ),
):
    """Download the PDFs of all articles in a batch."""
    config = load_config(config_path)

    overrides = {
        "outdir": str(outdir) if outdir is not None else None,
        "retry": retry,
        "retry_interval": retry_interval,
        "sleep": sleep,
        "timeout": timeout,
    }
    try:
        settings = DownloadSettings(
            **{
                **config.download.model_dump(),
                **{k: v for k, v in overrides.items() if v is not None},
            }
        )
    except ValidationError as e:
        display_error(f"Invalid option: {e}")
        raise typer.Exit(code=1)

    if not config.credentials.is_complete:
        display_error(
            "Missing credentials: set NATURE_USERNAME and NATURE_PASSWORD "
            "or the credentials section of the config file"
        )
        raise typer.Exit(code=1)

    journals = ConfigManager.load_batch(batch_path)

    display_info(f"Downloading {len(journals)} journals into {settings.outdir}...")
    downloader = Downloader(
        settings,
        config.credentials,
        browser_settings=browser_settings(config, show_window, no_sandbox),
    )
    with run_id_context():
        logger.info("run_started", journals=len(journals))
        status = asyncio.run(run_with_signal_handlers(downloader, journals))

    if downloader.result is not None:
        _display_result(downloader.result)

    raise typer.Exit(code=status)


async def run_with_signal_handlers(
    downloader: Downloader, journals: List[Journal]
) -> int:
    """Run the downloader, turning SIGINT/SIGTERM into an abort request.

    The first signal aborts cooperatively after the article in flight.
    Repeated signals kill the process once HARD_KILL_AFTER is reached.
    """
    loop = asyncio.get_running_loop()
    interrupts = 0

    def on_signal() -> None:
        nonlocal interrupts
        interrupts += 1
        if interrupts >= HARD_KILL_AFTER:
            logger.error("forced_exit", interrupts=interrupts)
            os._exit(1)
        logger.warning("interrupt_received", interrupts=interrupts)
        display_warning(
            "Aborting after the current article "
            f"(interrupt {HARD_KILL_AFTER - interrupts} more times to force quit)"
        )
        downloader.abort()

    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, on_signal)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):  # pragma: no cover (Windows)
            pass

    try:
        return await downloader.run(journals)
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def _display_result(result: DownloadResult) -> None:
    """Display download run results.

    Args:
        result: DownloadResult of the finished run.
    """
    typer.echo("")
    if result.exit_status == 0:
        display_success("Download completed!")
    elif result.aborted:
        display_warning("Download aborted")
    else:
        display_error("Download finished with errors")
    typer.echo(
        f"  Journals completed: {result.journals_completed}/{result.journals_total}"
    )
    typer.echo(f"  Articles saved: {result.articles_saved}")
    typer.echo(f"  Articles without PDF: {result.articles_skipped}")
    typer.echo(f"  Articles failed: {result.articles_failed}")
    typer.echo(f"  Warnings: {result.warnings}")
    typer.echo(f"  Errors: {result.errors}")
