"""Run ID context management for log correlation.

Provides ContextVar-based storage for the ID of the current download run.
Every log entry emitted while a run is active carries this ID, which makes
it possible to separate interleaved output of restarted runs.

Usage:
    from naturedl.observability.context import run_id_context

    with run_id_context() as run_id:
        await downloader.run(journals)
"""

from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from typing import Generator, Optional

_run_id_var: ContextVar[Optional[str]] = ContextVar("run_id", default=None)


def new_run_id() -> str:
    """Generate a run ID from the current local time."""
    return datetime.now().strftime("%Y%m%d-%H%M%S")


def get_run_id() -> Optional[str]:
    """Get the current run ID, or None outside of a run."""
    return _run_id_var.get()


@contextmanager
def run_id_context(run_id: Optional[str] = None) -> Generator[str, None, None]:
    """Context manager for a scoped run ID.

    Sets the run ID on entry and restores the previous value on exit.
    """
    if run_id is None:
        run_id = new_run_id()

    token = _run_id_var.set(run_id)
    try:
        yield run_id
    finally:
        _run_id_var.reset(token)
