"""Download context for state shared across a run.

Holds the outcome counters and the abort flag of one download run. The
downloader owns the context for the run's lifetime and passes it to the
retry controller, so every warning and error is counted in one place.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

import structlog

from naturedl.models.config import DownloadSettings
from naturedl.models.progress import Progress

logger = structlog.get_logger()


def _fields(
    message: str, progress: Optional[Progress], extra: Dict[str, Any]
) -> Dict[str, Any]:
    """Key/value fields of a run message; progress is rendered as its indicator."""
    fields: Dict[str, Any] = {"message": message}
    if progress is not None:
        fields["progress"] = progress.indicator
    fields.update(extra)
    return fields


@dataclass
class DownloadContext:
    """Shared context for one download run.

    Warnings and errors are counted exactly once per call to warn() or
    error(). Counters only ever grow during a run; the exit status is
    derived from the error counter once the run ends.
    """

    settings: DownloadSettings
    # Start of the run, the reported duration is measured from it
    started_at: datetime = field(default_factory=datetime.now)

    # Outcome counters
    warnings: int = 0
    errors: int = 0

    # Cancellation, polled at the top of the per-article loop
    aborted: bool = False

    # Statistics for the run summary
    journals_completed: int = 0
    articles_saved: int = 0
    articles_skipped: int = 0
    articles_failed: int = 0

    def info(
        self, message: str, progress: Optional[Progress] = None, **kw: Any
    ) -> None:
        """Log an informational message (never counted)."""
        logger.info("download_info", **_fields(message, progress, kw))

    def warn(
        self, message: str, progress: Optional[Progress] = None, **kw: Any
    ) -> None:
        """Log a warning and count it."""
        self.warnings += 1
        logger.warning("download_warning", **_fields(message, progress, kw))

    def error(
        self, message: str, progress: Optional[Progress] = None, **kw: Any
    ) -> None:
        """Log an error and count it."""
        self.errors += 1
        logger.error("download_error", **_fields(message, progress, kw))

    def abort(self) -> None:
        """Request cooperative cancellation. Safe to call repeatedly."""
        if not self.aborted:
            logger.info("abort_requested")
        self.aborted = True

    @property
    def exit_status(self) -> int:
        """0 iff no error has been recorded, 1 otherwise."""
        return 1 if self.errors > 0 else 0
