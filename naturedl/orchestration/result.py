"""Download result data structure."""

from dataclasses import dataclass
from typing import Any, Dict

from naturedl.orchestration.context import DownloadContext


@dataclass
class DownloadResult:
    """Result of a download run.

    Snapshot of the run context taken once the session is torn down.
    """

    journals_total: int = 0
    journals_completed: int = 0
    articles_saved: int = 0
    articles_skipped: int = 0
    articles_failed: int = 0
    warnings: int = 0
    errors: int = 0
    aborted: bool = False
    duration_seconds: float = 0.0

    @property
    def exit_status(self) -> int:
        return 1 if self.errors > 0 else 0

    @classmethod
    def from_context(
        cls, context: DownloadContext, journals_total: int, duration_seconds: float
    ) -> "DownloadResult":
        return cls(
            journals_total=journals_total,
            journals_completed=context.journals_completed,
            articles_saved=context.articles_saved,
            articles_skipped=context.articles_skipped,
            articles_failed=context.articles_failed,
            warnings=context.warnings,
            errors=context.errors,
            aborted=context.aborted,
            duration_seconds=duration_seconds,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "journals_total": self.journals_total,
            "journals_completed": self.journals_completed,
            "articles_saved": self.articles_saved,
            "articles_skipped": self.articles_skipped,
            "articles_failed": self.articles_failed,
            "warnings": self.warnings,
            "errors": self.errors,
            "aborted": self.aborted,
            "exit_status": self.exit_status,
            "duration_seconds": round(self.duration_seconds, 3),
        }
