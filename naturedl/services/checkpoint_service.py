"""
Checkpoint service for resumable journal downloads.

Keeps a cursor file inside each journal directory holding the index of the
article to resume at. Uses atomic file writes to prevent corruption.
"""

from pathlib import Path
import structlog

logger = structlog.get_logger()

CURSOR_FILENAME = "cursor"


class CheckpointService:
    """
    Manage per-journal cursors for resume capability.

    The cursor is written before an article is attempted, so a restart
    re-attempts the article that was in flight.
    """

    def read_cursor(self, journal_dir: Path) -> int:
        """
        Read the cursor of a journal directory.

        Args:
            journal_dir: Output directory of the journal

        Returns:
            Index to resume at, 0 if there is no usable cursor
        """
        cursor_file = self.get_cursor_path(journal_dir)

        if not cursor_file.exists():
            logger.debug("no_cursor_found", journal_dir=str(journal_dir))
            return 0

        try:
            cursor = int(cursor_file.read_text(encoding="utf-8").strip())
        except (OSError, ValueError) as e:
            logger.warning(
                "cursor_load_error",
                journal_dir=str(journal_dir),
                error=str(e)
            )
            return 0

        if cursor < 0:
            logger.warning(
                "cursor_out_of_range",
                journal_dir=str(journal_dir),
                cursor=cursor
            )
            return 0

        logger.info("cursor_loaded", journal_dir=str(journal_dir), cursor=cursor)
        return cursor

    def write_cursor(self, journal_dir: Path, index: int) -> None:
        """
        Write the cursor atomically.

        Args:
            journal_dir: Output directory of the journal
            index: Index of the article about to be attempted
        """
        cursor_file = self.get_cursor_path(journal_dir)

        # Atomic write: write to temp file, then rename
        temp_file = cursor_file.with_suffix('.tmp')
        temp_file.write_text(str(index), encoding="utf-8")
        temp_file.replace(cursor_file)

        logger.debug("cursor_saved", journal_dir=str(journal_dir), cursor=index)

    def remove_cursor(self, journal_dir: Path) -> None:
        """
        Remove the cursor after a complete pass over a journal.

        Args:
            journal_dir: Output directory of the journal
        """
        cursor_file = self.get_cursor_path(journal_dir)
        cursor_file.unlink(missing_ok=True)
        logger.info("cursor_cleared", journal_dir=str(journal_dir))

    def get_cursor_path(self, journal_dir: Path) -> Path:
        """Get cursor file path for a journal directory"""
        return Path(journal_dir) / CURSOR_FILENAME
