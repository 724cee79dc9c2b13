"""Resumable batch downloader.

Drives one authenticated session through a batch of journals, saving the
PDF of every article into the journal's output directory. A cursor file per
journal makes the batch restartable: the cursor for article i is written
before article i is attempted, so an interrupted run resumes at the article
that was in flight and never re-attempts the ones before it.
"""

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence

import structlog

from naturedl.models.catalog import Article, Journal
from naturedl.models.config import BrowserSettings, Credentials, DownloadSettings
from naturedl.models.progress import Progress
from naturedl.orchestration.context import DownloadContext
from naturedl.orchestration.result import DownloadResult
from naturedl.services.checkpoint_service import CheckpointService
from naturedl.services.session.base import ARTIFACT_LINK_SELECTORS, RemoteSession
from naturedl.utils.exceptions import DownloadAborted
from naturedl.utils.retry import RetryController, SleepFunc
from naturedl.utils.security import (
    MAX_FILENAME_BYTES,
    PathSanitizer,
    sanitize_filename,
)

logger = structlog.get_logger()

ARTIFACT_EXTENSION = ".pdf"

SessionFactory = Callable[[], Awaitable[RemoteSession]]


def artifact_filename(count: int, title: str) -> str:
    """File name of an article's PDF: "<NN> <sanitized title>.pdf"

    The title is cut so that the whole name, prefix and extension included,
    fits in MAX_FILENAME_BYTES.

    Args:
        count: 1-based index of the article within its journal
        title: Article title
    """
    prefix = f"{count:02d} "
    budget = MAX_FILENAME_BYTES - len(prefix) - len(ARTIFACT_EXTENSION)
    return f"{prefix}{sanitize_filename(title, max_bytes=budget)}{ARTIFACT_EXTENSION}"


def journal_directory(outdir: Path, journal: Journal) -> Path:
    """Output directory of a journal: <outdir>/<name>/<date>_<volume>_<issue>"""
    sanitizer = PathSanitizer(allowed_bases=[outdir])
    return sanitizer.safe_path(outdir, journal.name, journal.folder)


class Downloader:
    """Download the PDFs of a batch of journals.

    One Downloader drives one run. abort() may be called at any time, for
    example from a signal handler; it is observed before the next article.
    """

    def __init__(
        self,
        settings: DownloadSettings,
        credentials: Credentials,
        browser_settings: Optional[BrowserSettings] = None,
        session_factory: Optional[SessionFactory] = None,
        checkpoint_service: Optional[CheckpointService] = None,
        sleep: Optional[SleepFunc] = None,
        selectors: Sequence[str] = ARTIFACT_LINK_SELECTORS,
    ):
        """Initialize downloader

        Args:
            settings: Download settings (outdir, retry, delays, timeout)
            credentials: Login credentials
            browser_settings: Browser launch options for the default session
            session_factory: Coroutine function opening a RemoteSession
                (defaults to a Playwright session on www.nature.com)
            checkpoint_service: Cursor store (defaults to file cursors)
            sleep: Coroutine used for retry and throttle delays
            selectors: Ordered selector chain for the PDF link
        """
        self.settings = settings
        self.credentials = credentials
        self.browser_settings = browser_settings or BrowserSettings()
        self._session_factory = session_factory or self._open_nature_session
        self.checkpoints = checkpoint_service or CheckpointService()
        self._sleep = sleep or asyncio.sleep
        self.selectors = tuple(selectors)

        self.context = DownloadContext(settings=settings)
        self.retry = RetryController(self.context, sleep=self._sleep)
        self.result: Optional[DownloadResult] = None
        self._abort_reported = False

    def abort(self) -> None:
        """Request the run to stop before the next article."""
        self.context.abort()

    async def run(self, journals: List[Journal]) -> int:
        """Download all journals of a batch.

        Args:
            journals: Journals in the order they are processed

        Returns:
            Exit status: 0 if no error was recorded, 1 otherwise
        """
        self.context.started_at = datetime.now()
        logger.info("download_started", journals=len(journals))

        try:
            session = await self._session_factory()
        except Exception as e:
            self.context.error(f"Failed to open a session: {e}")
        else:
            try:
                await self._run_session(session, journals)
            finally:
                await self._close_session(session)

        if self.context.aborted and not self._abort_reported:
            self._report_abort()

        elapsed = datetime.now() - self.context.started_at
        self.result = DownloadResult.from_context(
            self.context,
            journals_total=len(journals),
            duration_seconds=elapsed.total_seconds(),
        )
        logger.info("download_finished", **self.result.to_dict())
        return self.result.exit_status

    async def _run_session(
        self, session: RemoteSession, journals: List[Journal]
    ) -> None:
        """Log in, process journals, log out. Logout follows a login only."""
        try:
            await self._login(session)
        except Exception as e:
            self.context.error(str(e) or type(e).__name__)
            return

        try:
            for journal in journals:
                await self._process_journal(session, journal)
        except DownloadAborted:
            self._report_abort()
        except Exception as e:
            self.context.error(str(e) or type(e).__name__)

        try:
            self.context.info("Logging out from www.nature.com...")
            await session.logout()
        except Exception as e:
            self.context.error(f"Failed to logout: {e}")

        self.context.info("Done")

    async def _login(self, session: RemoteSession) -> None:
        self.context.info("Trying to login to www.nature.com...")
        password = self.credentials.password
        await session.login(
            self.credentials.username or "",
            password.get_secret_value() if password is not None else "",
        )

    async def _close_session(self, session: RemoteSession) -> None:
        try:
            await session.close()
        except Exception as e:
            self.context.error(f"Failed to close the session: {e}")

    def _report_abort(self) -> None:
        self._abort_reported = True
        self.context.error("Aborted")

    async def _process_journal(
        self, session: RemoteSession, journal: Journal
    ) -> None:
        """Download the articles of one journal, resuming at its cursor."""
        journal_dir = journal_directory(Path(self.settings.outdir), journal)
        self.context.info(f"mkdir -p {journal_dir}...")
        journal_dir.mkdir(parents=True, exist_ok=True)

        cursor = self.checkpoints.read_cursor(journal_dir)
        total = len(journal.articles)
        if cursor > 0:
            self.context.info(f"Resuming {journal.id} at {cursor + 1}/{total}")

        for i in range(cursor, total):
            self.checkpoints.write_cursor(journal_dir, i)
            if self.context.aborted:
                raise DownloadAborted()
            await self._process_article_with_retry(
                session, journal.articles[i], journal_dir, i + 1, total
            )

        self.context.info("Downloaded articles successfully")
        self.checkpoints.remove_cursor(journal_dir)
        self.context.journals_completed += 1

    async def _process_article_with_retry(
        self,
        session: RemoteSession,
        article: Article,
        journal_dir: Path,
        count: int,
        total: int,
    ) -> None:
        async def attempt(progress: Progress) -> None:
            await self._process_article(session, article, journal_dir, progress)

        succeeded = await self.retry.run(
            self.settings.max_trials,
            self.settings.retry_interval,
            attempt,
            count,
            total,
        )
        if not succeeded:
            self.context.articles_failed += 1

    async def _process_article(
        self,
        session: RemoteSession,
        article: Article,
        journal_dir: Path,
        progress: Progress,
    ) -> None:
        self.context.info(f"Loading {article.url}...", progress)
        await session.navigate(article.url)

        self.context.info("Looking for a PDF file...", progress)
        pdf_url = await session.find_artifact_link(self.selectors)
        if not pdf_url:
            self.context.warn("No PDF file found", progress)
            self.context.articles_skipped += 1
            return

        pdf_file = artifact_filename(progress.count, article.title)

        self.context.info(f"Downloading {pdf_url}...", progress)
        data = await session.fetch_bytes(pdf_url)

        self.context.info(f"Saving as {pdf_file}...", progress)
        (journal_dir / pdf_file).write_bytes(data)
        self.context.articles_saved += 1

        if self.settings.sleep > 0:
            self.context.info(f"Sleep {self.settings.sleep:g}s...", progress)
            await self._sleep(self.settings.sleep)

    async def _open_nature_session(self) -> RemoteSession:
        from naturedl.services.session.nature import NatureSession

        return await NatureSession.open(
            self.browser_settings, timeout_seconds=self.settings.timeout
        )
