"""Custom exceptions for the batch downloader

This module defines the exception hierarchy for a download run:
- Base exception for all downloader errors
- Specific exceptions for each stage (session, login, fetch, scrape)

All exceptions inherit from DownloaderError to allow catching all
downloader-related errors in a single except block when needed.
"""


class DownloaderError(Exception):
    """Base exception for all downloader errors

    Use this to catch any error raised while driving the remote site:
    ```python
    try:
        await session.login(username, password)
    except DownloaderError as e:
        logger.error("login_failed", error=str(e))
    ```
    """

    pass


class SessionOpenError(DownloaderError):
    """Browser session could not be started

    Raised when:
    - The browser executable cannot be launched
    - A new page cannot be created
    """

    pass


class LoginError(DownloaderError):
    """Login to the remote site failed

    Raised when:
    - The identity provider redirects back with an error
    - The concurrency limit of the account has been reached
    """

    pass


class ArtifactFetchError(DownloaderError):
    """Artifact download failed

    Raised when:
    - HTTP response is not successful
    - Network timeout
    - Connection errors

    This is retried by the retry controller.
    """

    pass


class DownloadAborted(DownloaderError):
    """A run was interrupted by an abort request

    Raised at the top of the per-article loop once abort() has been
    called. Always counted as an error for the run.
    """

    def __init__(self, message: str = "Aborted") -> None:
        super().__init__(message)


class InvalidIdError(DownloaderError):
    """Journal or volume identifier is malformed or unsupported"""

    pass


class ScrapeError(DownloaderError):
    """Metadata page could not be scraped

    Raised when:
    - The page does not exist ("Page not found")
    - The page layout does not contain the expected elements
    """

    pass
