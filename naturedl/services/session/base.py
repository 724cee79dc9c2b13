from abc import ABC, abstractmethod
from typing import Optional, Sequence

# Ordered fallback chain for the PDF link of an article page. Pages may
# match several of these; the first selector that yields a link wins.
ARTIFACT_LINK_SELECTORS: Sequence[str] = (
    '[data-track="download"]',
    "[data-article-pdf]",
    "li.download-pdf > a",
    'a[type="application/pdf"]',
)


class RemoteSession(ABC):
    """Abstract base class for an authenticated session on the remote site

    A session wraps one browser page. It is used by a single flow of
    control at a time and must be closed exactly once after it was opened.
    """

    @abstractmethod
    async def login(self, username: str, password: str) -> None:
        """Log in to the remote site

        Raises:
            LoginError: If the site rejects the credentials
        """
        pass

    @abstractmethod
    async def logout(self) -> None:
        """Log out from the remote site"""
        pass

    @abstractmethod
    async def navigate(self, url: str) -> None:
        """Load a page in the session's browser page"""
        pass

    @abstractmethod
    async def find_artifact_link(
        self, selectors: Sequence[str] = ARTIFACT_LINK_SELECTORS
    ) -> Optional[str]:
        """Find the artifact link on the current page

        Args:
            selectors: CSS selectors tried in order, first match wins

        Returns:
            Absolute URL of the artifact, or None if no selector matched
        """
        pass

    @abstractmethod
    async def fetch_bytes(self, url: str) -> bytes:
        """Download a URL using the session's cookies

        Raises:
            ArtifactFetchError: If the download fails
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release the browser and all resources of the session"""
        pass
