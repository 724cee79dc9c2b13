"""Playwright session driver for www.nature.com.

Logs in through the nature.com identity provider, navigates article pages
in a headless Chromium and downloads PDFs with aiohttp, reusing the
browser's cookies and user agent so that the download is authenticated.
"""

import asyncio
from typing import Any, List, Optional, Sequence
from urllib.parse import parse_qs, urlparse

import aiohttp
import structlog
from playwright.async_api import async_playwright

from naturedl.models.config import BrowserSettings
from naturedl.services.session.base import ARTIFACT_LINK_SELECTORS, RemoteSession
from naturedl.utils.exceptions import (
    ArtifactFetchError,
    LoginError,
    SessionOpenError,
)

logger = structlog.get_logger()

LOGIN_URL = "https://idp.nature.com/login/natureuser"
LOGOUT_URL = "https://idp.nature.com/logout/natureuser"
IDP_HOSTNAME = "idp.nature.com"

NO_SANDBOX_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


def launch_options(settings: BrowserSettings) -> dict:
    """Build Chromium launch options from browser settings

    Signal handling is left to the CLI so that an interrupt aborts the
    run cooperatively instead of killing the browser.
    """
    options: dict = {
        "headless": settings.headless,
        "handle_sigint": False,
        "handle_sigterm": False,
    }
    if not settings.sandbox:
        options["args"] = list(NO_SANDBOX_ARGS)
    return options


def login_error_message(url: str) -> Optional[str]:
    """Return the login error for a post-login URL, None if logged in"""
    parsed = urlparse(url)
    if parsed.hostname != IDP_HOSTNAME:
        return None
    error = parse_qs(parsed.query).get("error", [None])[0]
    msg = f"Failed to login: {error}"
    if error == "concurrency_limit_reached":
        msg = f"{msg}: Retry after 30m"
    return msg


def cookie_header(cookies: List[Any]) -> str:
    """Serialize browser cookies into a Cookie header value"""
    return "; ".join(f"{c['name']}={c['value']}" for c in cookies)


class NatureSession(RemoteSession):
    """Authenticated browser session on www.nature.com"""

    def __init__(
        self,
        playwright: Any,
        browser: Any,
        page: Any,
        user_agent: str,
        timeout_seconds: float = 60.0,
    ):
        """Wrap an already launched browser

        Use NatureSession.open() to launch one.
        """
        self._playwright = playwright
        self._browser = browser
        self._page = page
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds

    @classmethod
    async def open(
        cls, settings: BrowserSettings, timeout_seconds: float = 60.0
    ) -> "NatureSession":
        """Launch Chromium and open a page

        Raises:
            SessionOpenError: If the browser or the page cannot be created
        """
        playwright = await async_playwright().start()
        browser = None
        try:
            browser = await playwright.chromium.launch(**launch_options(settings))
            page = await browser.new_page()
            user_agent = await page.evaluate("() => navigator.userAgent")
        except Exception as e:
            logger.error("session_open_failed", error=str(e))
            if browser is not None:
                await browser.close()
            await playwright.stop()
            raise SessionOpenError(f"Failed to open a browser session: {e}")

        logger.info(
            "session_opened",
            headless=settings.headless,
            sandbox=settings.sandbox,
        )
        return cls(playwright, browser, page, user_agent, timeout_seconds)

    async def login(self, username: str, password: str) -> None:
        await self._page.goto(LOGIN_URL)
        await self._page.fill("#login-username", username)
        await self._page.fill("#login-password", password)
        async with self._page.expect_navigation():
            await self._page.click("#login-submit")

        error = login_error_message(self._page.url)
        if error is not None:
            raise LoginError(error)

    async def logout(self) -> None:
        await self._page.goto(LOGOUT_URL)

    async def navigate(self, url: str) -> None:
        await self._page.goto(url)

    async def find_artifact_link(
        self, selectors: Sequence[str] = ARTIFACT_LINK_SELECTORS
    ) -> Optional[str]:
        for selector in selectors:
            element = await self._page.query_selector(selector)
            if element is None:
                continue
            href = await element.evaluate("(el) => el.href")
            if href:
                logger.debug("artifact_link_found", selector=selector, url=href)
                return href
        return None

    async def fetch_bytes(self, url: str) -> bytes:
        cookies = await self._page.context.cookies(url)
        headers = {
            "Cookie": cookie_header(cookies),
            "User-Agent": self.user_agent,
        }

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, headers=headers) as response:
                    if not 200 <= response.status < 300:
                        raise ArtifactFetchError(
                            f"Got an error response: HTTP {response.status}"
                        )
                    # Read the whole body so the total timeout also bounds it
                    return await response.read()
        except aiohttp.ClientError as e:
            raise ArtifactFetchError(f"Download failed: {e}")
        except asyncio.TimeoutError:
            raise ArtifactFetchError(
                f"Download timeout after {self.timeout_seconds}s"
            )

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()
        logger.info("session_closed")
