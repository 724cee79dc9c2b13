"""Metadata scraper for journal issues and volumes.

Builds the catalog consumed by the downloader: the list of articles of a
journal issue, or the list of issues of a volume. Each scrape launches its
own headless browser, which is always closed afterwards. Scrape failures are
recorded in the returned metadata instead of being raised, so a batch of IDs
produces one entry per ID.
"""

from typing import Any, List, Optional

import structlog
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from naturedl.models.catalog import (
    Article,
    Issue,
    Journal,
    JournalId,
    Volume,
    VolumeId,
    convert_date,
)
from naturedl.models.config import BrowserSettings
from naturedl.services.session.nature import launch_options
from naturedl.utils.exceptions import ScrapeError

logger = structlog.get_logger()

NOT_FOUND_TITLE_PREFIX = "Page not found"

# Issue pages of volumes before 553
COLLECT_ARTICLES_LEGACY_JS = """
() => Array.from(document.querySelectorAll('#content article')).map((article) => {
  const link = article.querySelector('a');
  return { title: link.innerText, url: link.href };
})
"""

COLLECT_ARTICLES_JS = """
() => Array.from(document.querySelectorAll('article')).map((article) => {
  const link = article.querySelector('a');
  const typeElement = article.querySelector('[data-test="article.type"]');
  const dateElement = article.querySelector('time');
  const descElement = article.querySelector('[itemprop="description"] p');
  const authorElements =
    article.querySelectorAll('[data-test="author-list"] [itemprop="name"]');
  return {
    title: link.innerText,
    type: typeElement ? typeElement.innerText : null,
    date: dateElement ? dateElement.dateTime : null,
    description: descElement ? descElement.innerText : null,
    authors: Array.from(authorElements).map((elem) => elem.innerText),
    url: link.href,
  };
})
"""

COLLECT_ISSUES_JS = """
() => Array.from(document.querySelectorAll('#issue-list > li')).map((item) => {
  const url = item.querySelector('a').href;
  const img = item.querySelector('a > img');
  const date = item.querySelector('a > h3 > span');
  const title = item.querySelector('h3.h3');
  return {
    id: parseInt(url.split('/').pop()),
    url: url,
    img: img ? img.src : null,
    date: date ? date.innerText : null,
    title: title ? title.innerText : null,
  };
})
"""


def date_from_title(title: str) -> Optional[str]:
    """Extract the issue date from a page title

    Titles look like "Volume 555 Issue 7698, 22 March 2018".
    """
    components = title.split(", ")
    if len(components) < 2:
        return None
    return convert_date(components[1])


def build_issues(raw_issues: List[dict]) -> List[Issue]:
    """Sort scraped issues by id and normalize their dates"""
    issues = []
    for raw in sorted(raw_issues, key=lambda item: item["id"]):
        date = raw.get("date")
        issues.append(
            Issue(
                id=raw["id"],
                url=raw["url"],
                img=raw.get("img"),
                date=convert_date(date) if date else None,
                title=raw.get("title"),
                description=raw.get("description"),
            )
        )
    return issues


class ScraperService:
    """Scrape journal and volume pages with a headless browser"""

    def __init__(self, settings: BrowserSettings, timeout_seconds: float = 60.0):
        self.settings = settings
        self.timeout_seconds = timeout_seconds

    async def scrape_journal(self, journal_id: JournalId) -> Journal:
        """Scrape the article list of a journal issue

        Returns:
            Journal metadata; `error` is set when the page could not be scraped
        """
        journal = Journal(
            name=journal_id.name,
            volume=journal_id.volume,
            issue=journal_id.issue,
            url=journal_id.url,
        )
        try:
            date, articles = await self._with_page(
                journal_id.url, self._collect_journal, journal_id
            )
            journal.date = date
            journal.articles = articles
            logger.info(
                "journal_scraped",
                journal=str(journal_id),
                date=date,
                articles=len(articles),
            )
        except Exception as e:
            logger.error("journal_scrape_failed", journal=str(journal_id), error=str(e))
            journal.error = str(e)
        return journal

    async def scrape_volume(self, volume_id: VolumeId) -> Volume:
        """Scrape the issue list of a volume

        Returns:
            Volume metadata; `error` is set when the page could not be scraped
        """
        volume = Volume(name=volume_id.name, volume=volume_id.volume, url=volume_id.url)
        try:
            volume.issues = await self._with_page(volume_id.url, self._collect_volume)
            logger.info(
                "volume_scraped",
                volume=str(volume_id),
                issues=len(volume.issues),
            )
        except Exception as e:
            logger.error("volume_scrape_failed", volume=str(volume_id), error=str(e))
            volume.error = str(e)
        return volume

    async def _with_page(self, url: str, collect: Any, *args: Any) -> Any:
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(**launch_options(self.settings))
            try:
                page = await browser.new_page()
                page.set_default_timeout(self.timeout_seconds * 1000)
                await self._load(page, url)
                title = await page.title()
                if title.startswith(NOT_FOUND_TITLE_PREFIX):
                    raise ScrapeError("Not found")
                return await collect(page, title, *args)
            finally:
                await browser.close()
        finally:
            await playwright.stop()

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(PlaywrightError),
        reraise=True,
    )
    async def _load(self, page: Any, url: str) -> None:
        logger.debug("page_loading", url=url)
        await page.goto(url)

    async def _collect_journal(
        self, page: Any, title: str, journal_id: JournalId
    ) -> tuple:
        date = date_from_title(title)
        if not date:
            date = convert_date(await page.inner_text("#issue-meta .more"))

        script = (
            COLLECT_ARTICLES_LEGACY_JS
            if journal_id.legacy_layout
            else COLLECT_ARTICLES_JS
        )
        raw_articles = await page.evaluate(script)
        return date, [Article(**raw) for raw in raw_articles]

    async def _collect_volume(self, page: Any, title: str) -> List[Issue]:
        raw_issues = await page.evaluate(COLLECT_ISSUES_JS)
        return build_issues(raw_issues)
