"""Indeed source adapter: wires URL builder, parser, and browser page."""

import logging
import time
from typing import Any

from src.browser.actions import dismiss_popups, find_all, random_sleep, scroll_until_stable, wait_for_any
from src.browser.session import BrowserSession
from src.core.config import BrowserConfig, Settings
from src.core.errors import ErrorCode, ScraperError
from src.core.schemas import RawJob, ScrapeResult, ScraperConfig, ScraperErrorInfo
from src.platforms.base import ScraperAdapter, build_scrape_result, error_info
from src.platforms.indeed.parser import IndeedParser
from src.platforms.indeed.searcher import build_url, is_blocked
from src.platforms.indeed.selectors import (
    CARD_SELECTORS,
    CONTAINER_SELECTORS,
    FALLBACK_LINK_SELECTOR,
    POPUP_CLOSE_SELECTORS,
)

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 30000


class IndeedAdapter(ScraperAdapter):
    """Indeed search adapter driving a patchright page.

    A page may be injected (tests, shared sessions); otherwise a BrowserSession
    is started on first use and closed by ``close()``.
    """

    def __init__(self, browser: BrowserConfig | None = None, page: Any | None = None) -> None:
        self._browser_config = browser or BrowserConfig()
        self._page = page
        self._session: BrowserSession | None = None

    @property
    def source_name(self) -> str:
        return "indeed"

    async def scrape(self, config: ScraperConfig) -> ScrapeResult:
        started = time.monotonic()
        jobs: list[RawJob] = []
        skipped = 0
        errors: list[ScraperErrorInfo] = []
        try:
            page = await self._get_page()
            jobs, skipped = await self._scrape_page(page, config)
        except Exception as e:
            logger.warning("Indeed scrape failed: %s", e)
            errors.append(error_info(self.source_name, e))

        logger.info("Indeed: %d jobs parsed, %d cards skipped", len(jobs), skipped)
        return build_scrape_result(
            self.source_name,
            jobs,
            max_results=config.max_results,
            started=started,
            errors=errors,
            failed_count=skipped,
        )

    async def close(self) -> None:
        if self._session is not None:
            session, self._session = self._session, None
            self._page = None
            await session.close()

    async def _get_page(self) -> Any:
        if self._page is None:
            self._session = BrowserSession(self._browser_config)
            self._page = await self._session.start()
        return self._page

    async def _scrape_page(self, page: Any, config: ScraperConfig) -> tuple[list[RawJob], int]:
        url = build_url(config)
        logger.info("Navigating to %s", url)
        await page.goto(url, wait_until="domcontentloaded", timeout=NAVIGATION_TIMEOUT_MS)
        await random_sleep(2.0, 4.0)

        if is_blocked(await page.content(), page.url):
            raise ScraperError(
                self.source_name,
                "Indeed blocked the request. Detected CAPTCHA or anti-bot challenge.",
                ErrorCode.SCRAPER_RATE_LIMITED,
                retryable=True,
            )

        await dismiss_popups(page, POPUP_CLOSE_SELECTORS)

        if await wait_for_any(page, CONTAINER_SELECTORS) is None:
            raise ScraperError(
                self.source_name,
                "Job listings not found on page. Indeed may have changed their layout.",
                ErrorCode.SCRAPER_PARSE_ERROR,
            )

        await scroll_until_stable(page, card_selectors=CARD_SELECTORS)
        parser = IndeedParser(job_type=config.job_type)
        cards = await find_all(page, CARD_SELECTORS)
        jobs, skipped = await parser.parse_cards(cards, limit=config.max_results)

        if not jobs:
            logger.info("No cards parsed - falling back to job links")
            jobs = await self._fallback_jobs(page, parser, config.max_results)
        return jobs, skipped

    async def _fallback_jobs(self, page: Any, parser: IndeedParser, limit: int) -> list[RawJob]:
        links = await page.query_selector_all(FALLBACK_LINK_SELECTOR)
        jobs: list[RawJob] = []
        for link in links:
            try:
                job = await parser.parse_link(link)
            except Exception:
                logger.debug("Failed to parse fallback link, skipping", exc_info=True)
                continue
            if job is not None:
                jobs.append(job)
            if len(jobs) >= limit:
                break
        return jobs


def create_adapter(settings: Settings) -> IndeedAdapter:
    return IndeedAdapter(settings.browser)
