"""Browser session management using patchright.

One browser, one context and one page per session. Cookies exported from a
real browser are loaded into the context when present; there is no login flow.
"""

import json
import logging
from pathlib import Path
from types import TracebackType
from typing import Any

from patchright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from src.core.config import BrowserConfig

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1920, "height": 1080}
EXTRA_HEADERS = {"Accept-Language": "en-US,en;q=0.9"}


class BrowserSession:
    """Owns one patchright browser + context + page.

    Usage::

        async with BrowserSession(config) as session:
            page = session.page
            await page.goto("https://...")

    Long-lived owners (adapters) call ``start()`` and ``close()`` directly.
    """

    def __init__(self, config: BrowserConfig) -> None:
        self._config = config
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        """The single page for this session. Raises if not started."""
        if self._page is None:
            msg = "BrowserSession not started - use 'async with' or start()"
            raise RuntimeError(msg)
        return self._page

    @property
    def started(self) -> bool:
        return self._page is not None

    async def start(self) -> Page:
        if self._page is not None:
            return self._page

        pw = await async_playwright().start()
        self._playwright = pw
        self._browser = await pw.chromium.launch(headless=self._config.headless)

        self._context = await self._browser.new_context(
            viewport=VIEWPORT, extra_http_headers=EXTRA_HEADERS,
        )
        cookies = _load_cookies(self._config.cookies_path)
        if cookies:
            await self._context.add_cookies(cookies)
            logger.info("Loaded %d cookies from %s", len(cookies), self._config.cookies_path)
        else:
            logger.debug("No cookies loaded - session will be anonymous")

        self._context.set_default_timeout(self._config.timeout_ms)
        self._page = await self._context.new_page()
        return self._page

    async def close(self) -> None:
        """Close page, context, browser and driver. Idempotent."""
        context, browser, playwright = self._context, self._browser, self._playwright
        self._page = self._context = self._browser = self._playwright = None
        if context is not None:
            await context.close()
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()


def _load_cookies(path: str) -> list[dict[str, Any]]:
    """Read exported cookies, keeping entries with a name and a value.

    Missing or unreadable files yield an empty list; the session then runs
    anonymously.
    """
    cookie_path = Path(path)
    if not cookie_path.exists():
        logger.debug("Cookie file not found: %s", path)
        return []
    try:
        data = json.loads(cookie_path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Failed to load cookies from %s: %s", path, e)
        return []
    if not isinstance(data, list):
        logger.warning("Cookie file is not a JSON array: %s", path)
        return []

    cookies = [c for c in data if isinstance(c, dict) and c.get("name") and "value" in c]
    if len(cookies) < len(data):
        logger.debug("Skipped %d malformed cookie entries", len(data) - len(cookies))
    return cookies
