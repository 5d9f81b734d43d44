"""Reusable browser actions: sleep, scroll, popup dismissal, selector waits.

Every delay is randomized and goes through random_sleep so tests can patch a
single function.
"""

import asyncio
import logging
import random
from typing import Any

logger = logging.getLogger(__name__)

MAX_SCROLL_ATTEMPTS = 4
SCROLL_DELAY_FLOOR = 0.8
SELECTOR_WAIT_MS = 5000


async def random_sleep(min_s: float, max_s: float) -> float:
    """Sleep for a random duration between min_s and max_s seconds.

    If max_s < min_s, max_s is raised to min_s. Returns the actual duration.
    """
    floor = max(min_s, 0.0)
    ceiling = max(max_s, floor)
    duration = random.uniform(floor, ceiling)
    await asyncio.sleep(duration)
    return duration


async def scroll_until_stable(
    page: Any,
    *,
    card_selectors: tuple[str, ...],
    max_attempts: int = MAX_SCROLL_ATTEMPTS,
    scroll_delay_min: float = 0.8,
    scroll_delay_max: float = 2.0,
) -> int:
    """Scroll page incrementally until the card count stabilizes.

    Args:
        page: Browser page object (patchright Page or mock).
        card_selectors: Tuple of CSS selectors to try (fallback order).
        max_attempts: Max scroll iterations before giving up.
        scroll_delay_min: Minimum delay between scrolls (floor: 0.8s).
        scroll_delay_max: Maximum delay between scrolls.

    Returns:
        Final card count found on the page.
    """
    scroll_delay_min = max(scroll_delay_min, SCROLL_DELAY_FLOOR)
    scroll_delay_max = max(scroll_delay_max, scroll_delay_min)

    previous_count = 0
    for attempt in range(max_attempts):
        current_count = await count_cards(page, card_selectors)
        logger.debug(
            "Scroll attempt %d/%d: %d cards (prev: %d)",
            attempt + 1, max_attempts, current_count, previous_count,
        )
        if current_count == previous_count and attempt > 0:
            break
        previous_count = current_count
        await page.evaluate("window.scrollBy(0, window.innerHeight * 0.8)")
        await random_sleep(scroll_delay_min, scroll_delay_max)

    return previous_count


async def count_cards(page: Any, selectors: tuple[str, ...]) -> int:
    """Count cards using the first matching selector."""
    for selector in selectors:
        cards = await page.query_selector_all(selector)
        if cards:
            return len(cards)
    return 0


async def find_all(page: Any, selectors: tuple[str, ...]) -> list[Any]:
    """Elements for the first selector that matches anything, else []."""
    for selector in selectors:
        elements = await page.query_selector_all(selector)
        if elements:
            logger.debug("Found %d elements with selector '%s'", len(elements), selector)
            return list(elements)
    return []


async def wait_for_any(
    page: Any, selectors: tuple[str, ...], timeout_ms: int = SELECTOR_WAIT_MS
) -> str | None:
    """Return the first selector that appears within ``timeout_ms``, or None."""
    for selector in selectors:
        try:
            el = await page.wait_for_selector(selector, timeout=timeout_ms)
        except Exception:
            logger.debug("Selector '%s' did not appear", selector)
            continue
        if el is not None:
            return selector
    return None


async def dismiss_popups(page: Any, close_selectors: tuple[str, ...]) -> bool:
    """Click the first visible close button. Returns True if one was clicked."""
    for selector in close_selectors:
        try:
            button = await page.query_selector(selector)
            if button is None:
                continue
            await button.click()
            await random_sleep(0.5, 1.0)
            logger.debug("Dismissed popup via '%s'", selector)
            return True
        except Exception:
            logger.debug("Popup selector '%s' raised, trying next", selector, exc_info=True)
    return False
