"""Tests for browser actions: sleeping, scrolling, selector helpers and popups."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from src.browser.actions import (
    SCROLL_DELAY_FLOOR,
    count_cards,
    dismiss_popups,
    find_all,
    random_sleep,
    scroll_until_stable,
    wait_for_any,
)

# Generic selector, independent of any platform module
_TEST_SELECTORS: tuple[str, ...] = ("li.test-card",)

# ---------------------------------------------------------------------------
# TestRandomSleep
# ---------------------------------------------------------------------------


class TestRandomSleep:
    """random_sleep: floor enforcement, range, actual sleeping."""

    async def test_returns_duration_in_range(self) -> None:
        with patch.object(asyncio, "sleep", new_callable=AsyncMock):
            duration = await random_sleep(0.0, 0.01)
        assert 0.0 <= duration <= 0.01

    async def test_floor_enforcement(self) -> None:
        with patch.object(asyncio, "sleep", new_callable=AsyncMock):
            for _ in range(20):
                duration = await random_sleep(1.0, 2.0)
                assert duration >= 1.0

    async def test_max_below_min_is_clamped(self) -> None:
        """If max_s < min_s, max_s is raised to min_s."""
        with patch.object(asyncio, "sleep", new_callable=AsyncMock):
            duration = await random_sleep(5.0, 2.0)
        assert duration == 5.0

    async def test_actually_calls_asyncio_sleep(self) -> None:
        with patch.object(asyncio, "sleep", new_callable=AsyncMock) as mock_sleep:
            await random_sleep(0.1, 0.2)
        mock_sleep.assert_called_once()
        slept = mock_sleep.call_args[0][0]
        assert 0.1 <= slept <= 0.2

    async def test_negative_min_clamped_to_zero(self) -> None:
        with patch.object(asyncio, "sleep", new_callable=AsyncMock):
            duration = await random_sleep(-1.0, 0.5)
        assert duration >= 0.0


# ---------------------------------------------------------------------------
# TestScrollUntilStable
# ---------------------------------------------------------------------------


def _make_page_mock(card_counts: list[int]) -> AsyncMock:
    """Create a mock page that returns different card counts per call.

    Each call to query_selector_all returns a list of the given length.
    The scroll evaluate call is a no-op.
    """
    page = AsyncMock()
    call_idx = 0

    async def _query_selector_all(selector: str) -> list[object]:
        nonlocal call_idx
        if call_idx < len(card_counts):
            count = card_counts[call_idx]
            call_idx += 1
            return [object() for _ in range(count)]
        return [object() for _ in range(card_counts[-1])] if card_counts else []

    page.query_selector_all = AsyncMock(side_effect=_query_selector_all)
    page.evaluate = AsyncMock(return_value=None)
    return page


class TestScrollUntilStable:
    """scroll_until_stable: termination, card counting, max attempts."""

    @pytest.fixture(autouse=True)
    def _patch_sleep(self) -> "pytest.Generator[None]":  # type: ignore[type-arg]
        """Patch asyncio.sleep to avoid real delays in tests."""
        with patch.object(asyncio, "sleep", new_callable=AsyncMock):
            yield

    async def test_stable_after_initial_count(self) -> None:
        page = _make_page_mock([15, 15])
        count = await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=5)
        assert count == 15

    async def test_cards_grow_then_stabilize(self) -> None:
        """Cards load incrementally: 10 → 15 → 15 → stop."""
        page = _make_page_mock([10, 15, 15])
        count = await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=5)
        assert count == 15

    async def test_zero_cards_stops(self) -> None:
        page = _make_page_mock([0, 0])
        count = await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=5)
        assert count == 0

    async def test_max_attempts_respected(self) -> None:
        page = _make_page_mock([5, 10, 15, 20, 25])
        count = await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=3)
        assert count == 15
        assert page.evaluate.call_count == 3

    async def test_scrolls_by_viewport_fraction(self) -> None:
        page = _make_page_mock([10, 20, 20])
        await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=5)
        assert page.evaluate.call_count >= 2
        assert "innerHeight * 0.8" in page.evaluate.call_args[0][0]

    async def test_scroll_delay_floor_enforced(self) -> None:
        page = _make_page_mock([10, 20, 20])

        with patch("src.browser.actions.random_sleep", new_callable=AsyncMock) as mock_rs:
            mock_rs.return_value = SCROLL_DELAY_FLOOR
            await scroll_until_stable(
                page, card_selectors=_TEST_SELECTORS,
                max_attempts=5, scroll_delay_min=0.1, scroll_delay_max=0.2,
            )
            for call in mock_rs.call_args_list:
                min_arg = call[0][0]
                assert min_arg >= SCROLL_DELAY_FLOOR

    async def test_single_attempt(self) -> None:
        page = _make_page_mock([10])
        count = await scroll_until_stable(page, card_selectors=_TEST_SELECTORS, max_attempts=1)
        assert count == 10


# ---------------------------------------------------------------------------
# TestSelectorHelpers
# ---------------------------------------------------------------------------


def _page_with(matches: dict[str, int]) -> AsyncMock:
    """Page whose query_selector_all returns len-N lists for known selectors."""
    page = AsyncMock()

    async def _qsa(selector: str) -> list[object]:
        return [object() for _ in range(matches.get(selector, 0))]

    page.query_selector_all = AsyncMock(side_effect=_qsa)
    return page


class TestSelectorHelpers:
    """count_cards / find_all use the first selector that matches anything."""

    async def test_count_uses_first_matching_selector(self) -> None:
        page = _page_with({".b": 3, ".c": 7})
        assert await count_cards(page, (".a", ".b", ".c")) == 3

    async def test_count_none_match(self) -> None:
        page = _page_with({})
        assert await count_cards(page, (".a", ".b")) == 0

    async def test_find_all_returns_elements(self) -> None:
        page = _page_with({".card": 4})
        elements = await find_all(page, (".missing", ".card"))
        assert len(elements) == 4

    async def test_find_all_empty(self) -> None:
        page = _page_with({})
        assert await find_all(page, (".a",)) == []


class TestWaitForAny:
    async def test_returns_first_selector_that_appears(self) -> None:
        page = AsyncMock()

        async def _wait(selector: str, timeout: int) -> object:
            if selector == ".first":
                raise TimeoutError("not found")
            return object()

        page.wait_for_selector = AsyncMock(side_effect=_wait)
        assert await wait_for_any(page, (".first", ".second")) == ".second"

    async def test_none_when_nothing_appears(self) -> None:
        page = AsyncMock()
        page.wait_for_selector = AsyncMock(side_effect=TimeoutError("nope"))
        assert await wait_for_any(page, (".a", ".b"), timeout_ms=10) is None

    async def test_passes_timeout(self) -> None:
        page = AsyncMock()
        page.wait_for_selector = AsyncMock(return_value=object())
        await wait_for_any(page, (".a",), timeout_ms=1234)
        page.wait_for_selector.assert_awaited_once_with(".a", timeout=1234)


class TestDismissPopups:
    @pytest.fixture(autouse=True)
    def _patch_sleep(self) -> "pytest.Generator[None]":  # type: ignore[type-arg]
        with patch.object(asyncio, "sleep", new_callable=AsyncMock):
            yield

    async def test_clicks_first_present_button(self) -> None:
        button = AsyncMock()
        page = AsyncMock()
        page.query_selector = AsyncMock(side_effect=[None, button])

        assert await dismiss_popups(page, (".x", ".close")) is True
        button.click.assert_awaited_once()

    async def test_no_popup(self) -> None:
        page = AsyncMock()
        page.query_selector = AsyncMock(return_value=None)
        assert await dismiss_popups(page, (".x", ".y")) is False

    async def test_click_failure_tries_next(self) -> None:
        broken = AsyncMock()
        broken.click = AsyncMock(side_effect=RuntimeError("detached"))
        working = AsyncMock()
        page = AsyncMock()
        page.query_selector = AsyncMock(side_effect=[broken, working])

        assert await dismiss_popups(page, (".a", ".b")) is True
        working.click.assert_awaited_once()
