"""Indeed DOM parser: converts result-card elements into RawJob objects.

Every selector lookup uses a fallback tuple, and a missing optional field
yields "" rather than an exception. A card needs a title, a company and a job
key (``jk=`` in its link) to be kept.
"""

import logging
from typing import Protocol, runtime_checkable

from src.core.schemas import RawJob
from src.pipeline.normalize import (
    generate_job_id,
    normalize_company,
    normalize_location,
    normalize_salary,
    normalize_title,
    parse_posted_date,
    truncate_description,
)
from src.platforms.indeed.searcher import absolute_url, build_job_url, extract_job_key
from src.platforms.indeed.selectors import (
    COMPANY_SELECTORS,
    LINK_SELECTORS,
    LOCATION_SELECTORS,
    POSTED_DATE_SELECTORS,
    SALARY_SELECTORS,
    SNIPPET_SELECTORS,
    TITLE_SELECTORS,
)

logger = logging.getLogger(__name__)

SOURCE = "indeed"
DESCRIPTION_MAX_CHARS = 1000


@runtime_checkable
class ElementLike(Protocol):
    """Minimal element interface so tests can use AsyncMock instead of patchright."""

    async def query_selector(self, selector: str) -> "ElementLike | None": ...
    async def get_attribute(self, name: str) -> str | None: ...
    async def text_content(self) -> str | None: ...


class IndeedParser:
    """Parses Indeed search-result card elements into RawJob objects."""

    def __init__(self, job_type: str | None = None) -> None:
        # Indeed filters by type server-side (jt=), so every card carries it.
        self._job_type = job_type

    async def parse_cards(
        self, cards: list[ElementLike], limit: int | None = None
    ) -> tuple[list[RawJob], int]:
        """Parse cards in order, skipping any that fail, until ``limit`` jobs are parsed.

        Returns:
            (parsed jobs, number of cards skipped)
        """
        results: list[RawJob] = []
        skipped = 0
        for card in cards:
            try:
                job = await self.parse_card(card)
            except Exception:
                logger.debug("Failed to parse card, skipping", exc_info=True)
                job = None
            if job is None:
                skipped += 1
            else:
                results.append(job)
                if limit is not None and len(results) >= limit:
                    break
        return results, skipped

    async def parse_card(self, card: ElementLike) -> RawJob | None:
        """Parse a single card. Returns None when a required field is missing."""
        title = await self._parse_title(card)
        company = await self._parse_text_fallback(card, COMPANY_SELECTORS)
        url = await self._parse_url(card)
        job_key = extract_job_key(url) if url else None
        if not title or not company or not job_key:
            logger.debug("Card missing title/company/job key - skipping")
            return None

        location = await self._parse_text_fallback(card, LOCATION_SELECTORS)
        salary_text = await self._parse_text_fallback(card, SALARY_SELECTORS)
        snippet = await self._parse_text_fallback(card, SNIPPET_SELECTORS)
        posted = await self._parse_text_fallback(card, POSTED_DATE_SELECTORS)

        return RawJob(
            id=generate_job_id(SOURCE, url),
            title=normalize_title(title),
            company=normalize_company(company),
            location=normalize_location(location),
            salary=normalize_salary(salary_text),
            description=truncate_description(snippet or title, DESCRIPTION_MAX_CHARS),
            url=url,
            source=SOURCE,
            job_type=self._job_type,
            posted_date=parse_posted_date(posted),
            external_id=job_key,
        )

    async def parse_link(self, link: ElementLike) -> RawJob | None:
        """Link-only fallback: a ``viewjob`` anchor with a job key and its text."""
        href = await link.get_attribute("href")
        if not href:
            return None
        url = absolute_url(href)
        job_key = extract_job_key(url)
        if job_key is None:
            return None
        text = await link.text_content()
        title = text.strip() if text else ""
        return RawJob(
            id=generate_job_id(SOURCE, url),
            title=normalize_title(title),
            company="Unknown Company",
            location="Unknown Location",
            description=title,
            url=url,
            source=SOURCE,
            job_type=self._job_type,
            external_id=job_key,
        )

    # --- Private helpers ---

    async def _parse_title(self, card: ElementLike) -> str:
        """Title text, or the ``title`` attribute when the span is empty."""
        try:
            el = await self._find_first(card, TITLE_SELECTORS)
            if el is None:
                return ""
            text = await el.text_content()
            if text and text.strip():
                return text.strip()
            attr = await el.get_attribute("title")
            return attr.strip() if attr else ""
        except Exception:
            logger.debug("Error parsing title", exc_info=True)
            return ""

    async def _parse_url(self, card: ElementLike) -> str:
        try:
            link = await self._find_first(card, LINK_SELECTORS)
            if link is None:
                return ""
            href = await link.get_attribute("href")
            if not href:
                return ""
            url = absolute_url(href)
            job_key = extract_job_key(url)
            # Tracking redirects (/rc/clk, /pagead) still carry jk=; canonicalize.
            return build_job_url(job_key) if job_key else url
        except Exception:
            logger.debug("Error parsing URL", exc_info=True)
            return ""

    async def _parse_text_fallback(self, card: ElementLike, selectors: tuple[str, ...]) -> str:
        """Try selectors in order, return first non-empty text or ""."""
        try:
            el = await self._find_first(card, selectors)
            if el is None:
                return ""
            text = await el.text_content()
            return " ".join(text.split()) if text else ""
        except Exception:
            logger.debug("Error parsing text with fallback selectors", exc_info=True)
            return ""

    async def _find_first(
        self, parent: ElementLike, selectors: tuple[str, ...]
    ) -> ElementLike | None:
        """Return the first element matching any selector in order."""
        for selector in selectors:
            try:
                el = await parent.query_selector(selector)
                if el is not None:
                    return el
            except Exception:
                logger.debug("Selector '%s' raised, trying next", selector, exc_info=True)
        return None
