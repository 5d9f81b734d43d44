"""Cross-source deduplication of raw job postings."""

import logging
from difflib import SequenceMatcher

from src.core.schemas import RawJob
from src.pipeline.normalize import comparison_key

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 0.9


def title_similarity(a: str, b: str) -> float:
    """Similarity ratio in [0, 1] of two already-normalized titles."""
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    return SequenceMatcher(None, a, b).ratio()


def deduplicate(
    jobs: list[RawJob],
    threshold: float = DEFAULT_THRESHOLD,
) -> tuple[list[RawJob], int]:
    """Collapse postings that describe the same job.

    Two postings are duplicates when they share ``(source, external_id)``, or
    their normalized title, company and location are equal, or company and
    location are equal and the titles are at least ``threshold`` similar.

    The first posting seen is kept; a later duplicate replaces it only when it
    adds a salary the kept one lacks or carries a longer description. Output
    preserves first-seen order.

    Returns:
        (unique jobs, number of postings removed)
    """
    kept: list[RawJob] = []
    keys: list[tuple[str, str, str]] = []
    by_external_id: dict[tuple[str, str], int] = {}

    for job in jobs:
        key = (comparison_key(job.title), comparison_key(job.company), comparison_key(job.location))
        index = _find_match(job, key, keys, by_external_id, threshold)

        if index is None:
            index = len(kept)
            kept.append(job)
            keys.append(key)
        elif _is_richer(job, kept[index]):
            kept[index] = job

        if job.external_id:
            by_external_id.setdefault((job.source, job.external_id), index)

    removed = len(jobs) - len(kept)
    if removed:
        logger.debug("Deduplicated %d postings (%d unique)", removed, len(kept))
    return kept, removed


def _find_match(
    job: RawJob,
    key: tuple[str, str, str],
    keys: list[tuple[str, str, str]],
    by_external_id: dict[tuple[str, str], int],
    threshold: float,
) -> int | None:
    if job.external_id:
        index = by_external_id.get((job.source, job.external_id))
        if index is not None:
            return index

    title, company, location = key
    fuzzy: int | None = None
    for i, (other_title, other_company, other_location) in enumerate(keys):
        if company != other_company or location != other_location:
            continue
        if title == other_title:
            return i
        if fuzzy is None and title_similarity(title, other_title) >= threshold:
            fuzzy = i
    return fuzzy


def _is_richer(candidate: RawJob, current: RawJob) -> bool:
    if (candidate.salary is None) != (current.salary is None):
        return candidate.salary is not None
    return len(candidate.description) > len(current.description)
