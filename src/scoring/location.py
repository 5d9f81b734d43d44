"""Location scoring: how well a job's location matches the preferred ones."""

import logging
import re
from dataclasses import dataclass

from src.core.schemas import RawJob
from src.scoring.base import ScoringCriteria, StrategyResult

logger = logging.getLogger(__name__)

REMOTE_KEYWORDS = ("remote", "work from home", "wfh", "anywhere", "distributed", "virtual")

STATE_ABBREVIATIONS: dict[str, str] = {
    "california": "ca",
    "new york": "ny",
    "texas": "tx",
    "florida": "fl",
    "illinois": "il",
    "pennsylvania": "pa",
    "ohio": "oh",
    "georgia": "ga",
    "north carolina": "nc",
    "michigan": "mi",
    "massachusetts": "ma",
    "washington": "wa",
    "colorado": "co",
    "oregon": "or",
    "arizona": "az",
}

FUZZY_THRESHOLD = 0.8

_NON_WORD_RE = re.compile(r"[^\w\s]")
_WS_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class LocationMatch:
    kind: str
    score: float
    confidence: float


_REASONS: dict[str, str] = {
    "remote": "Remote position (preferred)",
    "same-city": "Same city as preferred location",
    "same-state": "Same state as preferred location",
    "same-country": "Same country as preferred location",
    "different": "Different location from preferences",
}


class LocationStrategy:
    name = "location"

    def score(self, job: RawJob, criteria: ScoringCriteria) -> StrategyResult:
        job_location = job.location.lower().strip()
        if not criteria.preferred_locations:
            return StrategyResult(
                score=50,
                confidence=0.3,
                reasons=["No location preferences specified"],
                details={"match_type": "unknown"},
            )

        matches = [self.match(job_location, p.lower().strip()) for p in criteria.preferred_locations]
        # max keeps the first of equally scored matches
        best = max(matches, key=lambda m: m.score)

        if best.kind == "exact":
            reasons = [f"Exact location match: {job_location}"]
        else:
            reasons = [_REASONS.get(best.kind, "Location match unclear")]
        if best.confidence < 0.7:
            reasons.append("Low confidence in location match")

        return StrategyResult(
            score=best.score,
            confidence=best.confidence,
            reasons=reasons,
            details={"match_type": best.kind, "job_location": job_location},
        )

    def match(self, job_location: str, preferred: str) -> LocationMatch:
        """Classify one (job, preferred) pair. Both inputs are lower-cased."""
        if is_remote(job_location):
            return LocationMatch("remote", 100, 1.0)
        if is_remote(preferred):
            # Remote wanted, on-site offered.
            return LocationMatch("different", 30, 0.6)
        if _clean(job_location) == _clean(preferred):
            return LocationMatch("exact", 100, 1.0)

        job_city, job_state, job_country = _split_location(job_location)
        pref_city, pref_state, pref_country = _split_location(preferred)

        if job_city and pref_city and fuzzy_match(job_city, pref_city):
            return LocationMatch("same-city", 95, 0.95)
        if job_state and pref_state and fuzzy_match(job_state, pref_state):
            return LocationMatch("same-state", 70, 0.8)
        if job_country and pref_country and fuzzy_match(job_country, pref_country):
            return LocationMatch("same-country", 40, 0.6)
        return LocationMatch("different", 20, 0.7)


def is_remote(location: str) -> bool:
    return any(keyword in location for keyword in REMOTE_KEYWORDS)


def fuzzy_match(a: str, b: str, threshold: float = FUZZY_THRESHOLD) -> bool:
    """Equal, either contains the other, or Levenshtein similarity >= threshold."""
    a, b = a.lower(), b.lower()
    if a == b or a in b or b in a:
        return True
    longest = max(len(a), len(b))
    return 1 - levenshtein(a, b) / longest >= threshold


def levenshtein(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            if ca == cb:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def _clean(location: str) -> str:
    return _WS_RE.sub(" ", _NON_WORD_RE.sub("", location)).strip()


def _split_location(location: str) -> tuple[str | None, str | None, str | None]:
    """(city, state, country) from "City, State, Country"; missing parts are None."""
    parts = [p.strip() for p in location.split(",")]
    city = parts[0] or None
    state = _normalize_state(parts[1]) if len(parts) > 1 else None
    country = (parts[2] or None) if len(parts) > 2 else None
    return city, state, country


def _normalize_state(state: str) -> str | None:
    normalized = state.lower().strip()
    if not normalized:
        return None
    return STATE_ABBREVIATIONS.get(normalized, normalized)
