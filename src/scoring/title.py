"""Title relevance scoring.

Combines three signals over the lower-cased job title:
  keyword matches (0.5), role synonyms (0.3) and seniority alignment (0.2).
"""

import logging

from src.core.schemas import RawJob
from src.scoring.base import ScoringCriteria, StrategyResult

logger = logging.getLogger(__name__)

KEYWORD_WEIGHT = 0.5
ROLE_WEIGHT = 0.3
SENIORITY_WEIGHT = 0.2

ROLE_SYNONYMS: dict[str, tuple[str, ...]] = {
    "engineer": ("developer", "programmer", "coder", "engineer"),
    "developer": ("engineer", "programmer", "coder", "developer"),
    "manager": ("lead", "director", "head", "manager", "supervisor"),
    "designer": ("ux", "ui", "design", "designer", "creative"),
    "analyst": ("analyst", "analytics", "data scientist"),
    "scientist": ("researcher", "scientist", "research engineer"),
    "architect": ("architect", "principal", "staff"),
    "consultant": ("consultant", "advisor", "specialist"),
}

# Checked in insertion order; the first level named in the text wins.
SENIORITY_LEVELS: dict[str, int] = {
    "intern": 1,
    "junior": 2,
    "mid": 3,
    "senior": 4,
    "staff": 5,
    "principal": 6,
    "lead": 5,
    "manager": 5,
    "director": 6,
    "vp": 7,
    "head": 6,
}


class TitleRelevanceStrategy:
    name = "title_relevance"

    def score(self, job: RawJob, criteria: ScoringCriteria) -> StrategyResult:
        title = job.title.lower().strip()
        keywords = [k for k in criteria.title_keywords if k.strip()]
        if not keywords:
            return StrategyResult(
                score=50,
                confidence=0.3,
                reasons=["No title keywords specified"],
                details={"job_title": title},
            )

        kw_score, kw_conf, kw_reasons, matched = _keyword_matches(title, keywords)
        role_score, role_conf, role_reasons, roles = _role_matches(title, keywords)
        sen_score, sen_conf, sen_reasons = _seniority_alignment(title, keywords)

        combined = kw_score * KEYWORD_WEIGHT + role_score * ROLE_WEIGHT + sen_score * SENIORITY_WEIGHT
        confidence = kw_conf * KEYWORD_WEIGHT + role_conf * ROLE_WEIGHT + sen_conf * SENIORITY_WEIGHT
        return StrategyResult(
            score=min(100.0, combined),
            confidence=confidence,
            reasons=kw_reasons + role_reasons + sen_reasons,
            details={
                "job_title": title,
                "keyword_score": kw_score,
                "role_score": role_score,
                "seniority_score": sen_score,
                "matched_keywords": matched,
                "matched_roles": roles,
            },
        )


def _keyword_matches(
    title: str, keywords: list[str]
) -> tuple[float, float, list[str], list[str]]:
    matched: list[str] = []
    reasons: list[str] = []
    exact = partial = 0

    for keyword in keywords:
        kw = keyword.lower().strip()
        if title == kw:
            exact += 1
            reasons.append(f'Exact title match: "{keyword}"')
        elif kw in title:
            exact += 1
            reasons.append(f'Contains keyword: "{keyword}"')
        elif _word_overlap(title, kw) >= 0.7:
            partial += 1
            reasons.append(f'Similar to keyword: "{keyword}"')
        else:
            continue
        matched.append(keyword)

    score = min(100.0, (exact * 100 + partial * 60) / len(keywords))
    rate = len(matched) / len(keywords)
    confidence = 1.0 if rate > 0.7 else 0.8 if rate > 0.4 else 0.5
    if not matched:
        reasons.append("No keyword matches found")
    return score, confidence, reasons, matched


def _role_matches(
    title: str, keywords: list[str]
) -> tuple[float, float, list[str], list[str]]:
    matched: list[str] = []
    reasons: list[str] = []
    for keyword in keywords:
        kw = keyword.lower()
        for role, synonyms in ROLE_SYNONYMS.items():
            if any(s in kw for s in synonyms) and any(s in title for s in synonyms):
                matched.append(role)
                reasons.append(f'Role match: {role} (synonym of "{keyword}")')
                break
    if matched:
        return 80.0, 0.85, reasons, matched
    return 30.0, 0.6, reasons, matched


def _seniority_alignment(title: str, keywords: list[str]) -> tuple[float, float, list[str]]:
    job_level = extract_seniority(title)
    wanted_level = extract_seniority(" ".join(keywords))

    if job_level is None and wanted_level is None:
        return 50.0, 0.4, ["No seniority level detected"]
    if job_level is None or wanted_level is None:
        return 60.0, 0.5, ["Seniority level unclear"]

    job_name, job_rank = job_level
    wanted_name, wanted_rank = wanted_level
    gap = abs(job_rank - wanted_rank)
    if gap == 0:
        return 100.0, 0.9, [f"Exact seniority match: {job_name}"]
    if gap == 1:
        return 80.0, 0.9, [f"Close seniority: {job_name} vs {wanted_name}"]
    if gap == 2:
        return 50.0, 0.9, [f"Different seniority: {job_name} vs {wanted_name}"]
    return 30.0, 0.9, [f"Significant seniority gap: {job_name} vs {wanted_name}"]


def extract_seniority(text: str) -> tuple[str, int] | None:
    lowered = text.lower()
    for name, level in SENIORITY_LEVELS.items():
        if name in lowered:
            return name, level
    return None


def _word_overlap(a: str, b: str) -> float:
    """Dice coefficient over whitespace-separated words."""
    if a == b or a in b or b in a:
        return 1.0
    words_a = a.split()
    words_b = b.split()
    if not words_a and not words_b:
        return 0.0
    common = [w for w in words_a if w in words_b]
    return len(common) * 2 / (len(words_a) + len(words_b))
