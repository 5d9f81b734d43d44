"""Indeed URL builder and block detection.

Pure functions, zero browser dependency.
"""

import logging
import re
from urllib.parse import quote_plus, urlencode

from src.core.schemas import ScraperConfig

logger = logging.getLogger(__name__)

INDEED_BASE = "https://www.indeed.com"
SEARCH_URL = f"{INDEED_BASE}/jobs"
SEARCH_RADIUS_MILES = 25

JOB_TYPE_MAP: dict[str, str] = {
    "full-time": "fulltime",
    "part-time": "parttime",
    "contract": "contract",
    "temporary": "temporary",
    "internship": "internship",
}

# Indeed only accepts these "fromage" buckets.
_DAY_BUCKETS: tuple[int, ...] = (1, 3, 7, 14)
_MAX_DAYS = 30

BLOCK_INDICATORS: tuple[str, ...] = (
    "recaptcha",
    "captcha",
    "hcaptcha",
    "cf-challenge",
    "access denied",
    "security check",
    "prove you're human",
    "unusual traffic",
)

_JOB_KEY_RE = re.compile(r"jk=([^&]+)")


def build_url(config: ScraperConfig) -> str:
    """Build an Indeed search URL sorted by date within a 25-mile radius."""
    params: dict[str, str] = {
        "q": config.search_query,
        "l": config.location,
        "fromage": days_param(config.posted_within_days),
        "radius": str(SEARCH_RADIUS_MILES),
        "sort": "date",
    }
    if config.job_type:
        code = JOB_TYPE_MAP.get(config.job_type.lower())
        if code is None:
            logger.warning("Unknown job_type value '%s' - skipping", config.job_type)
        else:
            params["jt"] = code
    return f"{SEARCH_URL}?{urlencode(params, quote_via=quote_plus)}"


def days_param(days: float | None) -> str:
    """Round ``days`` up to the nearest Indeed bucket (default 30)."""
    if not days:
        return str(_MAX_DAYS)
    for bucket in _DAY_BUCKETS:
        if days <= bucket:
            return str(bucket)
    return str(_MAX_DAYS)


def is_blocked(content: str, url: str) -> bool:
    """True when the page is a captcha or anti-bot challenge."""
    if "captcha" in url or "security" in url:
        return True
    lowered = content.lower()
    return any(indicator in lowered for indicator in BLOCK_INDICATORS)


def absolute_url(href: str) -> str:
    if href.startswith("http"):
        return href
    return f"{INDEED_BASE}{href}"


def extract_job_key(url: str) -> str | None:
    match = _JOB_KEY_RE.search(url)
    return match.group(1) if match else None


def build_job_url(job_key: str) -> str:
    return f"{INDEED_BASE}/viewjob?jk={job_key}"
