"""Error codes and the scraper exception raised inside adapters.

Adapters raise ScraperError internally; at their boundary it is converted into
a ScraperErrorInfo entry so one failing source never aborts an aggregation.
"""

from enum import Enum


class ErrorCode(str, Enum):
    SCRAPER_FAILED = "SCRAPER_FAILED"
    SCRAPER_TIMEOUT = "SCRAPER_TIMEOUT"
    SCRAPER_RATE_LIMITED = "SCRAPER_RATE_LIMITED"
    SCRAPER_INVALID_CONFIG = "SCRAPER_INVALID_CONFIG"
    SCRAPER_NETWORK_ERROR = "SCRAPER_NETWORK_ERROR"
    SCRAPER_PARSE_ERROR = "SCRAPER_PARSE_ERROR"

    VALIDATION_FAILED = "VALIDATION_FAILED"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class ScraperError(Exception):
    """Raised by an adapter when a source cannot deliver results."""

    def __init__(
        self,
        source: str,
        message: str,
        code: ErrorCode = ErrorCode.SCRAPER_FAILED,
        *,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.message = message
        self.code = code
        self.retryable = retryable


def classify_error(error: BaseException) -> ErrorCode:
    """Map an arbitrary exception raised while scraping to an ErrorCode."""
    if isinstance(error, ScraperError):
        return error.code
    text = str(error).lower()
    if "timeout" in text or isinstance(error, TimeoutError):
        return ErrorCode.SCRAPER_TIMEOUT
    if "net::" in text or isinstance(error, ConnectionError):
        return ErrorCode.SCRAPER_NETWORK_ERROR
    if "blocked" in text or "captcha" in text:
        return ErrorCode.SCRAPER_RATE_LIMITED
    return ErrorCode.SCRAPER_FAILED
