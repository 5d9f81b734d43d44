"""Minimal async SerpAPI client over httpx with retry and exponential backoff."""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from src.core.config import SerpApiConfig
from src.core.errors import ErrorCode, ScraperError

logger = logging.getLogger(__name__)

BACKOFF_BASE_S = 1.0
BACKOFF_MAX_S = 10.0
RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

SIGNUP_HINT = "Get your free API key at https://serpapi.com/users/sign_up"


class SerpApiClient:
    """Fetches SerpAPI JSON for one engine query.

    The API key is read from the environment variable named in the config,
    so it never lives in YAML. ``transport`` and ``sleep`` are injectable for
    tests.
    """

    def __init__(
        self,
        config: SerpApiConfig | None = None,
        *,
        api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config or SerpApiConfig()
        self._api_key = api_key if api_key is not None else os.environ.get(self._config.api_key_env, "")
        self._client = httpx.AsyncClient(timeout=self._config.timeout_s, transport=transport)
        self._sleep = sleep

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    async def search(self, source: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET the search endpoint, retrying transport errors and 429/5xx.

        Raises:
            ScraperError: missing key, exhausted retries, non-JSON body, or an
                ``error`` field in the payload.
        """
        if not self.configured:
            msg = f"{self._config.api_key_env} not configured. {SIGNUP_HINT}"
            raise ScraperError(source, msg, ErrorCode.SCRAPER_INVALID_CONFIG)

        query = {**params, "api_key": self._api_key}
        attempts = self._config.max_retries
        for attempt in range(attempts):
            try:
                response = await self._client.get(self._config.base_url, params=query)
            except httpx.TimeoutException as e:
                error: ScraperError = ScraperError(
                    source, f"SerpAPI request timed out: {e}", ErrorCode.SCRAPER_TIMEOUT, retryable=True,
                )
            except httpx.TransportError as e:
                error = ScraperError(
                    source, f"SerpAPI request failed: {e}", ErrorCode.SCRAPER_NETWORK_ERROR, retryable=True,
                )
            else:
                if response.status_code not in RETRYABLE_STATUS:
                    return _decode(source, response)
                code = (
                    ErrorCode.SCRAPER_RATE_LIMITED if response.status_code == 429 else ErrorCode.SCRAPER_FAILED
                )
                error = ScraperError(
                    source, f"SerpAPI returned HTTP {response.status_code}", code, retryable=True,
                )

            if attempt == attempts - 1:
                raise error
            delay = min(BACKOFF_BASE_S * 2**attempt, BACKOFF_MAX_S)
            logger.warning(
                "SerpAPI attempt %d/%d failed (%s) - retrying in %.0fs",
                attempt + 1, attempts, error.message, delay,
            )
            await self._sleep(delay)

        msg = "SerpAPI retries exhausted"
        raise ScraperError(source, msg)

    async def aclose(self) -> None:
        await self._client.aclose()


def _decode(source: str, response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as e:
        msg = f"SerpAPI returned a non-JSON body (HTTP {response.status_code})"
        raise ScraperError(source, msg, ErrorCode.SCRAPER_PARSE_ERROR) from e
    if not isinstance(payload, dict):
        msg = "SerpAPI returned an unexpected payload"
        raise ScraperError(source, msg, ErrorCode.SCRAPER_PARSE_ERROR)
    if payload.get("error"):
        # "hasn't returned any results" is an empty result set, not a failure.
        if "hasn't returned any results" in str(payload["error"]):
            return {}
        msg = f"SerpAPI error: {payload['error']}"
        raise ScraperError(source, msg, ErrorCode.SCRAPER_FAILED, retryable=True)
    return payload
