"""HTTP boundary: FastAPI app over a SearchPipeline.

Routes:
  POST   /api/search-jobs   run a search (200, 206 partial, 400, 500)
  GET    /api/search-jobs   usage document
  GET    /api/analytics     ?action=metrics|recent
  DELETE /api/analytics     clear analytics and cache
  GET    /health
"""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from src.core.config import Settings
from src.core.errors import ErrorCode
from src.core.schemas import SearchJobsResponse, SearchJobsSuccess, error_response
from src.pipeline.orchestrator import SearchPipeline

logger = logging.getLogger(__name__)

STATUS_PARTIAL = 206

USAGE_OPTIONAL_FIELDS = [
    "location",
    "preferredLocations",
    "sources",
    "jobTypes",
    "salary",
    "keywords",
    "excludeKeywords",
    "postedWithinDays",
    "maxResults",
    "timeoutMs",
]


def status_for(response: SearchJobsResponse) -> int:
    """Map a pipeline response to its HTTP status code."""
    if isinstance(response, SearchJobsSuccess):
        return STATUS_PARTIAL if response.data.metadata.partial_results else 200
    if response.error.code == ErrorCode.VALIDATION_FAILED.value:
        return 400
    return 500


def usage_document(settings: Settings) -> dict[str, Any]:
    return {
        "message": "POST /api/search-jobs - Search for jobs across multiple sources",
        "requiredFields": ["query"],
        "optionalFields": USAGE_OPTIONAL_FIELDS,
        "defaults": {
            "sources": settings.pipeline.default_sources,
            "maxResults": 25,
            "timeoutMs": settings.pipeline.default_timeout_ms,
        },
        "limits": {"maxTimeoutMs": settings.pipeline.max_timeout_ms},
        "example": {
            "query": "Software Engineer",
            "location": "San Francisco",
            "preferredLocations": ["San Francisco", "Remote"],
            "sources": ["linkedin", "indeed"],
            "jobTypes": ["full-time"],
            "salary": {"min": 80000, "max": 150000, "currency": "USD"},
            "keywords": ["typescript", "react", "node"],
            "maxResults": 25,
        },
    }


def create_app(pipeline: SearchPipeline | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the app. Cache and analytics live on the injected pipeline."""
    pipeline = pipeline or SearchPipeline(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.pipeline = pipeline
        try:
            yield
        finally:
            await pipeline.aclose()

    app = FastAPI(title="Job Search Aggregator", version="0.1.0", lifespan=lifespan)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/search-jobs")
    async def search_jobs(request: Request) -> JSONResponse:
        try:
            payload = json.loads(await request.body())
        except ValueError:
            response: SearchJobsResponse = error_response(
                ErrorCode.VALIDATION_FAILED, "Invalid JSON in request body",
            )
            return JSONResponse(response.to_json_dict(), status_code=400)

        response = await pipeline.search(payload)
        return JSONResponse(response.to_json_dict(), status_code=status_for(response))

    @app.get("/api/search-jobs")
    async def search_jobs_usage() -> dict[str, Any]:
        return usage_document(pipeline.settings)

    @app.get("/api/analytics")
    async def analytics(
        action: str | None = None,
        startTime: str | None = None,  # noqa: N803
        endTime: str | None = None,  # noqa: N803
        count: str | None = None,
    ) -> JSONResponse:
        if action == "metrics":
            try:
                start = _parse_time(startTime)
                end = _parse_time(endTime)
            except ValueError:
                return _bad_request("startTime and endTime must be ISO-8601 timestamps")
            metrics = pipeline.analytics.get_aggregated_metrics(start, end)
            return JSONResponse({
                "success": True,
                "data": {
                    "metrics": metrics.to_json_dict(),
                    "cache": {to_camel(k): v for k, v in pipeline.cache.get_stats().items()},
                },
            })

        if action == "recent":
            try:
                limit = int(count) if count is not None else 10
            except ValueError:
                return _bad_request("count must be an integer")
            searches = pipeline.analytics.get_recent_metrics(limit)
            return JSONResponse({
                "success": True,
                "data": {"searches": [m.to_json_dict() for m in searches]},
            })

        return _bad_request("Invalid action parameter")

    @app.delete("/api/analytics")
    async def clear_analytics() -> dict[str, Any]:
        pipeline.analytics.clear()
        pipeline.cache.clear()
        logger.info("Analytics and cache cleared")
        return {"success": True, "message": "Analytics and cache cleared"}

    return app


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=400)
