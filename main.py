"""CLI entry point for the job-search aggregator."""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any

from src.core.config import Settings
from src.core.schemas import JOB_SOURCES, JOB_TYPES, SearchJobsSuccess
from src.pipeline.orchestrator import SearchPipeline

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job search aggregator - search several job sources and rank the results",
    )
    parser.add_argument(
        "--config",
        default="config/settings.yaml",
        help="Path to settings YAML file (default: config/settings.yaml; built-in defaults if absent)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- search subcommand (default) ---
    search_parser = subparsers.add_parser("search", help="Run one search and print the JSON response")
    search_parser.add_argument("query", help="Job title or keywords to search for")
    search_parser.add_argument("--location", help="Location to search in")
    search_parser.add_argument(
        "--preferred-location",
        action="append",
        dest="preferred_locations",
        help="Preferred location for scoring (repeatable)",
    )
    search_parser.add_argument(
        "--source",
        action="append",
        dest="sources",
        choices=JOB_SOURCES,
        help="Source to query (repeatable; default from config)",
    )
    search_parser.add_argument(
        "--job-type",
        action="append",
        dest="job_types",
        choices=JOB_TYPES,
        help="Accepted job type (repeatable)",
    )
    search_parser.add_argument("--salary-min", type=float, help="Minimum wanted yearly salary")
    search_parser.add_argument("--salary-max", type=float, help="Maximum wanted yearly salary")
    search_parser.add_argument("--currency", help="Salary currency (e.g. USD)")
    search_parser.add_argument(
        "--keyword",
        action="append",
        dest="keywords",
        help="Title keyword used for scoring (repeatable; default: the query)",
    )
    search_parser.add_argument(
        "--exclude",
        action="append",
        dest="exclude_keywords",
        help="Drop jobs whose title contains this keyword (repeatable)",
    )
    search_parser.add_argument("--posted-within-days", type=float, help="Only jobs posted within N days")
    search_parser.add_argument("--max-results", type=int, help="Maximum jobs to return (1-100, default 25)")
    search_parser.add_argument("--timeout-ms", type=float, help="Fan-out deadline in milliseconds")

    # --- serve subcommand ---
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve_parser.add_argument("--host", help="Bind host (default from config)")
    serve_parser.add_argument("--port", type=int, help="Bind port (default from config)")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(2)
    return args


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str) -> Settings:
    """Settings from ``path``; built-in defaults when the default file is absent."""
    try:
        return Settings.from_yaml(path)
    except FileNotFoundError:
        if path != "config/settings.yaml":
            raise
        logger.info("No config/settings.yaml found - using built-in defaults")
        return Settings()


def build_payload(args: argparse.Namespace) -> dict[str, Any]:
    """Translate search flags into the JSON request body the API accepts."""
    payload: dict[str, Any] = {"query": args.query}
    optional = {
        "location": args.location,
        "preferredLocations": args.preferred_locations,
        "sources": args.sources,
        "jobTypes": args.job_types,
        "keywords": args.keywords,
        "excludeKeywords": args.exclude_keywords,
        "postedWithinDays": args.posted_within_days,
        "maxResults": args.max_results,
        "timeoutMs": args.timeout_ms,
    }
    payload.update({k: v for k, v in optional.items() if v is not None})

    salary = {"min": args.salary_min, "max": args.salary_max, "currency": args.currency}
    salary = {k: v for k, v in salary.items() if v is not None}
    if salary:
        payload["salary"] = salary
    return payload


async def run_search(settings: Settings, payload: dict[str, Any]) -> bool:
    """Run one search, print the response, return whether it succeeded."""
    pipeline = SearchPipeline(settings)
    try:
        response = await pipeline.search(payload)
    finally:
        await pipeline.aclose()

    print(json.dumps(response.to_json_dict(), indent=2))
    if isinstance(response, SearchJobsSuccess):
        meta = response.data.metadata
        print(
            f"\n{len(response.data.jobs)} jobs returned "
            f"({meta.total_jobs_found} found, {meta.duplicates_removed} duplicates removed) "
            f"from {', '.join(meta.successful_sources) or 'no sources'}",
            file=sys.stderr,
        )
        return True
    return False


def cmd_serve(settings: Settings, args: argparse.Namespace) -> None:
    import uvicorn

    from src.api.server import create_app

    host = args.host or settings.server.host
    port = args.port or settings.server.port
    uvicorn.run(create_app(settings=settings), host=host, port=port)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    if args.command == "serve":
        cmd_serve(settings, args)
    elif not asyncio.run(run_search(settings, build_payload(args))):
        sys.exit(1)


if __name__ == "__main__":
    main()
