"""Source adapter registry with lazy loading.

Usage:
    from src.platforms.registry import create_adapter

    adapter = create_adapter("indeed", settings)
    result = await adapter.scrape(config)
    await adapter.close()

Adapter modules are imported only when their source is first requested, so a
deployment without a browser never imports patchright.
"""

import importlib
import logging

from src.core.config import Settings
from src.platforms.base import ScraperAdapter

logger = logging.getLogger(__name__)

# Lazy registry: source -> variant -> (module_path, factory_name).
# The first variant listed is the default.
_REGISTRY: dict[str, dict[str, tuple[str, str]]] = {
    "google_jobs": {
        "serpapi": ("src.platforms.serpapi.adapter", "create_google_jobs_adapter"),
    },
    "linkedin": {
        "serpapi": ("src.platforms.serpapi.adapter", "create_linkedin_adapter"),
    },
    "indeed": {
        "browser": ("src.platforms.indeed.adapter", "create_adapter"),
    },
}


class AdapterUnavailable(ValueError):
    """The source has no usable adapter (unknown, disabled, or bad variant)."""


def create_adapter(source: str, settings: Settings) -> ScraperAdapter:
    """Instantiate the configured adapter for ``source``.

    Raises:
        AdapterUnavailable: unknown source, disabled source, or unknown variant.
    """
    variants = _REGISTRY.get(source)
    if variants is None:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"No adapter registered for source '{source}'. Available: {valid}"
        raise AdapterUnavailable(msg)
    if not settings.source_enabled(source):
        msg = f"Source '{source}' is disabled in configuration"
        raise AdapterUnavailable(msg)

    source_config = settings.sources.get(source)
    variant = (source_config.adapter if source_config else None) or next(iter(variants))
    if variant not in variants:
        valid = ", ".join(sorted(variants))
        msg = f"Unknown adapter '{variant}' for source '{source}'. Available: {valid}"
        raise AdapterUnavailable(msg)

    module_path, factory_name = variants[variant]
    module = importlib.import_module(module_path)
    factory = getattr(module, factory_name)
    logger.debug("Created %s adapter for %s", variant, source)
    return factory(settings)  # type: ignore[no-any-return]


def available_sources() -> list[str]:
    """Return sorted list of sources with at least one adapter."""
    return sorted(_REGISTRY)


def available_adapters(source: str) -> list[str]:
    return list(_REGISTRY.get(source, {}))
