"""Configuration models and YAML loader for the job-search aggregator."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from src.core.schemas import JOB_SOURCES


class CacheConfig(BaseModel):
    """Search result cache sizing."""

    ttl_seconds: float = Field(default=300.0, gt=0.0)
    max_size: int = Field(default=100, ge=1)


class AnalyticsConfig(BaseModel):
    """Rolling analytics buffer."""

    max_metrics: int = Field(default=1000, ge=1)


class PipelineConfig(BaseModel):
    """Fan-out deadline, default sources and dedup tolerance."""

    default_timeout_ms: int = Field(default=90_000, ge=1)
    max_timeout_ms: int = Field(default=180_000, ge=1)
    default_sources: list[str] = Field(default_factory=lambda: ["google_jobs"])
    dedupe_threshold: float = Field(default=0.9, gt=0.0, le=1.0)

    @field_validator("default_sources")
    @classmethod
    def sources_known(cls, v: list[str]) -> list[str]:
        unknown = [s for s in v if s not in JOB_SOURCES]
        if unknown:
            msg = f"unknown default sources: {', '.join(unknown)}"
            raise ValueError(msg)
        if not v:
            msg = "at least one default source must be configured"
            raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def default_within_max(self) -> "PipelineConfig":
        if self.default_timeout_ms > self.max_timeout_ms:
            msg = "default_timeout_ms must not exceed max_timeout_ms"
            raise ValueError(msg)
        return self


class ScoringConfig(BaseModel):
    """Weights for the four scoring components. Must sum to 1.0."""

    location: float = Field(default=0.30, ge=0.0, le=1.0)
    title_relevance: float = Field(default=0.30, ge=0.0, le=1.0)
    salary: float = Field(default=0.20, ge=0.0, le=1.0)
    source_quality: float = Field(default=0.20, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "ScoringConfig":
        total = self.location + self.title_relevance + self.salary + self.source_quality
        if abs(total - 1.0) > 0.001:
            msg = f"scoring weights must sum to 1.0, got {total:.3f}"
            raise ValueError(msg)
        return self


class SourceConfig(BaseModel):
    """Per-source switch and the adapter variant that serves it."""

    enabled: bool = True
    adapter: str | None = None


class BrowserConfig(BaseModel):
    """Browser session configuration for browser-driven adapters."""

    cookies_path: str = "config/indeed_cookies.json"
    timeout_ms: int = Field(default=30000, ge=1000)
    headless: bool = True


class SerpApiConfig(BaseModel):
    """SerpAPI client settings. The key itself is read from the environment."""

    api_key_env: str = "SERPAPI_KEY"
    base_url: str = "https://serpapi.com/search.json"
    max_retries: int = Field(default=3, ge=1, le=10)
    timeout_s: float = Field(default=30.0, gt=0.0)


class ServerConfig(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(default=8000, ge=1, le=65535)


class Settings(BaseModel):
    """Top-level settings loaded from YAML."""

    cache: CacheConfig = Field(default_factory=CacheConfig)
    analytics: AnalyticsConfig = Field(default_factory=AnalyticsConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    sources: dict[str, SourceConfig] = Field(default_factory=dict)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    serpapi: SerpApiConfig = Field(default_factory=SerpApiConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    @field_validator("sources")
    @classmethod
    def source_names_known(cls, v: dict[str, SourceConfig]) -> dict[str, SourceConfig]:
        unknown = [name for name in v if name not in JOB_SOURCES]
        if unknown:
            msg = f"unknown sources in config: {', '.join(sorted(unknown))}"
            raise ValueError(msg)
        return v

    def source_enabled(self, name: str) -> bool:
        """Sources absent from the config are enabled by default."""
        config = self.sources.get(name)
        return config is None or config.enabled

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
