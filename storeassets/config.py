"""
Configuration management for the store asset extractor.

This module uses pydantic-settings to manage all configuration aspects including:
- Proxy endpoints used to fetch listing pages and images
- Acceptance thresholds for fetched responses
- Parser limits and heuristic scoring weights
- Compositor layout parameters
- Logging and metrics

Configuration is loaded from environment variables or a .env file.
"""
from enum import Enum
from pathlib import Path
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from storeassets import DEFAULT_OUTPUT_DIR


class LogLevel(str, Enum):
    """Log levels supported by the application."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ProxyEndpoint(BaseModel):
    """
    A URL-rewriting endpoint that a target URL is routed through.

    The template may reference ``{url}`` (percent-encoded target),
    ``{raw_url}`` (the target as-is) and ``{timestamp}`` (milliseconds,
    used as a cache buster).
    """
    name: str
    template: str
    # Only used for the original (non-normalized) URL variant
    fallback_only: bool = False

    @field_validator("template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """Templates must place the target URL somewhere."""
        if "{url}" not in v and "{raw_url}" not in v:
            raise ValueError("Proxy template must contain {url} or {raw_url}")
        return v


def _default_html_proxies() -> List[ProxyEndpoint]:
    return [
        ProxyEndpoint(name="corsproxy", template="https://corsproxy.io/?{url}"),
        ProxyEndpoint(
            name="allorigins",
            template="https://api.allorigins.win/raw?url={url}&timestamp={timestamp}",
        ),
        ProxyEndpoint(name="codetabs", template="https://api.codetabs.com/v1/proxy?quest={url}"),
        ProxyEndpoint(name="direct", template="{raw_url}"),
    ]


def _default_image_endpoints() -> List[ProxyEndpoint]:
    return [
        ProxyEndpoint(name="wsrv", template="https://wsrv.nl/?url={url}&output=png&t={timestamp}"),
        ProxyEndpoint(name="corsproxy", template="https://corsproxy.io/?{url}"),
        ProxyEndpoint(name="codetabs", template="https://api.codetabs.com/v1/proxy?quest={url}"),
        ProxyEndpoint(
            name="allorigins",
            template="https://api.allorigins.win/raw?url={url}",
            fallback_only=True,
        ),
        ProxyEndpoint(name="direct", template="{raw_url}", fallback_only=True),
    ]


class FetcherConfig(BaseModel):
    """Configuration for the resource fetcher."""
    timeout_seconds: float = 20.0
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/119.0.0.0 Safari/537.36"
    )
    html_proxies: List[ProxyEndpoint] = Field(default_factory=_default_html_proxies)
    image_endpoints: List[ProxyEndpoint] = Field(default_factory=_default_image_endpoints)

    # Empirically tuned acceptance floors; calibrate against real listing pages.
    min_image_bytes: int = 100
    """Image bodies smaller than this are treated as error pages or tracking pixels."""

    min_html_chars: int = 2000
    """Pages at or below this length are usually proxy error stubs or bot walls."""

    @field_validator("html_proxies", "image_endpoints")
    @classmethod
    def validate_unique_names(cls, endpoints: List[ProxyEndpoint]) -> List[ProxyEndpoint]:
        """Endpoint names identify transforms, so they must be unique."""
        names = [endpoint.name for endpoint in endpoints]
        if len(names) != len(set(names)):
            raise ValueError("Proxy endpoint names must be unique")
        return endpoints


class ScoringWeights(BaseModel):
    """Weights for the icon vacuum heuristic."""
    icon_hint: int = 10
    logo_hint: int = 5
    square_shape: int = 5
    square_min_width: int = 50
    screenshot_hint: int = -20
    avatar_hint: int = -5
    star_hint: int = -5


class ParserConfig(BaseModel):
    """Configuration for the listing parser."""
    max_screenshots: int = 5
    min_screenshots: int = 3
    """Below this many screenshots the generic and vacuum tiers are tried."""
    scoring: ScoringWeights = Field(default_factory=ScoringWeights)

    @model_validator(mode="after")
    def _sanity_checks(self) -> "ParserConfig":
        if self.max_screenshots <= 0:
            raise ValueError("max_screenshots must be positive")
        if self.min_screenshots < 0:
            raise ValueError("min_screenshots must not be negative")
        return self


class CompositorConfig(BaseModel):
    """Configuration for the image compositor."""
    icon_min_size: int = 50
    screenshot_min_size: int = 200
    background_color: str = "#0f172a"
    backdrop_blur: float = 40.0
    backdrop_brightness: float = 0.5
    backdrop_bleed: int = 20  # px added on each side of the cover backdrop
    shadow_blur: float = 30.0
    shadow_offset_y: int = 10
    shadow_opacity: float = 0.5

    @field_validator("backdrop_brightness", "shadow_opacity")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Value must be between 0 and 1")
        return v


class MetricsConfig(BaseModel):
    """Configuration for metrics and logging."""
    prometheus_enabled: bool = False
    prometheus_port: int = 8000
    log_level: LogLevel = LogLevel.INFO
    structured_logging: bool = False


class Settings(BaseSettings):
    """Main settings class for the store asset extractor."""

    output_dir: Path = Field(default_factory=lambda: Path.cwd() / DEFAULT_OUTPUT_DIR)

    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    compositor: CompositorConfig = Field(default_factory=CompositorConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )


def load_settings() -> Settings:
    """Load settings from environment variables and .env file."""
    return Settings()
