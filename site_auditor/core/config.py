"""
Configuration system with environment-based settings.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_VERSION: str = "1.0.0"
    ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False

    # Crawler defaults (overridable per crawl via CrawlConfig)
    CRAWLER_MAX_PAGES: int = Field(default=100, ge=1)
    CRAWLER_MAX_DEPTH: int = Field(default=3, ge=0)
    CRAWLER_TIMEOUT_MS: int = Field(default=30_000, gt=0)
    CRAWLER_USER_AGENT: str = "SiteAuditor SEO Crawler/1.0"
    CRAWLER_RESPECT_ROBOTS_TXT: bool = True
    CRAWLER_INCLUDE_SITEMAP: bool = True
    CRAWLER_FOLLOW_EXTERNAL_LINKS: bool = False
    CRAWLER_CONCURRENCY: int = Field(default=1, ge=1)
    CRAWLER_RATE_LIMIT_RPS: float = Field(default=5.0, gt=0)
    CRAWLER_RENDER_MODE: Literal["http", "browser", "auto"] = "http"
    CRAWLER_VIEWPORT_WIDTH: int = 1920
    CRAWLER_VIEWPORT_HEIGHT: int = 1080
    CRAWLER_MAX_DURATION_SECONDS: float | None = None

    # Robots / sitemap fetches (seconds)
    ROBOTS_FETCH_TIMEOUT: float = 10.0
    SITEMAP_FETCH_TIMEOUT: float = 15.0

    # Outbound link liveness probe
    LINK_CHECK_ENABLED: bool = True
    LINK_CHECK_TIMEOUT: float = 5.0
    LINK_CHECK_MAX_LINKS: int = 20

    # Recommendations
    INFO_RECOMMENDATION_LIMIT: int = 10

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    @field_validator("CRAWLER_MAX_DURATION_SECONDS", mode="before")
    @classmethod
    def parse_duration(cls, v: object) -> object:
        if v in ("", "none", "None"):
            return None
        return v


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance - created once per process."""
    return Settings()
