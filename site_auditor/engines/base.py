"""
Base class and type contracts for the crawl and analysis pipeline.
Every analyzer MUST inherit from Analyzer and implement run().

Design principles:
- Analyzers are stateless: all state comes from the PageData they receive
- Analyzers are independent: no analyzer reads another analyzer's output
- Analyzers return a standardized AnalyzerResult
- Analyzers handle their own errors and never abort the rest of the bank
"""

from __future__ import annotations

import math
import time
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from site_auditor.core.config import get_settings

if TYPE_CHECKING:
    from site_auditor.engines.crawler.extractor import PageExtractor

logger = structlog.get_logger(__name__)

MAX_SCORE = 100
ELEMENT_MAX_LENGTH = 200


# ─────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────

class Severity(str, Enum):
    CRITICAL = "critical"   # Blocking issue - fix immediately
    WARNING = "warning"     # Significant impact - fix soon
    INFO = "info"           # Improvement opportunity
    SUCCESS = "success"     # Passed check, informational only


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ResourceKind(str, Enum):
    SCRIPT = "script"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    FONT = "font"
    OTHER = "other"


# ─────────────────────────────────────────────
# Crawl data types
# ─────────────────────────────────────────────

class ResourceData(BaseModel):
    """A sub-resource loaded by a page."""
    model_config = ConfigDict(frozen=True)

    url: str
    kind: ResourceKind = ResourceKind.OTHER
    size_bytes: int = 0
    load_time_ms: float = 0.0


class PageData(BaseModel):
    """Raw page data produced by a fetcher. Never mutated downstream."""
    model_config = ConfigDict(frozen=True)

    url: str
    html: str = ""
    status_code: int = 200
    headers: dict[str, str] = Field(default_factory=dict)
    load_time_ms: float = 0.0
    resources: tuple[ResourceData, ...] = ()
    depth: int = 0

    @field_validator("headers", mode="before")
    @classmethod
    def lowercase_headers(cls, v: Any) -> dict[str, str]:
        if v is None:
            return {}
        return {str(k).lower(): str(val) for k, val in dict(v).items()}

    def header(self, name: str, default: str = "") -> str:
        """Case-insensitive header lookup."""
        return self.headers.get(name.lower(), default)


class RobotsTxtData(BaseModel):
    """Parsed robots.txt. Built once per crawl; read-only thereafter."""
    model_config = ConfigDict(frozen=True)

    exists: bool = False
    raw_content: str | None = None
    allowed_paths: frozenset[str] = frozenset()
    disallowed_paths: frozenset[str] = frozenset()
    sitemap_urls: frozenset[str] = frozenset()


class SitemapUrlEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    last_modified: str | None = None
    priority: float | None = None
    change_frequency: str | None = None


class SitemapData(BaseModel):
    model_config = ConfigDict(frozen=True)

    exists: bool = False
    urls: tuple[SitemapUrlEntry, ...] = ()


class SitemapValidation(BaseModel):
    is_valid: bool
    issues: list[str] = Field(default_factory=list)


class CrawlConfig(BaseModel):
    """
    Crawl configuration record.
    Validation happens on construction, so bad values fail before any fetch.
    """
    max_pages: int = Field(default=100, ge=1)
    max_depth: int = Field(default=3, ge=0)
    timeout_ms: int = Field(default=30_000, gt=0)
    user_agent: str = "SiteAuditor SEO Crawler/1.0"
    respect_robots_txt: bool = True
    include_sitemap: bool = True
    follow_external_links: bool = False
    concurrency: int = Field(default=1, ge=1)
    viewport_width: int = Field(default=1920, gt=0)
    viewport_height: int = Field(default=1080, gt=0)
    max_duration_seconds: float | None = Field(default=None, gt=0)
    wait_for_selector: str | None = None    # browser rendering only

    @classmethod
    def from_settings(cls, **overrides: Any) -> CrawlConfig:
        """Build a config from process settings, applying explicit overrides."""
        settings = get_settings()
        values: dict[str, Any] = {
            "max_pages": settings.CRAWLER_MAX_PAGES,
            "max_depth": settings.CRAWLER_MAX_DEPTH,
            "timeout_ms": settings.CRAWLER_TIMEOUT_MS,
            "user_agent": settings.CRAWLER_USER_AGENT,
            "respect_robots_txt": settings.CRAWLER_RESPECT_ROBOTS_TXT,
            "include_sitemap": settings.CRAWLER_INCLUDE_SITEMAP,
            "follow_external_links": settings.CRAWLER_FOLLOW_EXTERNAL_LINKS,
            "concurrency": settings.CRAWLER_CONCURRENCY,
            "viewport_width": settings.CRAWLER_VIEWPORT_WIDTH,
            "viewport_height": settings.CRAWLER_VIEWPORT_HEIGHT,
            "max_duration_seconds": settings.CRAWLER_MAX_DURATION_SECONDS,
        }
        values.update(overrides)
        return cls(**values)


class CrawlStats(BaseModel):
    """Crawl statistics."""
    total_queued: int = 0
    total_crawled: int = 0
    total_failed: int = 0
    total_skipped: int = 0
    elapsed_seconds: float = 0.0
    duplicate_content_urls: list[str] = Field(default_factory=list)


class CrawlResult(BaseModel):
    url: str
    pages: list[PageData] = Field(default_factory=list)
    robots_txt: RobotsTxtData | None = None
    sitemap: SitemapData | None = None
    start_time: datetime
    end_time: datetime
    visited_urls: list[str] = Field(default_factory=list)
    stats: CrawlStats = Field(default_factory=CrawlStats)


# ─────────────────────────────────────────────
# Analysis data types
# ─────────────────────────────────────────────

class Issue(BaseModel):
    """A single finding raised by an analyzer."""
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    severity: Severity
    element: str | None = None
    recommendation: str | None = None
    url: str | None = None

    @field_validator("element")
    @classmethod
    def truncate_element(cls, v: str | None) -> str | None:
        if v is not None and len(v) > ELEMENT_MAX_LENGTH:
            return v[: ELEMENT_MAX_LENGTH - 3] + "..."
        return v


class AnalyzerResult(BaseModel):
    """Standardized output from every analyzer."""
    model_config = ConfigDict(frozen=True)

    name: str
    score: int = Field(ge=0, le=MAX_SCORE)
    max_score: int = MAX_SCORE
    penalty: int = Field(default=0, ge=0)
    issues: tuple[Issue, ...] = ()
    data: dict[str, Any] = Field(default_factory=dict)


class Recommendation(BaseModel):
    """A prioritized fix recommendation derived from an issue."""
    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    priority: Priority
    category: str
    estimated_impact: str


class PlatformInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "unknown"   # shopify | wordpress | custom | unknown
    version: str | None = None
    theme: str | None = None
    plugins: tuple[str, ...] = ()
    seo_plugin: str | None = None


class Scores(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall: int = Field(ge=0, le=MAX_SCORE)
    technical: int = Field(ge=0, le=MAX_SCORE)
    content: int = Field(ge=0, le=MAX_SCORE)
    performance: int = Field(ge=0, le=MAX_SCORE)
    mobile: int = Field(ge=0, le=MAX_SCORE)


class AuditResult(BaseModel):
    """Terminal artifact of one page's pipeline run."""
    model_config = ConfigDict(frozen=True)

    url: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    platform: PlatformInfo = Field(default_factory=PlatformInfo)
    scores: Scores
    analyzers: tuple[AnalyzerResult, ...] = ()
    issues: tuple[Issue, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()


class SiteAuditSummary(BaseModel):
    """Site-level roll-up of many per-page audit results."""
    url: str
    pages_audited: int = 0
    average_scores: Scores
    issue_counts: dict[str, int] = Field(default_factory=dict)
    top_issue_codes: list[tuple[str, int]] = Field(default_factory=list)
    sitemap_validation: SitemapValidation | None = None


# ─────────────────────────────────────────────
# Score helpers
# ─────────────────────────────────────────────

def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (built-in round() is banker's rounding)."""
    return math.floor(value + 0.5)


def calculate_score(penalty: int, max_score: int = MAX_SCORE) -> int:
    """round(max(0, max_score - penalty) / max_score * 100), clamped to [0, 100]."""
    remaining = max(0, max_score - penalty)
    return max(0, min(MAX_SCORE, round_half_up(remaining / max_score * 100)))


class IssueCollector:
    """
    Per-call builder that folds check results into a penalty and issue list.
    Created fresh inside every run() so analyzers hold no state between pages.
    """

    def __init__(self, name: str):
        self.name = name
        self._issues: list[Issue] = []
        self._penalty = 0

    @property
    def penalty(self) -> int:
        return self._penalty

    def add(
        self,
        code: str,
        message: str,
        severity: Severity,
        penalty: int = 0,
        *,
        element: str | None = None,
        recommendation: str | None = None,
    ) -> None:
        self._issues.append(Issue(
            code=code,
            message=message,
            severity=severity,
            element=element,
            recommendation=recommendation,
        ))
        self._penalty += penalty

    def deduct(self, points: int) -> None:
        """Add penalty points not tied to a single issue (e.g. a capped group)."""
        self._penalty += points

    def build(self, data: dict[str, Any] | None = None) -> AnalyzerResult:
        return AnalyzerResult(
            name=self.name,
            score=calculate_score(self._penalty),
            penalty=self._penalty,
            issues=tuple(self._issues),
            data=data or {},
        )


# ─────────────────────────────────────────────
# Base Analyzer
# ─────────────────────────────────────────────

class Analyzer(ABC):
    """
    Abstract base class for all page analyzers.

    All analyzers MUST:
    1. Implement run(page, extracted) -> AnalyzerResult
    2. Be stateless - store nothing on self between calls
    3. Never mutate the PageData they receive
    """

    NAME: str = "base"

    def __init__(self):
        self.logger = structlog.get_logger(self.__class__.__name__)

    @abstractmethod
    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        """
        Score one page.

        Args:
            page: Fetched page data
            extracted: Parsed view over page.html

        Returns:
            AnalyzerResult with score, penalty and issues
        """
        ...

    async def analyze(self, page: PageData, extracted: PageExtractor | None = None) -> AnalyzerResult:
        """
        Wrapper around run() that adds timing, logging, and error handling.
        Call this instead of run() directly.
        """
        from site_auditor.engines.crawler.extractor import PageExtractor

        start = time.perf_counter()
        try:
            if extracted is None:
                extracted = PageExtractor(page.html, page.url)
            result = await self.run(page, extracted)
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.debug(
                "Analyzer complete",
                analyzer=self.NAME,
                url=page.url,
                score=result.score,
                issue_count=len(result.issues),
                elapsed_ms=round(elapsed, 2),
            )
            return result

        except Exception as exc:
            elapsed = (time.perf_counter() - start) * 1000
            self.logger.error(
                "Analyzer failed",
                analyzer=self.NAME,
                url=page.url,
                error=str(exc),
                elapsed_ms=round(elapsed, 2),
                exc_info=True,
            )
            return AnalyzerResult(
                name=self.NAME,
                score=0,
                penalty=MAX_SCORE,
                data={"error": str(exc)},
            )
