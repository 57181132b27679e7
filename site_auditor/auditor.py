"""
SiteAuditor - pipeline facade.

crawl -> analyzer bank (per page) -> composite scores + recommendations
+ platform detection -> AuditResult.
"""

from __future__ import annotations

import time
from typing import Callable

import httpx
import structlog

from site_auditor.core.config import get_settings
from site_auditor.core.logging import ensure_logging
from site_auditor.engines.analyzers.bank import run_analyzers
from site_auditor.engines.base import AuditResult, CrawlConfig, CrawlResult, PageData, SiteAuditSummary
from site_auditor.engines.crawler.engine import Crawler
from site_auditor.engines.crawler.fetcher import PageFetcher, create_fetcher
from site_auditor.engines.platform.engine import detect_platform
from site_auditor.engines.prioritization.engine import generate_recommendations
from site_auditor.engines.scoring.engine import calculate_scores, summarize_site
from site_auditor.reports.generator import ReportGenerator

logger = structlog.get_logger(__name__)


class SiteAuditor:
    """Runs the full audit pipeline for a single URL or a whole site."""

    def __init__(
        self,
        config: CrawlConfig | None = None,
        fetcher_factory: Callable[[], PageFetcher] | None = None,
        http_client: httpx.AsyncClient | None = None,
        link_client: httpx.AsyncClient | None = None,
        check_links: bool | None = None,
    ):
        self.config = config or CrawlConfig.from_settings()
        self.fetcher_factory = fetcher_factory or (lambda: create_fetcher(get_settings().CRAWLER_RENDER_MODE))
        self.http_client = http_client
        self.link_client = link_client
        self.check_links = check_links
        self.reports = ReportGenerator()
        ensure_logging()

    def _crawler(self, url: str) -> Crawler:
        return Crawler(
            url,
            config=self.config,
            fetcher=self.fetcher_factory(),
            http_client=self.http_client,
        )

    async def analyze_page(self, page: PageData) -> AuditResult:
        """Score one already-fetched page."""
        start = time.perf_counter()
        results = await run_analyzers(page, link_client=self.link_client, check_links=self.check_links)

        result = AuditResult(
            url=page.url,
            platform=detect_platform(page),
            scores=calculate_scores(results),
            analyzers=tuple(results),
            issues=tuple(
                issue.model_copy(update={"url": page.url})
                for r in results
                for issue in r.issues
            ),
            recommendations=tuple(generate_recommendations(results)),
        )

        logger.info(
            "Page audited",
            url=page.url,
            overall=result.scores.overall,
            issues=len(result.issues),
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return result

    async def audit_url(self, url: str) -> AuditResult:
        """Audit a single page without crawling."""
        crawler = self._crawler(url)
        page = await crawler.crawl_single_page(url)
        return await self.analyze_page(page)

    async def _audit_crawl(self, url: str) -> tuple[list[AuditResult], CrawlResult]:
        crawl = await self._crawler(url).crawl()

        audits: list[AuditResult] = []
        for page in crawl.pages:
            try:
                audits.append(await self.analyze_page(page))
            except Exception as e:
                logger.error("Page analysis failed", url=page.url, error=str(e), exc_info=True)

        logger.info("Site audit complete", url=crawl.url, pages=len(crawl.pages), audited=len(audits))
        return audits, crawl

    async def audit_site(self, url: str) -> list[AuditResult]:
        """Crawl a site and audit every collected page."""
        audits, _ = await self._audit_crawl(url)
        return audits

    async def audit_site_with_summary(self, url: str) -> tuple[list[AuditResult], SiteAuditSummary]:
        audits, crawl = await self._audit_crawl(url)
        return audits, summarize_site(audits, crawl)

    def generate_report(self, result: AuditResult, fmt: str = "json") -> str:
        return self.reports.report(result, fmt)

    def generate_summary(self, result: AuditResult) -> str:
        return self.reports.generate_summary(result)
