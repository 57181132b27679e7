"""
Technical SEO analyzer.

Status code, load time bands, HTTPS, compression, caching headers, and
resource counts/weight from the fetched sub-resources.
"""

from __future__ import annotations

from collections import defaultdict

from site_auditor.engines.base import (
    Analyzer,
    AnalyzerResult,
    IssueCollector,
    PageData,
    ResourceKind,
    Severity,
)
from site_auditor.engines.crawler.extractor import PageExtractor

SLOW_MS = 5000
MODERATE_MS = 3000
ACCEPTABLE_MS = 2000
MAX_SCRIPTS = 20
MAX_STYLESHEETS = 10
HEAVY_MB = 5
MODERATELY_HEAVY_MB = 3


class TechnicalAnalyzer(Analyzer):
    NAME = "Technical SEO"

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        issues = IssueCollector(self.NAME)

        self._check_status(page, issues)
        self._check_load_time(page, issues)

        if not page.url.startswith("https"):
            issues.add(
                "NOT_HTTPS", "Page is not served over HTTPS", Severity.CRITICAL, 20,
                recommendation="Enable HTTPS for security and SEO benefits",
            )

        encoding = page.header("content-encoding")
        if "gzip" not in encoding and "br" not in encoding:
            issues.add(
                "NO_COMPRESSION", "Page is not using gzip or brotli compression", Severity.WARNING, 10,
                recommendation="Enable gzip or brotli compression to reduce page size",
            )

        if not page.header("cache-control"):
            issues.add(
                "NO_CACHE_HEADERS", "Page is missing cache-control headers", Severity.INFO, 5,
                recommendation="Add cache-control headers to improve repeat visit performance",
            )

        self._check_resources(page, issues)

        return issues.build({
            "status_code": page.status_code,
            "load_time_ms": page.load_time_ms,
            "is_https": page.url.startswith("https"),
            "resource_stats": self._resource_stats(page),
        })

    def _check_status(self, page: PageData, issues: IssueCollector) -> None:
        status = page.status_code
        if status >= 400:
            issues.add(
                "HTTP_ERROR", f"Page returns HTTP {status} error", Severity.CRITICAL, 30,
                recommendation="Fix the server error to make the page accessible",
            )
        elif 300 <= status < 400:
            issues.add(
                "REDIRECT", f"Page returns HTTP {status} redirect", Severity.INFO, 5,
                recommendation="Consider updating links to point directly to the final URL",
            )

    def _check_load_time(self, page: PageData, issues: IssueCollector) -> None:
        seconds = page.load_time_ms / 1000
        if page.load_time_ms > SLOW_MS:
            issues.add(
                "SLOW_PAGE", f"Page load time is very slow ({seconds:.1f}s)", Severity.CRITICAL, 25,
                recommendation="Optimize page speed. Aim for under 3 seconds load time",
            )
        elif page.load_time_ms > MODERATE_MS:
            issues.add(
                "MODERATE_LOAD_TIME", f"Page load time is moderate ({seconds:.1f}s)", Severity.WARNING, 10,
                recommendation="Consider optimizing for faster load times. Aim for under 2 seconds",
            )
        elif page.load_time_ms > ACCEPTABLE_MS:
            issues.add(
                "COULD_BE_FASTER", f"Page load time is {seconds:.1f}s", Severity.INFO, 5,
                recommendation="Page speed is acceptable but could be improved",
            )

    def _check_resources(self, page: PageData, issues: IssueCollector) -> None:
        scripts = sum(1 for r in page.resources if r.kind == ResourceKind.SCRIPT)
        stylesheets = sum(1 for r in page.resources if r.kind == ResourceKind.STYLESHEET)

        if scripts > MAX_SCRIPTS:
            issues.add(
                "TOO_MANY_SCRIPTS", f"Page loads {scripts} JavaScript files", Severity.WARNING, 10,
                recommendation="Consider bundling JavaScript files to reduce HTTP requests",
            )
        if stylesheets > MAX_STYLESHEETS:
            issues.add(
                "TOO_MANY_STYLESHEETS", f"Page loads {stylesheets} CSS files", Severity.INFO, 5,
                recommendation="Consider bundling CSS files to reduce HTTP requests",
            )

        size_mb = sum(r.size_bytes for r in page.resources) / (1024 * 1024)
        if size_mb > HEAVY_MB:
            issues.add(
                "HEAVY_PAGE", f"Total page weight is {size_mb:.2f}MB", Severity.CRITICAL, 15,
                recommendation="Reduce page weight to under 3MB for better performance",
            )
        elif size_mb > MODERATELY_HEAVY_MB:
            issues.add(
                "MODERATELY_HEAVY_PAGE", f"Total page weight is {size_mb:.2f}MB", Severity.WARNING, 8,
                recommendation="Consider reducing page weight for better performance",
            )

    @staticmethod
    def _resource_stats(page: PageData) -> dict:
        by_kind: dict[str, dict[str, int]] = defaultdict(lambda: {"count": 0, "size": 0})
        for resource in page.resources:
            by_kind[resource.kind.value]["count"] += 1
            by_kind[resource.kind.value]["size"] += resource.size_bytes
        return {
            "total_resources": len(page.resources),
            "total_size": sum(r.size_bytes for r in page.resources),
            "by_kind": dict(by_kind),
        }
