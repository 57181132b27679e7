"""
Scoring Engine - folds analyzer results into composite scores.

Scoring Model:
- Each composite is the plain average of a fixed bucket of analyzers
- Buckets may overlap (Technical SEO feeds both technical and performance)
- A bucket with no matching results scores 100 (nothing to penalize)
- Averages round half up
- Site-level summaries average composites across pages
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

import structlog

from site_auditor.engines.base import (
    MAX_SCORE,
    AnalyzerResult,
    AuditResult,
    CrawlResult,
    Scores,
    Severity,
    SiteAuditSummary,
    round_half_up,
)
from site_auditor.engines.crawler.sitemap import validate_sitemap

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────
# Composite Buckets
# ─────────────────────────────────────────────

TECHNICAL_ANALYZERS = ("Technical SEO", "Security")
CONTENT_ANALYZERS = ("Meta Tags", "Headings Structure", "Content Quality", "Structured Data")
PERFORMANCE_ANALYZERS = ("Technical SEO", "Images")
MOBILE_ANALYZERS = ("Mobile Friendliness",)

TOP_ISSUE_CODES = 10


def _average(scores: Iterable[int]) -> int:
    values = list(scores)
    if not values:
        return MAX_SCORE
    return round_half_up(sum(values) / len(values))


def bucket_score(results: list[AnalyzerResult], names: tuple[str, ...]) -> int:
    return _average(r.score for r in results if r.name in names)


def calculate_scores(results: list[AnalyzerResult]) -> Scores:
    """Composite scores for one page's analyzer results."""
    return Scores(
        overall=_average(r.score for r in results),
        technical=bucket_score(results, TECHNICAL_ANALYZERS),
        content=bucket_score(results, CONTENT_ANALYZERS),
        performance=bucket_score(results, PERFORMANCE_ANALYZERS),
        mobile=bucket_score(results, MOBILE_ANALYZERS),
    )


# ─────────────────────────────────────────────
# Site Roll-up
# ─────────────────────────────────────────────

def summarize_site(results: list[AuditResult], crawl: CrawlResult | None = None) -> SiteAuditSummary:
    """Average page composites and count issues across a whole crawl."""
    url = crawl.url if crawl else (results[0].url if results else "")

    average_scores = Scores(
        overall=_average(r.scores.overall for r in results),
        technical=_average(r.scores.technical for r in results),
        content=_average(r.scores.content for r in results),
        performance=_average(r.scores.performance for r in results),
        mobile=_average(r.scores.mobile for r in results),
    )

    issue_counts = {severity.value: 0 for severity in Severity}
    codes: Counter[str] = Counter()
    for result in results:
        for issue in result.issues:
            issue_counts[issue.severity.value] += 1
            codes[issue.code] += 1

    sitemap_validation = None
    if crawl is not None and crawl.sitemap is not None:
        sitemap_validation = validate_sitemap(crawl.sitemap)

    summary = SiteAuditSummary(
        url=url,
        pages_audited=len(results),
        average_scores=average_scores,
        issue_counts=issue_counts,
        top_issue_codes=codes.most_common(TOP_ISSUE_CODES),
        sitemap_validation=sitemap_validation,
    )

    logger.info(
        "Site summary computed",
        url=url,
        pages=summary.pages_audited,
        overall=average_scores.overall,
        critical=issue_counts[Severity.CRITICAL.value],
    )
    return summary
