"""
Tests for composite scoring and site roll-ups.
"""

from datetime import datetime, timezone

import pytest

from site_auditor.engines.base import (
    AnalyzerResult,
    AuditResult,
    CrawlResult,
    Issue,
    IssueCollector,
    Scores,
    Severity,
    SitemapData,
    calculate_score,
    round_half_up,
)
from site_auditor.engines.scoring.engine import bucket_score, calculate_scores, summarize_site


def result(name: str, score: int) -> AnalyzerResult:
    return AnalyzerResult(name=name, score=score, penalty=100 - score)


def audit(url: str, overall: int, issues: tuple[Issue, ...] = ()) -> AuditResult:
    return AuditResult(
        url=url,
        scores=Scores(overall=overall, technical=overall, content=overall, performance=overall, mobile=overall),
        issues=issues,
    )


# ─────────────────────────────────────────────
# Score helpers
# ─────────────────────────────────────────────

class TestScoreHelpers:

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (3.5, 4), (75.5, 76), (75.49, 75), (0.0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize("penalty,expected", [(0, 100), (33, 67), (100, 0), (250, 0)])
    def test_calculate_score(self, penalty, expected):
        assert calculate_score(penalty) == expected

    def test_issue_collector(self):
        collector = IssueCollector("Test")
        collector.add("A", "first", Severity.WARNING, 10, element="x" * 300)
        collector.deduct(5)

        built = collector.build({"k": 1})

        assert built.penalty == 15
        assert built.score == 85
        assert len(built.issues[0].element) == 200
        assert built.issues[0].element.endswith("...")
        assert built.data == {"k": 1}


# ─────────────────────────────────────────────
# Composite scores
# ─────────────────────────────────────────────

class TestCalculateScores:

    def test_buckets(self):
        results = [
            result("Meta Tags", 90),
            result("Headings Structure", 80),
            result("Content Quality", 70),
            result("Links", 100),
            result("Images", 90),
            result("Technical SEO", 80),
            result("Mobile Friendliness", 60),
            result("Structured Data", 75),
            result("Security", 71),
        ]
        scores = calculate_scores(results)

        assert scores.technical == 76        # (80 + 71) / 2 = 75.5
        assert scores.content == 79          # (90 + 80 + 70 + 75) / 4 = 78.75
        assert scores.performance == 85      # (80 + 90) / 2
        assert scores.mobile == 60
        assert scores.overall == 80          # 716 / 9 = 79.56

    def test_empty_bucket_scores_full(self):
        scores = calculate_scores([result("Meta Tags", 40)])
        assert scores.overall == 40
        assert scores.content == 40
        assert scores.technical == 100
        assert scores.mobile == 100

    def test_no_results(self):
        assert calculate_scores([]) == Scores(overall=100, technical=100, content=100, performance=100, mobile=100)

    def test_unknown_analyzer_counts_only_in_overall(self):
        results = [result("Custom", 0), result("Security", 100)]
        assert bucket_score(results, ("Security",)) == 100
        assert calculate_scores(results).overall == 50

    def test_scores_bounded(self):
        results = [result(name, 0) for name in ("Meta Tags", "Technical SEO", "Mobile Friendliness")]
        scores = calculate_scores(results)
        assert all(0 <= v <= 100 for v in scores.model_dump().values())


# ─────────────────────────────────────────────
# Site roll-up
# ─────────────────────────────────────────────

class TestSummarizeSite:

    def test_averages_and_counts(self):
        issues_a = (
            Issue(code="MISSING_H1", message="m", severity=Severity.CRITICAL),
            Issue(code="NO_CACHE_HEADERS", message="m", severity=Severity.INFO),
        )
        issues_b = (Issue(code="MISSING_H1", message="m", severity=Severity.CRITICAL),)

        summary = summarize_site([
            audit("https://example.com/", 80, issues_a),
            audit("https://example.com/about", 71, issues_b),
        ])

        assert summary.url == "https://example.com/"
        assert summary.pages_audited == 2
        assert summary.average_scores.overall == 76
        assert summary.issue_counts == {"critical": 2, "warning": 0, "info": 1, "success": 0}
        assert summary.top_issue_codes[0] == ("MISSING_H1", 2)
        assert summary.sitemap_validation is None

    def test_sitemap_validated_from_crawl(self):
        now = datetime.now(timezone.utc)
        crawl = CrawlResult(url="https://example.com", start_time=now, end_time=now, sitemap=SitemapData(exists=False))

        summary = summarize_site([], crawl)

        assert summary.url == "https://example.com"
        assert summary.pages_audited == 0
        assert summary.average_scores.overall == 100
        assert summary.sitemap_validation.is_valid is False
        assert summary.sitemap_validation.issues == ["No sitemap found"]
