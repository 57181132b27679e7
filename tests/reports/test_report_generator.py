"""
Tests for JSON, HTML and text report rendering.
"""

import json

import pytest

from site_auditor.core.exceptions import ConfigurationError
from site_auditor.engines.base import (
    AnalyzerResult,
    AuditResult,
    Issue,
    PlatformInfo,
    Priority,
    Recommendation,
    Scores,
    Severity,
)
from site_auditor.reports.generator import ReportGenerator, score_color


@pytest.fixture
def audit_result() -> AuditResult:
    issues = (
        Issue(code="MISSING_TITLE", message="Page is missing a title tag", severity=Severity.CRITICAL,
              recommendation="Add a title", url="https://example.com/"),
        Issue(code="MISSING_CANONICAL", message="Page is missing a canonical URL", severity=Severity.WARNING,
              element="<script>alert(1)</script>"),
        Issue(code="NO_CACHE_HEADERS", message="Page is missing cache-control headers", severity=Severity.INFO),
    )
    return AuditResult(
        url="https://example.com/",
        platform=PlatformInfo(name="wordpress", version="6.4.2", theme="Astra", seo_plugin="Yoast"),
        scores=Scores(overall=72, technical=90, content=55, performance=80, mobile=40),
        analyzers=(AnalyzerResult(name="Meta Tags", score=65, penalty=35, issues=issues[:2]),),
        issues=issues,
        recommendations=(
            Recommendation(title="Add Page Title", description="Add a title", priority=Priority.HIGH,
                           category="Meta Tags", estimated_impact="High impact on SEO and user experience"),
        ),
    )


class TestScoreColor:

    @pytest.mark.parametrize("score,color", [(95, "#00c853"), (70, "#ffc107"), (50, "#ff9800"), (10, "#f44336")])
    def test_bands(self, score, color):
        assert score_color(score) == color


class TestReportGenerator:

    def test_json_round_trips(self, audit_result):
        payload = json.loads(ReportGenerator().report(audit_result, "json"))
        assert payload["url"] == "https://example.com/"
        assert payload["scores"]["overall"] == 72
        assert payload["issues"][0]["severity"] == "critical"
        assert AuditResult.model_validate(payload) == audit_result

    def test_html_contains_scores_and_issues(self, audit_result):
        html = ReportGenerator().generate_html(audit_result)

        assert "<title>SEO Audit Report - https://example.com/</title>" in html
        assert "Overall Score" in html
        assert "#ffc107" in html          # overall 72
        assert "1 Critical" in html
        assert "1 Warnings" in html
        assert "Add Page Title" in html
        assert "Platform Detected" in html
        assert "Yoast" in html

    def test_html_escapes_content(self, audit_result):
        html = ReportGenerator().generate_html(audit_result)
        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html

    def test_unknown_format(self, audit_result):
        with pytest.raises(ConfigurationError):
            ReportGenerator().report(audit_result, "pdf")

    def test_unknown_format_is_value_error(self, audit_result):
        with pytest.raises(ValueError):
            ReportGenerator().report(audit_result, "xml")

    def test_summary(self, audit_result):
        summary = ReportGenerator().generate_summary(audit_result)
        lines = summary.splitlines()

        assert lines[0] == "SEO Audit Summary for https://example.com/"
        assert lines[1] == "=" * 50
        assert "Overall Score: 72/100" in lines
        assert "├── Technical: 90/100" in lines
        assert "└── Mobile: 40/100" in lines
        assert "├── Critical: 1" in lines
        assert "├── Warnings: 1" in lines
        assert "└── Info: 1" in lines
        assert "Platform Detected: wordpress v6.4.2 (Astra)" in lines

    def test_summary_omits_custom_platform(self, audit_result):
        custom = audit_result.model_copy(update={"platform": PlatformInfo(name="custom")})
        assert "Platform Detected" not in ReportGenerator().generate_summary(custom)
