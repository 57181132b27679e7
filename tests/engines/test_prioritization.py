"""
Tests for the Prioritization Engine.
"""

from site_auditor.engines.base import AnalyzerResult, Issue, Priority, Severity
from site_auditor.engines.prioritization.engine import (
    generate_recommendations,
    issue_category,
    recommendation_title,
)


def make_issue(code: str, severity: Severity, recommendation: str | None = "Fix it", message: str = "Something is wrong here") -> Issue:
    return Issue(code=code, message=message, severity=severity, recommendation=recommendation)


def analyzer_result(*issues: Issue, name: str = "Test") -> AnalyzerResult:
    return AnalyzerResult(name=name, score=50, penalty=50, issues=issues)


class TestGenerateRecommendations:

    def test_priority_mapping_and_order(self):
        results = [
            analyzer_result(
                make_issue("NO_CACHE_HEADERS", Severity.INFO, "Add cache headers"),
                make_issue("MISSING_CANONICAL", Severity.WARNING, "Add canonical"),
            ),
            analyzer_result(make_issue("MISSING_TITLE", Severity.CRITICAL, "Add a title")),
        ]
        recs = generate_recommendations(results)

        assert [r.priority for r in recs] == [Priority.HIGH, Priority.MEDIUM, Priority.LOW]
        assert recs[0].title == "Add Page Title"
        assert recs[0].category == "Meta Tags"
        assert recs[0].estimated_impact == "High impact on SEO and user experience"
        assert recs[2].estimated_impact == "Minor improvement opportunity"

    def test_issues_without_recommendation_dropped(self):
        recs = generate_recommendations([analyzer_result(make_issue("NO_IMAGES", Severity.INFO, None))])
        assert recs == []

    def test_success_issues_ignored(self):
        recs = generate_recommendations([analyzer_result(make_issue("ALL_GOOD", Severity.SUCCESS))])
        assert recs == []

    def test_duplicates_dropped(self):
        results = [
            analyzer_result(make_issue("NOT_HTTPS", Severity.CRITICAL, "Enable HTTPS"), name="Technical SEO"),
            analyzer_result(make_issue("NOT_HTTPS", Severity.CRITICAL, "Enable HTTPS"), name="Security"),
            analyzer_result(make_issue("NOT_HTTPS", Severity.CRITICAL, "Enable HTTPS to secure data"), name="Security"),
        ]
        recs = generate_recommendations(results)
        assert [(r.title, r.description) for r in recs] == [
            ("Enable HTTPS", "Enable HTTPS"),
            ("Enable HTTPS", "Enable HTTPS to secure data"),
        ]

    def test_info_limit_applied_before_filtering(self):
        info = [
            make_issue("INFO_NO_REC", Severity.INFO, None, message="Info without a fix"),
            make_issue("INFO_A", Severity.INFO, "A", message="First info issue"),
            make_issue("INFO_B", Severity.INFO, "B", message="Second info issue"),
        ]
        recs = generate_recommendations([analyzer_result(*info)], info_limit=2)
        assert [r.description for r in recs] == ["A"]

    def test_default_info_limit(self):
        info = [make_issue(f"INFO_{i}", Severity.INFO, f"Fix {i}") for i in range(15)]
        recs = generate_recommendations([analyzer_result(*info)])
        assert len(recs) == 10

    def test_deterministic(self):
        results = [
            analyzer_result(
                make_issue("MISSING_H1", Severity.CRITICAL, "Add H1"),
                make_issue("MISSING_LANG", Severity.WARNING, "Add lang"),
                make_issue("MISSING_OG_IMAGE", Severity.INFO, "Add og:image"),
            )
        ]
        assert generate_recommendations(results) == generate_recommendations(results)


class TestTitlesAndCategories:

    def test_known_title(self):
        assert recommendation_title(make_issue("BROKEN_LINKS", Severity.CRITICAL)) == "Fix Broken Links"

    def test_fallback_title_uses_first_four_words(self):
        issue = make_issue("SOMETHING_NEW", Severity.INFO, message="Page has 12 links with issues")
        assert recommendation_title(issue) == "Page has 12 links"

    def test_categories(self):
        assert issue_category("MIXED_CONTENT") == "Security"
        assert issue_category("UNMAPPED_CODE") == "General"
