"""
Prioritization Engine

Turns analyzer issues into a deduplicated, prioritized fix list.

Rules:
  critical -> high, warning -> medium, info -> low
  Only issues that carry a recommendation are promoted
  Info issues are capped to the first N (before filtering)
  Duplicates on (title, description) are dropped, first occurrence wins
  Output is stably ordered high -> medium -> low
"""

from __future__ import annotations

import structlog

from site_auditor.core.config import get_settings
from site_auditor.engines.base import AnalyzerResult, Issue, Priority, Recommendation, Severity

logger = structlog.get_logger(__name__)


SEVERITY_PRIORITY = {
    Severity.CRITICAL: Priority.HIGH,
    Severity.WARNING: Priority.MEDIUM,
    Severity.INFO: Priority.LOW,
}

PRIORITY_ORDER = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}

ESTIMATED_IMPACT = {
    Priority.HIGH: "High impact on SEO and user experience",
    Priority.MEDIUM: "Moderate impact on SEO",
    Priority.LOW: "Minor improvement opportunity",
}

RECOMMENDATION_TITLES: dict[str, str] = {
    "MISSING_TITLE": "Add Page Title",
    "MISSING_DESCRIPTION": "Add Meta Description",
    "MISSING_H1": "Add H1 Heading",
    "MULTIPLE_H1": "Fix Multiple H1 Headings",
    "MISSING_VIEWPORT": "Add Viewport Meta Tag",
    "NOT_HTTPS": "Enable HTTPS",
    "SLOW_PAGE": "Improve Page Speed",
    "THIN_CONTENT": "Add More Content",
    "MISSING_ALT_TAGS": "Add Image Alt Text",
    "BROKEN_LINKS": "Fix Broken Links",
    "NO_STRUCTURED_DATA": "Add Structured Data",
    "MISSING_CANONICAL": "Add Canonical URL",
}

ISSUE_CATEGORIES: dict[str, str] = {
    "MISSING_TITLE": "Meta Tags",
    "TITLE_TOO_SHORT": "Meta Tags",
    "TITLE_TOO_LONG": "Meta Tags",
    "MISSING_DESCRIPTION": "Meta Tags",
    "DESCRIPTION_TOO_SHORT": "Meta Tags",
    "DESCRIPTION_TOO_LONG": "Meta Tags",
    "MISSING_CANONICAL": "Meta Tags",
    "MISSING_OG_TITLE": "Social Media",
    "MISSING_OG_DESCRIPTION": "Social Media",
    "MISSING_OG_IMAGE": "Social Media",
    "MISSING_TWITTER_CARD": "Social Media",
    "MISSING_H1": "Content Structure",
    "MULTIPLE_H1": "Content Structure",
    "SKIPPED_HEADING_LEVEL": "Content Structure",
    "THIN_CONTENT": "Content",
    "KEYWORD_STUFFING": "Content",
    "MISSING_LANG": "Accessibility",
    "NO_LINKS": "Links",
    "BROKEN_LINKS": "Links",
    "EMPTY_ANCHOR_TEXT": "Links",
    "MISSING_ALT_TAGS": "Images",
    "NO_MODERN_IMAGE_FORMATS": "Performance",
    "MISSING_IMAGE_DIMENSIONS": "Performance",
    "NOT_HTTPS": "Security",
    "MISSING_HSTS": "Security",
    "MIXED_CONTENT": "Security",
    "SLOW_PAGE": "Performance",
    "NO_COMPRESSION": "Performance",
    "TOO_MANY_SCRIPTS": "Performance",
    "MISSING_VIEWPORT": "Mobile",
    "NO_RESPONSIVE_IMAGES": "Mobile",
    "NO_STRUCTURED_DATA": "Structured Data",
    "INVALID_SCHEMA": "Structured Data",
}


def recommendation_title(issue: Issue) -> str:
    return RECOMMENDATION_TITLES.get(issue.code) or " ".join(issue.message.split(" ")[:4])


def issue_category(code: str) -> str:
    return ISSUE_CATEGORIES.get(code, "General")


def _to_recommendation(issue: Issue) -> Recommendation:
    priority = SEVERITY_PRIORITY[issue.severity]
    return Recommendation(
        title=recommendation_title(issue),
        description=issue.recommendation or "",
        priority=priority,
        category=issue_category(issue.code),
        estimated_impact=ESTIMATED_IMPACT[priority],
    )


def generate_recommendations(
    results: list[AnalyzerResult],
    info_limit: int | None = None,
) -> list[Recommendation]:
    """Prioritized, deduplicated recommendations. Pure: same input, same output."""
    if info_limit is None:
        info_limit = get_settings().INFO_RECOMMENDATION_LIMIT

    issues = [issue for result in results for issue in result.issues]
    critical = [i for i in issues if i.severity == Severity.CRITICAL]
    warnings = [i for i in issues if i.severity == Severity.WARNING]
    info = [i for i in issues if i.severity == Severity.INFO][:info_limit]

    candidates = [
        _to_recommendation(issue)
        for issue in critical + warnings + info
        if issue.recommendation
    ]

    seen: set[tuple[str, str]] = set()
    recommendations: list[Recommendation] = []
    for rec in candidates:
        key = (rec.title, rec.description)
        if key in seen:
            continue
        seen.add(key)
        recommendations.append(rec)

    recommendations.sort(key=lambda r: PRIORITY_ORDER[r.priority])

    logger.debug(
        "Recommendations generated",
        total=len(recommendations),
        high=sum(1 for r in recommendations if r.priority == Priority.HIGH),
    )
    return recommendations
