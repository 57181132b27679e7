"""
Meta tag analyzer.

Checks:
- Title presence and length (30-60 chars)
- Meta description presence and length (120-160 chars)
- Canonical link
- Open Graph and Twitter Card tags
- Viewport and charset declarations
"""

from __future__ import annotations

from site_auditor.engines.base import Analyzer, AnalyzerResult, IssueCollector, PageData, Severity
from site_auditor.engines.crawler.extractor import MetaData, PageExtractor

TITLE_MIN, TITLE_MAX = 30, 60
DESCRIPTION_MIN, DESCRIPTION_MAX = 120, 160


class MetaAnalyzer(Analyzer):
    NAME = "Meta Tags"

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        meta = extracted.get_meta()
        issues = IssueCollector(self.NAME)

        self._check_title(meta, issues)
        self._check_description(meta, issues)
        self._check_social(meta, issues)

        if not meta.canonical:
            issues.add(
                "MISSING_CANONICAL", "Page is missing a canonical URL", Severity.WARNING, 10,
                recommendation="Add a canonical tag to prevent duplicate content issues",
            )

        if not meta.viewport:
            issues.add(
                "MISSING_VIEWPORT", "Page is missing viewport meta tag", Severity.CRITICAL, 15,
                recommendation=(
                    'Add <meta name="viewport" content="width=device-width, initial-scale=1"> '
                    "for mobile responsiveness"
                ),
            )

        if not meta.charset:
            issues.add(
                "MISSING_CHARSET", "Page is missing charset declaration", Severity.WARNING, 5,
                recommendation='Add <meta charset="UTF-8"> for proper character encoding',
            )

        return issues.build({"meta": meta.model_dump()})

    def _check_title(self, meta: MetaData, issues: IssueCollector) -> None:
        if not meta.title:
            issues.add(
                "MISSING_TITLE", "Page is missing a title tag", Severity.CRITICAL, 25,
                recommendation="Add a unique, descriptive title tag between 30-60 characters",
            )
            return

        length = len(meta.title)
        if length < TITLE_MIN:
            issues.add(
                "TITLE_TOO_SHORT", f"Title is too short ({length} characters)", Severity.WARNING, 10,
                element=meta.title,
                recommendation="Title should be between 30-60 characters for optimal display in search results",
            )
        elif length > TITLE_MAX:
            issues.add(
                "TITLE_TOO_LONG", f"Title is too long ({length} characters)", Severity.WARNING, 5,
                element=meta.title,
                recommendation="Title may be truncated in search results. Keep it under 60 characters",
            )

    def _check_description(self, meta: MetaData, issues: IssueCollector) -> None:
        if not meta.description:
            issues.add(
                "MISSING_DESCRIPTION", "Page is missing a meta description", Severity.CRITICAL, 20,
                recommendation="Add a compelling meta description between 120-160 characters",
            )
            return

        length = len(meta.description)
        if length < DESCRIPTION_MIN:
            issues.add(
                "DESCRIPTION_TOO_SHORT", f"Meta description is too short ({length} characters)",
                Severity.WARNING, 8,
                element=meta.description,
                recommendation="Meta description should be between 120-160 characters",
            )
        elif length > DESCRIPTION_MAX:
            issues.add(
                "DESCRIPTION_TOO_LONG", f"Meta description is too long ({length} characters)",
                Severity.INFO, 3,
                element=meta.description,
                recommendation="Meta description may be truncated. Consider keeping it under 160 characters",
            )

    def _check_social(self, meta: MetaData, issues: IssueCollector) -> None:
        if not meta.og_title:
            issues.add(
                "MISSING_OG_TITLE", "Missing Open Graph title (og:title)", Severity.INFO, 3,
                recommendation="Add og:title for better social media sharing",
            )
        if not meta.og_description:
            issues.add(
                "MISSING_OG_DESCRIPTION", "Missing Open Graph description (og:description)", Severity.INFO, 3,
                recommendation="Add og:description for better social media sharing",
            )
        if not meta.og_image:
            issues.add(
                "MISSING_OG_IMAGE", "Missing Open Graph image (og:image)", Severity.INFO, 3,
                recommendation="Add og:image for visual appeal when shared on social media",
            )
        if not meta.twitter_card:
            issues.add(
                "MISSING_TWITTER_CARD", "Missing Twitter Card meta tag", Severity.INFO, 2,
                recommendation="Add twitter:card for better Twitter sharing",
            )
