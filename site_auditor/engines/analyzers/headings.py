"""Heading structure analyzer: H1 usage, level hierarchy, empty and duplicate headings."""

from __future__ import annotations

from site_auditor.engines.base import Analyzer, AnalyzerResult, IssueCollector, PageData, Severity
from site_auditor.engines.crawler.extractor import HeadingData, PageExtractor

H1_MIN, H1_MAX = 10, 70


class HeadingAnalyzer(Analyzer):
    NAME = "Headings Structure"

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        headings = extracted.get_headings()
        issues = IssueCollector(self.NAME)

        self._check_h1(headings, issues)
        self._check_hierarchy(headings, issues)
        self._check_content(headings, issues)

        structure = {f"h{level}": 0 for level in range(1, 7)}
        for heading in headings:
            structure[f"h{heading.level}"] += 1

        return issues.build({
            "headings": [h.model_dump() for h in headings],
            "structure": structure,
        })

    def _check_h1(self, headings: list[HeadingData], issues: IssueCollector) -> None:
        h1s = [h for h in headings if h.level == 1]

        if not h1s:
            issues.add(
                "MISSING_H1", "Page is missing an H1 heading", Severity.CRITICAL, 30,
                recommendation="Add a single, descriptive H1 heading that summarizes the page content",
            )
            return

        if len(h1s) > 1:
            issues.add(
                "MULTIPLE_H1", f"Page has {len(h1s)} H1 headings", Severity.WARNING, 15,
                element=", ".join(h.text for h in h1s),
                recommendation="Use only one H1 heading per page. Use H2-H6 for subheadings",
            )

        first = h1s[0].text
        if len(first) < H1_MIN:
            issues.add(
                "H1_TOO_SHORT", "H1 heading is too short", Severity.INFO, 5,
                element=first,
                recommendation="H1 should be descriptive and include relevant keywords",
            )
        elif len(first) > H1_MAX:
            issues.add(
                "H1_TOO_LONG", "H1 heading is too long", Severity.INFO, 5,
                element=first,
                recommendation="Keep H1 concise while still being descriptive",
            )

    def _check_hierarchy(self, headings: list[HeadingData], issues: IssueCollector) -> None:
        previous = 0
        for heading in headings:
            if previous and heading.level > previous + 1:
                issues.add(
                    "SKIPPED_HEADING_LEVEL",
                    f"Heading hierarchy skips from H{previous} to H{heading.level}",
                    Severity.WARNING, 5,
                    element=heading.text,
                    recommendation=f"Don't skip heading levels. Use H{previous + 1} instead of H{heading.level}",
                )
            previous = heading.level

        if len(headings) > 1 and not any(h.level == 2 for h in headings):
            issues.add(
                "MISSING_H2", "Page has no H2 headings", Severity.INFO, 5,
                recommendation="Use H2 headings to break up content into logical sections",
            )

    def _check_content(self, headings: list[HeadingData], issues: IssueCollector) -> None:
        seen: set[str] = set()
        for heading in headings:
            normalized = heading.text.strip().lower()
            if normalized in seen:
                issues.add(
                    "DUPLICATE_HEADING", f'Duplicate heading: "{heading.text}"', Severity.INFO, 2,
                    element=heading.text,
                    recommendation="Use unique headings to help users and search engines understand content structure",
                )
            seen.add(normalized)

            if not heading.text:
                issues.add(
                    "EMPTY_HEADING", f"Empty H{heading.level} heading found", Severity.WARNING, 5,
                    recommendation="Remove empty headings or add meaningful content",
                )
