"""
Mobile friendliness analyzer.

Viewport configuration plus static heuristics for small fonts, tap targets,
responsive images and fixed-width layouts. No rendering is performed.
"""

from __future__ import annotations

import re

from site_auditor.engines.base import Analyzer, AnalyzerResult, IssueCollector, PageData, Severity
from site_auditor.engines.crawler.extractor import PageExtractor

SMALL_FONT_MARKERS = ("font-size: 10px", "font-size:10px")
FIXED_WIDTH_RE = re.compile(r"width:\s*\d{4,}px")
MAX_SMALL_TAP_TARGETS = 5
RESPONSIVE_IMAGE_THRESHOLD = 3


class MobileAnalyzer(Analyzer):
    NAME = "Mobile Friendliness"

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        meta = extracted.get_meta()
        issues = IssueCollector(self.NAME)

        self._check_viewport(meta.viewport, issues)

        lowered = page.html.lower()
        if any(marker in lowered for marker in SMALL_FONT_MARKERS):
            issues.add(
                "SMALL_FONT_SIZE", "Page may contain text that is too small on mobile", Severity.INFO, 5,
                recommendation="Use a minimum font size of 16px for body text on mobile",
            )

        small_targets = [l for l in extracted.get_links() if len(l.text) < 2]
        if len(small_targets) > MAX_SMALL_TAP_TARGETS:
            issues.add(
                "SMALL_TAP_TARGETS", f"{len(small_targets)} links may have insufficient tap target size",
                Severity.INFO, 10,
                recommendation="Ensure tap targets are at least 48x48 CSS pixels with sufficient spacing",
            )

        images = extracted.get_images()
        if (
            len(images) > RESPONSIVE_IMAGE_THRESHOLD
            and not extracted.has_srcset()
            and not extracted.has_element("picture")
        ):
            issues.add(
                "NO_RESPONSIVE_IMAGES", "Page does not use responsive images (srcset or picture)", Severity.INFO, 10,
                recommendation=(
                    "Use srcset or picture elements to serve appropriately sized images on different devices"
                ),
            )

        if FIXED_WIDTH_RE.search(page.html):
            issues.add(
                "POTENTIAL_HORIZONTAL_SCROLL",
                "Page may have elements with fixed widths that cause horizontal scrolling",
                Severity.INFO, 10,
                recommendation="Use relative widths (%, vw) instead of fixed pixel widths for large elements",
            )

        return issues.build({
            "has_viewport": extracted.has_viewport(),
            "viewport": meta.viewport,
        })

    def _check_viewport(self, viewport: str | None, issues: IssueCollector) -> None:
        if not viewport:
            issues.add(
                "MISSING_VIEWPORT", "Page is missing viewport meta tag", Severity.CRITICAL, 30,
                recommendation='Add <meta name="viewport" content="width=device-width, initial-scale=1">',
            )
            return

        viewport = viewport.lower()
        if "width=device-width" not in viewport:
            issues.add(
                "VIEWPORT_NO_DEVICE_WIDTH", "Viewport is not set to device width", Severity.WARNING, 15,
                recommendation="Set viewport width to device-width for proper mobile scaling",
            )
        elif "maximum-scale=1" in viewport or "user-scalable=no" in viewport:
            issues.add(
                "VIEWPORT_ZOOM_DISABLED", "Viewport prevents user from zooming", Severity.WARNING, 10,
                recommendation=(
                    "Allow users to zoom for accessibility. Remove maximum-scale and user-scalable restrictions"
                ),
            )
