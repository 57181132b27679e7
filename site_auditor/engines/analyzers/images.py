"""
Image analyzer.

Alt text coverage (critical above 50% missing), alt length, modern formats,
explicit dimensions (layout shift), and lazy loading beyond the first images.
"""

from __future__ import annotations

from site_auditor.engines.base import (
    Analyzer,
    AnalyzerResult,
    IssueCollector,
    PageData,
    Severity,
    round_half_up,
)
from site_auditor.engines.crawler.extractor import ImageData, PageExtractor

ALT_MAX_LENGTH = 125
EAGER_IMAGE_COUNT = 3   # images assumed above the fold

FORMAT_MARKERS = (
    ("jpeg", (".jpg", ".jpeg")),
    ("png", (".png",)),
    ("gif", (".gif",)),
    ("webp", (".webp",)),
    ("avif", (".avif",)),
    ("svg", (".svg",)),
)


def image_format(src: str) -> str:
    lowered = src.lower()
    for fmt, markers in FORMAT_MARKERS:
        if any(marker in lowered for marker in markers):
            return fmt
    return "unknown"


def _file_name(src: str) -> str:
    return src.rstrip("/").rsplit("/", 1)[-1]


class ImageAnalyzer(Analyzer):
    NAME = "Images"

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        images = extracted.get_images()
        issues = IssueCollector(self.NAME)

        if not images:
            issues.add(
                "NO_IMAGES", "Page has no images", Severity.INFO,
                recommendation="Consider adding relevant images to enhance content",
            )
            return issues.build({"images": [], "stats": {}})

        self._check_alt_text(images, issues)
        self._check_formats(images, issues)

        missing_dimensions = [img for img in images if not img.width or not img.height]
        if missing_dimensions:
            issues.add(
                "MISSING_IMAGE_DIMENSIONS",
                f"{len(missing_dimensions)} images are missing width/height attributes",
                Severity.WARNING, min(2 * len(missing_dimensions), 15),
                element=", ".join(_file_name(img.src) for img in missing_dimensions[:3]),
                recommendation="Add width and height attributes to prevent layout shifts (CLS)",
            )

        not_lazy = [img for img in images[EAGER_IMAGE_COUNT:] if not img.is_lazy_loaded]
        if not_lazy:
            issues.add(
                "NO_LAZY_LOADING", f"{len(not_lazy)} below-the-fold images are not lazy loaded", Severity.INFO, 5,
                recommendation='Add loading="lazy" to images below the fold for better performance',
            )

        return issues.build({
            "images": [img.model_dump() for img in images],
            "stats": self._stats(images),
        })

    def _check_alt_text(self, images: list[ImageData], issues: IssueCollector) -> None:
        missing = [img for img in images if not img.alt or not img.alt.strip()]
        if missing:
            percentage = round_half_up(len(missing) / len(images) * 100)
            issues.add(
                "MISSING_ALT_TAGS",
                f"{len(missing)} images ({percentage}%) are missing alt text",
                Severity.CRITICAL if percentage > 50 else Severity.WARNING,
                min(3 * len(missing), 30),
                element=", ".join(_file_name(img.src) for img in missing[:3]),
                recommendation="Add descriptive alt text to all images for accessibility and SEO",
            )

        too_long = [img for img in images if img.alt and len(img.alt) > ALT_MAX_LENGTH]
        if too_long:
            issues.add(
                "ALT_TOO_LONG", f"{len(too_long)} images have alt text over 125 characters", Severity.INFO,
                len(too_long),
                recommendation="Keep alt text concise and descriptive (under 125 characters)",
            )

    def _check_formats(self, images: list[ImageData], issues: IssueCollector) -> None:
        formats = [image_format(img.src) for img in images]

        if "webp" not in formats and "avif" not in formats:
            issues.add(
                "NO_MODERN_IMAGE_FORMATS", "No modern image formats (WebP, AVIF) detected", Severity.INFO, 10,
                recommendation="Consider using WebP or AVIF formats for better compression and performance",
            )

        legacy = sum(1 for fmt in formats if fmt in ("png", "gif"))
        if legacy > 3:
            issues.add(
                "UNOPTIMIZED_IMAGE_FORMATS", f"{legacy} images use PNG/GIF format", Severity.INFO, 5,
                recommendation="Consider converting PNG/GIF to WebP for photos and complex images",
            )

    @staticmethod
    def _stats(images: list[ImageData]) -> dict[str, int]:
        with_alt = sum(1 for img in images if img.alt and img.alt.strip())
        with_dimensions = sum(1 for img in images if img.width and img.height)
        return {
            "total": len(images),
            "with_alt": with_alt,
            "without_alt": len(images) - with_alt,
            "with_dimensions": with_dimensions,
            "without_dimensions": len(images) - with_dimensions,
            "lazy_loaded": sum(1 for img in images if img.is_lazy_loaded),
            "alt_percentage": round_half_up(with_alt / len(images) * 100),
        }
