"""
Structured data (JSON-LD) analyzer: presence, parse validity, common types,
and per-type recommended fields.
"""

from __future__ import annotations

from site_auditor.engines.base import Analyzer, AnalyzerResult, IssueCollector, PageData, Severity
from site_auditor.engines.crawler.extractor import PageExtractor, SchemaData

RECOMMENDED_TYPES = (
    "Organization",
    "WebSite",
    "WebPage",
    "Article",
    "Product",
    "LocalBusiness",
    "BreadcrumbList",
    "FAQPage",
)

REQUIRED_FIELDS: dict[str, list[str]] = {
    "Organization": ["name", "url"],
    "LocalBusiness": ["name", "address", "telephone"],
    "Product": ["name", "image"],
    "Article": ["headline", "author", "datePublished"],
    "Person": ["name"],
    "WebSite": ["name", "url"],
    "BreadcrumbList": ["itemListElement"],
    "FAQPage": ["mainEntity"],
}

VISUAL_TYPES = {"Product", "Article", "Recipe", "Event"}


class SchemaAnalyzer(Analyzer):
    NAME = "Structured Data"

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        schemas = extracted.get_schema_data()
        issues = IssueCollector(self.NAME)

        if not schemas:
            issues.add(
                "NO_STRUCTURED_DATA", "Page has no structured data (JSON-LD)", Severity.WARNING, 25,
                recommendation="Add JSON-LD structured data to help search engines understand your content",
            )
        else:
            valid = [s for s in schemas if s.is_valid]
            invalid = [s for s in schemas if not s.is_valid]

            if invalid:
                issues.add(
                    "INVALID_SCHEMA", f"{len(invalid)} structured data blocks have parsing errors",
                    Severity.CRITICAL, 10 * len(invalid),
                    element="; ".join(", ".join(s.errors) for s in invalid),
                    recommendation="Fix JSON-LD syntax errors to ensure search engines can parse the data",
                )

            types = [s.type for s in valid]
            if valid and not any(rt in t for t in types for rt in RECOMMENDED_TYPES):
                issues.add(
                    "UNCOMMON_SCHEMA_TYPE", f"Schema types used: {', '.join(types)}", Severity.INFO, 5,
                    recommendation="Consider adding common schema types like Organization, WebPage, or Article",
                )

            for schema in valid:
                self._check_completeness(schema, issues)

        return issues.build({
            "schemas": [s.model_dump() for s in schemas],
            "schema_types": [s.type for s in schemas],
        })

    def _check_completeness(self, schema: SchemaData, issues: IssueCollector) -> None:
        data = schema.data if isinstance(schema.data, dict) else {}

        required = REQUIRED_FIELDS.get(schema.type)
        if required:
            missing = [f for f in required if not data.get(f)]
            if missing:
                issues.add(
                    "INCOMPLETE_SCHEMA",
                    f"{schema.type} schema is missing recommended fields: {', '.join(missing)}",
                    Severity.INFO, 2 * len(missing),
                    recommendation="Add missing fields to improve rich result eligibility",
                )

        if schema.type in VISUAL_TYPES and not data.get("image"):
            issues.add(
                "SCHEMA_MISSING_IMAGE", f"{schema.type} schema is missing image property", Severity.INFO, 5,
                recommendation="Add an image to improve rich result appearance in search",
            )
