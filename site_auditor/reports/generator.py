"""
Report Generator

Serializes an AuditResult for people and machines:
- JSON (pydantic model dump)
- HTML (Jinja2 template with score cards, issues and recommendations)
- Plain-text summary for terminals and logs
"""

from __future__ import annotations

from pathlib import Path

import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_auditor.core.exceptions import ConfigurationError
from site_auditor.engines.base import AuditResult, Severity

logger = structlog.get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"
REPORT_FORMATS = ("json", "html")


def score_color(score: int) -> str:
    if score >= 90:
        return "#00c853"
    if score >= 70:
        return "#ffc107"
    if score >= 50:
        return "#ff9800"
    return "#f44336"


def get_jinja_env() -> Environment:
    """Get configured Jinja2 environment."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATE_DIR),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["score_color"] = score_color
    return env


def _severity_counts(result: AuditResult) -> dict[str, int]:
    counts = {severity.value: 0 for severity in Severity}
    for issue in result.issues:
        counts[issue.severity.value] += 1
    return counts


class ReportGenerator:
    """Renders audit results as JSON, HTML or a text summary."""

    def __init__(self):
        self.env = get_jinja_env()

    def report(self, result: AuditResult, fmt: str = "json") -> str:
        if fmt == "json":
            return self.generate_json(result)
        if fmt == "html":
            return self.generate_html(result)
        raise ConfigurationError(f"Unsupported report format: {fmt!r} (expected one of {', '.join(REPORT_FORMATS)})")

    def generate_json(self, result: AuditResult) -> str:
        return result.model_dump_json(indent=2)

    def generate_html(self, result: AuditResult) -> str:
        template = self.env.get_template("report.html.j2")
        html = template.render(
            result=result,
            scores=[
                ("Overall Score", result.scores.overall),
                ("Technical", result.scores.technical),
                ("Content", result.scores.content),
                ("Performance", result.scores.performance),
                ("Mobile", result.scores.mobile),
            ],
            counts=_severity_counts(result),
            generated_at=result.timestamp.strftime("%Y-%m-%d %H:%M UTC"),
        )
        logger.debug("HTML report rendered", url=result.url, size=len(html))
        return html

    def generate_summary(self, result: AuditResult) -> str:
        scores = result.scores
        counts = _severity_counts(result)

        lines = [
            f"SEO Audit Summary for {result.url}",
            "=" * 50,
            "",
            f"Overall Score: {scores.overall}/100",
            f"├── Technical: {scores.technical}/100",
            f"├── Content: {scores.content}/100",
            f"├── Performance: {scores.performance}/100",
            f"└── Mobile: {scores.mobile}/100",
            "",
            "Issues Found:",
            f"├── Critical: {counts['critical']}",
            f"├── Warnings: {counts['warning']}",
            f"└── Info: {counts['info']}",
            "",
        ]

        platform = result.platform
        if platform.name != "custom":
            line = f"Platform Detected: {platform.name}"
            if platform.version:
                line += f" v{platform.version}"
            if platform.theme:
                line += f" ({platform.theme})"
            lines.extend([line, ""])

        return "\n".join(lines) + "\n"
