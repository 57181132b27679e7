"""Security analyzer: HTTPS, security response headers, and mixed content."""

from __future__ import annotations

import re

from site_auditor.engines.base import Analyzer, AnalyzerResult, IssueCollector, PageData, Severity
from site_auditor.engines.crawler.extractor import PageExtractor

INSECURE_URL_RE = re.compile(r"http://[^\"'\s]+")
LOCAL_HOSTS = ("http://localhost", "http://127.0.0.1")
MAX_MIXED_CONTENT = 20

# (header, code, message, recommendation, penalty)
SECURITY_HEADERS = (
    ("strict-transport-security", "MISSING_HSTS", "Missing Strict-Transport-Security header",
     "Add HSTS header to enforce HTTPS connections", 5),
    ("content-security-policy", "MISSING_CSP", "Missing Content-Security-Policy header",
     "Add CSP header to prevent XSS and other injection attacks", 5),
    ("x-frame-options", "MISSING_X_FRAME_OPTIONS", "Missing X-Frame-Options header",
     "Add X-Frame-Options header to prevent clickjacking", 5),
    ("x-content-type-options", "MISSING_X_CONTENT_TYPE_OPTIONS", "Missing X-Content-Type-Options header",
     "Add X-Content-Type-Options: nosniff to prevent MIME type sniffing", 5),
    ("referrer-policy", "MISSING_REFERRER_POLICY", "Missing Referrer-Policy header",
     "Add Referrer-Policy header to control referrer information", 3),
)


def find_mixed_content(html: str) -> list[str]:
    """Distinct non-local http:// references, in document order, capped."""
    found = [m for m in INSECURE_URL_RE.findall(html) if not m.startswith(LOCAL_HOSTS)]
    return list(dict.fromkeys(found))[:MAX_MIXED_CONTENT]


class SecurityAnalyzer(Analyzer):
    NAME = "Security"

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        issues = IssueCollector(self.NAME)
        is_https = page.url.startswith("https")
        mixed = find_mixed_content(page.html)

        if not is_https:
            issues.add(
                "NOT_HTTPS", "Site is not using HTTPS", Severity.CRITICAL, 30,
                recommendation="Enable HTTPS to secure user data and improve SEO rankings",
            )

        present = {}
        for header, code, message, recommendation, penalty in SECURITY_HEADERS:
            present[header] = bool(page.header(header))
            if not present[header]:
                issues.add(code, message, Severity.INFO, penalty, recommendation=recommendation)

        if is_https and mixed:
            issues.add(
                "MIXED_CONTENT", f"{len(mixed)} resources loaded over insecure HTTP", Severity.WARNING,
                min(2 * len(mixed), 20),
                element=", ".join(mixed[:5]),
                recommendation="Update all resource URLs to use HTTPS to avoid mixed content warnings",
            )

        return issues.build({
            "security": {
                "is_https": is_https,
                "headers": present,
                "mixed_content": mixed,
            }
        })
