"""
Link analyzer.

Counts, internal/external split, anchor text quality, and an outbound
liveness probe (HEAD) over a bounded number of distinct link targets.
Probe transport errors are inconclusive and never penalized.
"""

from __future__ import annotations

import asyncio
from urllib.parse import urldefrag

import httpx

from site_auditor.core.config import get_settings
from site_auditor.engines.base import Analyzer, AnalyzerResult, IssueCollector, PageData, Severity
from site_auditor.engines.crawler.extractor import LinkData, PageExtractor

MAX_LINKS = 100
ANCHOR_PENALTY_CAP = 20
GENERIC_ANCHORS = {"click here", "read more", "learn more", "here", "link"}


class LinkAnalyzer(Analyzer):
    NAME = "Links"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        check_links: bool | None = None,
        timeout: float | None = None,
        max_probes: int | None = None,
    ):
        super().__init__()
        settings = get_settings()
        self.client = client
        self.check_links = settings.LINK_CHECK_ENABLED if check_links is None else check_links
        self.timeout = timeout or settings.LINK_CHECK_TIMEOUT
        self.max_probes = max_probes or settings.LINK_CHECK_MAX_LINKS

    async def run(self, page: PageData, extracted: PageExtractor) -> AnalyzerResult:
        links = extracted.get_links()
        internal = [l for l in links if l.is_internal]
        external = [l for l in links if not l.is_internal]
        issues = IssueCollector(self.NAME)

        if not links:
            issues.add(
                "NO_LINKS", "Page has no links", Severity.WARNING, 15,
                recommendation="Add internal and external links to provide value and improve navigation",
            )
        elif len(links) > MAX_LINKS:
            issues.add(
                "TOO_MANY_LINKS", f"Page has {len(links)} links", Severity.INFO, 5,
                recommendation="Consider reducing the number of links. Too many links may dilute link equity",
            )

        if links and not internal:
            issues.add(
                "NO_INTERNAL_LINKS", "Page has no internal links", Severity.WARNING, 15,
                recommendation="Add internal links to help users navigate and distribute link equity",
            )

        insecure = [l for l in external if l.href.startswith("http://")]
        if insecure:
            issues.add(
                "INSECURE_EXTERNAL_LINKS", f"{len(insecure)} external links use HTTP instead of HTTPS",
                Severity.INFO, 5,
                element=", ".join(l.href for l in insecure[:3]),
                recommendation="Update external links to use HTTPS where available",
            )

        self._check_anchor_text(links, issues)

        broken: list[str] = []
        if self.check_links:
            broken = await self.find_broken_links(links)
            if broken:
                issues.add(
                    "BROKEN_LINKS", f"{len(broken)} broken links detected", Severity.CRITICAL, 5 * len(broken),
                    element=", ".join(broken[:5]),
                    recommendation="Fix or remove broken links to improve user experience and SEO",
                )

        return issues.build({
            "total_links": len(links),
            "internal_links": len(internal),
            "external_links": len(external),
            "nofollow_links": sum(1 for l in links if l.is_nofollow),
            "broken_links": broken,
            "links": [l.model_dump() for l in links],
        })

    def _check_anchor_text(self, links: list[LinkData], issues: IssueCollector) -> None:
        group_penalty = 0

        empty = [l for l in links if not l.text.strip()]
        if empty:
            issues.add(
                "EMPTY_ANCHOR_TEXT", f"{len(empty)} links have no anchor text", Severity.WARNING,
                element=", ".join(l.href for l in empty[:3]),
                recommendation="Add descriptive anchor text to all links",
            )
            group_penalty += 2 * len(empty)

        generic = [l for l in links if l.text.strip().lower() in GENERIC_ANCHORS]
        if generic:
            issues.add(
                "GENERIC_ANCHOR_TEXT", f"{len(generic)} links use generic anchor text", Severity.INFO,
                element=", ".join(f'"{l.text}"' for l in generic[:3]),
                recommendation="Use descriptive anchor text that indicates the link destination",
            )
            group_penalty += len(generic)

        issues.deduct(min(group_penalty, ANCHOR_PENALTY_CAP))

    async def find_broken_links(self, links: list[LinkData]) -> list[str]:
        """HEAD-probe distinct link targets. Returns the ones answering >= 400."""
        targets = list(dict.fromkeys(urldefrag(l.href).url for l in links))[: self.max_probes]
        targets = [t for t in targets if t.startswith("http")]
        if not targets:
            return []

        if self.client is not None:
            statuses = await asyncio.gather(*[self._probe(self.client, t) for t in targets])
        else:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                statuses = await asyncio.gather(*[self._probe(client, t) for t in targets])

        return [t for t, status in zip(targets, statuses) if status is not None and status >= 400]

    async def _probe(self, client: httpx.AsyncClient, url: str) -> int | None:
        try:
            response = await client.head(url, timeout=self.timeout, follow_redirects=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            self.logger.debug("Link probe inconclusive", url=url, error=str(e))
            return None
        return response.status_code
