"""
The analyzer bank - a fixed, ordered set of independent analyzers.

run_analyzers() parses the page once and fans the shared extractor out to
every analyzer concurrently. Result order always matches ANALYZERS.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

from site_auditor.engines.analyzers.content import ContentAnalyzer
from site_auditor.engines.analyzers.headings import HeadingAnalyzer
from site_auditor.engines.analyzers.images import ImageAnalyzer
from site_auditor.engines.analyzers.links import LinkAnalyzer
from site_auditor.engines.analyzers.meta import MetaAnalyzer
from site_auditor.engines.analyzers.mobile import MobileAnalyzer
from site_auditor.engines.analyzers.schema import SchemaAnalyzer
from site_auditor.engines.analyzers.security import SecurityAnalyzer
from site_auditor.engines.analyzers.technical import TechnicalAnalyzer
from site_auditor.engines.base import Analyzer, AnalyzerResult, PageData
from site_auditor.engines.crawler.extractor import PageExtractor

logger = structlog.get_logger(__name__)

ANALYZERS: tuple[type[Analyzer], ...] = (
    MetaAnalyzer,
    HeadingAnalyzer,
    ContentAnalyzer,
    LinkAnalyzer,
    ImageAnalyzer,
    TechnicalAnalyzer,
    MobileAnalyzer,
    SchemaAnalyzer,
    SecurityAnalyzer,
)


def build_analyzers(
    link_client: httpx.AsyncClient | None = None,
    check_links: bool | None = None,
) -> list[Analyzer]:
    analyzers: list[Analyzer] = []
    for analyzer_cls in ANALYZERS:
        if analyzer_cls is LinkAnalyzer:
            analyzers.append(LinkAnalyzer(client=link_client, check_links=check_links))
        else:
            analyzers.append(analyzer_cls())
    return analyzers


async def run_analyzers(
    page: PageData,
    link_client: httpx.AsyncClient | None = None,
    check_links: bool | None = None,
) -> list[AnalyzerResult]:
    """Run every analyzer over one page. A failing analyzer never affects the others."""
    extracted = PageExtractor(page.html, page.url)
    analyzers = build_analyzers(link_client=link_client, check_links=check_links)
    results = await asyncio.gather(*[a.analyze(page, extracted) for a in analyzers])
    logger.debug("Analyzer bank complete", url=page.url, analyzers=len(results))
    return list(results)
