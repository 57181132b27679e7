"""
XML sitemap discovery and validation.

Sitemap indexes are followed recursively. A visited set guards against
indexes that reference each other. Entries are concatenated in fetch order
without cross-sitemap deduplication, so validate_sitemap() can report
duplicates.
"""

from __future__ import annotations

import httpx
import structlog
from bs4 import BeautifulSoup

from site_auditor.engines.base import SitemapData, SitemapUrlEntry, SitemapValidation

logger = structlog.get_logger(__name__)

MAX_SITEMAP_URLS = 50_000
VALID_CHANGE_FREQUENCIES = {"always", "hourly", "daily", "weekly", "monthly", "yearly", "never"}


def _child_text(node, name: str) -> str | None:
    child = node.find(name)
    if child is None:
        return None
    text = child.get_text(strip=True)
    return text or None


def _parse_priority(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


class SitemapIndex:
    """Resolves a set of sitemap URLs into a flat SitemapData."""

    def __init__(self, origin: str, client: httpx.AsyncClient, timeout: float = 15.0):
        self.origin = origin.rstrip("/")
        self.client = client
        self.timeout = timeout

    async def resolve(self, seed_urls: list[str] | None = None) -> SitemapData:
        seeds = list(seed_urls) if seed_urls else [f"{self.origin}/sitemap.xml"]
        visited: set[str] = set()
        entries: list[SitemapUrlEntry] = []

        for url in seeds:
            entries.extend(await self._parse_sitemap(url, visited))

        logger.info("Sitemaps resolved", seeds=len(seeds), fetched=len(visited), urls=len(entries))
        return SitemapData(exists=bool(entries), urls=tuple(entries))

    async def _parse_sitemap(self, url: str, visited: set[str]) -> list[SitemapUrlEntry]:
        if url in visited:
            logger.debug("Sitemap already visited", url=url)
            return []
        visited.add(url)

        try:
            response = await self.client.get(url, timeout=self.timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.debug("Sitemap fetch failed", url=url, error=str(e))
            return []

        if not response.is_success:
            logger.debug("Sitemap not available", url=url, status=response.status_code)
            return []

        soup = BeautifulSoup(response.content, "xml")

        index = soup.find("sitemapindex")
        if index is not None:
            entries: list[SitemapUrlEntry] = []
            for sitemap in index.find_all("sitemap"):
                loc = _child_text(sitemap, "loc")
                if loc:
                    entries.extend(await self._parse_sitemap(loc, visited))
            return entries

        urlset = soup.find("urlset")
        if urlset is None:
            logger.debug("Sitemap has no urlset", url=url)
            return []

        entries = []
        for node in urlset.find_all("url"):
            loc = _child_text(node, "loc")
            if not loc:
                continue
            entries.append(SitemapUrlEntry(
                url=loc,
                last_modified=_child_text(node, "lastmod"),
                priority=_parse_priority(_child_text(node, "priority")),
                change_frequency=_child_text(node, "changefreq"),
            ))
        return entries


def validate_sitemap(data: SitemapData) -> SitemapValidation:
    """Advisory validation. Never raises."""
    issues: list[str] = []

    if not data.exists:
        return SitemapValidation(is_valid=False, issues=["No sitemap found"])

    if not data.urls:
        issues.append("Sitemap is empty")

    if len(data.urls) > MAX_SITEMAP_URLS:
        issues.append("Sitemap exceeds 50,000 URL limit")

    seen: set[str] = set()
    for entry in data.urls:
        if entry.url in seen:
            issues.append(f"Duplicate URL found: {entry.url}")
        seen.add(entry.url)

        if entry.priority is not None and not 0 <= entry.priority <= 1:
            issues.append(f"Invalid priority value for {entry.url}: {entry.priority}")

        if entry.change_frequency and entry.change_frequency not in VALID_CHANGE_FREQUENCIES:
            issues.append(f"Invalid changefreq for {entry.url}: {entry.change_frequency}")

    return SitemapValidation(is_valid=not issues, issues=issues)
