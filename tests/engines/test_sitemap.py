"""
Tests for sitemap resolution and validation.
"""

import pytest

from site_auditor.engines.base import SitemapData, SitemapUrlEntry
from site_auditor.engines.crawler.sitemap import SitemapIndex, validate_sitemap

NS = 'xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"'


def urlset(*entries: str) -> str:
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset {NS}>{"".join(entries)}</urlset>'


def url_entry(loc: str, priority: str | None = None, changefreq: str | None = None, lastmod: str | None = None) -> str:
    parts = [f"<loc>{loc}</loc>"]
    if lastmod:
        parts.append(f"<lastmod>{lastmod}</lastmod>")
    if changefreq:
        parts.append(f"<changefreq>{changefreq}</changefreq>")
    if priority:
        parts.append(f"<priority>{priority}</priority>")
    return f"<url>{''.join(parts)}</url>"


def sitemap_index(*locs: str) -> str:
    children = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex {NS}>{children}</sitemapindex>'


# ─────────────────────────────────────────────
# Resolution
# ─────────────────────────────────────────────

class TestSitemapIndex:

    @pytest.mark.asyncio
    async def test_falls_back_to_default_location(self, mock_client):
        client = mock_client({
            "/sitemap.xml": (200, urlset(
                url_entry("https://example.com/", priority="1.0", changefreq="daily", lastmod="2024-01-01"),
                url_entry("https://example.com/about"),
            )),
        })
        data = await SitemapIndex("https://example.com", client).resolve()

        assert data.exists is True
        assert [e.url for e in data.urls] == ["https://example.com/", "https://example.com/about"]
        first = data.urls[0]
        assert first.priority == 1.0
        assert first.change_frequency == "daily"
        assert first.last_modified == "2024-01-01"

    @pytest.mark.asyncio
    async def test_index_children_concatenated_without_dedup(self, mock_client):
        client = mock_client({
            "/sitemap_index.xml": (200, sitemap_index(
                "https://example.com/pages.xml",
                "https://example.com/posts.xml",
            )),
            "/pages.xml": (200, urlset(url_entry("https://example.com/a"), url_entry("https://example.com/b"))),
            "/posts.xml": (200, urlset(url_entry("https://example.com/b"), url_entry("https://example.com/c"))),
        })
        data = await SitemapIndex("https://example.com", client).resolve(["https://example.com/sitemap_index.xml"])

        assert [e.url for e in data.urls] == [
            "https://example.com/a",
            "https://example.com/b",
            "https://example.com/b",
            "https://example.com/c",
        ]

    @pytest.mark.asyncio
    async def test_cyclic_index_terminates(self, mock_client):
        client = mock_client({
            "/a.xml": (200, sitemap_index("https://example.com/b.xml", "https://example.com/a.xml")),
            "/b.xml": (200, sitemap_index("https://example.com/a.xml", "https://example.com/leaf.xml")),
            "/leaf.xml": (200, urlset(url_entry("https://example.com/only"))),
        })
        data = await SitemapIndex("https://example.com", client).resolve(["https://example.com/a.xml"])

        assert [e.url for e in data.urls] == ["https://example.com/only"]

    @pytest.mark.asyncio
    async def test_failed_sitemap_skipped(self, mock_client):
        client = mock_client({
            "/broken.xml": (500, "error"),
            "/good.xml": (200, urlset(url_entry("https://example.com/ok"))),
        })
        data = await SitemapIndex("https://example.com", client).resolve([
            "https://example.com/broken.xml",
            "https://example.com/good.xml",
        ])
        assert [e.url for e in data.urls] == ["https://example.com/ok"]

    @pytest.mark.asyncio
    async def test_total_failure_yields_empty(self, mock_client):
        data = await SitemapIndex("https://example.com", mock_client()).resolve()
        assert data.exists is False
        assert data.urls == ()

    @pytest.mark.asyncio
    async def test_unparseable_priority_dropped(self, mock_client):
        client = mock_client({"/sitemap.xml": (200, urlset(url_entry("https://example.com/x", priority="high")))})
        data = await SitemapIndex("https://example.com", client).resolve()
        assert data.urls[0].priority is None


# ─────────────────────────────────────────────
# Validation
# ─────────────────────────────────────────────

class TestValidateSitemap:

    def test_missing_sitemap(self):
        result = validate_sitemap(SitemapData(exists=False))
        assert result.is_valid is False
        assert result.issues == ["No sitemap found"]

    def test_empty_sitemap(self):
        result = validate_sitemap(SitemapData(exists=True))
        assert result.issues == ["Sitemap is empty"]

    def test_clean_sitemap_is_valid(self):
        data = SitemapData(exists=True, urls=(
            SitemapUrlEntry(url="https://example.com/", priority=0.8, change_frequency="weekly"),
        ))
        result = validate_sitemap(data)
        assert result.is_valid is True
        assert result.issues == []

    def test_reports_duplicates_and_bad_values(self):
        data = SitemapData(exists=True, urls=(
            SitemapUrlEntry(url="https://example.com/a"),
            SitemapUrlEntry(url="https://example.com/a"),
            SitemapUrlEntry(url="https://example.com/b", priority=1.5),
            SitemapUrlEntry(url="https://example.com/c", change_frequency="sometimes"),
        ))
        result = validate_sitemap(data)

        assert result.is_valid is False
        assert "Duplicate URL found: https://example.com/a" in result.issues
        assert "Invalid priority value for https://example.com/b: 1.5" in result.issues
        assert "Invalid changefreq for https://example.com/c: sometimes" in result.issues

    def test_url_limit(self):
        urls = tuple(SitemapUrlEntry(url=f"https://example.com/{i}") for i in range(50_001))
        result = validate_sitemap(SitemapData(exists=True, urls=urls))
        assert result.issues == ["Sitemap exceeds 50,000 URL limit"]
