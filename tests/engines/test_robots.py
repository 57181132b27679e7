"""
Tests for robots.txt parsing and path policy.
"""

import httpx
import pytest

from site_auditor.engines.base import RobotsTxtData
from site_auditor.engines.crawler.robots import RobotsPolicy

ROBOTS = """
# comment line
User-agent: *
Disallow: /private
Allow: /private/public
Disallow: /tmp/
Disallow: /page
Allow: /page

User-agent: SomeCrawler
Disallow: /only-for-somecrawler

User-agent: Googlebot
Disallow: /no-google

Sitemap: https://example.com/sitemap.xml
Sitemap: https://example.com/news-sitemap.xml
"""


# ─────────────────────────────────────────────
# Parsing
# ─────────────────────────────────────────────

class TestParse:

    def test_none_means_no_robots(self):
        data = RobotsPolicy.parse(None)
        assert data.exists is False

    def test_collects_directives_for_relevant_agents(self):
        data = RobotsPolicy.parse(ROBOTS)
        assert data.exists is True
        assert data.raw_content == ROBOTS
        assert {"/private", "/tmp/", "/page", "/no-google"} <= data.disallowed_paths
        assert "/only-for-somecrawler" not in data.disallowed_paths
        assert data.allowed_paths == {"/private/public", "/page"}

    def test_sitemaps_collected_regardless_of_agent(self):
        data = RobotsPolicy.parse(ROBOTS)
        assert data.sitemap_urls == {
            "https://example.com/sitemap.xml",
            "https://example.com/news-sitemap.xml",
        }

    def test_empty_disallow_ignored(self):
        data = RobotsPolicy.parse("User-agent: *\nDisallow:\n")
        assert data.exists is True
        assert data.disallowed_paths == frozenset()


# ─────────────────────────────────────────────
# Pattern matching
# ─────────────────────────────────────────────

class TestMatches:

    def test_root_matches_everything(self):
        assert RobotsPolicy.matches("/anything/at/all", "/")

    def test_prefix(self):
        assert RobotsPolicy.matches("/private/area", "/private")
        assert not RobotsPolicy.matches("/public", "/private")

    def test_end_anchor_is_exact(self):
        assert RobotsPolicy.matches("/exact", "/exact$")
        assert not RobotsPolicy.matches("/exact/more", "/exact$")

    def test_wildcard(self):
        assert RobotsPolicy.matches("/files/report.pdf", "/*.pdf")
        assert not RobotsPolicy.matches("/images/photo.png", "/*.pdf")

    def test_wildcard_escapes_regex_characters(self):
        assert RobotsPolicy.matches("/search?q=1", "/search?*")
        assert not RobotsPolicy.matches("/searchXq=1", "/search?*")


# ─────────────────────────────────────────────
# Policy
# ─────────────────────────────────────────────

class TestIsPathAllowed:

    @pytest.fixture
    def robots(self) -> RobotsTxtData:
        return RobotsPolicy.parse(ROBOTS)

    def test_missing_robots_allows_everything(self):
        assert RobotsPolicy.is_path_allowed("/private", RobotsTxtData(exists=False))

    def test_unmatched_path_allowed(self, robots):
        assert RobotsPolicy.is_path_allowed("/about", robots)

    def test_disallowed_path_blocked(self, robots):
        assert not RobotsPolicy.is_path_allowed("/private/secret", robots)
        assert not RobotsPolicy.is_path_allowed("/tmp/file", robots)

    def test_longer_allow_wins(self, robots):
        assert RobotsPolicy.is_path_allowed("/private/public/page", robots)

    def test_equal_length_allow_does_not_win(self, robots):
        assert not RobotsPolicy.is_path_allowed("/page", robots)

    def test_shorter_allow_does_not_override_longer_disallow(self):
        data = RobotsPolicy.parse("User-agent: *\nDisallow: /ab\nAllow: /a\n")
        assert not RobotsPolicy.is_path_allowed("/ab/x", data)
        assert RobotsPolicy.is_path_allowed("/a/x", data)

    def test_disallow_all(self):
        data = RobotsPolicy.parse("User-agent: *\nDisallow: /\n")
        assert not RobotsPolicy.is_path_allowed("/", data)
        assert not RobotsPolicy.is_path_allowed("/deep/path", data)

    def test_allow_overrides_disallow_all(self):
        data = RobotsPolicy.parse("User-agent: *\nDisallow: /\nAllow: /blog\n")
        assert RobotsPolicy.is_path_allowed("/blog/post", data)
        assert not RobotsPolicy.is_path_allowed("/shop", data)


# ─────────────────────────────────────────────
# Fetching
# ─────────────────────────────────────────────

class TestFetch:

    @pytest.mark.asyncio
    async def test_fetch_parses_body(self, mock_client):
        client = mock_client({"/robots.txt": (200, ROBOTS)})
        data = await RobotsPolicy.fetch("https://example.com", client)
        assert data.exists is True
        assert "/private" in data.disallowed_paths

    @pytest.mark.asyncio
    async def test_non_2xx_means_unrestricted(self, mock_client):
        client = mock_client({"/robots.txt": (500, "oops")})
        data = await RobotsPolicy.fetch("https://example.com", client)
        assert data.exists is False
        assert RobotsPolicy.is_path_allowed("/private", data)

    @pytest.mark.asyncio
    async def test_transport_error_means_unrestricted(self, mock_client):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        data = await RobotsPolicy.fetch("https://example.com", mock_client(handler=handler))
        assert data.exists is False
