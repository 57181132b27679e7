"""
robots.txt parsing and path policy.

Only blocks addressed to "*" or to a bot-like agent are honoured.
Allow overrides a matching Disallow only when it is strictly longer.
"""

from __future__ import annotations

import re

import httpx
import structlog

from site_auditor.engines.base import RobotsTxtData

logger = structlog.get_logger(__name__)


class RobotsPolicy:
    """Parse robots.txt and answer path-allowed queries."""

    @staticmethod
    def parse(content: str | None) -> RobotsTxtData:
        if content is None:
            return RobotsTxtData(exists=False)

        allowed: set[str] = set()
        disallowed: set[str] = set()
        sitemaps: set[str] = set()
        relevant = False

        for line in content.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if ":" not in line:
                continue

            directive, _, value = line.partition(":")
            directive = directive.strip().lower()
            value = value.strip()

            if directive == "user-agent":
                relevant = value == "*" or "bot" in value.lower()
            elif directive == "allow":
                if relevant and value:
                    allowed.add(value)
            elif directive == "disallow":
                if relevant and value:
                    disallowed.add(value)
            elif directive == "sitemap":
                if value:
                    sitemaps.add(value)

        return RobotsTxtData(
            exists=True,
            raw_content=content,
            allowed_paths=frozenset(allowed),
            disallowed_paths=frozenset(disallowed),
            sitemap_urls=frozenset(sitemaps),
        )

    @staticmethod
    def matches(path: str, pattern: str) -> bool:
        if pattern == "/":
            return True
        if pattern.endswith("$"):
            return path == pattern[:-1]
        if "*" in pattern:
            regex = "^" + ".*".join(re.escape(part) for part in pattern.split("*"))
            return re.match(regex, path) is not None
        return path.startswith(pattern)

    @classmethod
    def is_path_allowed(cls, path: str, data: RobotsTxtData) -> bool:
        if not data.exists:
            return True

        for disallowed in sorted(data.disallowed_paths, key=lambda p: (-len(p), p)):
            if not cls.matches(path, disallowed):
                continue
            return any(
                cls.matches(path, allowed) and len(allowed) > len(disallowed)
                for allowed in data.allowed_paths
            )

        return True

    @classmethod
    async def fetch(cls, origin: str, client: httpx.AsyncClient, timeout: float = 10.0) -> RobotsTxtData:
        """Fetch and parse {origin}/robots.txt. Any failure means no robots.txt."""
        robots_url = f"{origin.rstrip('/')}/robots.txt"
        try:
            response = await client.get(robots_url, timeout=timeout, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.debug("Could not fetch robots.txt", url=robots_url, error=str(e))
            return RobotsTxtData(exists=False)

        if not response.is_success:
            logger.debug("robots.txt not available", url=robots_url, status=response.status_code)
            return RobotsTxtData(exists=False)

        data = cls.parse(response.text)
        logger.info(
            "robots.txt parsed",
            url=robots_url,
            disallowed=len(data.disallowed_paths),
            sitemaps=len(data.sitemap_urls),
        )
        return data
