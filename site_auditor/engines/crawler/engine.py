"""
Crawler Engine - robots-aware, depth/page bounded BFS crawler.

Architecture:
- BFS traversal from the site origin with a FIFO frontier
- Batches of `concurrency` frontier items processed under a semaphore
- Token bucket rate limiting between fetches
- robots.txt policy applied before every fetch
- Sitemap resolution (informational, does not seed the frontier)
- Duplicate content detection via MD5 body fingerprints
- Cooperative cancellation and optional wall-clock budget
"""

from __future__ import annotations

import asyncio
import hashlib
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from urllib.parse import urldefrag, urlparse

import httpx
import structlog

from site_auditor.core.config import get_settings
from site_auditor.core.exceptions import ConfigurationError, FetchError
from site_auditor.engines.base import (
    CrawlConfig,
    CrawlResult,
    CrawlStats,
    PageData,
    RobotsTxtData,
    SitemapData,
)
from site_auditor.engines.crawler.extractor import PageExtractor
from site_auditor.engines.crawler.fetcher import FetchOptions, HttpPageFetcher, PageFetcher
from site_auditor.engines.crawler.robots import RobotsPolicy
from site_auditor.engines.crawler.sitemap import SitemapIndex

logger = structlog.get_logger(__name__)


# ─────────────────────────────────────────────
# Data Structures
# ─────────────────────────────────────────────

@dataclass
class CrawlURL:
    """URL in the crawl frontier."""
    url: str
    depth: int
    parent_url: str | None = None
    expand_links: bool = True   # False for external pages


@dataclass
class RateLimiter:
    """
    Token bucket rate limiter.
    Allows burst up to max_tokens then enforces steady rate.
    """
    rate: float  # Tokens per second
    max_tokens: float
    tokens: float = field(init=False)
    last_refill: float = field(default_factory=time.monotonic, init=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False)

    def __post_init__(self):
        self.tokens = self.max_tokens

    async def acquire(self) -> None:
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self.last_refill
            self.tokens = min(self.max_tokens, self.tokens + elapsed * self.rate)
            self.last_refill = now

            if self.tokens < 1:
                wait_time = (1 - self.tokens) / self.rate
                await asyncio.sleep(wait_time)
                self.tokens = 0
                self.last_refill = time.monotonic()
            else:
                self.tokens -= 1


def site_origin(url: str) -> str:
    """scheme://host[:port] of a URL. Raises ConfigurationError for non-web URLs."""
    try:
        parsed = urlparse(url.strip())
    except (AttributeError, ValueError) as e:
        raise ConfigurationError(f"Invalid URL: {url!r}") from e
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"Invalid URL: {url!r} (expected an absolute http(s) URL)")
    return f"{parsed.scheme}://{parsed.netloc}"


def visit_key(url: str) -> str:
    """Dedup key: an empty path and "/" name the same resource."""
    parsed = urlparse(url)
    if parsed.path:
        return url
    return parsed._replace(path="/").geturl()


# ─────────────────────────────────────────────
# Main Crawler
# ─────────────────────────────────────────────

class Crawler:
    """
    BFS site crawler.

    Flow:
    1. Fetch robots.txt (when respected)
    2. Resolve sitemaps seeded from robots.txt (when included)
    3. BFS: dequeue -> visited/depth/robots checks -> fetch -> enqueue links
    4. Stop when the frontier is empty, max_pages is reached, or the run is cancelled
    """

    def __init__(
        self,
        url: str,
        config: CrawlConfig | None = None,
        fetcher: PageFetcher | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.origin = site_origin(url)
        self.host = urlparse(self.origin).netloc.lower()
        self.config = config or CrawlConfig.from_settings()
        self.fetcher = fetcher or HttpPageFetcher(client=http_client)
        self.http_client = http_client
        self.logger = structlog.get_logger(self.__class__.__name__)
        self._cancelled = False

    def cancel(self) -> None:
        """Stop the crawl at the next frontier boundary."""
        self._cancelled = True

    @property
    def fetch_options(self) -> FetchOptions:
        return FetchOptions.from_config(self.config)

    async def crawl(self) -> CrawlResult:
        settings = get_settings()
        start_time = datetime.now(timezone.utc)
        started = time.monotonic()
        stats = CrawlStats()

        robots_data: RobotsTxtData | None = None
        sitemap_data: SitemapData | None = None
        pages: list[PageData] = []
        visited: set[str] = set()
        visited_order: list[str] = []
        fingerprints: set[str] = set()

        frontier: deque[CrawlURL] = deque([CrawlURL(url=self.origin, depth=0)])
        queued: set[str] = {visit_key(self.origin)}
        stats.total_queued = 1

        rate = settings.CRAWLER_RATE_LIMIT_RPS
        rate_limiter = RateLimiter(rate=rate, max_tokens=max(1.0, min(rate * 3, 10)))
        semaphore = asyncio.Semaphore(self.config.concurrency)
        options = self.fetch_options

        client = self.http_client or httpx.AsyncClient(
            headers={"User-Agent": self.config.user_agent},
            follow_redirects=True,
        )

        try:
            async with self.fetcher:
                # Step 1: robots.txt
                if self.config.respect_robots_txt:
                    robots_data = await RobotsPolicy.fetch(
                        self.origin, client, timeout=settings.ROBOTS_FETCH_TIMEOUT
                    )

                # Step 2: sitemaps
                if self.config.include_sitemap:
                    seeds = sorted(robots_data.sitemap_urls) if robots_data else None
                    sitemap_data = await SitemapIndex(
                        self.origin, client, timeout=settings.SITEMAP_FETCH_TIMEOUT
                    ).resolve(seeds)

                async def crawl_item(item: CrawlURL) -> None:
                    async with semaphore:
                        if len(pages) >= self.config.max_pages:
                            return

                        # Dedup + depth + robots, then mark visited before any await
                        if visit_key(item.url) in visited:
                            return
                        if item.depth > self.config.max_depth:
                            stats.total_skipped += 1
                            return
                        path = urlparse(item.url).path or "/"
                        if robots_data is not None and not RobotsPolicy.is_path_allowed(path, robots_data):
                            stats.total_skipped += 1
                            self.logger.debug("Blocked by robots.txt", url=item.url)
                            return
                        visited.add(visit_key(item.url))
                        visited_order.append(item.url)

                        await rate_limiter.acquire()

                        try:
                            page = await self.fetcher.fetch(item.url, options)
                        except FetchError as e:
                            stats.total_failed += 1
                            self.logger.warning("Page fetch failed", url=item.url, error=e.reason)
                            return

                        page = page.model_copy(update={"depth": item.depth})
                        if len(pages) >= self.config.max_pages:
                            return
                        pages.append(page)
                        stats.total_crawled += 1

                        if stats.total_crawled % 25 == 0:
                            self.logger.info(
                                "Crawl progress",
                                crawled=stats.total_crawled,
                                queued=len(frontier),
                                elapsed=round(time.monotonic() - started, 2),
                            )

                        # Duplicate content detection via fingerprint
                        if page.html:
                            fp = hashlib.md5(page.html.encode()).hexdigest()
                            if fp in fingerprints:
                                stats.duplicate_content_urls.append(item.url)
                            fingerprints.add(fp)

                        if item.expand_links and item.depth < self.config.max_depth:
                            self._enqueue_links(page, item, frontier, queued, stats)

                # Step 3: BFS with batching
                while frontier and len(pages) < self.config.max_pages:
                    if self._should_stop(started):
                        break

                    batch_size = min(self.config.concurrency, len(frontier))
                    batch = [frontier.popleft() for _ in range(batch_size)]
                    results = await asyncio.gather(*[crawl_item(item) for item in batch], return_exceptions=True)

                    for item, result in zip(batch, results):
                        if isinstance(result, Exception):
                            stats.total_failed += 1
                            self.logger.warning("Crawl task failed", url=item.url, error=str(result))
        finally:
            if self.http_client is None:
                await client.aclose()

        stats.elapsed_seconds = round(time.monotonic() - started, 2)
        self.logger.info(
            "Crawl complete",
            url=self.origin,
            crawled=stats.total_crawled,
            failed=stats.total_failed,
            skipped=stats.total_skipped,
            duplicates=len(stats.duplicate_content_urls),
            elapsed=stats.elapsed_seconds,
        )

        return CrawlResult(
            url=self.origin,
            pages=pages[: self.config.max_pages],
            robots_txt=robots_data,
            sitemap=sitemap_data,
            start_time=start_time,
            end_time=datetime.now(timezone.utc),
            visited_urls=visited_order,
            stats=stats,
        )

    async def crawl_single_page(self, url: str | None = None) -> PageData:
        """Fetch exactly one page. FetchError propagates."""
        target = url or self.origin
        site_origin(target)
        async with self.fetcher:
            page = await self.fetcher.fetch(target, self.fetch_options)
        return page.model_copy(update={"depth": 0})

    def _should_stop(self, started: float) -> bool:
        if self._cancelled:
            self.logger.info("Crawl cancelled", url=self.origin)
            return True
        budget = self.config.max_duration_seconds
        if budget is not None and time.monotonic() - started >= budget:
            self.logger.info("Crawl time budget exhausted", url=self.origin, budget=budget)
            return True
        return False

    def _enqueue_links(
        self,
        page: PageData,
        item: CrawlURL,
        frontier: deque[CrawlURL],
        queued: set[str],
        stats: CrawlStats,
    ) -> None:
        extractor = PageExtractor(page.html, item.url)
        for link in extractor.get_links():
            href, _ = urldefrag(link.href)
            parsed = urlparse(href)
            if parsed.scheme not in ("http", "https") or not parsed.netloc:
                continue
            key = visit_key(href)
            if key in queued:
                continue

            is_internal = parsed.netloc.lower() == self.host
            if not is_internal and not self.config.follow_external_links:
                continue

            queued.add(key)
            frontier.append(CrawlURL(
                url=href,
                depth=item.depth + 1,
                parent_url=item.url,
                expand_links=is_internal,
            ))
            stats.total_queued += 1
