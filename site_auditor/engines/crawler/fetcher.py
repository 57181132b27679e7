"""
Page fetchers - turn a URL into PageData.

Three adapters share one contract (async fetch(url, options) -> PageData):
- HttpPageFetcher: plain HTTP via httpx, sub-resources listed from the HTML
- BrowserPageFetcher: Playwright Chromium with per-resource response tracking
- HybridPageFetcher: HTTP first, browser only when the HTML looks client-rendered

Transport failures raise FetchError. HTTP error statuses are returned as data.
Every fetcher is an async context manager; close() releases its client/browser.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Literal
from urllib.parse import urljoin

import httpx
import structlog
from bs4 import BeautifulSoup
from playwright.async_api import Browser, Error as PlaywrightError, Playwright, Response, async_playwright

from site_auditor.core.exceptions import ConfigurationError, FetchError
from site_auditor.engines.base import CrawlConfig, PageData, ResourceData, ResourceKind

logger = structlog.get_logger(__name__)

RenderMode = Literal["http", "browser", "auto"]

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}

RESOURCE_TYPES = {
    "script": ResourceKind.SCRIPT,
    "stylesheet": ResourceKind.STYLESHEET,
    "image": ResourceKind.IMAGE,
    "font": ResourceKind.FONT,
}


@dataclass(frozen=True)
class FetchOptions:
    """Per-request fetch options."""
    timeout_ms: int = 30_000
    user_agent: str = "SiteAuditor SEO Crawler/1.0"
    viewport_width: int = 1920
    viewport_height: int = 1080
    wait_for_selector: str | None = None

    @classmethod
    def from_config(cls, config: CrawlConfig) -> FetchOptions:
        return cls(
            timeout_ms=config.timeout_ms,
            user_agent=config.user_agent,
            viewport_width=config.viewport_width,
            viewport_height=config.viewport_height,
            wait_for_selector=config.wait_for_selector,
        )

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


# ─────────────────────────────────────────────
# HTML resource listing
# ─────────────────────────────────────────────

def list_html_resources(html: str, base_url: str) -> tuple[ResourceData, ...]:
    """
    List sub-resources referenced by the HTML.
    Sizes and timings are unknown without a browser, so both stay 0.
    """
    if not html:
        return ()

    soup = BeautifulSoup(html, "lxml")
    resources: list[ResourceData] = []
    seen: set[str] = set()

    def add(ref: str | None, kind: ResourceKind) -> None:
        if not ref:
            return
        url = urljoin(base_url, ref.strip())
        if url in seen:
            return
        seen.add(url)
        resources.append(ResourceData(url=url, kind=kind))

    for script in soup.find_all("script", src=True):
        add(script.get("src"), ResourceKind.SCRIPT)

    for link in soup.find_all("link", href=True):
        rel = [r.lower() for r in (link.get("rel") or [])]
        if "stylesheet" in rel:
            add(link.get("href"), ResourceKind.STYLESHEET)
        elif "preload" in rel and (link.get("as") or "").lower() == "font":
            add(link.get("href"), ResourceKind.FONT)

    for img in soup.find_all("img"):
        add(img.get("src") or img.get("data-src"), ResourceKind.IMAGE)

    return tuple(resources)


# ─────────────────────────────────────────────
# HTTP fetcher
# ─────────────────────────────────────────────

class HttpPageFetcher:
    """Fetches pages over plain HTTP using httpx."""

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> HttpPageFetcher:
        self._ensure_client()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=DEFAULT_HEADERS,
                follow_redirects=True,
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str, options: FetchOptions | None = None) -> PageData:
        options = options or FetchOptions()
        client = self._ensure_client()
        start = time.perf_counter()

        try:
            response = await client.get(
                url,
                headers={"User-Agent": options.user_agent},
                follow_redirects=True,
                timeout=options.timeout_seconds,
            )
        except httpx.TimeoutException as e:
            raise FetchError(url, f"timed out after {options.timeout_ms}ms") from e
        except httpx.HTTPError as e:
            raise FetchError(url, str(e) or e.__class__.__name__) from e

        elapsed = (time.perf_counter() - start) * 1000
        html = response.text
        content_type = response.headers.get("content-type", "")
        resources = list_html_resources(html, str(response.url)) if "html" in content_type or not content_type else ()

        return PageData(
            url=url,
            html=html,
            status_code=response.status_code,
            headers=dict(response.headers),
            load_time_ms=elapsed,
            resources=resources,
        )


# ─────────────────────────────────────────────
# Browser fetcher
# ─────────────────────────────────────────────

class BrowserPageFetcher:
    """
    Fetches pages through headless Chromium.
    The browser is launched once and reused; each fetch gets a fresh page.
    """

    LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox", "--disable-dev-shm-usage"]

    def __init__(self, browser: Browser | None = None):
        self._browser = browser
        self._owns_browser = browser is None
        self._playwright: Playwright | None = None

    async def __aenter__(self) -> BrowserPageFetcher:
        await self._ensure_browser()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _ensure_browser(self) -> Browser:
        if self._browser is None:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=self.LAUNCH_ARGS)
        return self._browser

    async def close(self) -> None:
        if self._browser is not None and self._owns_browser:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def fetch(self, url: str, options: FetchOptions | None = None) -> PageData:
        options = options or FetchOptions()
        browser = await self._ensure_browser()
        context = await browser.new_context(
            user_agent=options.user_agent,
            viewport={"width": options.viewport_width, "height": options.viewport_height},
        )
        page = await context.new_page()

        resources: list[ResourceData] = []
        request_starts: dict[str, float] = {}

        def on_request(request) -> None:
            request_starts[request.url] = time.perf_counter()

        def on_response(response: Response) -> None:
            started = request_starts.get(response.url, time.perf_counter())
            kind = RESOURCE_TYPES.get(response.request.resource_type, ResourceKind.OTHER)
            try:
                size = int(response.headers.get("content-length", "0"))
            except ValueError:
                size = 0
            resources.append(ResourceData(
                url=response.url,
                kind=kind,
                size_bytes=size,
                load_time_ms=(time.perf_counter() - started) * 1000,
            ))

        page.on("request", on_request)
        page.on("response", on_response)

        try:
            start = time.perf_counter()
            response = await page.goto(url, wait_until="networkidle", timeout=options.timeout_ms)
            if options.wait_for_selector:
                await page.wait_for_selector(options.wait_for_selector, timeout=options.timeout_ms)
            elapsed = (time.perf_counter() - start) * 1000
            html = await page.content()
        except PlaywrightError as e:
            raise FetchError(url, e.message) from e
        finally:
            await page.close()
            await context.close()

        # The navigation response itself is the document, not a sub-resource
        document_resources = tuple(r for r in resources if r.url != (response.url if response else url))

        return PageData(
            url=url,
            html=html,
            status_code=response.status if response else 0,
            headers=response.headers if response else {},
            load_time_ms=elapsed,
            resources=document_resources,
        )


# ─────────────────────────────────────────────
# Hybrid fetcher
# ─────────────────────────────────────────────

class HybridPageFetcher:
    """
    HTTP first; re-fetch through the browser when the page looks client-rendered.
    """

    JS_INDICATORS = [
        "__NEXT_DATA__",
        "window.__data",
        "ng-version",
        "data-reactroot",
        "Vue.createApp",
        "__NUXT__",
    ]

    def __init__(self, http: HttpPageFetcher | None = None, browser: BrowserPageFetcher | None = None):
        self.http = http or HttpPageFetcher()
        self.browser = browser or BrowserPageFetcher()

    async def __aenter__(self) -> HybridPageFetcher:
        await self.http.__aenter__()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        try:
            await self.http.close()
        finally:
            await self.browser.close()

    async def fetch(self, url: str, options: FetchOptions | None = None) -> PageData:
        page = await self.http.fetch(url, options)
        if self._needs_rendering(page):
            logger.debug("JS rendering required", url=url)
            return await self.browser.fetch(url, options)
        return page

    def _needs_rendering(self, page: PageData) -> bool:
        """Heuristically determine if page needs JS rendering."""
        html = page.html
        if not html or page.status_code >= 400:
            return False

        for indicator in self.JS_INDICATORS:
            if indicator in html:
                return True

        # Large document with no paragraphs is usually an empty app shell
        soup = BeautifulSoup(html, "lxml")
        if len(html) > 1000 and not soup.find("p"):
            return True

        return False


PageFetcher = HttpPageFetcher | BrowserPageFetcher | HybridPageFetcher


def create_fetcher(mode: str = "http") -> PageFetcher:
    """Build a fetcher for the given render mode."""
    if mode == "http":
        return HttpPageFetcher()
    if mode == "browser":
        return BrowserPageFetcher()
    if mode == "auto":
        return HybridPageFetcher()
    raise ConfigurationError(f"Unknown render mode: {mode!r} (expected http, browser or auto)")
