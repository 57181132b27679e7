"""
Shared fixtures.
HTTP is always served by httpx.MockTransport; pages come from an in-memory fetcher.
"""

from typing import Callable

import httpx
import pytest

from site_auditor.core.exceptions import FetchError
from site_auditor.engines.base import PageData


def _key(url: str) -> str:
    return url.rstrip("/")


class FakeFetcher:
    """
    In-memory fetcher keyed by URL (trailing slash ignored).
    A value that is an Exception is raised instead of returned.
    """

    def __init__(self, pages: dict[str, "str | Exception"]):
        self.pages = {_key(url): body for url, body in pages.items()}
        self.calls: list[str] = []
        self.entered = 0
        self.closed = 0

    async def __aenter__(self):
        self.entered += 1
        return self

    async def __aexit__(self, *exc_info):
        self.closed += 1

    async def fetch(self, url, options=None) -> PageData:
        self.calls.append(url)
        body = self.pages.get(_key(url))
        if isinstance(body, Exception):
            raise body
        if body is None:
            raise FetchError(url, "connection refused")
        return PageData(url=url, html=body, headers={"Content-Type": "text/html"})


def html_page(
    title: str = "",
    body: str = "",
    head: str = "",
    lang: str | None = "en",
) -> str:
    lang_attr = f' lang="{lang}"' if lang else ""
    title_tag = f"<title>{title}</title>" if title else ""
    return f"<!DOCTYPE html><html{lang_attr}><head>{title_tag}{head}</head><body>{body}</body></html>"


def links_page(*hrefs: str) -> str:
    return html_page(body="".join(f'<a href="{h}">link to {h}</a>' for h in hrefs))


@pytest.fixture
def make_page() -> Callable[..., PageData]:
    def factory(html: str = "", url: str = "https://example.com/", **kwargs) -> PageData:
        return PageData(url=url, html=html, **kwargs)
    return factory


@pytest.fixture
def page_html() -> Callable[..., str]:
    return html_page


@pytest.fixture
def links_html() -> Callable[..., str]:
    return links_page


@pytest.fixture
def fake_fetcher() -> Callable[[dict], FakeFetcher]:
    return FakeFetcher


@pytest.fixture
def mock_client() -> Callable[..., httpx.AsyncClient]:
    """
    Build an AsyncClient whose responses come from a route table.
    Routes map a path (or full URL) to (status, body); anything else is a 404.
    """
    def factory(routes: dict[str, tuple[int, str]] | None = None, handler=None) -> httpx.AsyncClient:
        table = routes or {}

        def default_handler(request: httpx.Request) -> httpx.Response:
            route = table.get(str(request.url)) or table.get(request.url.path)
            if route is None:
                return httpx.Response(404, text="not found")
            status, body = route
            return httpx.Response(status, text=body)

        return httpx.AsyncClient(transport=httpx.MockTransport(handler or default_handler))
    return factory
