"""
PageExtractor - structured signals from raw HTML.

Built once per page and shared by every analyzer, so nothing here may
modify the parsed tree after construction.
"""

from __future__ import annotations

import json
import re
from typing import Any
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, Tag
from bs4.element import PreformattedString
from pydantic import BaseModel, ConfigDict, Field

NON_TEXT_TAGS = ["script", "style", "noscript", "iframe", "template"]
CHARSET_RE = re.compile(r"charset=([^;]+)", re.IGNORECASE)
LEADING_INT_RE = re.compile(r"^\s*(\d+)")


# ─────────────────────────────────────────────
# Extraction records
# ─────────────────────────────────────────────

class MetaData(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str | None = None
    description: str | None = None
    keywords: str | None = None
    canonical: str | None = None
    robots: str | None = None
    og_title: str | None = None
    og_description: str | None = None
    og_image: str | None = None
    og_type: str | None = None
    twitter_card: str | None = None
    twitter_title: str | None = None
    twitter_description: str | None = None
    twitter_image: str | None = None
    viewport: str | None = None
    charset: str | None = None


class HeadingData(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: int
    text: str
    order: int


class LinkData(BaseModel):
    model_config = ConfigDict(frozen=True)

    href: str
    text: str
    is_internal: bool
    is_nofollow: bool = False


class ImageData(BaseModel):
    model_config = ConfigDict(frozen=True)

    src: str
    alt: str | None = None      # None = attribute absent, "" = empty
    width: int | None = None
    height: int | None = None
    is_lazy_loaded: bool = False


class SchemaData(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    data: Any = Field(default_factory=dict)
    is_valid: bool = True
    errors: list[str] = Field(default_factory=list)


def _parse_dimension(raw: str | None) -> int | None:
    if not raw:
        return None
    match = LEADING_INT_RE.match(raw)
    return int(match.group(1)) if match else None


def _schema_type(data: Any) -> str:
    if not isinstance(data, dict):
        return "Unknown"
    value = data.get("@type")
    if isinstance(value, list):
        value = value[0] if value else None
    return str(value) if value else "Unknown"


# ─────────────────────────────────────────────
# Extractor
# ─────────────────────────────────────────────

class PageExtractor:
    """Read-only view over one page's HTML."""

    def __init__(self, html: str, base_url: str):
        self.base_url = base_url
        self.base_host = urlparse(base_url).netloc.lower()
        self._soup = BeautifulSoup(html or "", "lxml")

    def _absolute(self, ref: str) -> str:
        try:
            return urljoin(self.base_url, ref)
        except ValueError:
            return ref

    def _meta_content(self, **attrs: str) -> str | None:
        tag = self._soup.find("meta", attrs=attrs)
        if tag is None:
            return None
        return tag.get("content") or None

    def get_meta(self) -> MetaData:
        title_tag = self._soup.find("title")
        title = title_tag.get_text(strip=True) if title_tag else ""

        canonical = None
        canonical_tag = self._soup.find("link", rel="canonical")
        if canonical_tag is not None:
            canonical = canonical_tag.get("href") or None

        charset = None
        charset_tag = self._soup.find("meta", charset=True)
        if charset_tag is not None:
            charset = charset_tag.get("charset") or None
        if charset is None:
            http_equiv = self._soup.find(
                "meta", attrs={"http-equiv": lambda v: v is not None and v.lower() == "content-type"}
            )
            if http_equiv is not None:
                match = CHARSET_RE.search(http_equiv.get("content") or "")
                charset = match.group(1).strip() if match else None

        return MetaData(
            title=title or None,
            description=self._meta_content(name="description"),
            keywords=self._meta_content(name="keywords"),
            canonical=canonical,
            robots=self._meta_content(name="robots"),
            og_title=self._meta_content(property="og:title"),
            og_description=self._meta_content(property="og:description"),
            og_image=self._meta_content(property="og:image"),
            og_type=self._meta_content(property="og:type"),
            twitter_card=self._meta_content(name="twitter:card"),
            twitter_title=self._meta_content(name="twitter:title"),
            twitter_description=self._meta_content(name="twitter:description"),
            twitter_image=self._meta_content(name="twitter:image"),
            viewport=self._meta_content(name="viewport"),
            charset=charset,
        )

    def get_headings(self) -> list[HeadingData]:
        return [
            HeadingData(level=int(tag.name[1]), text=tag.get_text(strip=True), order=order)
            for order, tag in enumerate(self._soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"]))
        ]

    def get_links(self) -> list[LinkData]:
        links: list[LinkData] = []
        for a in self._soup.find_all("a", href=True):
            href = a["href"]
            if not href:
                continue
            absolute = self._absolute(href.strip())
            rel = a.get("rel") or []
            if isinstance(rel, str):
                rel = rel.split()
            links.append(LinkData(
                href=absolute,
                text=a.get_text(strip=True),
                is_internal=urlparse(absolute).netloc.lower() == self.base_host,
                is_nofollow="nofollow" in [r.lower() for r in rel],
            ))
        return links

    def get_images(self) -> list[ImageData]:
        images: list[ImageData] = []
        for img in self._soup.find_all("img"):
            src = img.get("src") or img.get("data-src")
            if not src:
                continue
            images.append(ImageData(
                src=self._absolute(src.strip()),
                alt=img.get("alt"),
                width=_parse_dimension(img.get("width")),
                height=_parse_dimension(img.get("height")),
                is_lazy_loaded=bool(img.get("loading")) or bool(img.get("data-src")),
            ))
        return images

    def get_schema_data(self) -> list[SchemaData]:
        schemas: list[SchemaData] = []
        for script in self._soup.find_all("script", type="application/ld+json"):
            content = script.string or script.get_text()
            if not content or not content.strip():
                continue
            try:
                data = json.loads(content)
            except json.JSONDecodeError as e:
                schemas.append(SchemaData(type="ParseError", data={}, is_valid=False, errors=[str(e)]))
                continue
            schemas.append(SchemaData(type=_schema_type(data), data=data))
        return schemas

    def get_text_content(self) -> str:
        """Visible body text, whitespace-collapsed."""
        body = self._soup.body
        if body is None:
            return ""
        parts = []
        for node in body.find_all(string=True):
            if isinstance(node, PreformattedString):
                continue
            if node.find_parent(NON_TEXT_TAGS) is not None:
                continue
            parts.append(str(node))
        return " ".join("".join(parts).split())

    def get_word_count(self) -> int:
        return len(self.get_text_content().split())

    def get_paragraph_count(self) -> int:
        return sum(1 for p in self._soup.find_all("p") if p.get_text(strip=True))

    def get_language(self) -> str | None:
        html = self._soup.find("html")
        if html is None:
            return None
        return html.get("lang") or None

    def has_viewport(self) -> bool:
        return self._soup.find("meta", attrs={"name": "viewport"}) is not None

    def get_favicon(self) -> str | None:
        for link in self._soup.find_all("link", href=True):
            rel = [r.lower() for r in (link.get("rel") or [])]
            if "icon" in rel:
                return self._absolute(link["href"])
        return None

    def get_scripts(self) -> list[str]:
        return [self._absolute(s["src"]) for s in self._soup.find_all("script", src=True) if s["src"]]

    def get_stylesheets(self) -> list[str]:
        return [
            self._absolute(link["href"])
            for link in self._soup.find_all("link", href=True)
            if "stylesheet" in [r.lower() for r in (link.get("rel") or [])] and link["href"]
        ]

    def has_element(self, name: str) -> bool:
        return isinstance(self._soup.find(name), Tag)

    def has_srcset(self) -> bool:
        return self._soup.find(["img", "source"], srcset=True) is not None
