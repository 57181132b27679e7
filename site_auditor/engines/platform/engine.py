"""
Platform detection - identify the CMS behind a page.

Detectors are pure functions PageData -> PlatformInfo | None, tried in
order; the first hit wins. Pages no detector claims fall through to a
hosted-builder heuristic and finally to "custom".
"""

from __future__ import annotations

import re
from typing import Callable

import structlog

from site_auditor.engines.base import PageData, PlatformInfo

logger = structlog.get_logger(__name__)

Detector = Callable[[PageData], "PlatformInfo | None"]


def _matching_names(haystack: str, patterns: dict[str, list[str]]) -> list[str]:
    """Names whose pattern list has any hit, in dict order."""
    return [name for name, needles in patterns.items() if any(n in haystack for n in needles)]


# ─────────────────────────────────────────────
# Shopify
# ─────────────────────────────────────────────

SHOPIFY_HEADERS = ("x-shopify-stage", "x-shopid")

SHOPIFY_PATTERNS = [
    "cdn.shopify.com",
    "Shopify.theme",
    "shopify-section",
    "shopify_analytics",
    "/checkouts/internal",
    "myshopify.com",
    "window.ShopifyAnalytics",
    "Shopify.PaymentButton",
]

SHOPIFY_THEME_COMMENT_RE = re.compile(r"<!-- Theme: ([^>]+) -->")

SHOPIFY_THEMES: dict[str, list[str]] = {
    "Dawn": ["Dawn", "sections/header-group", "predictive-search"],
    "Debut": ["Debut", "debut-theme"],
    "Brooklyn": ["Brooklyn", "brooklyn-theme"],
    "Narrative": ["Narrative", "narrative-theme"],
    "Simple": ["Simple", "simple-theme"],
    "Minimal": ["Minimal", "minimal-theme"],
    "Supply": ["Supply", "supply-theme"],
    "Venture": ["Venture", "venture-theme"],
    "Boundless": ["Boundless", "boundless-theme"],
}

SHOPIFY_APPS: dict[str, list[str]] = {
    "Klaviyo": ["klaviyo", "learnq"],
    "Yotpo": ["yotpo", "staticw2.yotpo"],
    "Judge.me": ["judge.me", "judgeme"],
    "Privy": ["privy.com"],
    "Smile": ["smile.io", "sweettooth"],
    "Recharge": ["rechargeapps", "recharge-subscription"],
    "Bold": ["boldapps.net", "bold-product"],
    "Loox": ["loox.io"],
    "Stamped": ["stamped.io"],
    "PageFly": ["pagefly"],
    "GemPages": ["gempages"],
    "Shogun": ["shogun"],
}


def detect_shopify(page: PageData) -> PlatformInfo | None:
    html = page.html
    is_shopify = any(page.header(h) for h in SHOPIFY_HEADERS) or any(p in html for p in SHOPIFY_PATTERNS)
    if not is_shopify:
        return None

    # Online Store 2.0 exposes both section and template paths
    version = "2.0" if "sections/" in html and "templates/" in html else None

    theme = None
    match = SHOPIFY_THEME_COMMENT_RE.search(html)
    if match:
        theme = match.group(1).strip()
    else:
        themes = _matching_names(html, SHOPIFY_THEMES)
        theme = themes[0] if themes else None

    return PlatformInfo(
        name="shopify",
        version=version,
        theme=theme,
        plugins=tuple(_matching_names(html.lower(), SHOPIFY_APPS)),
    )


# ─────────────────────────────────────────────
# WordPress
# ─────────────────────────────────────────────

WORDPRESS_PATTERNS = [
    "wp-content/",
    "wp-includes/",
    "wp-json/",
    "wordpress",
    "/xmlrpc.php",
    "wp-embed.min.js",
    "woocommerce",
    'generator" content="wordpress',
]

WP_GENERATOR_RE = re.compile(r'generator" content="WordPress ([0-9.]+)', re.IGNORECASE)
WP_ASSET_VERSION_RE = re.compile(r'wp-includes/[^"]+\?ver=([0-9.]+)')
WP_THEME_RE = re.compile(r'wp-content/themes/([^/"]+)')

WORDPRESS_PLUGINS: dict[str, list[str]] = {
    # SEO
    "Yoast": ["yoast", "wpseo"],
    "Rank Math": ["rank-math", "rankmath"],
    "All in One SEO": ["aioseo", "all-in-one-seo"],
    "SEOPress": ["seopress"],
    "The SEO Framework": ["the-seo-framework", "tsf-"],
    # Commerce
    "WooCommerce": ["woocommerce", "wc-"],
    # Page builders
    "Elementor": ["elementor"],
    "WPBakery": ["wpbakery", "js_composer"],
    "Divi": ["divi", "et-"],
    "Beaver Builder": ["beaver-builder", "fl-"],
    "Gutenberg": ["wp-block-"],
    # Performance
    "WP Rocket": ["wp-rocket", "rocket-"],
    "Autoptimize": ["autoptimize"],
    "W3 Total Cache": ["w3-total-cache", "w3tc"],
    "LiteSpeed Cache": ["litespeed"],
    # Security
    "Wordfence": ["wordfence"],
    "Sucuri": ["sucuri"],
    "iThemes Security": ["ithemes-security", "better-wp-security"],
    # Forms
    "Contact Form 7": ["contact-form-7", "wpcf7"],
    "WPForms": ["wpforms"],
    "Gravity Forms": ["gravityforms", "gform"],
    # Other
    "Jetpack": ["jetpack"],
    "Akismet": ["akismet"],
    "MonsterInsights": ["monsterinsights"],
    "WPML": ["wpml"],
    "Polylang": ["polylang"],
}

SEO_PLUGINS = ("Yoast", "Rank Math", "All in One SEO", "SEOPress", "The SEO Framework")


def _title_case_slug(slug: str) -> str:
    return re.sub(r"\b\w", lambda m: m.group(0).upper(), slug.replace("-", " "))


def detect_wordpress(page: PageData) -> PlatformInfo | None:
    html = page.html
    lowered = html.lower()
    if not any(p in lowered for p in WORDPRESS_PATTERNS):
        return None

    version = None
    for pattern in (WP_GENERATOR_RE, WP_ASSET_VERSION_RE):
        match = pattern.search(html)
        if match:
            version = match.group(1)
            break

    theme_match = WP_THEME_RE.search(html)
    theme = _title_case_slug(theme_match.group(1)) if theme_match else None

    plugins = _matching_names(lowered, WORDPRESS_PLUGINS)
    seo_plugin = next((p for p in SEO_PLUGINS if p in plugins), None)

    return PlatformInfo(
        name="wordpress",
        version=version,
        theme=theme,
        plugins=tuple(plugins),
        seo_plugin=seo_plugin,
    )


# ─────────────────────────────────────────────
# Chain
# ─────────────────────────────────────────────

DETECTORS: tuple[Detector, ...] = (detect_shopify, detect_wordpress)

HOSTED_BUILDERS = (
    ("Wix", ("wix.com", "wixsite")),
    ("Squarespace", ("squarespace",)),
    ("Webflow", ("webflow",)),
)


def detect_platform(page: PageData) -> PlatformInfo:
    for detector in DETECTORS:
        info = detector(page)
        if info is not None:
            logger.debug("Platform detected", url=page.url, platform=info.name, theme=info.theme)
            return info

    lowered = page.html.lower()
    for builder, markers in HOSTED_BUILDERS:
        if any(m in lowered for m in markers):
            return PlatformInfo(name="custom", theme=builder)

    return PlatformInfo(name="custom")
