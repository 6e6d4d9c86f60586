"""
Platform fingerprinting.

Each platform has an ordered table of ``(predicate, label)`` signals. A signal
fires when its predicate holds for at least one page of the batch; the label
is recorded once no matter how many pages match. The platform with the most
fired signals wins, ties going to the earlier table. Theme/template/plugin
details are only extracted for a Shopify or WordPress winner.
"""

import logging
import re
from typing import Callable, Iterable, Mapping, NamedTuple, Sequence

from .models import (
    Confidence,
    PageFetchResult,
    Platform,
    PlatformInfo,
    ShopifyDetails,
    ShopifyTemplate,
    WordPressDetails,
)

logger = logging.getLogger(__name__)

MAX_TEMPLATE_SAMPLES = 5

Predicate = Callable[[PageFetchResult], bool]


class Signal(NamedTuple):
    predicate: Predicate
    label: str


class Candidate(NamedTuple):
    platform: Platform
    signals: list[str]


def html_contains(*needles: str) -> Predicate:
    def predicate(page: PageFetchResult) -> bool:
        html = page.html or ""
        return any(needle in html for needle in needles)

    return predicate


def html_matches(pattern: str, flags: int = 0) -> Predicate:
    rx = re.compile(pattern, flags)

    def predicate(page: PageFetchResult) -> bool:
        return rx.search(page.html or "") is not None

    return predicate


def url_contains(needle: str) -> Predicate:
    return lambda page: needle in page.url


def metadata_has(*keys: str) -> Predicate:
    def predicate(page: PageFetchResult) -> bool:
        meta = page.metadata or {}
        return any(meta.get(key) for key in keys)

    return predicate


def generator_is(name: str) -> Predicate:
    return html_matches(rf"generator.*{name}", re.IGNORECASE)


DETECTORS: list[tuple[Platform, list[Signal]]] = [
    ("shopify", [
        Signal(metadata_has("shopify-checkout-api-token", "shopify-digital-wallet"),
               "shopify-checkout-api-token in metadata"),
        Signal(html_contains("cdn.shopify.com"), "cdn.shopify.com in HTML"),
        Signal(html_matches(r"Shopify\.theme\s*="), "Shopify.theme JS object in HTML"),
        Signal(url_contains(".myshopify.com"), ".myshopify.com in URL"),
        Signal(html_matches(r'class="[^"]*template-\w+'), "Shopify template-* body classes"),
        Signal(html_contains("shopify-section"), "shopify-section elements in HTML"),
    ]),
    ("wordpress", [
        Signal(html_contains("wp-content/"), "wp-content/ path in HTML"),
        Signal(html_contains("wp-includes/"), "wp-includes/ path in HTML"),
        Signal(html_contains("wp-json"), "wp-json API reference in HTML"),
        Signal(generator_is("wordpress"), "WordPress generator meta tag"),
    ]),
    ("wix", [
        Signal(html_contains("wixstatic.com"), "wixstatic.com in HTML"),
        Signal(html_matches(r"static\.wixstatic\.com|static\.parastorage\.com|wix-code-sdk"),
               "Wix platform assets in HTML"),
        Signal(generator_is("wix"), "Wix generator meta tag"),
    ]),
    ("squarespace", [
        Signal(html_contains("static1.squarespace.com", "squarespace-cdn.com"), "Squarespace CDN in HTML"),
        Signal(generator_is("squarespace"), "Squarespace generator meta tag"),
        Signal(html_contains("data-squarespace-cacheversion"), "Squarespace cache version attribute"),
    ]),
    ("webflow", [
        Signal(html_matches(r"data-wf-"), "data-wf-* attributes in HTML"),
        Signal(html_contains("webflow.io", "assets.website-files.com"), "Webflow hosting references in HTML"),
        Signal(generator_is("webflow"), "Webflow generator meta tag"),
    ]),
]


def run_detector(platform: Platform, signals: Sequence[Signal],
                 pages: Sequence[PageFetchResult]) -> Candidate | None:
    fired = [s.label for s in signals if any(s.predicate(page) for page in pages)]
    if not fired:
        return None
    logger.debug("%s signals: %s", platform, ", ".join(fired))
    return Candidate(platform, fired)


def confidence_for(signals: Sequence[str]) -> Confidence:
    if len(signals) >= 3:
        return "high"
    if len(signals) >= 2:
        return "medium"
    return "low"


# Detail extraction

THEME_NAME_PATTERNS = [
    re.compile(r'Shopify\.theme\s*=\s*\{[^}]*"name"\s*:\s*"([^"]+)"'),
    re.compile(r"""Shopify\.theme\s*=\s*\{[^}]*name:\s*["']([^"']+)["']"""),
]
THEME_ID_PATTERNS = [
    re.compile(r'Shopify\.theme\s*=\s*\{[^}]*"id"\s*:\s*(\d+)', re.ASCII),
    re.compile(r"Shopify\.theme\s*=\s*\{[^}]*id:\s*(\d+)", re.ASCII),
]
BODY_CLASS_RE = re.compile(r'<body[^>]*class="([^"]*)"')
TEMPLATE_CLASS_RE = re.compile(r"template-(\w+)", re.ASCII)
WP_THEME_RE = re.compile(r'wp-content/themes/([^/"]+)')
WP_PLUGIN_RE = re.compile(r'wp-content/plugins/([^/"]+)')


def _first_group(patterns: Iterable[re.Pattern], text: str) -> str | None:
    for rx in patterns:
        match = rx.search(text)
        if match:
            return match.group(1)
    return None


def extract_shopify_details(pages: Sequence[PageFetchResult]) -> ShopifyDetails:
    theme_name = theme_id = None
    for page in pages:
        html = page.html or ""
        theme_name = _first_group(THEME_NAME_PATTERNS, html) or theme_name
        theme_id = _first_group(THEME_ID_PATTERNS, html) or theme_id
        if theme_name:
            break

    templates: dict[str, list[str]] = {}
    for page in pages:
        body = BODY_CLASS_RE.search(page.html or "")
        if not body:
            continue
        template = TEMPLATE_CLASS_RE.search(body.group(1))
        if template:
            templates.setdefault(template.group(1), []).append(page.url)

    return ShopifyDetails(
        theme_name=theme_name,
        theme_id=theme_id,
        templates=[
            ShopifyTemplate(name=name, count=len(urls), pages=urls[:MAX_TEMPLATE_SAMPLES])
            for name, urls in templates.items()
        ],
    )


def extract_wordpress_details(pages: Sequence[PageFetchResult]) -> WordPressDetails:
    theme_name = None
    plugins: dict[str, None] = {}
    for page in pages:
        html = page.html or ""
        if theme_name is None:
            match = WP_THEME_RE.search(html)
            if match:
                theme_name = match.group(1)
        for match in WP_PLUGIN_RE.finditer(html):
            plugins.setdefault(match.group(1))
    return WordPressDetails(theme_name=theme_name, plugins=list(plugins))


def detect_platform(pages: Iterable[PageFetchResult | Mapping]) -> PlatformInfo:
    """Classify a batch of fetched pages. Never raises; no evidence means ``unknown``."""
    batch = [p if isinstance(p, PageFetchResult) else PageFetchResult.model_validate(p) for p in pages or []]

    candidates = []
    if batch:
        for platform, signals in DETECTORS:
            candidate = run_detector(platform, signals, batch)
            if candidate:
                candidates.append(candidate)

    if not candidates:
        logger.info("No platform signals in %d page(s)", len(batch))
        return PlatformInfo(platform="unknown", confidence="low", signals=[])

    # sort is stable, so ties keep detector order
    candidates.sort(key=lambda c: len(c.signals), reverse=True)
    winner = candidates[0]
    info = PlatformInfo(
        platform=winner.platform,
        confidence=confidence_for(winner.signals),
        signals=winner.signals,
        shopify_details=extract_shopify_details(batch) if winner.platform == "shopify" else None,
        wordpress_details=extract_wordpress_details(batch) if winner.platform == "wordpress" else None,
    )

    logger.info("Detected %s (%s confidence, %d signal(s))",
                info.platform, info.confidence, len(info.signals))
    return info
