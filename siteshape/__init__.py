"""
siteshape
---------
Infer the structure of a website from pages that were already fetched:
which hosting platform/theme it runs on, what its page tree looks like,
and which design tokens its design kit carries.
"""

from .models import (
    FlatToken,
    PageFetchResult,
    PlatformInfo,
    Product,
    ScrapedPage,
    SitemapData,
    SitemapNode,
    SitemapXmlResult,
)
from .platform import detect_platform
from .products import format_products_for_prompt
from .sitemap import (
    build_from_scraped_pages,
    build_from_url_list,
    enrich_with_pages,
    mark_scraped,
)
from .tokens import flatten, format_for_prompt, set_value_at_path

__version__ = "0.1.0"

__all__ = [
    "FlatToken",
    "PageFetchResult",
    "PlatformInfo",
    "Product",
    "ScrapedPage",
    "SitemapData",
    "SitemapNode",
    "SitemapXmlResult",
    "build_from_scraped_pages",
    "build_from_url_list",
    "detect_platform",
    "enrich_with_pages",
    "flatten",
    "format_for_prompt",
    "format_products_for_prompt",
    "mark_scraped",
    "set_value_at_path",
]
