"""Records exchanged between the detector, the sitemap builder and storage.

JSON field names are camelCase (``pageType``, ``hasContent``...) so stored
blobs and recommender output load as-is; Python attributes are snake_case.
Dump with :meth:`SiteshapeModel.to_json_dict` so absent optional fields stay
absent instead of turning into ``null`` or ``""``.
"""

from datetime import datetime, timezone
from typing import Any, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Platform = Literal["shopify", "wordpress", "wix", "squarespace", "webflow", "custom", "unknown"]
Confidence = Literal["high", "medium", "low"]
PageType = Literal["homepage", "collection", "product", "page", "blog", "article", "other"]
Priority = Literal["high", "medium", "low"]
SitemapType = Literal["current", "recommended"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid4())


class SiteshapeModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# Crawl side

class PageFetchResult(SiteshapeModel):
    url: str
    html: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class ScrapedPage(SiteshapeModel):
    id: Optional[str] = None
    url: str
    title: Optional[str] = None
    content: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class SitemapXmlResult(SiteshapeModel):
    urls: list[str] = []
    child_sitemaps_found: int = 0
    errors: list[str] = []


# Platform detection

class ShopifyTemplate(SiteshapeModel):
    name: str
    count: int
    pages: list[str] = []


class ShopifyDetails(SiteshapeModel):
    theme_name: Optional[str] = None
    theme_id: Optional[str] = None
    templates: list[ShopifyTemplate] = []


class WordPressDetails(SiteshapeModel):
    theme_name: Optional[str] = None
    plugins: list[str] = []


class PlatformInfo(SiteshapeModel):
    platform: Platform
    confidence: Confidence
    signals: list[str] = []
    detected_at: datetime = Field(default_factory=utcnow)
    shopify_details: Optional[ShopifyDetails] = None
    wordpress_details: Optional[WordPressDetails] = None

    @model_validator(mode="after")
    def details_match_platform(self) -> "PlatformInfo":
        if self.shopify_details is not None and self.platform != "shopify":
            raise ValueError("shopifyDetails is only valid for platform 'shopify'")
        if self.wordpress_details is not None and self.platform != "wordpress":
            raise ValueError("wordpressDetails is only valid for platform 'wordpress'")
        return self


# Sitemap tree

class SitemapNodeMetadata(SiteshapeModel):
    # Recommenders may attach keys of their own; keep them on round-trip.
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="allow")

    title: Optional[str] = None
    page_id: Optional[str] = None
    priority: Optional[Priority] = None
    is_new: Optional[bool] = None
    is_removed: Optional[bool] = None
    is_moved: Optional[bool] = None
    moved_from: Optional[str] = None
    notes: Optional[str] = None


class SitemapNode(SiteshapeModel):
    id: str = Field(default_factory=new_id)
    label: str
    path: str
    url: Optional[str] = None
    page_type: PageType = "other"
    has_content: bool = False
    children: list["SitemapNode"] = []
    metadata: Optional[SitemapNodeMetadata] = None


class SitemapData(SiteshapeModel):
    root_node: SitemapNode
    total_pages: int
    max_depth: int
    generated_at: datetime = Field(default_factory=utcnow)
    project_url: str
    ai_rationale: Optional[str] = None
    key_changes: Optional[list[str]] = None


# Design kit

class FlatToken(SiteshapeModel):
    path: str
    type: str
    display_value: str
    raw_value: Any = None


class ProductVariant(SiteshapeModel):
    name: str
    options: list[str] = []


class Product(SiteshapeModel):
    name: str
    price: Optional[str] = None
    currency: Optional[str] = None
    description: Optional[str] = None
    variants: list[ProductVariant] = []
    specifications: dict[str, str] = {}
    brand: Optional[str] = None
    availability: Optional[str] = None
