"""Render extracted product records as context for a mockup prompt."""

from typing import Iterable

from .models import Product

MAX_PROMPT_CHARS = 2000
MAX_DESCRIPTION_CHARS = 150
MAX_LISTED_OPTIONS = 5
MAX_SPECS = 5


def _variant_summary(product: Product) -> str:
    parts = []
    for variant in product.variants:
        count = len(variant.options)
        listed = ": " + ", ".join(variant.options) if count <= MAX_LISTED_OPTIONS else ""
        parts.append(f"{variant.name} ({count} options{listed})")
    return ", ".join(parts)


def format_products_for_prompt(products: Iterable[Product]) -> str:
    products = list(products)
    if not products:
        return ""

    lines = ["REAL PRODUCT DATA (use exact names, prices, descriptions):", ""]
    for i, p in enumerate(products, start=1):
        lines.append(f'Product {i}: "{p.name}"')
        if p.price:
            suffix = f" {p.currency}" if p.currency and p.currency != "USD" else ""
            lines.append(f"- Price: {p.price}{suffix}")
        if p.description:
            more = "..." if len(p.description) > MAX_DESCRIPTION_CHARS else ""
            lines.append(f"- Description: {p.description[:MAX_DESCRIPTION_CHARS]}{more}")
        if p.variants:
            lines.append(f"- Variants: {_variant_summary(p)}")
        if p.specifications:
            specs = list(p.specifications.items())[:MAX_SPECS]
            lines.append("- Key specs: " + ", ".join(f"{k}: {v}" for k, v in specs))
        if p.brand:
            lines.append(f"- Brand: {p.brand}")
        if p.availability:
            lines.append(f"- Availability: {p.availability}")
        lines.append("")

    result = "\n".join(lines)
    if len(result) > MAX_PROMPT_CHARS:
        result = result[:MAX_PROMPT_CHARS - 3] + "..."
    return result
