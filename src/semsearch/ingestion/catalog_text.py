"""
Catalog Item Text Synthesis

Builds the free-text blob that is embedded for a catalog item. The blob spells
out structured attributes in words (price bands, availability phrases) so
that natural-language queries land near the right items.
"""

from __future__ import annotations

from typing import List, Optional

from ..embeddings.models import CatalogAttributes, CatalogItem


CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CAD": "C$",
    "AUD": "A$",
}

# Static rates; good enough for range filtering and price-band wording
USD_CONVERSION_RATES = {
    "USD": 1.0,
    "EUR": 1.08,
    "GBP": 1.25,
    "CAD": 0.74,
    "AUD": 0.66,
    "JPY": 0.0067,
}

AVAILABILITY_PHRASES = {
    "in_stock": "in stock, available, ready to ship",
    "out_of_stock": "out of stock, unavailable, sold out",
    "limited": "limited stock, few remaining, almost sold out",
    "pre_order": "pre-order, coming soon, advance order",
}


def currency_symbol(currency: str) -> str:
    return CURRENCY_SYMBOLS.get(currency.upper(), currency)


def normalize_price_to_usd(price: float, currency: Optional[str]) -> float:
    """Convert a price to USD, rounded to cents. Unknown currencies pass through."""
    rate = USD_CONVERSION_RATES.get((currency or "USD").upper(), 1.0)
    return round(price * rate, 2)


def price_descriptors(price: float) -> List[str]:
    if price < 25:
        return ["budget", "affordable", "cheap"]
    if price < 100:
        return ["moderate", "mid-range"]
    if price < 500:
        return ["premium"]
    return ["luxury", "high-end", "expensive"]


def _format_number(value: float) -> str:
    return f"{value:g}"


def _price_text(attrs: CatalogAttributes) -> Optional[str]:
    if attrs.price is None or not attrs.currency:
        return None
    symbol = currency_symbol(attrs.currency)
    descriptors = ", ".join(price_descriptors(attrs.price))
    return f"{symbol}{_format_number(attrs.price)} ({descriptors})"


def synthesize_searchable_text(item: CatalogItem) -> str:
    """
    Render a catalog item as newline-separated "Label: value" lines.
    """
    attrs = item.attributes
    parts: List[str] = [f"Product: {item.title}"]

    if item.description:
        parts.append(f"Description: {item.description}")
    if item.short_description:
        parts.append(f"Summary: {item.short_description}")

    if attrs.brand:
        parts.append(f"Brand: {attrs.brand}")
    if attrs.category:
        parts.append(f"Category: {attrs.category}")
        if attrs.subcategory:
            parts.append(f"Subcategory: {attrs.subcategory}")

    price = _price_text(attrs)
    if price:
        parts.append(f"Price: {price}")

    if attrs.specifications:
        specs = ", ".join(f"{key}: {value}" for key, value in attrs.specifications.items())
        parts.append(f"Specifications: {specs}")

    if attrs.tags:
        parts.append(f"Tags: {', '.join(attrs.tags)}")

    if attrs.availability:
        parts.append(f"Availability: {AVAILABILITY_PHRASES[attrs.availability]}")

    if attrs.rating is not None and attrs.reviews_count:
        parts.append(
            f"Rated {_format_number(attrs.rating)} out of 5 with {attrs.reviews_count} reviews"
        )

    if attrs.weight is not None:
        parts.append(f"Weight: {_format_number(attrs.weight)}")

    dims = attrs.dimensions
    if dims and dims.length and dims.width and dims.height:
        unit = f" {dims.unit}" if dims.unit else ""
        parts.append(
            "Dimensions: "
            f"{_format_number(dims.length)}x{_format_number(dims.width)}x{_format_number(dims.height)}{unit}"
        )

    return "\n".join(parts)
