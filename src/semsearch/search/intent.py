"""
Query Intent Classification

A keyword heuristic that suggests whether a query is looking for catalog
items, informational content, or both. The suggestion is advisory: it is
exposed to callers but never narrows an explicit search request.
"""

from __future__ import annotations

from typing import FrozenSet, Literal

from pydantic import BaseModel, Field

CATALOG_KEYWORDS: FrozenSet[str] = frozenset({
    "buy", "purchase", "price", "cost", "store", "shop", "product", "item",
    "brand", "model", "specifications", "specs", "review", "rating", "size",
    "color", "availability", "in stock", "out of stock", "order", "cart",
    "shipping", "delivery", "warranty", "discount", "sale", "offer",
})

CONTENT_KEYWORDS: FrozenSet[str] = frozenset({
    "how to", "what is", "guide", "tutorial", "learn", "understand", "explain",
    "article", "blog", "post", "information", "knowledge", "documentation",
    "help", "faq", "about", "overview", "introduction",
})

MAX_CONFIDENCE = 0.9
AMBIGUOUS_CONFIDENCE = 0.5

SuggestedType = Literal["catalog", "content", "both"]


class IntentClassification(BaseModel):
    suggested_type: SuggestedType
    confidence: float = Field(..., ge=0.0, le=1.0)
    reasoning: str


def _count_matches(query: str, keywords: FrozenSet[str]) -> int:
    # Substring match, so "prices" and "buying" count for "price" and "buy"
    return sum(1 for keyword in keywords if keyword in query)


def classify_intent(query_text: str) -> IntentClassification:
    """
    Classify a query by counting the keywords it contains.

    The side with strictly more matches wins, with confidence
    ``min(matches / len(keywords), 0.9)``. A tie, including no matches at
    all, suggests both types with confidence 0.5.
    """
    query = query_text.lower()
    catalog = _count_matches(query, CATALOG_KEYWORDS)
    content = _count_matches(query, CONTENT_KEYWORDS)

    if catalog > content:
        return IntentClassification(
            suggested_type="catalog",
            confidence=min(catalog / len(CATALOG_KEYWORDS), MAX_CONFIDENCE),
            reasoning=f"Query contains {catalog} catalog-related keywords",
        )
    if content > catalog:
        return IntentClassification(
            suggested_type="content",
            confidence=min(content / len(CONTENT_KEYWORDS), MAX_CONFIDENCE),
            reasoning=f"Query contains {content} content-related keywords",
        )
    return IntentClassification(
        suggested_type="both",
        confidence=AMBIGUOUS_CONFIDENCE,
        reasoning="Query is ambiguous, searching all content types",
    )
