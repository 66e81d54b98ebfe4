"""
Catalog Vector Store

Stores one vector per catalog item (no chunking) and answers semantic
queries with a flat, ranked list of items. Structured filters narrow the
candidate set before similarity ranking.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from ..embeddings.models import (
    Availability,
    CatalogHit,
    CatalogItem,
    CatalogPayload,
    SourceKind,
    VectorRecord,
    make_catalog_record_id,
)
from ..ingestion.catalog_text import normalize_price_to_usd, synthesize_searchable_text
from .tenant_store import TenantVectorStore

EXCERPT_LENGTH = 200


class CatalogFilters(BaseModel):
    """Exact-match pre-filters, combined with AND."""

    category: Optional[str] = None
    brand: Optional[str] = None
    availability: Optional[Availability] = None

    model_config = ConfigDict(extra="forbid")

    def as_conditions(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


def searchable_text_for(item: CatalogItem) -> str:
    if item.searchable_text and item.searchable_text.strip():
        return item.searchable_text
    return synthesize_searchable_text(item)


def matched_excerpt(text: str) -> str:
    if len(text) <= EXCERPT_LENGTH:
        return text
    return text[:EXCERPT_LENGTH] + "..."


class CatalogVectorStore(TenantVectorStore[CatalogItem]):
    """
    Tenant-scoped store of catalog items.
    """

    source_kind = SourceKind.CATALOG_ITEM
    logger = logging.getLogger("semsearch.catalog_store")

    def unit_id(self, unit: CatalogItem) -> str:
        return unit.id

    def embedding_text(self, unit: CatalogItem) -> str:
        return searchable_text_for(unit)

    def build_record(
        self,
        tenant_id: str,
        unit: CatalogItem,
        embedding: List[float],
    ) -> VectorRecord:
        attrs = unit.attributes
        price = (
            normalize_price_to_usd(attrs.price, attrs.currency)
            if attrs.price is not None
            else None
        )
        payload = CatalogPayload(
            item_id=unit.id,
            title=unit.title,
            url=unit.url,
            price=price,
            currency=attrs.currency,
            category=attrs.category,
            brand=attrs.brand,
            availability=attrs.availability,
            rating=attrs.rating,
            searchable_text=searchable_text_for(unit),
            attributes=attrs,
        )
        return VectorRecord(
            record_id=make_catalog_record_id(tenant_id, unit.id),
            tenant_id=tenant_id,
            embedding=embedding,
            payload=payload,
        )

    async def query(
        self,
        tenant_id: str,
        query_text: str,
        top_k: int,
        threshold: Optional[float],
        filters: Optional[CatalogFilters] = None,
        timeout: Optional[float] = None,
    ) -> List[CatalogHit]:
        """
        Find the catalog items of a tenant most similar to a query.

        Parameters
        ----------
        tenant_id : str
            Tenant whose catalog is searched.
        query_text : str
            Natural-language query.
        top_k : int
            Maximum number of items returned.
        threshold : Optional[float]
            Minimum cosine similarity for an item to be returned.
        filters : Optional[CatalogFilters]
            Exact-match conditions applied before ranking.

        Returns
        -------
        List[CatalogHit]
            Items ordered by score descending.

        Raises
        ------
        ConfigError
            If threshold is None.
        """
        conditions = filters.as_conditions() if filters is not None else None

        hits = await self._search(
            tenant_id,
            query_text,
            threshold,
            limit=max(0, top_k),
            filters=conditions,
            timeout=timeout,
        )

        results: List[CatalogHit] = []
        for hit in hits:
            payload = hit.payload
            results.append(
                CatalogHit(
                    item_id=payload.item_id,
                    title=payload.title,
                    url=payload.url,
                    score=hit.score,
                    price=payload.price,
                    currency=payload.currency,
                    category=payload.category,
                    brand=payload.brand,
                    availability=payload.availability,
                    attributes=payload.attributes,
                    matched_text=matched_excerpt(payload.searchable_text),
                )
            )

        self.logger.info(
            "Catalog query for tenant=%s returned %d items (filters=%s)",
            tenant_id,
            len(results),
            conditions or {},
        )
        return results
