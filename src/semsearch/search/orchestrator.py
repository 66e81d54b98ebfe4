"""
Search Orchestrator

Fans a query out to the content and catalog stores of one tenant, merges the
per-type results into a single ranked list, and reports which types were
searched and which of them failed.

A failing content type degrades to zero results for that type; only when
every requested type fails does the search as a whole fail.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import List, Optional, Sequence, Union

from pydantic import BaseModel, Field

from ..core.errors import ConfigError, TenantIsolationViolation
from ..embeddings.models import CatalogHit, GroupedContentResult, SourceKind
from ..tenants import validate_tenant_id
from .catalog_store import CatalogFilters, CatalogVectorStore, matched_excerpt
from .content_store import ContentVectorStore

logger = logging.getLogger("semsearch.search")


class ContentType(str, Enum):
    CONTENT = "content"
    CATALOG = "catalog"


ALL_CONTENT_TYPES = (ContentType.CONTENT, ContentType.CATALOG)


# ---------------------------------------------------------------------
# Result Models
# ---------------------------------------------------------------------

class SearchResult(BaseModel):
    source_kind: SourceKind
    score: float
    payload: Union[GroupedContentResult, CatalogHit]
    matched_text_excerpt: str


class SearchResponse(BaseModel):
    results: List[SearchResult] = Field(default_factory=list)
    total_results: int = 0
    searched_types: List[ContentType] = Field(default_factory=list)
    failed_types: List[ContentType] = Field(default_factory=list)
    query: str
    tenant_id: str


class ContentStats(BaseModel):
    """
    Record counts of a tenant. A count is None when its store could not be
    reached.
    """

    tenant_id: str
    content_chunk_count: Optional[int] = None
    catalog_item_count: Optional[int] = None


def _content_result(group: GroupedContentResult) -> SearchResult:
    best = group.matching_chunks[0].text if group.matching_chunks else ""
    return SearchResult(
        source_kind=SourceKind.CONTENT_CHUNK,
        score=group.max_score,
        payload=group,
        matched_text_excerpt=matched_excerpt(best),
    )


def _catalog_result(hit: CatalogHit) -> SearchResult:
    return SearchResult(
        source_kind=SourceKind.CATALOG_ITEM,
        score=hit.score,
        payload=hit,
        matched_text_excerpt=hit.matched_text,
    )


def _result_id(result: SearchResult) -> str:
    if isinstance(result.payload, GroupedContentResult):
        return result.payload.parent_document_id
    return result.payload.item_id


# ---------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------

class SearchOrchestrator:
    """
    Cross-content-type search for a single tenant.
    """

    def __init__(
        self,
        content_store: ContentVectorStore,
        catalog_store: CatalogVectorStore,
        similarity_threshold: Optional[float],
    ) -> None:
        self.content_store = content_store
        self.catalog_store = catalog_store
        self.similarity_threshold = similarity_threshold

    async def _query_type(
        self,
        content_type: ContentType,
        tenant_id: str,
        query_text: str,
        limit: int,
        filters: Optional[CatalogFilters],
        threshold: float,
    ) -> List[SearchResult]:
        if content_type is ContentType.CONTENT:
            groups = await self.content_store.query(tenant_id, query_text, limit, threshold)
            return [_content_result(g) for g in groups]

        hits = await self.catalog_store.query(tenant_id, query_text, limit, threshold, filters)
        return [_catalog_result(h) for h in hits]

    async def search(
        self,
        tenant_id: str,
        query_text: str,
        content_types: Optional[Sequence[ContentType]] = None,
        filters: Optional[CatalogFilters] = None,
        limit: int = 10,
        min_score: float = 0.0,
        require_success: bool = True,
    ) -> SearchResponse:
        """
        Search one or more content types and merge the results.

        Parameters
        ----------
        tenant_id : str
            Tenant to search.
        query_text : str
            Natural-language query.
        content_types : Optional[Sequence[ContentType]]
            Types to search; all types when omitted.
        filters : Optional[CatalogFilters]
            Catalog pre-filters; ignored by the content type.
        limit : int
            Maximum results per type and in the merged list.
        min_score : float
            Minimum type-specific score for a merged result.
        require_success : bool
            When every searched type fails, raise the last error (True) or
            return an empty result list (False).

        Returns
        -------
        SearchResponse
            Merged results ordered by score descending.

        Raises
        ------
        ConfigError
            If no similarity threshold is configured.
        TenantIsolationViolation
            If a store returned another tenant's record.
        """
        if self.similarity_threshold is None:
            raise ConfigError("SEARCH_SIMILARITY_THRESHOLD is not configured")

        tenant_id = validate_tenant_id(tenant_id)
        requested = list(dict.fromkeys(content_types or ALL_CONTENT_TYPES))

        outcomes = await asyncio.gather(
            *(
                self._query_type(
                    content_type,
                    tenant_id,
                    query_text,
                    limit,
                    filters,
                    self.similarity_threshold,
                )
                for content_type in requested
            ),
            return_exceptions=True,
        )

        merged: List[SearchResult] = []
        failed: List[ContentType] = []
        last_error: Optional[BaseException] = None

        for content_type, outcome in zip(requested, outcomes):
            if isinstance(outcome, (ConfigError, TenantIsolationViolation)):
                raise outcome
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(
                    "%s search failed for tenant=%s: %s",
                    content_type.value,
                    tenant_id,
                    outcome,
                )
                failed.append(content_type)
                last_error = outcome
                continue
            merged.extend(r for r in outcome if r.score >= min_score)

        if requested and len(failed) == len(requested):
            logger.error("Every searched type failed for tenant=%s", tenant_id)
            if require_success and last_error is not None:
                raise last_error

        merged.sort(key=lambda r: (-r.score, r.source_kind.value, _result_id(r)))
        results = merged[:limit]

        return SearchResponse(
            results=results,
            total_results=len(results),
            searched_types=requested,
            failed_types=failed,
            query=query_text,
            tenant_id=tenant_id,
        )

    async def content_stats(self, tenant_id: str) -> ContentStats:
        """
        Count a tenant's content chunks and catalog items.
        """
        tenant_id = validate_tenant_id(tenant_id)
        chunks, items = await asyncio.gather(
            self.content_store.count(tenant_id),
            self.catalog_store.count(tenant_id),
            return_exceptions=True,
        )

        stats = ContentStats(tenant_id=tenant_id)
        if isinstance(chunks, Exception):
            logger.warning("Content count failed for tenant=%s: %s", tenant_id, chunks)
        else:
            stats.content_chunk_count = chunks
        if isinstance(items, Exception):
            logger.warning("Catalog count failed for tenant=%s: %s", tenant_id, items)
        else:
            stats.catalog_item_count = items
        return stats
