"""
Ingestion Service

Write-path glue: turns submitted documents and catalog items into stored
vector records.

Documents
---------
1. Chunk the extracted text.
2. Delete the document's previously stored chunks.
3. Embed and upsert the new chunks (best effort, per chunk).

Catalog items are embedded whole, one record per item.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import VectorStoreError
from ..embeddings.models import CatalogItem, Chunk
from ..search.catalog_store import CatalogVectorStore
from ..search.content_store import ContentVectorStore
from ..tenants import validate_tenant_id
from .batch import BatchOutcome, UnitResult
from .chunker import Chunker, chunking_stats

logger = logging.getLogger("semsearch.ingestion")


# ---------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------

class SourceDocument(BaseModel):
    """A document whose text has already been extracted."""

    id: str = Field(..., min_length=1)
    title: str = ""
    url: str = ""
    content: str

    model_config = ConfigDict(extra="forbid")


class SkippedUnit(BaseModel):
    unit_id: str
    reason: str


class IngestionReport(BaseModel):
    processed_count: int
    skipped_count: int
    documents_count: int
    skipped: List[SkippedUnit] = Field(default_factory=list)

    @classmethod
    def from_outcome(cls, outcome: BatchOutcome, documents_count: int) -> "IngestionReport":
        return cls(
            processed_count=outcome.processed_count,
            skipped_count=outcome.skipped_count,
            documents_count=documents_count,
            skipped=[SkippedUnit(unit_id=s.unit_id, reason=s.reason) for s in outcome.skipped],
        )


# ---------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------

class IngestionService:
    """
    Coordinates the chunker and the two stores for bulk ingestion.
    """

    def __init__(
        self,
        chunker: Chunker,
        content_store: ContentVectorStore,
        catalog_store: CatalogVectorStore,
    ) -> None:
        self.chunker = chunker
        self.content_store = content_store
        self.catalog_store = catalog_store

    async def ingest_documents(
        self,
        tenant_id: str,
        documents: Sequence[SourceDocument],
    ) -> IngestionReport:
        """
        Chunk, embed and store documents for a tenant.

        A document whose stale chunks cannot be removed is skipped as a
        whole; otherwise every chunk is stored or skipped on its own.
        """
        tenant_id = validate_tenant_id(tenant_id)
        outcome = BatchOutcome()
        chunks: List[Chunk] = []

        for document in documents:
            try:
                await self.content_store.delete_document(tenant_id, document.id)
            except VectorStoreError as exc:
                logger.warning(
                    "Skipping document %s for tenant=%s: stale chunks not removed: %s",
                    document.id,
                    tenant_id,
                    exc,
                )
                outcome = outcome.add(UnitResult.skipped(document.id, f"{type(exc).__name__}: {exc}"))
                continue

            chunks.extend(
                self.chunker.chunk(
                    parent_document_id=document.id,
                    title=document.title,
                    text=document.content,
                    tenant_id=tenant_id,
                    url=document.url,
                )
            )

        stats = chunking_stats(chunks)
        logger.info(
            "Chunked %d documents for tenant=%s: %d chunks, avg length %d, "
            "sentence completeness %.0f%%",
            stats.total_documents,
            tenant_id,
            stats.total_chunks,
            stats.average_chunk_length,
            stats.sentence_completeness * 100,
        )

        outcome = outcome.merge(await self.content_store.upsert_batch(tenant_id, chunks))
        return IngestionReport.from_outcome(outcome, documents_count=len(documents))

    async def ingest_catalog(
        self,
        tenant_id: str,
        items: Sequence[CatalogItem],
    ) -> IngestionReport:
        """
        Embed and store catalog items for a tenant.
        """
        outcome = await self.catalog_store.upsert_batch(tenant_id, items)
        return IngestionReport.from_outcome(outcome, documents_count=len(items))
