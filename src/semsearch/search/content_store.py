"""
Content Vector Store

Stores one vector per document chunk and answers semantic queries with
results grouped at the parent-document level.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Optional

from ..embeddings.models import (
    Chunk,
    ChunkMatch,
    ContentPayload,
    GroupedContentResult,
    SourceKind,
    StoredHit,
    VectorRecord,
)
from ..tenants import ensure_same_tenant, validate_tenant_id
from .tenant_store import TenantVectorStore


class ContentVectorStore(TenantVectorStore[Chunk]):
    """
    Tenant-scoped store of document chunks.
    """

    source_kind = SourceKind.CONTENT_CHUNK
    logger = logging.getLogger("semsearch.content_store")

    def unit_id(self, unit: Chunk) -> str:
        return unit.chunk_id

    def embedding_text(self, unit: Chunk) -> str:
        return unit.text

    def build_record(self, tenant_id: str, unit: Chunk, embedding: List[float]) -> VectorRecord:
        ensure_same_tenant(tenant_id, unit.tenant_id, f"Chunk {unit.chunk_id}")
        return VectorRecord(
            record_id=unit.chunk_id,
            tenant_id=tenant_id,
            embedding=embedding,
            payload=ContentPayload.from_chunk(unit),
        )

    async def query(
        self,
        tenant_id: str,
        query_text: str,
        top_k: int,
        threshold: Optional[float],
        timeout: Optional[float] = None,
    ) -> List[GroupedContentResult]:
        """
        Find the documents of a tenant most similar to a query.

        Parameters
        ----------
        tenant_id : str
            Tenant whose chunks are searched. No other tenant's chunk is
            ever considered.
        query_text : str
            Natural-language query.
        top_k : int
            Maximum number of documents returned.
        threshold : Optional[float]
            Minimum cosine similarity for a chunk to count as a match.

        Returns
        -------
        List[GroupedContentResult]
            Documents ordered by their best chunk score.

        Raises
        ------
        ConfigError
            If threshold is None.
        TenantIsolationViolation
            If the backend returns a record of another tenant.
        """
        hits = await self._search(
            tenant_id,
            query_text,
            threshold,
            limit=self.max_candidates,
            filters=None,
            timeout=timeout,
        )

        results = group_by_document(hits)[:top_k]
        self.logger.info(
            "Content query for tenant=%s: %d chunks above threshold in %d documents",
            tenant_id,
            len(hits),
            len(results),
        )
        return results

    async def delete_document(
        self,
        tenant_id: str,
        parent_document_id: str,
        timeout: Optional[float] = None,
    ) -> int:
        """
        Remove every chunk of one document. Returns the number removed.
        """
        tenant_id = validate_tenant_id(tenant_id)
        return await self._with_deadline(
            self.backend.delete(tenant_id, {"parent_document_id": parent_document_id}),
            timeout,
            "delete_document",
        )


def group_by_document(hits: List[StoredHit]) -> List[GroupedContentResult]:
    """
    Aggregate chunk hits per parent document.

    Chunks within a document are ordered by score descending then
    sequence_index; documents by max_score descending then
    parent_document_id.
    """
    groups: Dict[str, List[StoredHit]] = defaultdict(list)
    for hit in hits:
        groups[hit.payload.parent_document_id].append(hit)

    results: List[GroupedContentResult] = []
    for document_id, members in groups.items():
        members.sort(key=lambda h: (-h.score, h.payload.sequence_index))
        scores = [h.score for h in members]
        first = members[0].payload
        results.append(
            GroupedContentResult(
                parent_document_id=document_id,
                parent_title=first.parent_title,
                parent_url=first.parent_url,
                matching_chunks=[
                    ChunkMatch(
                        chunk_id=h.payload.chunk_id,
                        sequence_index=h.payload.sequence_index,
                        text=h.payload.text,
                        score=h.score,
                    )
                    for h in members
                ],
                max_score=max(scores),
                average_score=sum(scores) / len(scores),
                total_chunks=len(members),
            )
        )

    results.sort(key=lambda r: (-r.max_score, r.parent_document_id))
    return results
