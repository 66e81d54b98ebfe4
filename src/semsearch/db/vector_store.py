"""
Vector Store

PostgreSQL + pgvector based storage backend for tenant-scoped vector
records. One backend instance serves one table (content chunks or catalog
items); every statement it issues is constrained by tenant_id.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Type, Union

from sqlalchemy import Select, delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .models import CatalogItemRow, ContentChunkRow
from ..core.errors import VectorStoreError
from ..embeddings.models import StoredHit, VectorRecord

logger = logging.getLogger("semsearch.vector_store")

RowModel = Union[Type[ContentChunkRow], Type[CatalogItemRow]]


def _filter_clauses(row_model: RowModel, filters: Optional[Mapping[str, Any]]) -> List[Any]:
    clauses = []
    for key, value in (filters or {}).items():
        if key not in row_model.filterable_columns:
            raise VectorStoreError(f"Cannot filter {row_model.__tablename__} on '{key}'")
        clauses.append(getattr(row_model, key) == value)
    return clauses


def build_search_statement(
    row_model: RowModel,
    tenant_id: str,
    query_embedding: List[float],
    threshold: float,
    limit: Optional[int] = None,
    filters: Optional[Mapping[str, Any]] = None,
) -> Select:
    """
    Build the similarity query for one tenant.

    Similarity is ``1 - (embedding <=> query)``; rows below the threshold are
    excluded in SQL. Ties on distance are broken by record_id.
    """
    cosine_distance = row_model.embedding.cosine_distance(query_embedding)
    similarity = 1 - cosine_distance

    stmt = (
        select(row_model, similarity.label("score"))
        .where(row_model.tenant_id == tenant_id)
        .where(similarity >= threshold)
        .where(*_filter_clauses(row_model, filters))
        .order_by(cosine_distance, row_model.record_id)
    )

    if limit is not None:
        stmt = stmt.limit(limit)

    return stmt


class PgVectorBackend:
    """
    PostgreSQL-backed vector backend using pgvector for similarity search.

    Implements the same interface as InMemoryVectorBackend. Each operation
    runs in its own session and commits on success.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        row_model: RowModel,
    ) -> None:
        """
        Parameters
        ----------
        session_factory : async_sessionmaker[AsyncSession]
            Factory created by create_session_factory().
        row_model : RowModel
            ContentChunkRow or CatalogItemRow.
        """
        self._session_factory = session_factory
        self._row_model = row_model
        self.source_kind = row_model.source_kind
        self.dimension = row_model.__table__.c.embedding.type.dim

    async def upsert(self, record: VectorRecord) -> None:
        """
        Insert the record or fully replace the row with the same
        (tenant_id, record_id).
        """
        if record.source_kind is not self.source_kind:
            raise VectorStoreError(
                f"{self.source_kind.value} backend cannot store {record.source_kind.value} records"
            )
        if self.dimension is not None and len(record.embedding) != self.dimension:
            raise VectorStoreError(
                f"Embedding dimension {len(record.embedding)} does not match column dimension {self.dimension}"
            )

        values = self._row_model.values_from_record(record)
        stmt = pg_insert(self._row_model).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=["tenant_id", "record_id"],
            set_={
                **{k: stmt.excluded[k] for k in values if k not in ("tenant_id", "record_id")},
                "updated_at": func.now(),
            },
        )

        try:
            async with self._session_factory() as session:
                await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as exc:
            logger.error("Upsert of %s failed: %s", record.record_id, exc)
            raise VectorStoreError(f"Failed to store record {record.record_id}") from exc

    async def search(
        self,
        tenant_id: str,
        query_embedding: List[float],
        threshold: float,
        limit: Optional[int] = None,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[StoredHit]:
        """
        Return hits with similarity >= threshold, best first.
        """
        stmt = build_search_statement(
            self._row_model, tenant_id, query_embedding, threshold, limit, filters
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = result.all()
        except SQLAlchemyError as exc:
            logger.error("Similarity search for tenant=%s failed: %s", tenant_id, exc)
            raise VectorStoreError("Similarity search failed") from exc

        return [
            StoredHit(
                record_id=row[0].record_id,
                tenant_id=row[0].tenant_id,
                payload=self._row_model.payload_from_row(row[0]),
                score=float(row.score),
            )
            for row in rows
        ]

    async def count(self, tenant_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(self._row_model)
            .where(self._row_model.tenant_id == tenant_id)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar() or 0
        except SQLAlchemyError as exc:
            raise VectorStoreError("Count failed") from exc

    async def drop(self, tenant_id: str) -> int:
        """
        Delete every record of a tenant. Returns the number of deleted rows.
        """
        return await self.delete(tenant_id, {})

    async def delete(self, tenant_id: str, filters: Mapping[str, Any]) -> int:
        stmt = delete(self._row_model).where(
            self._row_model.tenant_id == tenant_id,
            *_filter_clauses(self._row_model, filters),
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount or 0
        except SQLAlchemyError as exc:
            raise VectorStoreError("Delete failed") from exc

    async def list_tenants(self) -> List[str]:
        stmt = select(self._row_model.tenant_id).distinct()
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return sorted(row[0] for row in result.all())
        except SQLAlchemyError as exc:
            raise VectorStoreError("Listing tenants failed") from exc
