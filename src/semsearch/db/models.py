"""
SQLAlchemy Models

Defines the database schema for tenant-scoped vector records:
- content_chunk: one row per document chunk
- catalog_item: one row per catalog item

Both tables use pgvector for similarity search and are unique on
(tenant_id, record_id) so ingestion can upsert by identity.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import (
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from pgvector.sqlalchemy import Vector

from ..core.errors import VectorStoreError
from ..embeddings.models import (
    CatalogAttributes,
    CatalogPayload,
    ContentPayload,
    SourceKind,
    VectorRecord,
)

DEFAULT_EMBEDDING_DIMENSION = 1024


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Content Chunk Model
# ---------------------------------------------------------------------

class ContentChunkRow(Base):
    """
    Vector embedding for one chunk of a tenant's document.
    """
    __tablename__ = "content_chunk"

    source_kind = SourceKind.CONTENT_CHUNK
    filterable_columns = frozenset({"parent_document_id"})

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    record_id: Mapped[str] = mapped_column(Text, nullable=False)
    parent_document_id: Mapped[str] = mapped_column(Text, nullable=False)
    parent_title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    parent_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    sequence_index: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    start_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    end_offset: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    embedding = Column(Vector(DEFAULT_EMBEDDING_DIMENSION), nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "record_id", name="uq_content_chunk_record"),
        Index("idx_content_chunk_document", "tenant_id", "parent_document_id"),
    )

    @staticmethod
    def values_from_record(record: VectorRecord) -> Dict[str, Any]:
        payload = record.payload
        if not isinstance(payload, ContentPayload):
            raise VectorStoreError(f"Record {record.record_id} is not a content chunk")
        return {
            "tenant_id": record.tenant_id,
            "record_id": record.record_id,
            "parent_document_id": payload.parent_document_id,
            "parent_title": payload.parent_title,
            "parent_url": payload.parent_url,
            "sequence_index": payload.sequence_index,
            "text": payload.text,
            "start_offset": payload.start_offset,
            "end_offset": payload.end_offset,
            "embedding": record.embedding,
        }

    @staticmethod
    def payload_from_row(row: Any) -> ContentPayload:
        return ContentPayload(
            chunk_id=row.record_id,
            parent_document_id=row.parent_document_id,
            parent_title=row.parent_title,
            parent_url=row.parent_url,
            sequence_index=row.sequence_index,
            text=row.text,
            start_offset=row.start_offset,
            end_offset=row.end_offset,
        )


# ---------------------------------------------------------------------
# Catalog Item Model
# ---------------------------------------------------------------------

class CatalogItemRow(Base):
    """
    Vector embedding for one catalog item of a tenant.
    """
    __tablename__ = "catalog_item"

    source_kind = SourceKind.CATALOG_ITEM
    filterable_columns = frozenset(
        {"item_id", "category", "brand", "availability"}
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    record_id: Mapped[str] = mapped_column(Text, nullable=False)
    item_id: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    currency: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    availability: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    searchable_text: Mapped[str] = mapped_column(Text, nullable=False)
    attributes: Mapped[Dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    embedding = Column(Vector(DEFAULT_EMBEDDING_DIMENSION), nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "record_id", name="uq_catalog_item_record"),
        Index("idx_catalog_item_filters", "tenant_id", "category", "brand"),
    )

    @staticmethod
    def values_from_record(record: VectorRecord) -> Dict[str, Any]:
        payload = record.payload
        if not isinstance(payload, CatalogPayload):
            raise VectorStoreError(f"Record {record.record_id} is not a catalog item")
        return {
            "tenant_id": record.tenant_id,
            "record_id": record.record_id,
            "item_id": payload.item_id,
            "title": payload.title,
            "url": payload.url,
            "price": payload.price,
            "currency": payload.currency,
            "category": payload.category,
            "brand": payload.brand,
            "availability": payload.availability,
            "rating": payload.rating,
            "searchable_text": payload.searchable_text,
            "attributes": payload.attributes.model_dump(mode="json"),
            "embedding": record.embedding,
        }

    @staticmethod
    def payload_from_row(row: Any) -> CatalogPayload:
        return CatalogPayload(
            item_id=row.item_id,
            title=row.title,
            url=row.url,
            price=row.price,
            currency=row.currency,
            category=row.category,
            brand=row.brand,
            availability=row.availability,
            rating=row.rating,
            searchable_text=row.searchable_text,
            attributes=CatalogAttributes.model_validate(row.attributes or {}),
        )
