"""
Pipeline Data Models

This module defines the canonical records flowing through the pipeline:

- Chunk: one bounded span of a document's extracted text
- ContentPayload / CatalogPayload: the per-kind payload stored with a vector
- VectorRecord: one embedding vector plus its tagged payload
- Search result shapes returned by the stores

Payloads are a tagged variant discriminated by `kind` so that each source kind
has an explicit schema.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SourceKind(str, Enum):
    CONTENT_CHUNK = "content_chunk"
    CATALOG_ITEM = "catalog_item"


def make_chunk_id(tenant_id: str, parent_document_id: str, sequence_index: int) -> str:
    """
    Derive the stable identity of a chunk.

    Re-ingesting the same document yields the same ids, so upserts overwrite
    rather than duplicate.
    """
    return f"{tenant_id}:{parent_document_id}:chunk-{sequence_index}"


def make_catalog_record_id(tenant_id: str, item_id: str) -> str:
    return f"{tenant_id}:item-{item_id}"


# ---------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------

class Chunk(BaseModel):
    """
    A single chunk of a parent document.

    `text` is exactly `extracted_text[start_offset:end_offset]`.
    """

    chunk_id: str = Field(..., min_length=1)
    tenant_id: str = Field(..., min_length=1)
    parent_document_id: str = Field(..., min_length=1)
    parent_title: str = ""
    parent_url: str = ""
    sequence_index: int = Field(..., ge=0)
    text: str
    start_offset: int = Field(..., ge=0)
    end_offset: int = Field(..., ge=0)

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )


class ContentPayload(BaseModel):
    """Payload stored with a content chunk vector."""

    kind: Literal["content_chunk"] = "content_chunk"
    chunk_id: str
    parent_document_id: str
    parent_title: str = ""
    parent_url: str = ""
    sequence_index: int = Field(..., ge=0)
    text: str
    start_offset: int = Field(..., ge=0)
    end_offset: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> "ContentPayload":
        return cls(
            chunk_id=chunk.chunk_id,
            parent_document_id=chunk.parent_document_id,
            parent_title=chunk.parent_title,
            parent_url=chunk.parent_url,
            sequence_index=chunk.sequence_index,
            text=chunk.text,
            start_offset=chunk.start_offset,
            end_offset=chunk.end_offset,
        )


# ---------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------

Availability = Literal["in_stock", "out_of_stock", "limited", "pre_order"]


class Dimensions(BaseModel):
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None
    unit: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class CatalogAttributes(BaseModel):
    """Structured attributes of a catalog item, as supplied by the caller."""

    price: Optional[float] = Field(default=None, ge=0)
    currency: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    subcategory: Optional[str] = None
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    reviews_count: Optional[int] = Field(default=None, ge=0)
    availability: Optional[Availability] = None
    specifications: Dict[str, Union[str, int, float, bool]] = Field(default_factory=dict)
    tags: List[str] = Field(default_factory=list)
    sku: Optional[str] = None
    weight: Optional[float] = None
    dimensions: Optional[Dimensions] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class CatalogItem(BaseModel):
    """A catalog item submitted for ingestion."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    url: str = ""
    description: Optional[str] = None
    short_description: Optional[str] = None
    searchable_text: Optional[str] = None
    attributes: CatalogAttributes = Field(default_factory=CatalogAttributes)

    model_config = ConfigDict(extra="forbid", frozen=True)


class CatalogPayload(BaseModel):
    """Payload stored with a catalog item vector."""

    kind: Literal["catalog_item"] = "catalog_item"
    item_id: str
    title: str
    url: str = ""
    price: Optional[float] = None  # normalized to USD
    currency: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    availability: Optional[Availability] = None
    rating: Optional[float] = None
    searchable_text: str
    attributes: CatalogAttributes = Field(default_factory=CatalogAttributes)

    model_config = ConfigDict(extra="forbid", frozen=True)


Payload = Annotated[Union[ContentPayload, CatalogPayload], Field(discriminator="kind")]


class VectorRecord(BaseModel):
    """
    One stored vector and its payload.

    Every record of a deployment has the same embedding dimension.
    """

    record_id: str = Field(..., min_length=1)
    tenant_id: str = Field(..., min_length=1)
    embedding: List[float] = Field(..., min_length=1)
    payload: Payload

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def source_kind(self) -> SourceKind:
        return SourceKind(self.payload.kind)


class StoredHit(BaseModel):
    """A backend search hit: the record without its vector, plus its score."""

    record_id: str
    tenant_id: str
    payload: Payload
    score: float

    model_config = ConfigDict(frozen=True)


# ---------------------------------------------------------------------
# Search Results
# ---------------------------------------------------------------------

class ChunkMatch(BaseModel):
    chunk_id: str
    sequence_index: int
    text: str
    score: float


class GroupedContentResult(BaseModel):
    """Content matches aggregated at the parent-document level."""

    parent_document_id: str
    parent_title: str
    parent_url: str
    matching_chunks: List[ChunkMatch]
    max_score: float
    average_score: float
    total_chunks: int


class CatalogHit(BaseModel):
    """A single ranked catalog match carrying the full item attributes."""

    item_id: str
    title: str
    url: str
    score: float
    price: Optional[float] = None
    currency: Optional[str] = None
    category: Optional[str] = None
    brand: Optional[str] = None
    availability: Optional[Availability] = None
    attributes: CatalogAttributes
    matched_text: str
