"""
API Models

Request and response schemas for the ingestion, search and tenant endpoints.
Result shapes shared with the pipeline (IngestionReport, SearchResponse,
IntentClassification) are re-used directly.
"""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..embeddings.models import CatalogItem
from ..ingestion.service import SourceDocument
from ..search.catalog_store import CatalogFilters
from ..search.orchestrator import ContentType
from ..tenants import TenantContext


# ---------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------

class IngestContentRequest(TenantContext):
    documents: List[SourceDocument] = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


class IngestCatalogRequest(TenantContext):
    items: List[CatalogItem] = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------

class SearchRequest(TenantContext):
    """
    Semantic search request.

    Omitting content_types searches every type.
    """
    query: str = Field(..., min_length=1)
    content_types: Optional[List[ContentType]] = Field(default=None, min_length=1)
    filters: Optional[CatalogFilters] = None
    limit: int = Field(default=10, ge=1, le=100)
    min_score: float = Field(default=0.0, ge=-1.0, le=1.0)

    model_config = ConfigDict(extra="forbid")


class IntentRequest(BaseModel):
    query: str = Field(..., min_length=1)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Tenants
# ---------------------------------------------------------------------

class TenantListResponse(BaseModel):
    tenants: List[str]


class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    """
    status: Literal["deleted", "ok"]
    count: Optional[int] = Field(default=None, ge=0)
    details: Optional[Dict[str, str]] = None

    model_config = ConfigDict(extra="forbid")
