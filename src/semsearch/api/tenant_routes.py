"""
Tenant Routes

Listing, statistics and bulk deletion of a tenant's stored records.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from ..pipeline import Pipeline
from ..search.orchestrator import ContentStats
from ..tenants import validate_tenant_id
from .dependencies import get_pipeline
from .models import OperationResult, TenantListResponse

router = APIRouter(prefix="/tenants", tags=["tenants"])


@router.get("", response_model=TenantListResponse, summary="List tenants holding records")
async def list_tenants(
    pipeline: Annotated[Pipeline, Depends(get_pipeline)],
) -> TenantListResponse:
    content = await pipeline.content_store.list_tenants()
    catalog = await pipeline.catalog_store.list_tenants()
    return TenantListResponse(tenants=sorted(set(content) | set(catalog)))


@router.get("/{tenant_id}/stats", response_model=ContentStats, summary="Record counts of a tenant")
async def tenant_stats(
    tenant_id: str,
    pipeline: Annotated[Pipeline, Depends(get_pipeline)],
) -> ContentStats:
    return await pipeline.orchestrator.content_stats(validate_tenant_id(tenant_id))


@router.delete("/{tenant_id}/content", response_model=OperationResult)
async def drop_content(
    tenant_id: str,
    pipeline: Annotated[Pipeline, Depends(get_pipeline)],
) -> OperationResult:
    """
    Delete every content chunk of a tenant.
    """
    count = await pipeline.content_store.drop(validate_tenant_id(tenant_id))
    return OperationResult(status="deleted", count=count)


@router.delete("/{tenant_id}/catalog", response_model=OperationResult)
async def drop_catalog(
    tenant_id: str,
    pipeline: Annotated[Pipeline, Depends(get_pipeline)],
) -> OperationResult:
    """
    Delete every catalog item of a tenant.
    """
    count = await pipeline.catalog_store.drop(validate_tenant_id(tenant_id))
    return OperationResult(status="deleted", count=count)


@router.delete("/{tenant_id}/documents/{document_id}", response_model=OperationResult)
async def delete_document(
    tenant_id: str,
    document_id: str,
    pipeline: Annotated[Pipeline, Depends(get_pipeline)],
) -> OperationResult:
    """
    Delete every chunk of one document.
    """
    count = await pipeline.content_store.delete_document(
        validate_tenant_id(tenant_id), document_id
    )
    return OperationResult(status="deleted", count=count, details={"document_id": document_id})
