"""
Ingestion Routes

Endpoints through which a website pushes its extracted content and its
catalog into the pipeline. Ingestion is best effort: a response always
reports how many units were stored and which were skipped, and why.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ..ingestion.service import IngestionReport, IngestionService
from .dependencies import get_ingestion_service
from .models import IngestCatalogRequest, IngestContentRequest

router = APIRouter(prefix="/ingest", tags=["ingest"])


@router.post(
    "/content",
    response_model=IngestionReport,
    summary="Chunk, embed and store documents",
    status_code=status.HTTP_200_OK,
)
async def ingest_content(
    req: IngestContentRequest,
    service: Annotated[IngestionService, Depends(get_ingestion_service)],
) -> IngestionReport:
    """
    Replace the stored chunks of each submitted document.

    Workflow
    --------
    1. Chunk each document's text.
    2. Delete the document's existing chunks.
    3. Embed and store the new chunks.
    """
    return await service.ingest_documents(req.tenant_id, req.documents)


@router.post(
    "/catalog",
    response_model=IngestionReport,
    summary="Embed and store catalog items",
    status_code=status.HTTP_200_OK,
)
async def ingest_catalog(
    req: IngestCatalogRequest,
    service: Annotated[IngestionService, Depends(get_ingestion_service)],
) -> IngestionReport:
    return await service.ingest_catalog(req.tenant_id, req.items)
