"""
Search Routes

Semantic search across a tenant's content and catalog, plus the advisory
query intent classifier.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from ..search.intent import IntentClassification, classify_intent
from ..search.orchestrator import SearchOrchestrator, SearchResponse
from .dependencies import get_orchestrator
from .models import IntentRequest, SearchRequest

router = APIRouter(prefix="/search", tags=["search"])


@router.post(
    "",
    response_model=SearchResponse,
    summary="Semantic search across content types",
    status_code=status.HTTP_200_OK,
)
async def search(
    req: SearchRequest,
    orchestrator: Annotated[SearchOrchestrator, Depends(get_orchestrator)],
) -> SearchResponse:
    """
    Search a tenant's content and catalog.

    Parameters
    ----------
    req : SearchRequest
        Contains:
        - tenant_id: Tenant to search
        - query: Search query string
        - content_types: Types to search (all when omitted)
        - filters: Catalog pre-filters
        - limit / min_score: Merged result bounds

    Returns
    -------
    SearchResponse
        Merged, ranked results. A type that failed is listed in
        failed_types; the request only fails when every type failed.
    """
    return await orchestrator.search(
        tenant_id=req.tenant_id,
        query_text=req.query,
        content_types=req.content_types,
        filters=req.filters,
        limit=req.limit,
        min_score=req.min_score,
    )


@router.post(
    "/intent",
    response_model=IntentClassification,
    summary="Suggest which content type a query targets",
)
async def search_intent(req: IntentRequest) -> IntentClassification:
    return classify_intent(req.query)
