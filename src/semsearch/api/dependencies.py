"""
Route Dependencies

Pipeline components are built once in the application lifespan and stored
on ``app.state.pipeline``; these dependencies hand them to route handlers.
Tests override them with ``app.dependency_overrides``.
"""

from fastapi import Depends, Request

from ..ingestion.service import IngestionService
from ..pipeline import Pipeline
from ..search.orchestrator import SearchOrchestrator


def get_pipeline(request: Request) -> Pipeline:
    return request.app.state.pipeline


def get_ingestion_service(pipeline: Pipeline = Depends(get_pipeline)) -> IngestionService:
    return pipeline.ingestion


def get_orchestrator(pipeline: Pipeline = Depends(get_pipeline)) -> SearchOrchestrator:
    return pipeline.orchestrator
