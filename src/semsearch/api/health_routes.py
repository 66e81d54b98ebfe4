from fastapi import APIRouter, Depends

from ..pipeline import Pipeline
from .dependencies import get_pipeline

router = APIRouter(tags=["health"])


@router.get("/health")
def health(pipeline: Pipeline = Depends(get_pipeline)):
    return {"status": "ok", "vector_backend": pipeline.settings.vector_backend}
