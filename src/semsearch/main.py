"""
Application Entry Point

This module defines the FastAPI application, builds the pipeline in the
application lifespan, registers all routers and configures global exception
handling.

Design Goals
------------
- Fail-fast startup on missing configuration
- Explicit component construction, no module-level clients
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI

from .config import Settings, get_settings
from .core.errors import (
    ConfigError,
    EmbeddingConfigError,
    EmbeddingError,
    config_error_handler,
    embedding_error_handler,
    invalid_tenant_handler,
    unhandled_exception_handler,
)
from .db import init_schema
from .pipeline import build_pipeline
from .tenants import InvalidTenantError

from .api import (
    health_routes,
    ingest_routes,
    search_routes,
    tenant_routes,
)


logger = logging.getLogger("semsearch.app")


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app(
    settings: Optional[Settings] = None,
    embedder: Optional[Any] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Settings to build the pipeline from; read from the environment at
        startup when omitted.

    embedder : Optional[Any]
        Embedding client override, mainly for tests.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting site-semantic-search")

        resolved = settings or get_settings()
        # Raises ConfigError when the similarity threshold is missing
        pipeline = build_pipeline(resolved, embedder=embedder)

        if pipeline.engine is not None:
            await init_schema(pipeline.engine)

        app.state.pipeline = pipeline
        logger.info("Configuration validated successfully")

        try:
            yield
        finally:
            logger.info("Shutting down site-semantic-search")
            await pipeline.close()

    app = FastAPI(
        title="site-semantic-search",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.add_exception_handler(EmbeddingConfigError, config_error_handler)
    app.add_exception_handler(ConfigError, config_error_handler)
    app.add_exception_handler(EmbeddingError, embedding_error_handler)
    app.add_exception_handler(InvalidTenantError, invalid_tenant_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(ingest_routes.router)
    app.include_router(search_routes.router)
    app.include_router(tenant_routes.router)

    return app


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn)
# ---------------------------------------------------------------------

app = create_app()
