"""
Pipeline Assembly

Builds the components of the semantic content pipeline from Settings:
embedding client, chunker, storage backends, stores, orchestrator and the
ingestion service. Everything is constructed explicitly; nothing here is a
module-level singleton.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from .config import Settings
from .core.errors import ConfigError
from .db import CatalogItemRow, ContentChunkRow, PgVectorBackend, create_session_factory
from .db.models import DEFAULT_EMBEDDING_DIMENSION
from .embeddings.embedder import EmbeddingClient
from .embeddings.models import SourceKind
from .embeddings.registry import InMemoryVectorBackend
from .ingestion.chunker import Chunker, ChunkingOptions
from .ingestion.service import IngestionService
from .search.catalog_store import CatalogVectorStore
from .search.content_store import ContentVectorStore
from .search.orchestrator import SearchOrchestrator

logger = logging.getLogger("semsearch.app")


@dataclass
class Pipeline:
    settings: Settings
    embedder: Any
    chunker: Chunker
    content_store: ContentVectorStore
    catalog_store: CatalogVectorStore
    orchestrator: SearchOrchestrator
    ingestion: IngestionService
    engine: Any = None

    async def close(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()


def _build_backends(settings: Settings) -> Tuple[Any, Any, Any]:
    if settings.vector_backend == "memory":
        logger.info("Using in-memory vector backend")
        return (
            InMemoryVectorBackend(SourceKind.CONTENT_CHUNK, settings.embedding_dimension),
            InMemoryVectorBackend(SourceKind.CATALOG_ITEM, settings.embedding_dimension),
            None,
        )

    if settings.embedding_dimension != DEFAULT_EMBEDDING_DIMENSION:
        raise ConfigError(
            f"EMBEDDING_DIMENSION={settings.embedding_dimension} does not match the "
            f"pgvector column dimension {DEFAULT_EMBEDDING_DIMENSION}"
        )

    logger.info("Using pgvector backend")
    engine, session_factory = create_session_factory(settings.database_url)
    return (
        PgVectorBackend(session_factory, ContentChunkRow),
        PgVectorBackend(session_factory, CatalogItemRow),
        engine,
    )


def build_pipeline(settings: Settings, embedder: Optional[Any] = None) -> Pipeline:
    """
    Assemble the pipeline.

    Parameters
    ----------
    settings : Settings
        Application settings.
    embedder : Optional[Any]
        Embedding client override; built from settings when omitted.

    Raises
    ------
    ConfigError
        If the similarity threshold is missing or the embedding dimension
        does not fit the storage backend.
    """
    threshold = settings.require_similarity_threshold()

    if embedder is None:
        embedder = EmbeddingClient.from_settings(settings)

    content_backend, catalog_backend, engine = _build_backends(settings)

    store_options = dict(
        batch_size=settings.ingest_batch_size,
        max_candidates=settings.search_max_candidates,
        operation_timeout=settings.store_operation_timeout,
    )
    content_store = ContentVectorStore(embedder, content_backend, **store_options)
    catalog_store = CatalogVectorStore(embedder, catalog_backend, **store_options)

    chunker = Chunker(
        ChunkingOptions(
            max_chunk_length=settings.max_chunk_length,
            overlap=settings.chunk_overlap,
        )
    )

    return Pipeline(
        settings=settings,
        embedder=embedder,
        chunker=chunker,
        content_store=content_store,
        catalog_store=catalog_store,
        orchestrator=SearchOrchestrator(content_store, catalog_store, threshold),
        ingestion=IngestionService(chunker, content_store, catalog_store),
        engine=engine,
    )
