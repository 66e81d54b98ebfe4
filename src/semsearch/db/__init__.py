"""
Database Package

Provides SQLAlchemy async session management, table definitions and the
pgvector storage backend for PostgreSQL.
"""

from .session import create_session_factory, init_schema
from .models import Base, ContentChunkRow, CatalogItemRow
from .vector_store import PgVectorBackend, build_search_statement

__all__ = [
    "create_session_factory",
    "init_schema",
    "Base",
    "ContentChunkRow",
    "CatalogItemRow",
    "PgVectorBackend",
    "build_search_statement",
]
