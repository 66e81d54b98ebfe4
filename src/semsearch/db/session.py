"""
Database Session Management

Provides the async SQLAlchemy engine and session factory for PostgreSQL.
Both are built explicitly at application startup from Settings.
"""

from __future__ import annotations

from typing import Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from .models import Base


def create_session_factory(
    database_url: str,
    echo: bool = False,
) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """
    Create the async engine and its session factory.

    Usage:
        engine, session_factory = create_session_factory(settings.database_url)
        async with session_factory() as session:
            ...
    """
    engine = create_async_engine(
        database_url,
        echo=echo,  # Set True for SQL debugging
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )

    session_factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    return engine, session_factory


async def init_schema(engine: AsyncEngine) -> None:
    """
    Ensure the pgvector extension and all tables exist.
    """
    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
