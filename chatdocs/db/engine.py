# =============================================================================
# Database Engine & Session Management
# =============================================================================
#
# Two engines point at the same PostgreSQL database:
#
# - Async engine (asyncpg): similarity searches from the async chat endpoint.
# - Sync engine (psycopg2): bulk chunk inserts from the upload endpoint,
#   which FastAPI runs in its threadpool.
#
# Both are created lazily on first use, so importing this module never opens
# a connection or requires the database to be reachable.
#
# SESSION LIFECYCLE (both flavours):
#   create → yield → commit (or rollback on error) → close
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Generator
from contextlib import asynccontextmanager, contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session, sessionmaker

from chatdocs.config import settings

logger = logging.getLogger(__name__)

_async_session_factory: async_sessionmaker[AsyncSession] | None = None
_sync_engine = None
_sync_session_factory = None


# ---------------------------------------------------------------------------
# Async Engine — chat path
# ---------------------------------------------------------------------------
# expire_on_commit=False: attributes stay readable after commit without a
# new round-trip, which async sessions cannot do implicitly.
# ---------------------------------------------------------------------------


def _get_async_session_factory() -> async_sessionmaker[AsyncSession]:
    """Lazily create the async engine and its session factory."""
    global _async_session_factory
    if _async_session_factory is None:
        engine = create_async_engine(
            settings.database_url,
            echo=settings.debug,
            pool_size=5,
            max_overflow=10,
        )
        _async_session_factory = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_factory


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Async context manager yielding a session.

    Usage:
        async with get_async_session() as session:
            rows = (await session.execute(stmt)).all()
    """
    async with _get_async_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


# ---------------------------------------------------------------------------
# Sync Engine — ingestion path
# ---------------------------------------------------------------------------


def _get_sync_engine():
    """Lazily create and cache the sync SQLAlchemy engine."""
    global _sync_engine
    if _sync_engine is None:
        _sync_engine = create_engine(
            settings.database_url_sync,
            echo=settings.debug,
            pool_size=5,
            max_overflow=10,
        )
    return _sync_engine


def _get_sync_session_factory():
    """Lazily create and cache the sync session factory."""
    global _sync_session_factory
    if _sync_session_factory is None:
        _sync_session_factory = sessionmaker(
            bind=_get_sync_engine(),
            class_=Session,
            expire_on_commit=False,
        )
    return _sync_session_factory


@contextmanager
def get_sync_session() -> Generator[Session, None, None]:
    """
    Context manager that provides a sync database session.

    Usage:
        with get_sync_session() as session:
            session.add_all(rows)
            # Auto-commits on exit, auto-rollbacks on exception
    """
    factory = _get_sync_session_factory()
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Schema Initialisation
# ---------------------------------------------------------------------------


def init_vector_schema() -> None:
    """
    Create the pgvector extension, the schema and the chunk table.

    Idempotent. Called at startup when `initialize_schema` is enabled.
    """
    from chatdocs.db.models import Base

    engine = _get_sync_engine()
    with engine.begin() as conn:
        conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        conn.execute(
            text(f'CREATE SCHEMA IF NOT EXISTS "{settings.vectorstore_schema}"')
        )
        Base.metadata.create_all(conn)

    logger.info(
        "Vector schema ready: %s.%s",
        settings.vectorstore_schema, settings.vectorstore_table,
    )
