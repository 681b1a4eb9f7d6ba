# =============================================================================
# Vector Store Abstraction — Pluggable Backend Protocol
# =============================================================================
#
# The only collaborator that talks to a vector database. Callers hand it
# text and get text back; embeddings are computed inside the store.
#
# Mixed sync/async interface:
# - add() is sync, called from the upload endpoint running in the threadpool
# - similarity_search() is async, awaited by the chat endpoint
#
# ARCHITECTURE:
#   VectorStore (Protocol)
#   ├── PgVectorStore     — PostgreSQL + pgvector (vector_store.vector_store)
#   │   ├── add()               — sync via get_sync_session()
#   │   └── similarity_search() — async via get_async_session()
#   └── ChromaVectorStore — ChromaDB (in-process or client/server)
#       ├── add()               — sync (ChromaDB client is sync)
#       └── similarity_search() — async via asyncio.to_thread() wrapper
#
# Both stores take their embedding functions as constructor arguments and
# default to chatdocs.services.embedder.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Protocol

import chromadb
from sqlalchemy import select

from chatdocs.config import settings
from chatdocs.db.engine import get_async_session, get_sync_session
from chatdocs.db.models import StoredChunk
from chatdocs.services import embedder
from chatdocs.services.chunker import Chunk

logger = logging.getLogger(__name__)

EmbedTexts = Callable[[Sequence[str]], list[list[float]]]
EmbedQuery = Callable[[str], list[float]]


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class RetrievedChunk:
    """
    A chunk returned by similarity search, most similar first.

    score is cosine similarity (1 - cosine distance).
    """

    text: str
    metadata: dict = field(default_factory=dict)
    score: float = 0.0


# ---------------------------------------------------------------------------
# Protocol Definition
# ---------------------------------------------------------------------------


class VectorStore(Protocol):
    """Persists chunks with their embeddings and answers nearest-neighbour queries."""

    def add(self, chunks: list[Chunk]) -> None:
        """
        Embed and persist chunks in a single call.

        Raises whatever the backend or embedding client raises.
        """
        ...

    async def similarity_search(self, query: str, top_k: int) -> list[RetrievedChunk]:
        """Return at most top_k chunks ordered by descending similarity."""
        ...


# ---------------------------------------------------------------------------
# Implementation 1: pgvector (PostgreSQL)
# ---------------------------------------------------------------------------


class PgVectorStore:
    """
    pgvector-backed vector store using PostgreSQL.

    Writes go through the sync engine, reads through the async engine,
    matching each caller's execution model.
    """

    def __init__(
        self,
        embed_texts: EmbedTexts | None = None,
        embed_query: EmbedQuery | None = None,
    ) -> None:
        self._embed_texts = embed_texts or embedder.embed_texts
        self._embed_query = embed_query or embedder.embed_query

    def add(self, chunks: list[Chunk]) -> None:
        if not chunks:
            return

        embeddings = self._embed_texts([c.text for c in chunks])

        with get_sync_session() as session:
            session.add_all([
                StoredChunk(
                    id=uuid.UUID(chunk.id),
                    content=chunk.text,
                    metadata_=chunk.metadata,
                    embedding=embedding,
                )
                for chunk, embedding in zip(chunks, embeddings, strict=True)
            ])

        logger.info("Stored %d chunks in pgvector", len(chunks))

    async def similarity_search(self, query: str, top_k: int) -> list[RetrievedChunk]:
        # The embedding client is sync; keep it off the event loop.
        query_embedding = await asyncio.to_thread(self._embed_query, query)
        distance = StoredChunk.embedding.cosine_distance(query_embedding)

        async with get_async_session() as session:
            stmt = (
                select(StoredChunk, distance.label("distance"))
                .order_by(distance)
                .limit(top_k)
            )
            rows = (await session.execute(stmt)).all()

        logger.debug("pgvector search returned %d rows (top_k=%d)", len(rows), top_k)

        return [
            RetrievedChunk(
                text=chunk.content,
                metadata=chunk.metadata_ or {},
                score=round(1.0 - dist, 4),
            )
            for chunk, dist in rows
        ]


# ---------------------------------------------------------------------------
# Implementation 2: ChromaDB
# ---------------------------------------------------------------------------


class ChromaVectorStore:
    """
    ChromaDB-backed vector store.

    In-process by default; set CHROMA_URL for a client/server deployment.
    The collection uses cosine distance to rank like pgvector.
    """

    def __init__(
        self,
        collection_name: str | None = None,
        embed_texts: EmbedTexts | None = None,
        embed_query: EmbedQuery | None = None,
    ) -> None:
        if settings.chroma_url:
            self._client = chromadb.HttpClient(host=settings.chroma_url)
        else:
            self._client = chromadb.Client()

        self._collection = self._client.get_or_create_collection(
            name=collection_name or settings.chroma_collection,
            metadata={"hnsw:space": "cosine"},
        )
        self._embed_texts = embed_texts or embedder.embed_texts
        self._embed_query = embed_query or embedder.embed_query

    def add(self, chunks: list[Chunk]) -> None:
        if not chunks:
            return

        embeddings = self._embed_texts([c.text for c in chunks])
        self._collection.add(
            ids=[c.id for c in chunks],
            documents=[c.text for c in chunks],
            embeddings=embeddings,
            metadatas=[_sanitise_chroma_metadata(c.metadata) for c in chunks],
        )

        logger.info("Stored %d chunks in ChromaDB", len(chunks))

    async def similarity_search(self, query: str, top_k: int) -> list[RetrievedChunk]:
        def _sync_search() -> list[RetrievedChunk]:
            results = self._collection.query(
                query_embeddings=[self._embed_query(query)],
                n_results=top_k,
                include=["documents", "metadatas", "distances"],
            )

            found: list[RetrievedChunk] = []
            if results and results["ids"] and results["ids"][0]:
                for i in range(len(results["ids"][0])):
                    distance = results["distances"][0][i] if results["distances"] else 0.0
                    metadata = results["metadatas"][0][i] if results["metadatas"] else {}
                    text = results["documents"][0][i] if results["documents"] else ""
                    found.append(RetrievedChunk(
                        text=text,
                        metadata=dict(metadata or {}),
                        score=round(1.0 - distance, 4),
                    ))
            return found

        return await asyncio.to_thread(_sync_search)


# ---------------------------------------------------------------------------
# Factory Function
# ---------------------------------------------------------------------------


def get_vector_store() -> PgVectorStore | ChromaVectorStore:
    """
    Return the configured vector store backend.

    `vectorstore_type` selects "pgvector" (default) or "chroma".
    """
    if settings.vectorstore_type == "chroma":
        logger.info("Using ChromaDB vector store")
        return ChromaVectorStore()

    logger.info("Using pgvector vector store")
    return PgVectorStore()


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _sanitise_chroma_metadata(metadata: dict) -> dict:
    """
    Coerce metadata values to types ChromaDB accepts (str, int, float, bool).

    - list → comma-separated string
    - None → empty string
    - anything else → str()
    """
    sanitised = {}
    for key, value in metadata.items():
        if value is None:
            sanitised[key] = ""
        elif isinstance(value, list):
            sanitised[key] = ",".join(str(v) for v in value)
        elif isinstance(value, (str, int, float, bool)):
            sanitised[key] = value
        else:
            sanitised[key] = str(value)
    return sanitised
