# =============================================================================
# Database Models — SQLAlchemy ORM
# =============================================================================
#
# One table holds every stored chunk. Its layout matches the table Spring
# AI's PgVectorStore creates, so an existing database can be reused:
#
# ┌───────────────────────────────────────────┐
# │  vector_store.vector_store                │
# ├───────────────────────────────────────────┤
# │ id (uuid, PK)                             │
# │ content (text)                            │
# │ metadata (jsonb)                          │
# │ embedding (vector(N))                     │
# └───────────────────────────────────────────┘
#
# Rows are written once, with their embedding, and never updated. Provenance
# (filename, chunk_index, total_chunks, upload_timestamp, page_number) lives
# in the JSONB metadata column.
# =============================================================================

import uuid

from pgvector.sqlalchemy import Vector
from sqlalchemy import Index, MetaData, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from chatdocs.config import settings


class Base(DeclarativeBase):
    """SQLAlchemy declarative base bound to the vector store schema."""

    metadata = MetaData(schema=settings.vectorstore_schema)


class StoredChunk(Base):
    """
    A chunk of document text plus its embedding.

    Named `metadata_` on the Python side to avoid the collision with
    SQLAlchemy's declarative `.metadata`; the column itself is `metadata`.
    """

    __tablename__ = settings.vectorstore_table

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    metadata_: Mapped[dict | None] = mapped_column(
        "metadata",
        JSONB,
        nullable=True,
        default=dict,
    )

    embedding: Mapped[list[float]] = mapped_column(
        Vector(settings.embedding_dimensions),
        nullable=False,
    )

    __table_args__ = (
        # HNSW index for cosine-distance nearest-neighbour search
        Index(
            "spring_ai_vector_index",
            "embedding",
            postgresql_using="hnsw",
            postgresql_ops={"embedding": "vector_cosine_ops"},
        ),
    )

    def __repr__(self) -> str:
        return f"<StoredChunk(id={self.id}, chars={len(self.content or '')})>"
