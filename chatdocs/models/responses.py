# =============================================================================
# API Response Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming OUT of the API. Routes
# declare them as `response_model` and FastAPI serialises by alias, so the
# JSON keys are camelCase (chunksCreated, processingTimeMs, fieldErrors).
#
# Embeddings and chunk metadata never leave the server; sources are the raw
# chunk texts only.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthResponse(BaseModel):
    """Response for GET /health — confirms the API is running."""

    status: str = "ok"
    version: str
    service: str


class DocumentUploadResponse(_CamelModel):
    """Response for POST /api/documents/upload (201)."""

    filename: str
    chunks_created: int = Field(description="Number of chunks produced by the splitter")
    chunks_stored: int = Field(description="Number of chunks written to the vector store")
    message: str = Field(default="Documents processed successfully")
    processing_time_ms: int = Field(description="Wall-clock time spent in the pipeline")


class ChatResponse(_CamelModel):
    """
    Response for POST /api/chat.

    `sources` holds the text of every chunk placed in the model's context,
    in retrieval order. It is empty when nothing was retrieved or when the
    model returned no answer.
    """

    answer: str
    sources: list[str] = Field(default_factory=list)
    question: str
    processing_time_ms: int


class ErrorResponse(_CamelModel):
    """Body of every error response produced by chatdocs/api/errors.py."""

    timestamp: str = Field(description="ISO-8601 time the error was produced")
    status: int
    error: str
    message: str
    field_errors: dict[str, str] | None = None
