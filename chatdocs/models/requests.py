# =============================================================================
# API Request Models — Pydantic V2 Schemas
# =============================================================================
#
# These models define the shape of data coming INTO the API. FastAPI uses
# them for body validation and OpenAPI docs (visible at /docs).
#
# Wire format is camelCase ("topK"); Python attributes stay snake_case.
# Validation failures surface as 400 "Validation Failed" with one
# fieldErrors entry per offending field (see chatdocs/api/errors.py).
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from chatdocs.config import settings

# Hard ceiling on topK regardless of configuration.
TOP_K_CEILING = 20


class ChatRequest(BaseModel):
    """
    Request body for POST /api/chat.

    Example:
        {
            "question": "What does the refund policy say about digital goods?",
            "topK": 5
        }
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"question": "What is the notice period for termination?", "topK": 5}
            ]
        },
    )

    # Optional at the type level so a missing or null question reports the
    # same message as a blank one.
    question: str | None = Field(
        default=None,
        validate_default=True,
        description="The question to answer from the uploaded documents",
    )

    # None means "use the configured default" (retrieval_top_k)
    top_k: int | None = Field(
        default=None,
        description="How many chunks to retrieve (1-20). Defaults to 5.",
    )

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str | None) -> str:
        if value is None or not value.strip():
            raise ValueError("Question can not be empty")
        return value

    @field_validator("top_k")
    @classmethod
    def top_k_in_range(cls, value: int | None) -> int | None:
        if value is None:
            return value
        if value < 1:
            raise ValueError("topK must be at least 1")
        limit = min(settings.max_top_k, TOP_K_CEILING)
        if value > limit:
            raise ValueError(f"topK cannot exceed {limit}")
        return value
