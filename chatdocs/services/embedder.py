# =============================================================================
# Embedding Client — OpenAI-Compatible Embeddings
# =============================================================================
#
# The vector stores call into this module: embed_texts() when chunks are
# added, embed_query() when a question is searched. Nothing else in the
# application computes embeddings.
#
# Works with any provider exposing the OpenAI embeddings endpoint; set
# EMBEDDING_BASE_URL for non-OpenAI providers. Key resolution order:
#   1. OPENAI_API_KEY
#   2. LLM_API_KEY (one key shared by chat and embeddings)
# =============================================================================

from __future__ import annotations

import logging
from collections.abc import Sequence

from openai import OpenAI

from chatdocs.config import settings

logger = logging.getLogger(__name__)

_client: OpenAI | None = None


def _get_client() -> OpenAI:
    """Lazily initialize and cache the embedding client."""
    global _client
    if _client is None:
        api_key = settings.openai_api_key or settings.llm_api_key
        if not api_key:
            raise ValueError(
                "No API key configured for embeddings. "
                "Set OPENAI_API_KEY or LLM_API_KEY in .env"
            )

        client_kwargs: dict = {"api_key": api_key}
        if settings.embedding_base_url:
            client_kwargs["base_url"] = settings.embedding_base_url
        _client = OpenAI(**client_kwargs)

        logger.info(
            "Initialized embedding client (model=%s, base_url=%s)",
            settings.embedding_model,
            settings.embedding_base_url or "https://api.openai.com/v1",
        )
    return _client


def embed_texts(texts: Sequence[str], batch_size: int | None = None) -> list[list[float]]:
    """
    Embed texts in sub-batches, returning vectors in input order.

    Raises:
        ValueError: If no API key is configured.
        openai.APIError: If the embeddings call fails.
    """
    if not texts:
        return []

    client = _get_client()
    step = batch_size or settings.embedding_batch_size
    vectors: list[list[float]] = [[] for _ in texts]

    for offset in range(0, len(texts), step):
        batch = list(texts[offset : offset + step])
        request: dict = {"model": settings.embedding_model, "input": batch}
        if settings.embedding_dimensions:
            request["dimensions"] = settings.embedding_dimensions

        response = client.embeddings.create(**request)

        # response.data carries an index per input; place by index.
        for item in response.data:
            vectors[offset + item.index] = item.embedding

        logger.debug(
            "Embedded texts %d-%d of %d",
            offset + 1, offset + len(batch), len(texts),
        )

    logger.info(
        "Generated %d embeddings (model=%s)", len(texts), settings.embedding_model,
    )
    return vectors


def embed_query(text: str) -> list[float]:
    """Embed a single search query."""
    return embed_texts([text], batch_size=1)[0]
