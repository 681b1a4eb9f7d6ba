# =============================================================================
# Chat Service — Retrieval-Augmented Question Answering
# =============================================================================
#
#   retrieve → build_context → generate
#
# 1. Retrieve: top_k nearest chunks for the raw question (None → default)
# 2. Context:  "Document {i}:\n{text}\n\n" per chunk, in retrieval order,
#              optionally capped at settings.context_max_chars
# 3. Generate: one user message built from a fixed prompt template
#
# Two short-circuits return a fixed answer with no sources:
#   - nothing retrieved           → the model is never called
#   - the model returned no text  → retrieved chunks are discarded
#
# Store and model failures are not caught here; they reach the HTTP layer
# and become 500 responses.
# =============================================================================

from __future__ import annotations

import logging
import time

from chatdocs.config import settings
from chatdocs.models.requests import ChatRequest
from chatdocs.models.responses import ChatResponse
from chatdocs.services.events import EventSink, LoggingEventSink, track_stage
from chatdocs.services.llm import LLMProvider
from chatdocs.services.vectorstore import RetrievedChunk, VectorStore

logger = logging.getLogger(__name__)

PIPELINE = "query"

NO_RELEVANT_INFO_MESSAGE = (
    "No relevant information found to answer this question. "
    "Make sure you've uploaded documents related to your query."
)
NO_ANSWER_MESSAGE = "No answer received for the question."

PROMPT_TEMPLATE = """\
You are a helpful AI assistant. Use the following pieces of context to answer the question.
If you don't know the answer based on the context, just say that you don't know.
Don't try to make up an answer.

Context:
{context}

Question: {question}

Answer:
"""


# ---------------------------------------------------------------------------
# Prompt Construction
# ---------------------------------------------------------------------------


def build_context(
    chunks: list[RetrievedChunk],
    max_chars: int | None = None,
) -> tuple[str, list[RetrievedChunk]]:
    """
    Concatenate chunks into the context block.

    Returns the context string and the chunks actually included. With a
    max_chars budget, whole chunks are added while they fit; the first chunk
    is always included, truncated if it alone exceeds the budget.
    """
    parts: list[str] = []
    used: list[RetrievedChunk] = []
    length = 0

    for i, chunk in enumerate(chunks):
        part = f"Document {i}:\n{chunk.text}\n\n"
        if max_chars is not None and length + len(part) > max_chars:
            if not used:
                parts.append(part[:max_chars])
                used.append(chunk)
            break
        parts.append(part)
        used.append(chunk)
        length += len(part)

    return "".join(parts), used


def build_prompt(context: str, question: str) -> str:
    return PROMPT_TEMPLATE.format(context=context, question=question)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class ChatService:
    """Query orchestrator. Stateless between requests."""

    def __init__(
        self,
        vector_store: VectorStore,
        llm: LLMProvider,
        events: EventSink | None = None,
    ) -> None:
        self._vector_store = vector_store
        self._llm = llm
        self._events = events or LoggingEventSink()

    async def chat(self, request: ChatRequest) -> ChatResponse:
        start = time.perf_counter()
        question = request.question
        top_k = request.top_k if request.top_k is not None else settings.retrieval_top_k

        logger.info("Chat request: question=%r top_k=%d", question[:80], top_k)

        with track_stage(self._events, PIPELINE, "retrieve") as stage:
            retrieved = await self._vector_store.similarity_search(question, top_k)
            stage.detail["results"] = len(retrieved)
            if not retrieved:
                stage.mark_empty()

        if not retrieved:
            logger.info("No chunks retrieved for question; skipping generation")
            return self._respond(NO_RELEVANT_INFO_MESSAGE, [], question, start)

        with track_stage(self._events, PIPELINE, "build_context") as stage:
            context, used = build_context(retrieved, settings.context_max_chars)
            prompt = build_prompt(context, question)
            stage.detail["chunks_used"] = len(used)
            stage.detail["context_chars"] = len(context)

        with track_stage(self._events, PIPELINE, "generate") as stage:
            completion = await self._llm.complete(
                [{"role": "user", "content": prompt}]
            )
            answer = completion.content if completion is not None else None
            if not answer:
                stage.mark_empty()

        if not answer:
            logger.warning("Model returned no content for question: %r", question[:80])
            return self._respond(NO_ANSWER_MESSAGE, [], question, start)

        return self._respond(answer, [c.text for c in used], question, start)

    @staticmethod
    def _respond(
        answer: str,
        sources: list[str],
        question: str,
        start: float,
    ) -> ChatResponse:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Chat answered in %dms with %d sources", elapsed_ms, len(sources),
        )
        return ChatResponse(
            answer=answer,
            sources=sources,
            question=question,
            processing_time_ms=elapsed_ms,
        )
