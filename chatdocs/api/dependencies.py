# =============================================================================
# Service Dependencies — FastAPI Dependency Injection
# =============================================================================
#
# Routes receive their orchestrators through Depends(), never by importing
# module globals. Tests swap any of these out via app.dependency_overrides.
#
#   get_event_sink()       — logging sink, plus Prometheus when enabled
#   get_document_service() — DocumentService over the configured store
#   get_chat_service()     — ChatService over the configured store + LLM
#
# All three are lazy singletons: the first request builds them, later
# requests reuse them. The services themselves hold no per-request state.
# =============================================================================

from __future__ import annotations

import logging

from chatdocs.config import settings
from chatdocs.services.chat_service import ChatService
from chatdocs.services.document_service import DocumentService
from chatdocs.services.events import (
    CompositeEventSink,
    EventSink,
    LoggingEventSink,
    PrometheusEventSink,
)
from chatdocs.services.llm import get_llm_provider
from chatdocs.services.vectorstore import VectorStore, get_vector_store

logger = logging.getLogger(__name__)

_event_sink: EventSink | None = None
_vector_store: VectorStore | None = None
_document_service: DocumentService | None = None
_chat_service: ChatService | None = None


def get_event_sink() -> EventSink:
    global _event_sink
    if _event_sink is None:
        if settings.metrics_enabled:
            _event_sink = CompositeEventSink(LoggingEventSink(), PrometheusEventSink())
        else:
            _event_sink = LoggingEventSink()
        logger.info("Stage events: logging%s", " + prometheus" if settings.metrics_enabled else "")
    return _event_sink


def _get_store() -> VectorStore:
    global _vector_store
    if _vector_store is None:
        _vector_store = get_vector_store()
    return _vector_store


def get_document_service() -> DocumentService:
    """Ingestion orchestrator shared by every upload request."""
    global _document_service
    if _document_service is None:
        _document_service = DocumentService(
            vector_store=_get_store(),
            events=get_event_sink(),
        )
    return _document_service


def get_chat_service() -> ChatService:
    """Query orchestrator shared by every chat request."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService(
            vector_store=_get_store(),
            llm=get_llm_provider(),
            events=get_event_sink(),
        )
    return _chat_service
