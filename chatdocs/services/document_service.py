# =============================================================================
# Document Service — Ingestion Pipeline
# =============================================================================
#
# Turns one uploaded file into stored, searchable chunks:
#
#   validate → parse → split → enrich → store
#
# 1. Validate: the file must exist, be non-empty and carry a filename
# 2. Parse:    classify_source() picks PdfPageParser or GenericDocumentParser
# 3. Split:    TokenTextSplitter cuts each text unit into token-bounded chunks
# 4. Enrich:   every chunk gets filename, chunk_index, total_chunks and one
#              upload_timestamp shared by the whole request
# 5. Store:    a single vector_store.add() call (embeddings computed there)
#
# Every failure leaves as DocumentProcessingError; the kind tells the caller
# which stage gave up. Each stage boundary emits a StageEvent.
#
# Runs synchronously: the upload endpoint is a plain `def` route executed in
# FastAPI's threadpool.
# =============================================================================

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from chatdocs.exceptions import DocumentProcessingError, ProcessingErrorKind
from chatdocs.models.responses import DocumentUploadResponse
from chatdocs.services.chunker import Chunk, TokenTextSplitter
from chatdocs.services.events import EventSink, LoggingEventSink, track_stage
from chatdocs.services.parser import (
    DocumentParser,
    SourceFile,
    SourceKind,
    classify_source,
    select_parser,
)
from chatdocs.services.vectorstore import VectorStore

logger = logging.getLogger(__name__)

PIPELINE = "ingest"
SUCCESS_MESSAGE = "Documents processed successfully"


class DocumentService:
    """
    Ingestion orchestrator.

    Holds no per-request state; one instance serves every upload.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        splitter: TokenTextSplitter | None = None,
        parser_selector: Callable[[SourceKind], DocumentParser] = select_parser,
        events: EventSink | None = None,
    ) -> None:
        self._vector_store = vector_store
        self._splitter = splitter or TokenTextSplitter()
        self._select_parser = parser_selector
        self._events = events or LoggingEventSink()

    def process_document(self, file: SourceFile | None) -> DocumentUploadResponse:
        """
        Ingest one file and report how many chunks were created and stored.

        Raises:
            DocumentProcessingError: VALIDATION, PARSE or STORAGE failure.
        """
        start = time.perf_counter()

        with track_stage(self._events, PIPELINE, "validate"):
            self._validate(file)
        filename = file.filename

        logger.info("Processing document: %s (%d bytes)", filename, file.size)

        with track_stage(self._events, PIPELINE, "parse") as stage:
            kind = classify_source(filename, file.content_type)
            stage.detail["kind"] = kind.value
            units = self._parse(kind, file)
            stage.detail["units"] = len(units)
            if not units:
                stage.mark_empty()

        with track_stage(self._events, PIPELINE, "split") as stage:
            chunks = self._splitter.split(units)
            stage.detail["chunks"] = len(chunks)
            if not chunks:
                stage.mark_empty()

        with track_stage(self._events, PIPELINE, "enrich"):
            upload_timestamp = int(time.time() * 1000)
            _enrich(chunks, filename, upload_timestamp)

        with track_stage(self._events, PIPELINE, "store") as stage:
            if chunks:
                self._store(chunks, filename)
            else:
                logger.warning("No chunks produced for '%s'; nothing stored", filename)
                stage.mark_empty()

        elapsed_ms = int((time.perf_counter() - start) * 1000)
        logger.info(
            "Document '%s' processed: %d chunks in %dms",
            filename, len(chunks), elapsed_ms,
        )

        return DocumentUploadResponse(
            filename=filename,
            chunks_created=len(chunks),
            chunks_stored=len(chunks),
            message=SUCCESS_MESSAGE,
            processing_time_ms=elapsed_ms,
        )

    # -------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------

    @staticmethod
    def _validate(file: SourceFile | None) -> None:
        if file is None or file.size == 0:
            raise DocumentProcessingError("File is empty or null.")
        if not file.filename or not file.filename.strip():
            raise DocumentProcessingError("File name is invalid.")

    def _parse(self, kind: SourceKind, file: SourceFile):
        try:
            return self._select_parser(kind).parse(file)
        except DocumentProcessingError:
            raise
        except Exception as exc:
            logger.error("Error reading document '%s': %s", file.filename, exc)
            raise DocumentProcessingError(
                "Error occurred reading document.",
                kind=ProcessingErrorKind.PARSE,
                cause=exc,
            ) from exc

    def _store(self, chunks: list[Chunk], filename: str) -> None:
        try:
            self._vector_store.add(chunks)
        except Exception as exc:
            logger.error("Failed to store chunks for '%s': %s", filename, exc)
            raise DocumentProcessingError(
                "Failed to store document chunks.",
                kind=ProcessingErrorKind.STORAGE,
                cause=exc,
            ) from exc


def _enrich(chunks: list[Chunk], filename: str, upload_timestamp: int) -> None:
    """Merge provenance into each chunk's metadata, in place."""
    total = len(chunks)
    for index, chunk in enumerate(chunks):
        chunk.metadata.update({
            "filename": filename,
            "chunk_index": index,
            "total_chunks": total,
            "upload_timestamp": upload_timestamp,
        })
