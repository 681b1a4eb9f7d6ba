# =============================================================================
# Unit Tests — Document Service (ingestion pipeline)
# =============================================================================
#
# The store, splitter and parser are in-memory fakes (see conftest.py), so
# these tests exercise orchestration only: validation, error wrapping,
# metadata enrichment and the single store call.
# =============================================================================

import pytest

from chatdocs.exceptions import DocumentProcessingError, ProcessingErrorKind
from chatdocs.services.document_service import DocumentService
from chatdocs.services.parser import SourceFile, SourceKind, TextUnit


class _StaticParser:
    def __init__(self, units=None, error=None):
        self.units = units or []
        self.error = error
        self.calls = 0

    def parse(self, source):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.units


def _service(store, splitter, parser, events=None, seen_kinds=None):
    def _select(kind):
        if seen_kinds is not None:
            seen_kinds.append(kind)
        return parser

    return DocumentService(
        vector_store=store,
        splitter=splitter,
        parser_selector=_select,
        events=events,
    )


def _file(content=b"some bytes", filename="report.pdf", content_type="application/pdf"):
    return SourceFile(content=content, filename=filename, content_type=content_type)


class TestProcessDocument:
    def test_success_counts_and_message(self, fake_store, fake_splitter):
        parser = _StaticParser([TextUnit("alpha|beta", {"page_number": 1}), TextUnit("gamma", {"page_number": 2})])
        service = _service(fake_store, fake_splitter, parser)

        result = service.process_document(_file())

        assert result.filename == "report.pdf"
        assert result.chunks_created == 3
        assert result.chunks_stored == 3
        assert result.message == "Documents processed successfully"
        assert result.processing_time_ms >= 0
        assert len(fake_store.added) == 1

    def test_chunks_enriched_with_provenance(self, fake_store, fake_splitter):
        parser = _StaticParser([TextUnit("alpha|beta", {"page_number": 1}), TextUnit("gamma", {"page_number": 2})])
        service = _service(fake_store, fake_splitter, parser)

        service.process_document(_file())

        [stored] = fake_store.added
        assert [c.metadata["chunk_index"] for c in stored] == [0, 1, 2]
        assert {c.metadata["total_chunks"] for c in stored} == {3}
        assert {c.metadata["filename"] for c in stored} == {"report.pdf"}
        # One timestamp per request, in epoch milliseconds
        timestamps = {c.metadata["upload_timestamp"] for c in stored}
        assert len(timestamps) == 1
        assert timestamps.pop() > 1_000_000_000_000
        # Parser metadata survives enrichment
        assert [c.metadata["page_number"] for c in stored] == [1, 1, 2]

    def test_parser_chosen_by_classification(self, fake_store, fake_splitter):
        kinds = []
        service = _service(fake_store, fake_splitter, _StaticParser([TextUnit("text")]), seen_kinds=kinds)

        service.process_document(_file(filename="SCAN.PDF", content_type=None))
        service.process_document(_file(filename="notes.txt", content_type="text/plain"))

        assert kinds == [SourceKind.PDF, SourceKind.PLAIN_TEXT]

    def test_no_chunks_skips_store(self, fake_store, fake_splitter):
        service = _service(fake_store, fake_splitter, _StaticParser([]))

        result = service.process_document(_file())

        assert result.chunks_created == 0
        assert result.chunks_stored == 0
        assert fake_store.added == []

    def test_stage_events_in_order(self, fake_store, fake_splitter, recorder):
        service = _service(fake_store, fake_splitter, _StaticParser([TextUnit("a|b")]), events=recorder)

        service.process_document(_file())

        assert recorder.stages == ["validate", "parse", "split", "enrich", "store"]
        assert all(e.pipeline == "ingest" for e in recorder.events)


class TestValidation:
    @pytest.mark.parametrize("file", [None, SourceFile(content=b"", filename="empty.pdf")])
    def test_missing_or_empty_file(self, fake_store, fake_splitter, file):
        parser = _StaticParser([TextUnit("text")])
        service = _service(fake_store, fake_splitter, parser)

        with pytest.raises(DocumentProcessingError) as exc_info:
            service.process_document(file)

        assert exc_info.value.kind is ProcessingErrorKind.VALIDATION
        assert exc_info.value.message == "File is empty or null."
        assert parser.calls == 0
        assert fake_store.added == []

    @pytest.mark.parametrize("filename", [None, "", "   "])
    def test_missing_filename(self, fake_store, fake_splitter, filename):
        service = _service(fake_store, fake_splitter, _StaticParser([TextUnit("text")]))

        with pytest.raises(DocumentProcessingError) as exc_info:
            service.process_document(_file(filename=filename))

        assert exc_info.value.message == "File name is invalid."
        assert fake_store.added == []

    def test_validation_failure_emits_error_event(self, fake_store, fake_splitter, recorder):
        service = _service(fake_store, fake_splitter, _StaticParser(), events=recorder)

        with pytest.raises(DocumentProcessingError):
            service.process_document(None)

        assert recorder.stages == ["validate"]
        assert recorder.events[0].outcome == "error"


class TestFailures:
    def test_parser_exception_wrapped(self, fake_store, fake_splitter):
        cause = OSError("disk gone")
        service = _service(fake_store, fake_splitter, _StaticParser(error=cause))

        with pytest.raises(DocumentProcessingError) as exc_info:
            service.process_document(_file())

        assert exc_info.value.kind is ProcessingErrorKind.PARSE
        assert exc_info.value.message == "Error occurred reading document."
        assert exc_info.value.__cause__ is cause
        assert fake_store.added == []

    def test_parser_processing_error_passes_through(self, fake_store, fake_splitter):
        original = DocumentProcessingError("Error occurred reading document.", kind=ProcessingErrorKind.PARSE)
        service = _service(fake_store, fake_splitter, _StaticParser(error=original))

        with pytest.raises(DocumentProcessingError) as exc_info:
            service.process_document(_file())

        assert exc_info.value is original

    def test_store_exception_wrapped(self, make_store, fake_splitter):
        cause = ConnectionError("database unreachable")
        store = make_store(add_error=cause)
        service = _service(store, fake_splitter, _StaticParser([TextUnit("a|b")]))

        with pytest.raises(DocumentProcessingError) as exc_info:
            service.process_document(_file())

        assert exc_info.value.kind is ProcessingErrorKind.STORAGE
        assert exc_info.value.message == "Failed to store document chunks."
        assert exc_info.value.__cause__ is cause
