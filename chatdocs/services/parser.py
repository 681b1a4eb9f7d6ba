# =============================================================================
# Document Parsers — Docling Document Intelligence
# =============================================================================
#
# Turns an uploaded file into a list of TextUnits ready for splitting.
# Two parser variants share one interface:
#
#   DocumentParser (Protocol)
#   ├── PdfPageParser          — PDFs, one TextUnit per page
#   └── GenericDocumentParser  — everything else, one TextUnit per file
#       ├── Docling for DOCX, PPTX, XLSX, HTML, Markdown, CSV, images...
#       └── UTF-8 decoding for plain text (.txt, .json, .yaml, .sql, source
#           code, any other text/* media type)
#
# When Docling rejects an unrecognised file that is valid UTF-8, the
# generic parser keeps the decoded text instead of failing the upload.
#
# classify_source() is a pure function over filename and media type;
# select_parser() maps its result to a parser instance. Adding a format
# means adding a SourceKind and a parser, not touching the orchestrator.
#
# Every failure is reported as DocumentProcessingError(kind=PARSE) with the
# underlying exception chained.
# =============================================================================

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import PurePath
from typing import Protocol

from docling.datamodel.base_models import DocumentStream, InputFormat
from docling.datamodel.pipeline_options import PdfPipelineOptions
from docling.document_converter import DocumentConverter, PdfFormatOption
from docling_core.types.doc.labels import DocItemLabel

from chatdocs.exceptions import DocumentProcessingError, ProcessingErrorKind

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class SourceFile:
    """An uploaded file as received at the HTTP boundary. Never persisted."""

    content: bytes
    filename: str | None
    content_type: str | None = None

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass
class TextUnit:
    """
    A unit of extracted text (one PDF page, or a whole non-PDF file).

    Metadata set here is carried into every chunk split from this unit.
    """

    text: str
    metadata: dict = field(default_factory=dict)


class SourceKind(str, enum.Enum):
    PDF = "pdf"
    PLAIN_TEXT = "plain_text"
    GENERIC = "generic"


class DocumentParser(Protocol):
    """Parses one source file into text units."""

    def parse(self, source: SourceFile) -> list[TextUnit]:
        ...


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

_PLAIN_TEXT_EXTENSIONS = {
    ".txt", ".text", ".log",
    ".json", ".jsonl", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".conf",
    ".env", ".properties", ".sql", ".tsv",
    ".py", ".js", ".ts", ".java", ".kt", ".go", ".rs", ".rb", ".php",
    ".c", ".h", ".cpp", ".hpp", ".cs", ".sh", ".bat", ".ps1", ".css",
}

# Text formats Docling parses itself; everything else under text/* is
# decoded as-is.
_DOCLING_TEXT_MEDIA_TYPES = {
    "text/html",
    "text/markdown",
    "text/x-markdown",
    "text/csv",
    "text/asciidoc",
}

_PLAIN_TEXT_APPLICATION_TYPES = {
    "application/json",
    "application/x-yaml",
    "application/yaml",
    "application/sql",
    "application/toml",
    "application/x-sh",
    "application/javascript",
}

_DOCLING_EXTENSIONS = {
    ".docx", ".dotx", ".docm", ".pptx", ".potx", ".ppsx", ".pptm", ".xlsx",
    ".xlsm", ".html", ".htm", ".xhtml", ".md", ".markdown", ".csv", ".adoc",
    ".asciidoc", ".asc", ".png", ".jpg", ".jpeg", ".tif", ".tiff", ".bmp",
    ".webp", ".xml",
}

# Docling item labels that carry body text. Page headers/footers are skipped.
_TEXT_LABELS = {
    DocItemLabel.TITLE,
    DocItemLabel.SECTION_HEADER,
    DocItemLabel.TEXT,
    DocItemLabel.PARAGRAPH,
    DocItemLabel.LIST_ITEM,
    DocItemLabel.CAPTION,
    DocItemLabel.FOOTNOTE,
    DocItemLabel.CODE,
}


def classify_source(filename: str | None, content_type: str | None = None) -> SourceKind:
    """
    Decide which parser handles a file.

    A known extension wins. Otherwise the declared media type decides:
    application/pdf is a PDF, and text/* (except the formats Docling reads
    natively) or a textual application/* type is plain text.
    """
    suffix = PurePath(filename or "").suffix.lower()
    media_type = (content_type or "").split(";", 1)[0].strip().lower()

    if suffix == ".pdf":
        return SourceKind.PDF
    if suffix in _PLAIN_TEXT_EXTENSIONS:
        return SourceKind.PLAIN_TEXT
    if suffix in _DOCLING_EXTENSIONS:
        return SourceKind.GENERIC

    if media_type == "application/pdf":
        return SourceKind.PDF
    if media_type.startswith("text/") and media_type not in _DOCLING_TEXT_MEDIA_TYPES:
        return SourceKind.PLAIN_TEXT
    if media_type in _PLAIN_TEXT_APPLICATION_TYPES:
        return SourceKind.PLAIN_TEXT
    return SourceKind.GENERIC


def select_parser(kind: SourceKind) -> DocumentParser:
    """Return the parser variant for a SourceKind."""
    if kind is SourceKind.PDF:
        return PdfPageParser()
    return GenericDocumentParser()


# ---------------------------------------------------------------------------
# Docling Converter — Lazy Singleton
# ---------------------------------------------------------------------------
# Initialization loads layout/OCR models (a few seconds on first use), so one
# converter instance is shared by every request.
# ---------------------------------------------------------------------------

_converter: DocumentConverter | None = None


def _get_converter() -> DocumentConverter:
    """Lazily initialize and cache the Docling DocumentConverter."""
    global _converter
    if _converter is None:
        logger.info(
            "Initializing Docling DocumentConverter "
            "(first use, may take a few seconds)..."
        )
        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_table_structure = True
        pipeline_options.do_ocr = True

        _converter = DocumentConverter(
            format_options={
                InputFormat.PDF: PdfFormatOption(
                    pipeline_options=pipeline_options,
                ),
            }
        )
        logger.info("Docling DocumentConverter initialized")
    return _converter


def _convert(source: SourceFile):
    """Run Docling on in-memory bytes, wrapping any failure as a parse error."""
    stream = DocumentStream(name=source.filename or "upload", stream=BytesIO(source.content))
    try:
        result = _get_converter().convert(stream)
    except Exception as exc:
        logger.error("Docling failed to parse '%s': %s", source.filename, exc)
        raise DocumentProcessingError(
            "Error occurred reading document.",
            kind=ProcessingErrorKind.PARSE,
            cause=exc,
        ) from exc
    return result.document


# ---------------------------------------------------------------------------
# Parser Implementations
# ---------------------------------------------------------------------------


class PdfPageParser:
    """Extracts a PDF page by page, keeping page numbers in the metadata."""

    def parse(self, source: SourceFile) -> list[TextUnit]:
        logger.debug("PDF file found, using page reader for: %s", source.filename)
        document = _convert(source)

        pages: dict[int, list[str]] = {}
        for item, _level in document.iterate_items():
            text = _item_text(item, document)
            if not text:
                continue
            page_no = item.prov[0].page_no if getattr(item, "prov", None) else 0
            pages.setdefault(page_no, []).append(text)

        units = [
            TextUnit(
                text="\n\n".join(parts),
                metadata={"page_number": page_no, "file_name": source.filename},
            )
            for page_no, parts in sorted(pages.items())
        ]
        logger.info(
            "Parsed PDF '%s' into %d non-empty pages",
            source.filename, len(units),
        )
        return units


class GenericDocumentParser:
    """Extracts any non-PDF format as a single text unit."""

    def parse(self, source: SourceFile) -> list[TextUnit]:
        if classify_source(source.filename, source.content_type) is SourceKind.PLAIN_TEXT:
            text = source.content.decode("utf-8", errors="replace")
        else:
            logger.debug("Using Docling generic reader for: %s", source.filename)
            try:
                text = _convert(source).export_to_markdown()
            except DocumentProcessingError:
                text = _decode_strict(source)
                if text is None:
                    raise
                logger.info("Docling rejected '%s'; read it as UTF-8 text", source.filename)

        if not text.strip():
            logger.warning("No text extracted from '%s'", source.filename)
            return []
        return [TextUnit(text=text, metadata={"source": source.filename})]


# ---------------------------------------------------------------------------
# Internal Helpers
# ---------------------------------------------------------------------------


def _decode_strict(source: SourceFile) -> str | None:
    """Return the content as text if it is valid UTF-8 without NUL bytes."""
    try:
        text = source.content.decode("utf-8")
    except UnicodeDecodeError:
        return None
    return None if "\x00" in text else text


def _item_text(item: object, document: object) -> str:
    label = getattr(item, "label", None)
    if label == DocItemLabel.TABLE:
        return _table_to_markdown(item, document)
    if label in _TEXT_LABELS:
        return (getattr(item, "text", "") or "").strip()
    return ""


def _table_to_markdown(table_item: object, document: object) -> str:
    """
    Convert a Docling TableItem to markdown.

    Falls back to the item's plain text if DataFrame export fails.
    """
    try:
        if hasattr(table_item, "export_to_dataframe"):
            df = table_item.export_to_dataframe(doc=document)
            return df.to_markdown(index=False)
    except Exception as exc:
        logger.warning("Table export to DataFrame failed: %s", exc)

    text = getattr(table_item, "text", "")
    return text.strip() if text else ""
