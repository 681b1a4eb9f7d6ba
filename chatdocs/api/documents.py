# =============================================================================
# Documents API — Upload and Ingest
# =============================================================================
#
# ENDPOINTS:
#   POST /api/documents/upload — parse, split, embed and store one file
#
# Processing is synchronous: the response reports how many chunks were
# stored, and the document is searchable as soon as it returns.
#
# The route is a plain `def`, so FastAPI runs it in its threadpool and the
# blocking parser, embedding client and sync database session never stall
# the event loop.
#
# The `file` part is optional at the framework level. A missing or empty
# file reaches DocumentService, which rejects it with a 400 carrying the
# same body as every other processing error.
# =============================================================================

import logging

from fastapi import APIRouter, Depends, File, UploadFile

from chatdocs.api.dependencies import get_document_service
from chatdocs.config import settings
from chatdocs.exceptions import UploadTooLargeError
from chatdocs.models.responses import DocumentUploadResponse
from chatdocs.services.document_service import DocumentService
from chatdocs.services.parser import SourceFile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/documents", tags=["Documents"])


@router.post(
    "/upload",
    response_model=DocumentUploadResponse,
    status_code=201,
    summary="Upload a document for question answering",
    description=(
        "Upload a PDF, Office document, HTML, Markdown or plain-text file. "
        "The file is parsed, split into chunks, embedded and stored before "
        "the response is returned."
    ),
)
def upload_document(
    file: UploadFile | None = File(
        default=None,
        description="The document to ingest",
    ),
    service: DocumentService = Depends(get_document_service),
) -> DocumentUploadResponse:
    source = _read_upload(file) if file is not None else None
    return service.process_document(source)


def _read_upload(file: UploadFile) -> SourceFile:
    """
    Read the upload into memory, enforcing the size ceiling.

    Reads at most one byte past the limit so an oversized body is detected
    without buffering all of it.
    """
    limit = settings.max_upload_size_bytes
    content = file.file.read(limit + 1)
    if len(content) > limit:
        logger.warning(
            "Rejected upload '%s': larger than %dMB",
            file.filename, settings.max_upload_size_mb,
        )
        raise UploadTooLargeError(settings.max_upload_size_mb, len(content))

    return SourceFile(
        content=content,
        filename=file.filename,
        content_type=file.content_type,
    )
