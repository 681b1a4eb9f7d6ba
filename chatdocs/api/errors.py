# =============================================================================
# Error Handlers — Exception → JSON Error Body
# =============================================================================
#
# Every error leaves the API with the same body:
#   {"timestamp", "status", "error", "message"[, "fieldErrors"]}
#
#   RequestValidationError   → 400 Validation Failed (+ fieldErrors)
#   DocumentProcessingError  → 400 Document Processing Error
#   UploadTooLargeError      → 413 Max upload size exceeded
#   Exception                → 500 Internal Server Error
#
# FastAPI's default for body validation is 422; it is remapped to 400 here.
# =============================================================================

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from chatdocs.exceptions import DocumentProcessingError, UploadTooLargeError
from chatdocs.models.responses import ErrorResponse

logger = logging.getLogger(__name__)


def _error_response(
    status: int,
    error: str,
    message: str,
    field_errors: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        timestamp=datetime.now(UTC).isoformat(),
        status=status,
        error=error,
        message=message,
        field_errors=field_errors,
    )
    return JSONResponse(
        status_code=status,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


def _field_errors(exc: RequestValidationError) -> dict[str, str]:
    """
    One message per offending field, keyed by its wire name.

    Custom validator messages are used as-is (without pydantic's
    "Value error, " prefix).
    """
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("body",)
        # A malformed JSON body reports a character offset as the last loc item.
        field = loc[-1] if isinstance(loc[-1], str) else "body"
        ctx = err.get("ctx") or {}
        message = str(ctx["error"]) if "error" in ctx else err.get("msg", "Invalid value")
        errors.setdefault(field, message)
    return errors


async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = _field_errors(exc)
    logger.error("Validation failed on %s: %s", request.url.path, field_errors)
    return _error_response(400, "Validation Failed", "Invalid input data", field_errors)


async def handle_processing_error(request: Request, exc: DocumentProcessingError) -> JSONResponse:
    logger.error(
        "Document processing failed (%s): %s", exc.kind.value, exc.message,
        exc_info=exc if exc.__cause__ is not None else None,
    )
    return _error_response(400, "Document Processing Error", exc.message)


async def handle_upload_too_large(request: Request, exc: UploadTooLargeError) -> JSONResponse:
    logger.error("Upload too large: %s", exc)
    return _error_response(413, "Max upload size exceeded", str(exc))


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error on %s", request.url.path)
    return _error_response(500, "Internal Server Error", str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Attach every handler above to the app."""
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(DocumentProcessingError, handle_processing_error)
    app.add_exception_handler(UploadTooLargeError, handle_upload_too_large)
    app.add_exception_handler(Exception, handle_unexpected_error)
