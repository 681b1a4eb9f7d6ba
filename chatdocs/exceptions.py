# =============================================================================
# Application Exceptions
# =============================================================================
#
# The ingestion pipeline reports every failure it understands as a
# DocumentProcessingError tagged with a kind:
#   - VALIDATION: bad or missing input, nothing attempted yet
#   - PARSE:      the parser could not read the file
#   - STORAGE:    the vector store rejected the write
#
# The HTTP layer (chatdocs/api/errors.py) maps these to status codes.
# Chat-path failures are not wrapped: they propagate as-is and surface as
# 500 Internal Server Error.
# =============================================================================

from __future__ import annotations

import enum


class ProcessingErrorKind(str, enum.Enum):
    """Which ingestion stage a DocumentProcessingError came from."""

    VALIDATION = "validation"
    PARSE = "parse"
    STORAGE = "storage"


class DocumentProcessingError(Exception):
    """
    Raised when an uploaded document cannot be validated, parsed or stored.

    The original exception, if any, is chained as ``__cause__`` so the
    traceback logged by the error handler shows the root failure.
    """

    def __init__(
        self,
        message: str,
        kind: ProcessingErrorKind = ProcessingErrorKind.VALIDATION,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        if cause is not None:
            self.__cause__ = cause


class UploadTooLargeError(Exception):
    """Raised at the HTTP boundary when an upload exceeds the size ceiling."""

    def __init__(self, limit_mb: int, actual_bytes: int | None = None) -> None:
        super().__init__(f"File size exceeds maximum limit of {limit_mb}MB")
        self.limit_mb = limit_mb
        self.actual_bytes = actual_bytes
