"""
Global error handling middleware for the FastAPI application.

Catches VoiceCorpusError subclasses, Pydantic validation errors, and
unhandled exceptions, converting them into a consistent JSON envelope.
"""

import logging
from datetime import UTC, datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.exceptions import (
    IllegalTransitionError,
    MetadataWriteFailedError,
    SessionBusyError,
    VoiceCorpusError,
)

logger = logging.getLogger(__name__)

# Seconds a client should wait before retrying a busy session
_BUSY_RETRY_AFTER = "1"


def _error_content(exc: VoiceCorpusError) -> dict:
    """Build the error envelope, adding the fields clients act on per error code."""
    content: dict = {
        "detail": exc.detail,
        "code": exc.code,
        "timestamp": exc.timestamp,
    }
    if isinstance(exc, IllegalTransitionError):
        content["action"] = exc.action
        content["capture_state"] = exc.state
    elif isinstance(exc, MetadataWriteFailedError):
        content["key"] = exc.key
        content["orphaned_blob"] = exc.orphaned_blob
    return content


def register_error_handlers(app: FastAPI) -> None:
    """Attach exception handlers to the FastAPI application.

    Registers three handlers in priority order:
    1. ``VoiceCorpusError``: maps domain errors to structured JSON responses.
    2. ``RequestValidationError``: Pydantic validation failures (422).
    3. ``Exception``: catch-all for unexpected server errors (500).

    Args:
        app: The FastAPI application instance to register handlers on.
    """

    @app.exception_handler(VoiceCorpusError)
    async def voicecorpus_error_handler(_request: Request, exc: VoiceCorpusError) -> JSONResponse:
        """Convert domain-specific errors into a JSON error envelope.

        A busy session also carries a ``Retry-After`` header.
        """
        headers = None
        if isinstance(exc, SessionBusyError):
            headers = {"Retry-After": _BUSY_RETRY_AFTER}
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_content(exc),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Handle Pydantic request validation errors (malformed body/params)."""
        return JSONResponse(
            status_code=422,
            content={
                "detail": str(exc),
                "code": "VALIDATION_ERROR",
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler; keeps stack traces out of client responses."""
        logger.error(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "code": "INTERNAL_ERROR",
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )
