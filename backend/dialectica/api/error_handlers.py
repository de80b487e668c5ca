"""Error Handlers — global exception handlers for the reader API.

Invariants:
    - ReaderError → structured JSON with error code, message, severity
    - Transient LLM failures carrying a server Retry-After surface it as a
      Retry-After header (whole seconds, rounded up)
    - RequestValidationError → field-level error details (400)
    - Exception (catch-all) → never leaks internal details

Design Decisions:
    - Three-layer handler: domain (ReaderError), validation (Pydantic), catch-all (Exception)
    - Log level per error kind: PhaseTransitionError info,
      SessionImportError warning, LLMServiceError error
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from dialectica.core.errors import (
    ErrorSeverity,
    LLMServiceError,
    PhaseTransitionError,
    ReaderError,
    RetryBudgetExhaustedError,
    SessionImportError,
)

logger = logging.getLogger(__name__)


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""
    _register_reader_error_handler(app)
    _register_validation_error_handler(app)
    _register_generic_error_handler(app)


def _register_reader_error_handler(app: FastAPI) -> None:

    @app.exception_handler(ReaderError)
    async def reader_error_handler(request: Request, exc: ReaderError):
        """Handle all reader domain/infrastructure errors."""
        _log_reader_error(request, exc)
        return JSONResponse(
            status_code=exc.http_status,
            content=exc.to_response(),
            headers=_retry_after_header(exc),
        )


def _log_reader_error(request: Request, exc: ReaderError) -> None:
    extra = {
        "error_code": exc.code,
        "path": request.url.path,
        "phase": exc.context.phase,
        "chunk_label": exc.context.chunk_label,
        "attempt": exc.context.attempt,
    }
    if isinstance(exc, PhaseTransitionError):
        logger.info(f"Rejected {exc.action}: {exc.message}", extra=extra)
    elif isinstance(exc, SessionImportError):
        logger.warning(f"Session import rejected: {exc.message}", extra=extra)
    elif isinstance(exc, LLMServiceError):
        logger.error(f"Analysis step failed: {exc.message}", extra=extra)
    elif exc.http_status < 500:
        logger.warning(f"ReaderError: {exc.message}", extra=extra)
    else:
        logger.error(f"ReaderError: {exc.message}", extra=extra)


def _retry_after_header(exc: ReaderError) -> dict[str, str] | None:
    """Retry-After from the error, or from the last cause of an exhausted budget."""
    source = exc.last_error if isinstance(exc, RetryBudgetExhaustedError) else exc
    retry_after_ms = source.context.retry_after_ms
    if not retry_after_ms:
        return None
    return {"Retry-After": str(math.ceil(retry_after_ms / 1000))}


def _register_validation_error_handler(app: FastAPI) -> None:

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError,
    ):
        """Handle Pydantic validation errors."""
        logger.warning(
            f"Validation error on {request.url.path}: {exc.errors()}",
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_build_validation_error_response(exc),
        )


def _register_generic_error_handler(app: FastAPI) -> None:

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        """Catch-all — never leaks internal details."""
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}",
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "code": "INTERNAL_ERROR",
                    "message": "An unexpected error occurred",
                    "category": "internal",
                    "severity": ErrorSeverity.CRITICAL.value,
                },
            },
        )


def _build_validation_error_response(exc: RequestValidationError) -> dict:
    return {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Invalid request data",
            "category": "validation",
            "severity": ErrorSeverity.ERROR.value,
            "details": [
                {
                    "field": ".".join(str(loc) for loc in e["loc"]),
                    "message": e["msg"],
                    "type": e["type"],
                }
                for e in exc.errors()
            ],
        },
    }
