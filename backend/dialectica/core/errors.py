"""Error Hierarchy — typed, categorized exceptions for every reader failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Retryable LLM failures (malformed output, transient service errors) are
      distinguishable by type; everything else is permanent
    - to_response() produces the REST envelope used by the API error handlers
    - str(error) is the human-readable message surfaced as the session's last error

Design Decisions:
    - Single hierarchy with ReaderError base: FastAPI global handler catches all
    - ErrorContext as dataclass: phase/chunk/attempt travel with the error
      without coupling to the logging framework
    - SessionImportError instead of ImportError: avoids shadowing the builtin
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    phase: str | None = None
    chunk_label: str | None = None
    attempt: int | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class ReaderError(Exception):
    """Base exception for all reader errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "phase": self.context.phase,
                    "chunk_label": self.context.chunk_label,
                    "attempt": self.context.attempt,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class PhaseTransitionError(ReaderError):
    """Operation is not allowed from the current phase."""
    def __init__(self, action: str, phase: str, reason: str | None = None):
        message = f"Cannot {action} while in phase {phase}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message, "PHASE_TRANSITION_INVALID", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.ERROR, ErrorContext(phase=phase), 409,
        )
        self.action = action


class SessionImportError(ReaderError):
    """Session file could not be parsed or validated."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Invalid session file: {message}",
            "SESSION_IMPORT_INVALID", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )


class ResourceNotFoundError(ReaderError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── LLM Service Errors ─────────────────────────────────────────

class LLMServiceError(ReaderError):
    """Base for failures around the external LLM call."""
    retryable = False


class MalformedResponseError(LLMServiceError):
    """LLM output was not parseable JSON or did not match the phase schema."""
    retryable = True

    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"Malformed analysis response: {message}",
            "MALFORMED_RESPONSE", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, context, 502,
        )


class TransientServiceError(LLMServiceError):
    """Rate limit, overload or server error reported by the transport."""
    retryable = True

    def __init__(
        self,
        message: str,
        api_error_type: str,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"LLM service unavailable ({api_error_type}): {message}",
            "LLM_TRANSIENT_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.WARNING, ctx, 503,
        )
        self.api_error_type = api_error_type


class PermanentServiceError(LLMServiceError):
    """Non-retryable LLM failure (credentials, client errors)."""

    def __init__(
        self,
        message: str,
        api_error_type: str = "client_error",
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"LLM request failed ({api_error_type}): {message}",
            "LLM_PERMANENT_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.api_error_type = api_error_type


class RetryBudgetExhaustedError(PermanentServiceError):
    """Retryable failures persisted past the retry budget."""

    def __init__(
        self,
        retries: int,
        last_error: LLMServiceError,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"gave up after {retries} retries. Last error: {last_error.message}",
            "retries_exhausted",
            context,
        )
        self.code = "LLM_RETRIES_EXHAUSTED"
        self.last_error = last_error
