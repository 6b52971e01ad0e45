"""Error Hierarchy: typed, categorized exceptions for formwire failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Field validation failures are NOT exceptions: they are returned as data
    - Malformed persisted state is NOT an exception: it decodes to empty state
    - A skipped redirect is always raised, never swallowed
    - to_response() produces the REST envelope; no internal details leaked

Design Decisions:
    - Single hierarchy with FormWireError base: one FastAPI handler catches all
    - ErrorContext as dataclass: observability data without coupling to logging
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    SERIALIZATION = "serialization"
    TRANSPORT = "transport"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    path: str | None = None
    form_field: str | None = None
    state_key: str | None = None
    debug_info: dict[str, Any] | None = None


class FormWireError(Exception):
    """Base exception for all formwire errors."""

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
                    "path": self.context.path,
                    "form_field": self.context.form_field,
                    "state_key": self.context.state_key,
                },
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class ReservedStateKeyError(FormWireError):
    """A client tried to write a state key owned by the form engine."""
    def __init__(self, keys: list[str], context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.state_key = keys[0] if keys else None
        super().__init__(
            f"State keys are reserved: {', '.join(keys)}",
            "RESERVED_STATE_KEY", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, ctx, 400,
        )
        self.keys = keys


class ResourceNotFoundError(FormWireError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Server Errors (500-level) ──────────────────────────────────

class StateSerializationError(FormWireError):
    """A state value could not be encoded into the session slot."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            f"State is not JSON-serializable: {message}",
            "STATE_NOT_SERIALIZABLE", ErrorCategory.SERIALIZATION,
            ErrorSeverity.ERROR, context, 500,
        )


class RedirectSkippedError(FormWireError):
    """A body was about to be rendered although a redirect is pending."""
    def __init__(self, location: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.path = ctx.path or location
        super().__init__(
            f"Submission redirect to '{location}' was not issued before rendering",
            "REDIRECT_SKIPPED", ErrorCategory.TRANSPORT,
            ErrorSeverity.CRITICAL, ctx, 500,
        )
        self.location = location
