"""Error Hierarchy — typed, categorized exceptions for all pairqueue failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Domain errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST error envelope
    - No internal details leaked in user-facing messages
    - An entry vanishing mid-match is NOT an error (see MatchResult), only a no-op

Design Decisions:
    - Single hierarchy with PairQueueError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
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
    DATABASE = "database"
    INTERNAL = "internal"
    CONFLICT = "conflict"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    entry_id: str | None = None
    match_id: str | None = None
    user_id: str | None = None
    attempt: int | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class PairQueueError(Exception):
    """Base exception for all pairqueue errors."""

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
                    "entry_id": self.context.entry_id,
                    "match_id": self.context.match_id,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class DuplicateQueueEntryError(PairQueueError):
    """User already has an active queue entry."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        super().__init__(
            f"User '{user_id}' is already waiting in the queue",
            "DUPLICATE_QUEUE_ENTRY", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )
        self.user_id = user_id


class ResourceNotFoundError(PairQueueError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Concurrency Errors ─────────────────────────────────────────

class TransientConflictError(PairQueueError):
    """Concurrent write detected inside a transaction. Retried, never surfaced."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "TRANSIENT_CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


class TransactionAbortedError(PairQueueError):
    """Transaction kept conflicting until the retry budget ran out."""
    def __init__(self, attempts: int, context: ErrorContext | None = None):
        super().__init__(
            f"Transaction aborted after {attempts} conflicting attempts",
            "TRANSACTION_ABORTED", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 503,
        )
        self.attempts = attempts


# ─── Infrastructure / Internal Errors (500-level) ───────────────

class StoreUnavailableError(PairQueueError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "STORE_UNAVAILABLE", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class MatchInvariantError(PairQueueError):
    """A pair violated a matching invariant. The transaction is never committed."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "MATCH_INVARIANT_VIOLATED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
