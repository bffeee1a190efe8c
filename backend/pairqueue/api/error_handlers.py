"""Error Handlers — map failures to the pairqueue error envelope.

Invariants:
    - Every error body has the same shape: {"error": {code, message, category, severity, ...}}
    - Retryable failures (TransactionAbortedError, StoreUnavailableError) answer 503 with
      a Retry-After header; clients redeliver after it
    - 4xx are logged at WARNING, 5xx at ERROR; internal details never reach the body

Design Decisions:
    - Retry-After in whole seconds (RFC 9110), from ErrorContext.retry_after_ms when the
      raiser knows better, else the configured transaction backoff ceiling
"""

import logging
import math

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from pairqueue.config import get_settings
from pairqueue.core.errors import (
    ErrorCategory, ErrorSeverity, PairQueueError, StoreUnavailableError,
    TransactionAbortedError,
)

logger = logging.getLogger(__name__)

_RETRYABLE = (TransactionAbortedError, StoreUnavailableError)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PairQueueError, handle_pairqueue_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)


def retry_after_seconds(exc: PairQueueError) -> int:
    """Seconds a client should wait before retrying a retryable failure."""
    ms = exc.context.retry_after_ms or get_settings().txn_max_delay_ms
    return max(1, math.ceil(ms / 1000))


async def handle_pairqueue_error(request: Request, exc: PairQueueError) -> JSONResponse:
    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"{exc.code} on {request.url.path}: {exc.message}",
        extra={
            "error_code": exc.code,
            "path": request.url.path,
            "entry_id": exc.context.entry_id,
        },
    )
    headers = None
    if isinstance(exc, _RETRYABLE):
        headers = {"Retry-After": str(retry_after_seconds(exc))}
    return JSONResponse(
        status_code=exc.http_status, content=exc.to_response(), headers=headers,
    )


async def handle_validation_error(
    request: Request, exc: RequestValidationError,
) -> JSONResponse:
    fields = [
        {
            "field": ".".join(str(loc) for loc in err["loc"] if loc != "body"),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]
    logger.warning(
        f"Rejected request on {request.url.path}: "
        f"{', '.join(f['field'] or '<body>' for f in fields)}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope(
            "VALIDATION_ERROR", "Invalid request data",
            ErrorCategory.VALIDATION, ErrorSeverity.ERROR, details=fields,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}",
        exc_info=True,
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope(
            "INTERNAL_ERROR", "An unexpected error occurred",
            ErrorCategory.INTERNAL, ErrorSeverity.CRITICAL,
        ),
    )


def _envelope(
    code: str, message: str, category: ErrorCategory, severity: ErrorSeverity,
    **extra,
) -> dict:
    return {
        "error": {
            "code": code,
            "message": message,
            "category": category.value,
            "severity": severity.value,
            **extra,
        },
    }
