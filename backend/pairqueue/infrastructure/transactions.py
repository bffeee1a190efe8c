"""Transaction Runner — runs a unit of work in one DB transaction, retrying on write conflicts.

Invariants:
    - work(session, attempt) runs inside session.begin(): commit on return, rollback on raise
    - The whole body is re-executed on retry — work must re-read everything it relies on
    - Write conflicts: at most max_attempts tries, jittered exponential backoff between them
    - Conflict budget exhausted: TransactionAbortedError
    - Any other SQLAlchemy failure: StoreUnavailableError, no retry
    - Domain errors (PairQueueError) propagate after rollback, no retry

Design Decisions:
    - Conflict = TransientConflictError raised by the work itself (validated writes),
      SQLSTATE 40001/40P01, unique violations, or SQLite "database is locked"
    - Fresh session per attempt: nothing from an aborted attempt leaks through the identity map
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pairqueue.core.backoff import compute_backoff_ms
from pairqueue.core.errors import (
    ErrorContext, StoreUnavailableError, TransactionAbortedError,
    TransientConflictError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# serialization_failure, deadlock_detected
_CONFLICT_SQLSTATES = frozenset({"40001", "40P01"})
_UNIQUE_VIOLATION = "23505"


def _sqlstate(error: DBAPIError) -> str | None:
    orig = error.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def is_write_conflict(error: SQLAlchemyError) -> bool:
    """True when the store aborted us because a concurrent transaction won."""
    if not isinstance(error, DBAPIError):
        return False
    state = _sqlstate(error)
    message = str(error.orig)
    if isinstance(error, IntegrityError):
        return state == _UNIQUE_VIOLATION or "UNIQUE constraint failed" in message
    if state in _CONFLICT_SQLSTATES:
        return True
    return "database is locked" in message


class TransactionRunner:
    """Bounded optimistic-retry loop around a transactional unit of work."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        max_attempts: int = 5,
        base_delay_ms: int = 25,
        max_delay_ms: int = 1000,
        rng: random.Random | None = None,
    ):
        self._session_factory = session_factory
        self.max_attempts = max_attempts
        self.base_delay_ms = base_delay_ms
        self.max_delay_ms = max_delay_ms
        self._rng = rng

    async def run(
        self,
        work: Callable[[AsyncSession, int], Awaitable[T]],
        context: ErrorContext | None = None,
    ) -> T:
        """Run work(session, attempt) until it commits or the conflict budget runs out."""
        ctx = context or ErrorContext()
        for attempt in range(1, self.max_attempts + 1):
            try:
                async with self._session_factory() as session:
                    async with session.begin():
                        return await work(session, attempt)
            except TransientConflictError as e:
                await self._handle_conflict(e, attempt, ctx)
            except SQLAlchemyError as e:
                if not is_write_conflict(e):
                    logger.error(
                        f"Transaction failed on store error: {e}",
                        extra={"attempt": attempt, "entry_id": ctx.entry_id},
                    )
                    raise StoreUnavailableError(
                        "Transaction could not be completed", "transaction", ctx,
                    )
                await self._handle_conflict(e, attempt, ctx)
        raise TransactionAbortedError(self.max_attempts, ctx)

    async def _handle_conflict(
        self, e: Exception, attempt: int, ctx: ErrorContext,
    ) -> None:
        """Back off before the next attempt, or give up on the last one."""
        ctx.attempt = attempt
        if attempt >= self.max_attempts:
            logger.error(
                f"Transaction conflict budget exhausted: {e}",
                extra={
                    "attempt": attempt,
                    "entry_id": ctx.entry_id,
                    "error_code": "TRANSACTION_ABORTED",
                },
            )
            raise TransactionAbortedError(attempt, ctx)
        delay = compute_backoff_ms(
            attempt - 1, self.base_delay_ms, self.max_delay_ms, self._rng,
        )
        logger.warning(
            f"Write conflict, retry after {delay}ms: {e}",
            extra={"attempt": attempt, "entry_id": ctx.entry_id},
        )
        await asyncio.sleep(delay / 1000)
