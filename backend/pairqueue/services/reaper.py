"""Stale-Entry Reaper — deletes queue entries that waited longer than a TTL.

Invariants:
    - Deletes exactly the entries with enqueued_at < now - ttl at the time of the run
    - Batches of at most batch_size ids, each batch its own transaction through the runner
    - Deletes are unconditional: an entry a match consumed first is a silent no-op
    - A batch that loses a write conflict to a match transaction is re-read and retried,
      never surfaced
    - A second run with no new arrivals deletes nothing

Design Decisions:
    - Same TransactionRunner as the match handler: under SERIALIZABLE a match committing
      between the batch's SELECT and DELETE aborts the DELETE with a serialization failure
    - The periodic loop logs every failure and keeps going; the next tick retries
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from pairqueue.core.domain_types import QueueEntryId
from pairqueue.core.errors import ErrorContext, PairQueueError
from pairqueue.core.repository_protocols import QueueRepository
from pairqueue.infrastructure.transactions import TransactionRunner
from pairqueue.services.queue_store import QueueStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ReapReport:
    """Summary of one reaper run."""
    cutoff: datetime
    deleted: int
    batches: int


class StaleEntryReaper:
    """Batched TTL sweep over the queue."""

    def __init__(
        self,
        runner: TransactionRunner,
        batch_size: int = 500,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.runner = runner
        self.batch_size = batch_size
        self._clock = clock

    async def reap(self, ttl_seconds: int) -> ReapReport:
        """Delete every entry older than ttl_seconds."""
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        cutoff = self._clock() - timedelta(seconds=ttl_seconds)

        async def sweep_batch(
            db: AsyncSession, attempt: int,
        ) -> tuple[list[QueueEntryId], int]:
            queue: QueueRepository = QueueStore(db)
            ids = await queue.stale_ids(cutoff, self.batch_size)
            return ids, await queue.delete_entries(ids)

        deleted = 0
        batches = 0
        while True:
            ids, removed = await self.runner.run(
                sweep_batch, ErrorContext(debug_info={"cutoff": cutoff.isoformat()}),
            )
            if not ids:
                break
            deleted += removed
            batches += 1
            if len(ids) < self.batch_size:
                break

        if deleted:
            logger.info(
                f"Cleaned up {deleted} expired queue entries",
                extra={"deleted": deleted, "cutoff": cutoff.isoformat()},
            )
        else:
            logger.info("No expired queue entries to clean up")
        return ReapReport(cutoff=cutoff, deleted=deleted, batches=batches)

    async def run_periodically(
        self, ttl_seconds: int, interval_seconds: float, stop: asyncio.Event,
    ) -> None:
        """Reap every interval_seconds until stop is set."""
        while not stop.is_set():
            try:
                await self.reap(ttl_seconds)
            except PairQueueError as e:
                logger.error(
                    f"Scheduled reap failed: {e.message}",
                    extra={"error_code": e.code},
                )
            except Exception as e:
                logger.error(f"Scheduled reap crashed: {e}", exc_info=True)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval_seconds)
            except asyncio.TimeoutError:
                pass
