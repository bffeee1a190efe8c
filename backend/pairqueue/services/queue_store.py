"""Queue Store — SQL persistence for waiting entries.

Invariants:
    - One QueueStore per open session/transaction; it never commits
    - Reads always hit the database (no identity-map shortcuts): a re-read sees deletions
    - consume() deletes exactly the given entries or raises TransientConflictError
    - delete_entries() is unconditional: missing rows are a no-op

Design Decisions:
    - Candidate order (enqueued_at, id): id breaks timestamp ties deterministically
    - Bulk DELETE with synchronize_session=False: rows are never loaded for deletion
"""

import logging
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pairqueue.core.domain_types import Category, QueueEntryId, UserId
from pairqueue.core.errors import (
    DuplicateQueueEntryError, ErrorContext, TransientConflictError,
)
from pairqueue.core.match_rules import Waiting
from pairqueue.models.queue_entry import QueueEntry

logger = logging.getLogger(__name__)


def to_waiting(row: QueueEntry) -> Waiting:
    return Waiting(
        entry_id=QueueEntryId(row.id),
        user_id=UserId(row.user_id),
        category=Category(row.category),
        enqueued_at=row.enqueued_at,
    )


class QueueStore:
    """Queue entry reads and writes inside the caller's transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def enqueue(
        self,
        user_id: UserId,
        category: Category,
        enqueued_at: datetime | None = None,
    ) -> Waiting:
        """Insert a waiting entry. enqueued_at defaults to the store clock at insert."""
        existing = await self.db.execute(
            select(QueueEntry.id).where(QueueEntry.user_id == user_id),
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateQueueEntryError(user_id)

        entry = QueueEntry(user_id=user_id, category=Category(category).value)
        if enqueued_at is not None:
            entry.enqueued_at = enqueued_at
        self.db.add(entry)
        try:
            await self.db.flush()
        except IntegrityError:
            # lost the race against a concurrent enqueue for the same user
            raise DuplicateQueueEntryError(user_id)
        return to_waiting(entry)

    async def get_entry(self, entry_id: QueueEntryId) -> Waiting | None:
        result = await self.db.execute(
            select(QueueEntry)
            .where(QueueEntry.id == entry_id)
            .execution_options(populate_existing=True),
        )
        row = result.scalar_one_or_none()
        return to_waiting(row) if row else None

    async def oldest_in_category(self, category: Category) -> Waiting | None:
        """Oldest waiting entry of a category, or None when the partition is empty."""
        result = await self.db.execute(
            select(QueueEntry)
            .where(QueueEntry.category == Category(category).value)
            .order_by(QueueEntry.enqueued_at.asc(), QueueEntry.id.asc())
            .limit(1),
        )
        row = result.scalar_one_or_none()
        return to_waiting(row) if row else None

    async def consume(self, *entry_ids: QueueEntryId) -> None:
        """Delete matched entries; all of them must still exist."""
        ids = list(entry_ids)
        result = await self.db.execute(
            delete(QueueEntry)
            .where(QueueEntry.id.in_(ids))
            .execution_options(synchronize_session=False),
        )
        if result.rowcount != len(ids):
            raise TransientConflictError(
                f"Expected to consume {len(ids)} entries, "
                f"deleted {result.rowcount}",
                ErrorContext(debug_info={"entry_ids": [str(i) for i in ids]}),
            )

    async def stale_ids(
        self, cutoff: datetime, limit: int,
    ) -> list[QueueEntryId]:
        """Ids of entries enqueued strictly before cutoff, oldest first."""
        result = await self.db.execute(
            select(QueueEntry.id)
            .where(QueueEntry.enqueued_at < cutoff)
            .order_by(QueueEntry.enqueued_at.asc())
            .limit(limit),
        )
        return [QueueEntryId(i) for i in result.scalars().all()]

    async def delete_entries(self, entry_ids: list[QueueEntryId]) -> int:
        """Unconditional delete. Returns how many rows were actually removed."""
        if not entry_ids:
            return 0
        result = await self.db.execute(
            delete(QueueEntry)
            .where(QueueEntry.id.in_(entry_ids))
            .execution_options(synchronize_session=False),
        )
        return result.rowcount

    async def count_by_category(self) -> dict[str, int]:
        result = await self.db.execute(
            select(QueueEntry.category, func.count())
            .group_by(QueueEntry.category),
        )
        counts = {c.value: 0 for c in Category}
        for category, count in result.all():
            counts[category] = count
        return counts
