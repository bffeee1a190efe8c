"""Queue Routes — enqueue a participant and inspect waiting entries.

Invariants:
    - Enqueue commits the entry BEFORE the match trigger fires for it
    - The trigger runs as a background task: the response never waits on matching
    - 404 on GET /queue/{id} after enqueue means the entry was matched or reaped

Design Decisions:
    - BackgroundTasks stands in for the store's on-create trigger: one delivery per
      committed entry, redelivery handled by TriggerDispatcher
"""

import logging
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pairqueue.core.domain_types import QueueEntryId, UserId
from pairqueue.core.errors import ResourceNotFoundError
from pairqueue.core.match_rules import Waiting
from pairqueue.infrastructure.database import get_db
from pairqueue.schemas.queue import (
    QueueEntryCreate, QueueEntryResponse, QueueStatsResponse,
)
from pairqueue.services.queue_store import QueueStore
from pairqueue.services.runtime import MatchingRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/queue", tags=["queue"])


def _entry_response(entry: Waiting) -> QueueEntryResponse:
    return QueueEntryResponse(
        id=entry.entry_id,
        user_id=entry.user_id,
        category=entry.category,
        enqueued_at=entry.enqueued_at,
    )


@router.post(
    "", response_model=QueueEntryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def enqueue(
    body: QueueEntryCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    runtime: MatchingRuntime = Depends(get_runtime),
):
    """Put a participant in the queue and fire the match trigger for it."""
    entry = await QueueStore(db).enqueue(UserId(body.user_id), body.category)
    await db.commit()
    logger.info(
        f"Queued {entry.user_id}",
        extra={
            "entry_id": str(entry.entry_id),
            "user_id": entry.user_id,
            "category": entry.category.value,
        },
    )
    background_tasks.add_task(runtime.dispatcher.deliver, entry.entry_id)
    return _entry_response(entry)


@router.get("/stats", response_model=QueueStatsResponse)
async def queue_stats(db: AsyncSession = Depends(get_db)):
    """Waiting entries per category."""
    counts = await QueueStore(db).count_by_category()
    return QueueStatsResponse(waiting=counts, total=sum(counts.values()))


@router.get("/{entry_id}", response_model=QueueEntryResponse)
async def get_entry(entry_id: UUID, db: AsyncSession = Depends(get_db)):
    """Get a waiting entry."""
    entry = await QueueStore(db).get_entry(QueueEntryId(entry_id))
    if entry is None:
        raise ResourceNotFoundError("QueueEntry", str(entry_id))
    return _entry_response(entry)
