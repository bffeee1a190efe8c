"""QueueEntry ORM — a participant waiting for an opposite-category partner.

Invariants:
    - user_id is unique: at most one active entry per user
    - enqueued_at assigned by the database on insert, never updated
    - Rows are deleted exactly once: by a match transaction or by the reaper

Design Decisions:
    - Composite index (category, enqueued_at, id) serves the oldest-candidate query,
      id doubling as the deterministic tie-break for equal timestamps
    - Store clock, not app clock: several API instances enqueue into one FIFO, so
      their clock skew must not reorder it
    - eager_defaults: the server-assigned enqueued_at is loaded back on flush
"""

import uuid
from datetime import datetime

from sqlalchemy import String, DateTime, Index, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from pairqueue.db.base import Base


class QueueEntry(Base):
    """Waiting participant, scoped to one category."""
    __tablename__ = "queue_entries"
    __table_args__ = (
        Index(
            "ix_queue_entries_category_enqueued_at",
            "category", "enqueued_at", "id",
        ),
    )
    __mapper_args__ = {"eager_defaults": True}

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    user_id: Mapped[str] = mapped_column(
        String(128), nullable=False, unique=True,
    )
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    enqueued_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
