"""MatchRecord ORM — durable evidence that two queue entries were paired.

Invariants:
    - participant_a_id != participant_b_id (DB check constraint)
    - participant categories differ (DB check constraint)
    - entry_a_id / entry_b_id each unique: an entry is consumed by at most one match
    - status transitions only matched -> session_created, setting session_id
    - Never deleted

Design Decisions:
    - Consumed entry ids and categories kept on the record: the queue rows are gone
      after the match, this is the only trace left of them
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from pairqueue.db.base import Base


class MatchRecord(Base):
    """Match between the triggering entry (A) and the oldest candidate (B)."""
    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint(
            "participant_a_id <> participant_b_id",
            name="ck_matches_distinct_participants",
        ),
        CheckConstraint(
            "participant_a_category <> participant_b_category",
            name="ck_matches_opposite_categories",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    participant_a_id: Mapped[str] = mapped_column(
        String(128), nullable=False, index=True,
    )
    participant_b_id: Mapped[str] = mapped_column(
        String(128), nullable=False, index=True,
    )
    participant_a_category: Mapped[str] = mapped_column(
        String(20), nullable=False,
    )
    participant_b_category: Mapped[str] = mapped_column(
        String(20), nullable=False,
    )
    entry_a_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, unique=True,
    )
    entry_b_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, unique=True,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="matched",
    )
    session_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True,
    )
    matched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
