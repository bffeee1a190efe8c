"""SessionRecord ORM — the chat context created by a match.

Invariants:
    - id equals the id of the MatchRecord that created it
    - participants holds exactly the two matched user ids, A first
    - Created in the same transaction as its MatchRecord

Design Decisions:
    - JSON column for participants: the chat collaborator reads it as-is
    - last_activity_at / is_active owned by the chat collaborator after creation
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from pairqueue.db.base import Base


class SessionRecord(Base):
    """Collaborative session (chat room) for a matched pair."""
    __tablename__ = "sessions"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True,
    )
    participants: Mapped[list] = mapped_column(JSON, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
