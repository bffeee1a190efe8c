"""Match Store — SQL persistence for match records and the sessions they create.

Invariants:
    - One MatchStore per open session/transaction; it never commits
    - A session is always created under its match's id
    - mark_session_created() is the only mutation a MatchRecord ever sees

Design Decisions:
    - flush() after each write step: constraint violations surface inside the
      transaction body where the runner can classify them
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pairqueue.core.domain_types import MatchId, MatchStatus
from pairqueue.core.match_rules import Waiting
from pairqueue.models.match_record import MatchRecord
from pairqueue.models.session_record import SessionRecord


class MatchStore:
    """Match and session writes/reads inside the caller's transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def record_match(
        self, match_id: MatchId, trigger: Waiting, candidate: Waiting,
        matched_at: datetime,
    ) -> None:
        self.db.add(MatchRecord(
            id=match_id,
            participant_a_id=trigger.user_id,
            participant_b_id=candidate.user_id,
            participant_a_category=trigger.category.value,
            participant_b_category=candidate.category.value,
            entry_a_id=trigger.entry_id,
            entry_b_id=candidate.entry_id,
            status=MatchStatus.MATCHED.value,
            matched_at=matched_at,
        ))
        await self.db.flush()

    async def create_session(
        self, match_id: MatchId, participants: list[str], created_at: datetime,
    ) -> None:
        self.db.add(SessionRecord(
            id=match_id,
            participants=list(participants),
            is_active=True,
            created_at=created_at,
            last_activity_at=created_at,
        ))
        await self.db.flush()

    async def mark_session_created(self, match_id: MatchId) -> None:
        match = await self.db.get(MatchRecord, match_id)
        match.status = MatchStatus.SESSION_CREATED.value
        match.session_id = match_id
        await self.db.flush()

    async def get_match(self, match_id: UUID) -> MatchRecord | None:
        result = await self.db.execute(
            select(MatchRecord).where(MatchRecord.id == match_id),
        )
        return result.scalar_one_or_none()

    async def get_session(self, session_id: UUID) -> SessionRecord | None:
        result = await self.db.execute(
            select(SessionRecord).where(SessionRecord.id == session_id),
        )
        return result.scalar_one_or_none()

    async def matches_for_user(
        self, user_id: str, limit: int = 20,
    ) -> list[MatchRecord]:
        """Matches the user took part in, newest first."""
        result = await self.db.execute(
            select(MatchRecord)
            .where(or_(
                MatchRecord.participant_a_id == user_id,
                MatchRecord.participant_b_id == user_id,
            ))
            .order_by(MatchRecord.matched_at.desc())
            .limit(limit),
        )
        return list(result.scalars().all())
