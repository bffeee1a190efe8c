"""Match Trigger Handler — pairs a newly queued entry with the oldest opposite-category entry.

Invariants:
    - One invocation per created queue entry; safe to invoke any number of times
    - Everything between the first read and the final delete runs in ONE transaction
    - Triggering entry gone -> ALREADY_CONSUMED no-op; no opposite entry -> NO_CANDIDATE no-op;
      candidate gone on re-read -> CANDIDATE_CONSUMED no-op
    - A match writes MatchRecord, SessionRecord (same id), flips the match to
      session_created, then deletes both entries — or nothing at all
    - Invariant violations are logged CRITICAL and re-raised; the transaction never commits
    - Listeners run only after commit; their failures never change the outcome

Design Decisions:
    - Candidate re-read by id after the ordered query: the re-read is what a racing
      consumer invalidates, and the validated delete in QueueStore.consume() turns
      that into a TransientConflictError the runner retries
    - id_factory / clock injected: tests pin match ids and timestamps
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from pairqueue.core.domain_types import MatchId, MatchResult, QueueEntryId
from pairqueue.core.errors import ErrorContext, MatchInvariantError
from pairqueue.core.match_rules import (
    MatchOutcome, check_pair, opposite_category, session_participants,
)
from pairqueue.core.repository_protocols import (
    MatchRepository, QueueRepository, SessionCreatedListener,
)
from pairqueue.infrastructure.transactions import TransactionRunner
from pairqueue.services.match_store import MatchStore
from pairqueue.services.queue_store import QueueStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MatchTriggerHandler:
    """Runs the match transaction for one queue entry."""

    def __init__(
        self,
        runner: TransactionRunner,
        listeners: Iterable[SessionCreatedListener] = (),
        id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
        clock: Callable[[], datetime] = _utc_now,
    ):
        self.runner = runner
        self._listeners = list(listeners)
        self._id_factory = id_factory
        self._clock = clock

    async def handle(self, entry_id: QueueEntryId) -> MatchOutcome:
        """Attempt to match entry_id. Returns what happened; raises only on store/logic failure."""
        ctx = ErrorContext(entry_id=str(entry_id))

        async def work(db: AsyncSession, attempt: int) -> MatchOutcome:
            return await self._attempt(db, entry_id, attempt)

        try:
            outcome = await self.runner.run(work, ctx)
        except MatchInvariantError as e:
            logger.critical(
                f"Match invariant violated, transaction rolled back: {e.message}",
                extra={"entry_id": str(entry_id), "error_code": e.code},
            )
            raise

        logger.info(
            f"Match trigger finished: {outcome.result.value}",
            extra={
                "entry_id": str(entry_id),
                "outcome": outcome.result.value,
                "match_id": str(outcome.match_id) if outcome.match_id else None,
                "attempt": outcome.attempts,
            },
        )
        if outcome.matched:
            await self._notify(outcome)
        return outcome

    async def _attempt(
        self, db: AsyncSession, entry_id: QueueEntryId, attempt: int,
    ) -> MatchOutcome:
        queue: QueueRepository = QueueStore(db)

        trigger = await queue.get_entry(entry_id)
        if trigger is None:
            return MatchOutcome(
                MatchResult.ALREADY_CONSUMED, entry_id, attempts=attempt,
            )

        found = await queue.oldest_in_category(
            opposite_category(trigger.category),
        )
        if found is None:
            return MatchOutcome(
                MatchResult.NO_CANDIDATE, entry_id, attempts=attempt,
            )

        candidate = await queue.get_entry(found.entry_id)
        if candidate is None:
            return MatchOutcome(
                MatchResult.CANDIDATE_CONSUMED, entry_id, attempts=attempt,
            )

        check_pair(trigger, candidate)

        match_id = MatchId(self._id_factory())
        now = self._clock()
        matches: MatchRepository = MatchStore(db)
        await matches.record_match(match_id, trigger, candidate, now)
        await matches.create_session(
            match_id, session_participants(trigger, candidate), now,
        )
        await matches.mark_session_created(match_id)
        await queue.consume(trigger.entry_id, candidate.entry_id)

        logger.debug(
            f"Paired {trigger.user_id} <-> {candidate.user_id}",
            extra={"entry_id": str(entry_id), "match_id": str(match_id)},
        )
        return MatchOutcome(
            MatchResult.MATCHED,
            entry_id,
            match_id=match_id,
            participants=(trigger.user_id, candidate.user_id),
            attempts=attempt,
        )

    async def _notify(self, outcome: MatchOutcome) -> None:
        for listener in self._listeners:
            try:
                await listener.on_session_created(outcome)
            except Exception as e:
                logger.error(
                    f"Session listener {type(listener).__name__} failed: {e}",
                    exc_info=True,
                    extra={"match_id": str(outcome.match_id)},
                )
