"""Match Rules — pure pairing rules applied inside the match transaction.

Invariants:
    - A pair always has two distinct entries, two distinct users, two distinct categories
    - Participant A is the triggering entry, participant B the candidate
    - check_pair() raises, it never repairs a bad pair
    - MatchOutcome is a value object: constructed once, never mutated

Design Decisions:
    - Waiting is a frozen snapshot, not the ORM row: core never imports models/
    - Opposites resolved through an explicit table rather than "the other enum member",
      so adding a category without an opposite fails loudly
"""

from dataclasses import dataclass, field
from datetime import datetime

from pairqueue.core.domain_types import (
    Category, MatchId, MatchResult, QueueEntryId, UserId,
)
from pairqueue.core.errors import ErrorContext, MatchInvariantError

_OPPOSITES: dict[Category, Category] = {
    Category.MALE: Category.FEMALE,
    Category.FEMALE: Category.MALE,
}


@dataclass(frozen=True)
class Waiting:
    """Snapshot of a queue entry as read inside a transaction."""
    entry_id: QueueEntryId
    user_id: UserId
    category: Category
    enqueued_at: datetime


@dataclass(frozen=True)
class MatchOutcome:
    """Result of one trigger invocation."""
    result: MatchResult
    entry_id: QueueEntryId
    match_id: MatchId | None = None
    participants: tuple[UserId, ...] = field(default_factory=tuple)
    attempts: int = 1

    @property
    def matched(self) -> bool:
        return self.result is MatchResult.MATCHED


def opposite_category(category: Category) -> Category:
    """Category an entry of `category` must be paired with."""
    try:
        return _OPPOSITES[Category(category)]
    except (KeyError, ValueError):
        raise MatchInvariantError(
            f"Category '{category}' has no opposite",
        )


def check_pair(trigger: Waiting, candidate: Waiting) -> None:
    """Raise MatchInvariantError unless trigger and candidate may be paired."""
    ctx = ErrorContext(
        entry_id=str(trigger.entry_id),
        debug_info={"candidate_entry_id": str(candidate.entry_id)},
    )
    if trigger.entry_id == candidate.entry_id:
        raise MatchInvariantError("Entry cannot be matched with itself", ctx)
    if trigger.user_id == candidate.user_id:
        raise MatchInvariantError(
            f"User '{trigger.user_id}' cannot be matched with themself", ctx,
        )
    if Category(candidate.category) != opposite_category(trigger.category):
        raise MatchInvariantError(
            f"Candidate category '{candidate.category}' is not opposite "
            f"of '{trigger.category}'",
            ctx,
        )


def session_participants(trigger: Waiting, candidate: Waiting) -> list[str]:
    """Session participant list, A first."""
    return [trigger.user_id, candidate.user_id]
