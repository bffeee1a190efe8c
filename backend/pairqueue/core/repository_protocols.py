"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Stores are transaction-scoped: one instance per open transaction,
      so every read they do lands in that transaction's conflict-detection set
"""

from datetime import datetime
from typing import Protocol

from pairqueue.core.domain_types import Category, MatchId, QueueEntryId, UserId
from pairqueue.core.match_rules import MatchOutcome, Waiting


class QueueRepository(Protocol):
    """Contract for waiting-entry persistence — implemented by shell."""
    async def enqueue(
        self, user_id: UserId, category: Category,
        enqueued_at: datetime | None = None,
    ) -> Waiting: ...
    async def get_entry(self, entry_id: QueueEntryId) -> Waiting | None: ...
    async def oldest_in_category(self, category: Category) -> Waiting | None: ...
    async def consume(self, *entry_ids: QueueEntryId) -> None: ...
    async def stale_ids(
        self, cutoff: datetime, limit: int,
    ) -> list[QueueEntryId]: ...
    async def delete_entries(self, entry_ids: list[QueueEntryId]) -> int: ...


class MatchRepository(Protocol):
    """Contract for match and session persistence — implemented by shell."""
    async def record_match(
        self, match_id: MatchId, trigger: Waiting, candidate: Waiting,
        matched_at: datetime,
    ) -> None: ...
    async def create_session(
        self, match_id: MatchId, participants: list[str], created_at: datetime,
    ) -> None: ...
    async def mark_session_created(self, match_id: MatchId) -> None: ...


class SessionCreatedListener(Protocol):
    """Observer of committed matches (notification fan-out lives behind this)."""
    async def on_session_created(self, outcome: MatchOutcome) -> None: ...
