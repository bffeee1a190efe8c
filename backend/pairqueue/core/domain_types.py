"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - QueueEntryId, MatchId, SessionId wrap UUIDs — never use bare UUID in domain logic
    - A match id is also the id of the session it creates (1:1 correlation)
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and store in String columns without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

QueueEntryId = NewType("QueueEntryId", UUID)
MatchId = NewType("MatchId", UUID)
SessionId = NewType("SessionId", UUID)
UserId = NewType("UserId", str)


# ─── Enums ───────────────────────────────────────────────────────

class Category(str, Enum):
    """Partition attribute of a waiting participant. Matches pair opposites."""
    MALE = "male"
    FEMALE = "female"


class MatchStatus(str, Enum):
    """MatchRecord lifecycle — maps to DB `status` column."""
    MATCHED = "matched"
    SESSION_CREATED = "session_created"


class MatchResult(str, Enum):
    """What a single trigger invocation did."""
    MATCHED = "matched"
    NO_CANDIDATE = "no_candidate"
    ALREADY_CONSUMED = "already_consumed"
    CANDIDATE_CONSUMED = "candidate_consumed"
