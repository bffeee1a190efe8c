"""Match Schemas — match records, sessions and reaper reports as seen by collaborators.

Invariants:
    - Field names are the contract surface read by the chat and notification collaborators
    - from_attributes: built straight from ORM rows
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from pairqueue.core.domain_types import MatchStatus


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    participant_a_id: str
    participant_b_id: str
    participant_a_category: str
    participant_b_category: str
    status: MatchStatus
    session_id: UUID | None
    matched_at: datetime


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    participants: list[str]
    is_active: bool
    created_at: datetime
    last_activity_at: datetime


class ReapRequest(BaseModel):
    """Admin reaper run. ttl_seconds defaults to the configured queue TTL."""
    ttl_seconds: int | None = Field(None, gt=0, le=7 * 24 * 3600)


class ReapResponse(BaseModel):
    cutoff: datetime
    deleted: int
    batches: int
