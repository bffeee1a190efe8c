"""Queue Schemas — enqueue request and waiting-entry responses.

Invariants:
    - QueueEntryCreate.user_id: 1-128 chars, stripped, non-empty
    - category must be a Category value
    - enqueued_at is never accepted from clients (store-assigned)
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from pairqueue.core.domain_types import Category


class QueueEntryCreate(BaseModel):
    """Enqueue request."""
    user_id: str = Field(min_length=1, max_length=128)
    category: Category

    @field_validator("user_id")
    @classmethod
    def strip_user_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("user_id cannot be empty or whitespace")
        return v


class QueueEntryResponse(BaseModel):
    """A waiting entry."""
    id: UUID
    user_id: str
    category: Category
    enqueued_at: datetime


class QueueStatsResponse(BaseModel):
    """Waiting entries per category."""
    waiting: dict[str, int]
    total: int
