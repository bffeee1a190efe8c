"""Match Routes — read-only access to match records.

Invariants:
    - Matches are created only by the match trigger; no write endpoints here
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pairqueue.core.errors import ResourceNotFoundError
from pairqueue.infrastructure.database import get_db
from pairqueue.schemas.match import MatchResponse
from pairqueue.services.match_store import MatchStore

router = APIRouter(prefix="/api/v1/matches", tags=["matches"])


@router.get("", response_model=list[MatchResponse])
async def list_matches(
    user_id: str = Query(min_length=1, max_length=128),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Matches involving a user, newest first."""
    return await MatchStore(db).matches_for_user(user_id, limit=limit)


@router.get("/{match_id}", response_model=MatchResponse)
async def get_match(match_id: UUID, db: AsyncSession = Depends(get_db)):
    match = await MatchStore(db).get_match(match_id)
    if match is None:
        raise ResourceNotFoundError("Match", str(match_id))
    return match
