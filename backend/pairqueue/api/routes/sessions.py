"""Session Routes — lets the chat collaborator read the session a match created.

Invariants:
    - Session id == match id
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from pairqueue.core.errors import ResourceNotFoundError
from pairqueue.infrastructure.database import get_db
from pairqueue.schemas.match import SessionResponse
from pairqueue.services.match_store import MatchStore

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: UUID, db: AsyncSession = Depends(get_db)):
    session = await MatchStore(db).get_session(session_id)
    if session is None:
        raise ResourceNotFoundError("Session", str(session_id))
    return session
