"""Admin Routes — run the stale-entry reaper on demand.

Invariants:
    - TTL defaults to settings.queue_ttl_seconds when the body omits it
    - Safe to call repeatedly: a second run with no new arrivals deletes nothing
"""

import logging

from fastapi import APIRouter, Depends

from pairqueue.schemas.match import ReapRequest, ReapResponse
from pairqueue.services.runtime import MatchingRuntime, get_runtime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/admin", tags=["admin"])


@router.post("/reaper", response_model=ReapResponse)
async def run_reaper(
    body: ReapRequest | None = None,
    runtime: MatchingRuntime = Depends(get_runtime),
):
    """Delete queue entries older than the TTL now."""
    ttl = (body.ttl_seconds if body else None) or runtime.default_ttl_seconds
    report = await runtime.reaper.reap(ttl)
    return ReapResponse(
        cutoff=report.cutoff, deleted=report.deleted, batches=report.batches,
    )
