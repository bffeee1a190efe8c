"""Health & Readiness Probes — is the process up, and can it match right now?

Invariants:
    - GET /health/ always returns 200 while the process runs (liveness)
    - GET /health/ready returns 200 only when the database answers AND the matching
      runtime is initialized; otherwise 503 listing every failing check (readiness)

Design Decisions:
    - The enqueue route fires match triggers through the runtime, so an instance without
      one must leave the load balancer even when its database is fine
    - Singletons read as module attributes: they are assigned during lifespan startup
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from pairqueue.infrastructure import database
from pairqueue.services import runtime as matching

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    return {"status": "healthy", "service": "pairqueue"}


@router.get("/ready")
async def readiness_check():
    manager = database.db_manager
    checks = {
        "database": "healthy"
        if manager and await manager.health_check() else "unavailable",
        "matching_runtime": "ready" if matching.runtime else "not_initialized",
    }
    failing = [
        name for name, state in checks.items()
        if state not in ("healthy", "ready")
    ]
    if failing:
        logger.warning(f"Readiness failed: {', '.join(failing)}")
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "not_ready", "checks": checks},
        )
    return {"status": "ready", "checks": checks}
