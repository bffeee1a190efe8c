"""pairqueue API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map PairQueueError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and matching runtime initialized on startup via lifespan context manager
    - The periodic reaper task is cancelled-by-event and awaited on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Reaper loop runs in-process; reaper_interval_seconds=0 leaves it to an
      external scheduler calling POST /api/v1/admin/reaper or pairqueue-reap
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pairqueue.api.error_handlers import register_error_handlers
from pairqueue.api.routes import admin, health, matches, queue, sessions
from pairqueue.config import get_settings
from pairqueue.infrastructure.database import init_db
from pairqueue.infrastructure.observability import setup_logging
from pairqueue.services.runtime import init_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        isolation_level=settings.database_isolation_level,
    )
    runtime = init_runtime(manager.session_factory, settings)

    stop = asyncio.Event()
    reaper_task = None
    if settings.reaper_interval_seconds > 0:
        reaper_task = asyncio.create_task(
            runtime.reaper.run_periodically(
                settings.queue_ttl_seconds,
                settings.reaper_interval_seconds,
                stop,
            ),
        )
    logger.info("pairqueue API started")
    yield
    logger.info("pairqueue API shutting down")
    stop.set()
    if reaper_task:
        await reaper_task
    await manager.dispose()


app = FastAPI(
    title="pairqueue API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(queue.router)
app.include_router(matches.router)
app.include_router(sessions.router)
app.include_router(admin.router)

register_error_handlers(app)
