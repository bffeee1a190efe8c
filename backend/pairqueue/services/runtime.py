"""Matching Runtime — wires runner, handler, dispatcher and reaper from settings.

Invariants:
    - One runtime per process, built on startup from the same session factory as db_manager
    - Holds no matching state: every component reads and writes through the database

Design Decisions:
    - Module-level singleton + FastAPI dependency, same shape as infrastructure.database
      (tests override get_runtime instead of patching globals)
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pairqueue.config import Settings
from pairqueue.infrastructure.transactions import TransactionRunner
from pairqueue.services.handle_match import MatchTriggerHandler
from pairqueue.services.notifications import LoggingSessionListener
from pairqueue.services.reaper import StaleEntryReaper
from pairqueue.services.trigger_dispatch import TriggerDispatcher


@dataclass
class MatchingRuntime:
    handler: MatchTriggerHandler
    dispatcher: TriggerDispatcher
    reaper: StaleEntryReaper
    default_ttl_seconds: int


def build_runtime(
    session_factory: async_sessionmaker[AsyncSession], settings: Settings,
) -> MatchingRuntime:
    runner = TransactionRunner(
        session_factory,
        max_attempts=settings.txn_max_attempts,
        base_delay_ms=settings.txn_base_delay_ms,
        max_delay_ms=settings.txn_max_delay_ms,
    )
    handler = MatchTriggerHandler(runner, listeners=[LoggingSessionListener()])
    return MatchingRuntime(
        handler=handler,
        dispatcher=TriggerDispatcher(
            handler,
            max_deliveries=settings.trigger_max_deliveries,
            base_delay_ms=settings.trigger_base_delay_ms,
            max_delay_ms=settings.trigger_max_delay_ms,
        ),
        reaper=StaleEntryReaper(
            runner, batch_size=settings.reaper_batch_size,
        ),
        default_ttl_seconds=settings.queue_ttl_seconds,
    )


# Singleton (initialized on startup)
runtime: MatchingRuntime | None = None


def init_runtime(
    session_factory: async_sessionmaker[AsyncSession], settings: Settings,
) -> MatchingRuntime:
    global runtime
    runtime = build_runtime(session_factory, settings)
    return runtime


def get_runtime() -> MatchingRuntime:
    """FastAPI dependency for the matching runtime."""
    if not runtime:
        raise RuntimeError("Matching runtime not initialized")
    return runtime
