"""Service test fixtures — async SQLite store, matching components, FastAPI test client.

Invariants:
    - Every test gets a fresh file-backed SQLite database under tmp_path
    - WAL journal + busy timeout: concurrent transactions wait for each other instead
      of failing outright, the way concurrent writers behave on a real server
    - Backoff delays shrunk to milliseconds so retry paths stay fast
    - get_db and get_runtime dependencies overridden to use the test database

Design Decisions:
    - File database, not :memory: — an in-memory aiosqlite database is a single shared
      connection, which would interleave concurrent transactions on one connection
    - db_manager and the runtime singleton patched: the readiness probe reads them directly
"""

import pytest
from sqlalchemy import event, select
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from pairqueue.config import Settings
from pairqueue.core.domain_types import Category, UserId
from pairqueue.db.base import Base
from pairqueue.infrastructure.database import get_db, DatabaseSessionManager
from pairqueue.infrastructure.transactions import TransactionRunner
from pairqueue.models.match_record import MatchRecord
from pairqueue.models.queue_entry import QueueEntry
from pairqueue.models.session_record import SessionRecord
from pairqueue.services.handle_match import MatchTriggerHandler
from pairqueue.services.queue_store import QueueStore
from pairqueue.services.runtime import build_runtime, get_runtime
import pairqueue.infrastructure.database as db_module
import pairqueue.services.runtime as runtime_module
from pairqueue.main import app

from tests.services.store_helpers import at


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'pairqueue.db'}",
        echo=False,
        connect_args={"timeout": 30},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def runner(test_session_factory):
    return TransactionRunner(
        test_session_factory, max_attempts=10, base_delay_ms=1, max_delay_ms=20,
    )


@pytest.fixture
def handler(runner):
    return MatchTriggerHandler(runner)


@pytest.fixture
def enqueue(test_session_factory):
    """Commit a queue entry in its own transaction, like the enqueue API does."""
    async def _enqueue(
        user_id: str, category: Category, at_seconds: float | None = None,
    ):
        async with test_session_factory() as db:
            entry = await QueueStore(db).enqueue(
                UserId(user_id), category,
                enqueued_at=at(at_seconds) if at_seconds is not None else None,
            )
            await db.commit()
            return entry
    return _enqueue


@pytest.fixture
def snapshot(test_session_factory):
    """Read back everything the store holds, from a fresh session."""
    async def _snapshot() -> dict:
        async with test_session_factory() as db:
            entries = (await db.execute(select(QueueEntry))).scalars().all()
            matches = (await db.execute(select(MatchRecord))).scalars().all()
            sessions = (await db.execute(select(SessionRecord))).scalars().all()
            return {
                "queued_users": sorted(e.user_id for e in entries),
                "matches": list(matches),
                "sessions": {s.id: s for s in sessions},
            }
    return _snapshot


@pytest.fixture
def test_settings():
    return Settings(
        database_url="sqlite+aiosqlite:///unused.db",
        txn_max_attempts=10,
        txn_base_delay_ms=1,
        txn_max_delay_ms=20,
        trigger_max_deliveries=3,
        trigger_base_delay_ms=1,
        trigger_max_delay_ms=10,
        queue_ttl_seconds=300,
        reaper_interval_seconds=0,
    )


@pytest.fixture
async def client(test_engine, test_session_factory, test_settings):
    """FastAPI test client with DB and runtime dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    test_runtime = build_runtime(test_session_factory, test_settings)
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_runtime] = lambda: test_runtime

    original_manager = db_module.db_manager
    original_runtime = runtime_module.runtime
    runtime_module.runtime = test_runtime
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager
    runtime_module.runtime = original_runtime
