"""Settings — environment-driven configuration."""

from pairqueue.config import Settings


def test_postgres_url_gets_async_driver():
    settings = Settings(database_url="postgresql://u:p@host:5432/db")
    assert settings.database_url == "postgresql+asyncpg://u:p@host:5432/db"


def test_async_url_unchanged():
    url = "sqlite+aiosqlite:///x.db"
    assert Settings(database_url=url).database_url == url


def test_defaults():
    settings = Settings(database_url="sqlite+aiosqlite:///x.db")
    assert settings.queue_ttl_seconds == 300
    assert settings.txn_max_attempts == 5
    assert settings.trigger_max_deliveries == 10
    assert settings.database_isolation_level == "SERIALIZABLE"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("QUEUE_TTL_SECONDS", "900")
    monkeypatch.setenv("TXN_MAX_ATTEMPTS", "8")
    settings = Settings(database_url="sqlite+aiosqlite:///x.db")
    assert settings.queue_ttl_seconds == 900
    assert settings.txn_max_attempts == 8
