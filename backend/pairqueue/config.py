"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Both retry layers (transaction, trigger redelivery) are bounded by settings

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - SERIALIZABLE by default: the store's own conflict detection backs up the
      validated delete in the match transaction
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://pairqueue:pairqueue@db:5432/pairqueue"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_isolation_level: str | None = "SERIALIZABLE"

    # Transaction retry (write conflicts)
    txn_max_attempts: int = Field(5, ge=1)
    txn_base_delay_ms: int = Field(25, ge=0)
    txn_max_delay_ms: int = Field(1000, ge=0)

    # Trigger redelivery (handler failures)
    trigger_max_deliveries: int = Field(10, ge=1)
    trigger_base_delay_ms: int = Field(500, ge=0)
    trigger_max_delay_ms: int = Field(30_000, ge=0)

    # Stale-entry reaper
    queue_ttl_seconds: int = Field(300, gt=0)
    reaper_interval_seconds: int = Field(60, ge=0)  # 0 disables the loop
    reaper_batch_size: int = Field(500, ge=1)

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
