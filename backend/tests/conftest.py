"""Root conftest — shared test configuration."""

import os

# Ensure tests never reach a real database by accident
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
os.environ.setdefault("REAPER_INTERVAL_SECONDS", "0")
os.environ.setdefault("LOG_FORMAT", "text")
