"""Shared fixtures.

Hey future me - every DB test gets its OWN temp-file SQLite database (not :memory:).
With aiosqlite each connection to :memory: is a separate empty DB, so tables created
by create_tables() would vanish for the next session.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from topcharts.config import DatabaseSettings, TopsSettings
from topcharts.infrastructure.persistence import Database


@pytest.fixture
async def database(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """Fresh SQLite database with all tables created."""
    db = Database(DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path}/test.db"))
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def tops_settings() -> TopsSettings:
    return TopsSettings(
        default_ttl_days=30,
        failure_ttl_minutes=15,
        provider_timeout_seconds=2.0,
        default_limit=50,
    )
