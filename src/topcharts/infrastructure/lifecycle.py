"""Startup and shutdown wiring for the top charts core.

Hey future me - this is the ONE place that knows how the pieces fit together:
Database -> providers -> registry -> matcher -> TopChartsService. Whatever
transport sits on top (HTTP router, socket handler, CLI) enters
top_charts_runtime() once at startup and hands runtime.service to its handlers.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy.engine import make_url

from topcharts.application.services import TopChartsService, TrackMatcher
from topcharts.config import Settings, get_settings
from topcharts.domain.exceptions import ConfigurationError
from topcharts.infrastructure.integrations import LastfmClient
from topcharts.infrastructure.observability import configure_logging
from topcharts.infrastructure.persistence import Database
from topcharts.infrastructure.providers import (
    LastfmTopProvider,
    LocalPlaysTopProvider,
    TopProviderRegistry,
)

logger = logging.getLogger(__name__)


@dataclass
class TopChartsRuntime:
    """Long-lived objects shared by every request."""

    settings: Settings
    database: Database
    registry: TopProviderRegistry
    service: TopChartsService
    lastfm_client: LastfmClient | None = None

    async def close(self) -> None:
        if self.lastfm_client is not None:
            await self.lastfm_client.close()
        await self.database.close()


def _sqlite_db_path(database_url: str) -> Path | None:
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite") or not url.database:
        return None
    if url.database == ":memory:":
        return None
    return Path(url.database)


# SQLite creates -journal/-wal files next to the .db file, so the directory must
# exist and be writable before the engine opens its first connection.
def _validate_sqlite_path(settings: Settings) -> None:
    db_path = _sqlite_db_path(settings.database.url)
    if db_path is None:
        return

    try:
        db_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise ConfigurationError(
            f"Unable to create SQLite database directory '{db_path.parent}': {exc}. "
            "Update DATABASE_URL or adjust directory permissions."
        ) from exc


def build_runtime(settings: Settings) -> TopChartsRuntime:
    """Create the database, providers and orchestrator from settings."""
    _validate_sqlite_path(settings)
    database = Database(settings.database)

    # Last.fm is OPTIONAL - without an API key the provider answers with no items
    lastfm_client: LastfmClient | None = None
    if settings.lastfm.is_configured():
        lastfm_client = LastfmClient(settings.lastfm)
    else:
        logger.info("Last.fm not configured - lastfm provider will return no items")

    registry = TopProviderRegistry(
        [
            LocalPlaysTopProvider(
                database.session_scope, default_limit=settings.tops.default_limit
            ),
            LastfmTopProvider(lastfm_client, default_limit=settings.tops.default_limit),
        ]
    )

    service = TopChartsService(
        session_scope=database.session_scope,
        registry=registry,
        matcher=TrackMatcher(database.session_scope),
        settings=settings.tops,
    )

    return TopChartsRuntime(
        settings=settings,
        database=database,
        registry=registry,
        service=service,
        lastfm_client=lastfm_client,
    )


@asynccontextmanager
async def top_charts_runtime(
    settings: Settings | None = None,
) -> AsyncGenerator[TopChartsRuntime, None]:
    """Configure logging, build the runtime, and close it on exit."""
    settings = settings or get_settings()

    configure_logging(
        log_level=settings.observability.level,
        json_format=settings.observability.json_format,
        app_name=settings.app_name,
    )
    logger.info("Starting %s", settings.app_name)

    runtime = build_runtime(settings)
    logger.info("Database initialized: %s", make_url(settings.database.url).render_as_string())
    try:
        yield runtime
    finally:
        await runtime.close()
        logger.info("Stopped %s", settings.app_name)
