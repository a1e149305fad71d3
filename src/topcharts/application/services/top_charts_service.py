"""Top charts orchestration: cache lookup, provider fetch, persistence, matching.

Hey future me - the flow per request is

    resolve provider -> CHECK_CACHE -> (hit) serve cached items
                                    -> (miss) lock key -> re-check -> FETCH -> PERSIST -> serve

A failed fetch is ALSO persisted (status=failed, short TTL) so the failure is
visible in the DB, but it is never served - callers get TopChartsUnavailableError.
Only successful records count as cache hits.

The per-key lock makes concurrent misses for the same key single-flight: the
first caller fetches, the others wait, then find the fresh row on re-check.
Locks only exist within one process. Across processes the unique constraint
still guarantees one row per key, worst case both fetch.
"""

import asyncio
import logging
from datetime import timedelta

from topcharts.config.settings import TopsSettings
from topcharts.domain.entities import (
    CacheKey,
    CacheRecord,
    CacheStatus,
    ItemType,
    NormalizedTopItem,
    SubjectType,
    TopChartsRequest,
    TopChartsResult,
)
from topcharts.domain.exceptions import (
    EntityNotFoundException,
    TopChartsUnavailableError,
)
from topcharts.domain.ports import ITopProviderRegistry
from topcharts.infrastructure.persistence.database import SessionScope
from topcharts.infrastructure.persistence.models import utc_now
from topcharts.infrastructure.persistence.repositories import (
    CatalogRepository,
    TopCacheRepository,
    TopItemRepository,
)

from .track_matcher import TrackMatcher

logger = logging.getLogger(__name__)


class TopChartsService:
    """Sole entry point for fetching top charts."""

    def __init__(
        self,
        session_scope: SessionScope,
        registry: ITopProviderRegistry,
        matcher: TrackMatcher | None = None,
        settings: TopsSettings | None = None,
    ) -> None:
        """Initialize service.

        Args:
            session_scope: Factory for transactional DB sessions
            registry: Registered top providers
            matcher: Optional catalog matcher for artist top tracks
            settings: TTLs, provider timeout and default limit
        """
        self._session_scope = session_scope
        self._registry = registry
        self._matcher = matcher
        self._settings = settings or TopsSettings()
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    async def get_top_charts(self, request: TopChartsRequest) -> TopChartsResult:
        """Get top items for a subject, from cache when valid.

        Args:
            request: Subject, item type, provider, scope and options

        Returns:
            Items plus where they came from

        Raises:
            ProviderNotFoundError: No provider named request.provider supports it
            EntityNotFoundException: Artist id given without name and not in catalog
            TopChartsUnavailableError: Provider failed or timed out
        """
        key = request.cache_key()
        params = request.provider_params()
        # limit is not part of the cache key: always fetch at least default_limit so a
        # small first request doesn't starve later callers. _finish trims per request.
        params.limit = max(request.limit or 0, self._settings.default_limit)

        # Resolution errors are the caller's fault - nothing gets cached
        provider = self._registry.resolve(request.provider, params)

        if not request.force_refresh:
            cached = await self._load_cached(key)
            if cached is not None:
                return self._finish(request, cached)

        lock_key = key.as_string()
        lock = self._locks.setdefault(lock_key, asyncio.Lock())
        self._waiters[lock_key] = self._waiters.get(lock_key, 0) + 1
        try:
            async with lock:
                # Whoever held the lock before us may have just filled the cache
                if not request.force_refresh:
                    cached = await self._load_cached(key)
                    if cached is not None:
                        return self._finish(request, cached)

                if (
                    params.subject_type == SubjectType.ARTIST
                    and params.subject_value is None
                    and params.subject_id is not None
                ):
                    params.subject_value = await self._artist_name(params.subject_id)

                logger.info(
                    "Fetching top %ss from %s for %s (scope=%s)",
                    ItemType(key.item_type).value,
                    provider.name,
                    key.as_string(),
                    key.scope_key,
                )
                try:
                    result = await asyncio.wait_for(
                        provider.get_top(params),
                        timeout=self._settings.provider_timeout_seconds,
                    )
                except Exception as e:
                    message = self._describe_failure(e)
                    logger.warning(
                        "Top fetch from %s failed for %s: %s",
                        provider.name,
                        key.as_string(),
                        message,
                    )
                    await self._record_failure(key, message)
                    raise TopChartsUnavailableError(
                        key.scope_key, message, cache_key=key
                    ) from e

                items = result.items
                if self._matcher is not None and self._should_match(request):
                    await self._matcher.match_items(request.subject_id or 0, items)

                return self._finish(request, await self._persist_success(key, items))
        finally:
            self._waiters[lock_key] -= 1
            if self._waiters[lock_key] == 0:
                del self._waiters[lock_key]
                self._locks.pop(lock_key, None)

    async def _load_cached(self, key: CacheKey) -> TopChartsResult | None:
        async with self._session_scope() as session:
            record = await TopCacheRepository(session).find_valid_by_key(key, utc_now())
            if record is None:
                return None
            items = await TopItemRepository(session).get_items(record.id)

        logger.debug("Top cache hit for %s (%d items)", key.as_string(), len(items))
        return TopChartsResult(items=items, from_cache=True, cache=record)

    async def _artist_name(self, artist_id: int) -> str:
        async with self._session_scope() as session:
            name = await CatalogRepository(session).get_artist_name(artist_id)
        if name is None:
            raise EntityNotFoundException("Artist", artist_id)
        return name

    def _should_match(self, request: TopChartsRequest) -> bool:
        return (
            self._matcher is not None
            and request.match_tracks
            and request.subject_type == SubjectType.ARTIST
            and request.item_type == ItemType.TRACK
            and request.subject_id is not None
        )

    async def _persist_success(
        self, key: CacheKey, items: list[NormalizedTopItem]
    ) -> TopChartsResult:
        now = utc_now()
        try:
            async with self._session_scope() as session:
                record: CacheRecord = await TopCacheRepository(session).upsert(
                    key,
                    scanned_at=now,
                    expires_at=now + timedelta(days=self._settings.default_ttl_days),
                    status=CacheStatus.SUCCESS,
                )
                await TopItemRepository(session).replace_items(record.id, key, items)
        except Exception:
            # Fresh data is still good data - serve it, next request refetches
            logger.error(
                "Failed to persist top charts for %s", key.as_string(), exc_info=True
            )
            return TopChartsResult(items=items, from_cache=False, persisted=False)

        return TopChartsResult(items=items, from_cache=False, cache=record)

    async def _record_failure(self, key: CacheKey, message: str) -> None:
        now = utc_now()
        try:
            async with self._session_scope() as session:
                await TopCacheRepository(session).upsert(
                    key,
                    scanned_at=now,
                    expires_at=now + timedelta(minutes=self._settings.failure_ttl_minutes),
                    status=CacheStatus.FAILED,
                    error_message=message,
                )
        except Exception:
            logger.error(
                "Failed to record top fetch failure for %s",
                key.as_string(),
                exc_info=True,
            )

    def _describe_failure(self, error: Exception) -> str:
        if isinstance(error, asyncio.TimeoutError):
            return f"Provider timed out after {self._settings.provider_timeout_seconds}s"
        return str(error) or error.__class__.__name__

    @staticmethod
    def _finish(request: TopChartsRequest, result: TopChartsResult) -> TopChartsResult:
        if request.matched_only:
            result.items = [i for i in result.items if i.matched_song_id is not None]
        if request.limit is not None:
            result.items = result.items[: request.limit]
        return result
