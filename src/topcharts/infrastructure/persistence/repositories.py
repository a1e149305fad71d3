"""Repository implementations for top charts."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from topcharts.domain.entities import (
    CacheKey,
    CacheRecord,
    CacheStatus,
    ItemType,
    NormalizedTopItem,
    SubjectType,
    TrackCandidate,
)
from topcharts.domain.ports import (
    ICatalogReader,
    IListenHistoryReader,
    ITopCacheRepository,
    ITopItemRepository,
)

from .models import (
    AlbumModel,
    ArtistModel,
    ListenHistoryModel,
    SongModel,
    TopCacheModel,
    TopItemModel,
    ensure_utc_aware,
)
from .retry import with_db_retry

logger = logging.getLogger(__name__)

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": postgresql_insert,
}

_KEY_COLUMNS = (
    "subject_type",
    "subject_id_key",
    "subject_value_key",
    "item_type",
    "provider",
    "scope_key",
)


def _as_utc(dt: datetime) -> datetime:
    """Convert to aware UTC before storing (SQLite drops the offset)."""
    return ensure_utc_aware(dt).astimezone(UTC)


class TopCacheRepository(ITopCacheRepository):
    """SQLAlchemy implementation of the top cache store."""

    # Hey future me, the session is injected and NOT committed here - session_scope()
    # commits when the caller's block exits. The repository only stages/executes.
    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    def _key_filter(self, key: CacheKey) -> list[Any]:
        subject_type, subject_id, subject_value, item_type, provider, scope = (
            key.normalized()
        )
        return [
            TopCacheModel.subject_type == subject_type,
            TopCacheModel.subject_id_key == subject_id,
            TopCacheModel.subject_value_key == subject_value,
            TopCacheModel.item_type == item_type,
            TopCacheModel.provider == provider,
            TopCacheModel.scope_key == scope,
        ]

    async def _get_model(
        self, key: CacheKey, refresh: bool = False
    ) -> TopCacheModel | None:
        stmt = select(TopCacheModel).where(*self._key_filter(key))
        if refresh:
            # Core upserts bypass the identity map - reload the row
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _to_entity(model: TopCacheModel) -> CacheRecord:
        return CacheRecord(
            id=model.id,
            key=CacheKey(
                subject_type=SubjectType(model.subject_type),
                item_type=ItemType(model.item_type),
                provider=model.provider,
                scope_key=model.scope_key,
                subject_id=model.subject_id,
                subject_value=model.subject_value,
            ),
            scanned_at=ensure_utc_aware(model.scanned_at),
            expires_at=ensure_utc_aware(model.expires_at),
            status=CacheStatus(model.status),
            error_message=model.error_message,
        )

    async def find_by_key(self, key: CacheKey) -> CacheRecord | None:
        """Find the cache record for a key.

        Args:
            key: Composite cache key (None subject fields coalesce to 0 / "")

        Returns:
            CacheRecord or None if the key was never fetched
        """
        model = await self._get_model(key)
        return self._to_entity(model) if model else None

    async def find_valid_by_key(
        self, key: CacheKey, now: datetime
    ) -> CacheRecord | None:
        """Find a cache record that can be served.

        Failed or expired records count as a cache miss.

        Args:
            key: Composite cache key
            now: Reference time

        Returns:
            CacheRecord if status is success and expires_at > now, else None
        """
        record = await self.find_by_key(key)
        if record is None or not record.is_valid(ensure_utc_aware(now)):
            return None
        return record

    # Listen up - this MUST NOT create two rows for one key, even with two requests
    # racing. On SQLite/PostgreSQL the database resolves the race through
    # ON CONFLICT against uq_top_cache_key. Other dialects get select-then-write,
    # where the unique constraint still turns a lost race into an IntegrityError.
    @with_db_retry(max_attempts=3)
    async def upsert(
        self,
        key: CacheKey,
        scanned_at: datetime,
        expires_at: datetime,
        status: CacheStatus,
        error_message: str | None = None,
    ) -> CacheRecord:
        """Insert the row for key, or update its mutable fields in place.

        Args:
            key: Composite cache key
            scanned_at: Time of this fetch attempt
            expires_at: Time after which the record is stale
            status: Outcome of the fetch
            error_message: Failure cause (dropped for successful fetches)

        Returns:
            The created or updated CacheRecord
        """
        status = CacheStatus(status)
        mutable = {
            "scanned_at": _as_utc(scanned_at),
            "expires_at": _as_utc(expires_at),
            "status": status.value,
            "error_message": error_message if status == CacheStatus.FAILED else None,
        }

        dialect = self.session.get_bind().dialect.name
        insert_fn = _UPSERT_INSERTS.get(dialect)

        if insert_fn is not None:
            subject_type, subject_id_key, subject_value_key, item_type, provider, scope = (
                key.normalized()
            )
            stmt = insert_fn(TopCacheModel).values(
                subject_type=subject_type,
                subject_id=key.subject_id,
                subject_value=key.subject_value,
                subject_id_key=subject_id_key,
                subject_value_key=subject_value_key,
                item_type=item_type,
                provider=provider,
                scope_key=scope,
                **mutable,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=list(_KEY_COLUMNS),
                set_={name: getattr(stmt.excluded, name) for name in mutable},
            )
            await self.session.execute(stmt)
            model = await self._get_model(key, refresh=True)
        else:
            model = await self._get_model(key)
            if model is None:
                model = TopCacheModel(
                    subject_type=SubjectType(key.subject_type).value,
                    subject_id=key.subject_id,
                    subject_value=key.subject_value,
                    subject_id_key=key.subject_id_key,
                    subject_value_key=key.subject_value_key,
                    item_type=ItemType(key.item_type).value,
                    provider=key.provider,
                    scope_key=key.scope_key,
                    **mutable,
                )
                self.session.add(model)
            else:
                for name, value in mutable.items():
                    setattr(model, name, value)
            await self.session.flush()

        if model is None:
            raise RuntimeError(f"top_cache row for {key.as_string()} vanished after upsert")

        logger.debug(
            "Upserted top cache %s (id=%s, status=%s)",
            key.as_string(),
            model.id,
            status.value,
        )
        return self._to_entity(model)

    async def delete_by_id(self, cache_id: int) -> bool:
        """Delete a cache record (and its items via cascade).

        Returns:
            True if a row was deleted, False if none existed
        """
        result = await self.session.execute(
            delete(TopCacheModel).where(TopCacheModel.id == cache_id)
        )
        return bool(result.rowcount)


class TopItemRepository(ITopItemRepository):
    """SQLAlchemy implementation for item rows under a cache record."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def replace_items(
        self, cache_id: int, key: CacheKey, items: list[NormalizedTopItem]
    ) -> None:
        """Replace all items of a cache record with a fresh list.

        Args:
            cache_id: Owning top_cache row
            key: Cache key (subject/item columns are denormalized onto each row)
            items: Items in rank order
        """
        await self.delete_by_cache_id(cache_id)

        self.session.add_all(
            [
                TopItemModel(
                    cache_id=cache_id,
                    subject_type=SubjectType(key.subject_type).value,
                    subject_id=key.subject_id,
                    subject_value=key.subject_value,
                    item_type=ItemType(key.item_type).value,
                    rank=item.rank,
                    title=item.title,
                    external_id=item.external_id,
                    playcount=item.playcount,
                    listeners=item.listeners,
                    score=item.score,
                    url=item.url,
                    duration=item.duration_seconds,
                    matched_song_id=item.matched_song_id,
                    match_confidence=item.match_confidence,
                    match_method=item.match_method,
                )
                for item in items
            ]
        )
        await self.session.flush()

    async def get_items(self, cache_id: int) -> list[NormalizedTopItem]:
        """Get the items of a cache record ordered by rank."""
        stmt = (
            select(TopItemModel)
            .where(TopItemModel.cache_id == cache_id)
            .order_by(TopItemModel.rank.asc(), TopItemModel.id.asc())
        )
        result = await self.session.execute(stmt)
        return [
            NormalizedTopItem(
                rank=model.rank,
                title=model.title,
                external_id=model.external_id,
                playcount=model.playcount,
                listeners=model.listeners,
                score=model.score,
                url=model.url,
                duration_seconds=model.duration,
                matched_song_id=model.matched_song_id,
                match_confidence=model.match_confidence,
                match_method=model.match_method,
            )
            for model in result.scalars().all()
        ]

    async def delete_by_cache_id(self, cache_id: int) -> int:
        """Delete all items of a cache record.

        Returns:
            Number of deleted rows
        """
        result = await self.session.execute(
            delete(TopItemModel).where(TopItemModel.cache_id == cache_id)
        )
        return result.rowcount or 0


class CatalogRepository(ICatalogReader):
    """Read-only access to the local song catalog."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    async def get_tracks_for_artist(self, artist_id: int) -> list[TrackCandidate]:
        """Get every local track of an artist as match candidates.

        Ordered by song id so "first encountered" is stable between runs.
        """
        stmt = (
            select(SongModel.id, SongModel.title, SongModel.duration)
            .where(SongModel.artist_id == artist_id)
            .order_by(SongModel.id.asc())
        )
        result = await self.session.execute(stmt)
        return [
            TrackCandidate(id=row.id, title=row.title, duration_seconds=row.duration)
            for row in result.all()
        ]

    async def get_artist_name(self, artist_id: int) -> str | None:
        """Get an artist's name, None if the artist does not exist."""
        result = await self.session.execute(
            select(ArtistModel.name).where(ArtistModel.id == artist_id)
        )
        return result.scalar_one_or_none()


# Hey future me - the three aggregations share one shape: listen_history JOIN songs
# (JOIN artists / albums), filter by user and optional time bound, GROUP BY the
# ranked entity, COUNT(*) plays, ORDER BY plays DESC. The id tie-break keeps the
# ranking deterministic when two entities have the same play count.
class ListenHistoryRepository(IListenHistoryReader):
    """Grouped play counts from listen_history."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with session."""
        self.session = session

    @staticmethod
    def _window(stmt: Any, user_id: int, since: datetime | None) -> Any:
        stmt = stmt.where(ListenHistoryModel.user_id == user_id)
        if since is not None:
            stmt = stmt.where(ListenHistoryModel.played_at >= _as_utc(since))
        return stmt

    async def _fetch(self, stmt: Any) -> list[dict[str, Any]]:
        result = await self.session.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def top_tracks(
        self, user_id: int, since: datetime | None, limit: int
    ) -> list[dict[str, Any]]:
        """Most played songs of a user.

        Returns:
            Dicts with song_id, title, duration, artist_name, plays
        """
        plays = func.count(ListenHistoryModel.id).label("plays")
        stmt = (
            select(
                SongModel.id.label("song_id"),
                SongModel.title,
                SongModel.duration,
                ArtistModel.name.label("artist_name"),
                plays,
            )
            .select_from(ListenHistoryModel)
            .join(SongModel, ListenHistoryModel.song_id == SongModel.id)
            .join(ArtistModel, SongModel.artist_id == ArtistModel.id)
        )
        stmt = (
            self._window(stmt, user_id, since)
            .group_by(SongModel.id, SongModel.title, SongModel.duration, ArtistModel.name)
            .order_by(plays.desc(), SongModel.id.asc())
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def top_artists(
        self, user_id: int, since: datetime | None, limit: int
    ) -> list[dict[str, Any]]:
        """Most played artists of a user.

        Returns:
            Dicts with artist_id, name, plays
        """
        plays = func.count(ListenHistoryModel.id).label("plays")
        stmt = (
            select(ArtistModel.id.label("artist_id"), ArtistModel.name, plays)
            .select_from(ListenHistoryModel)
            .join(SongModel, ListenHistoryModel.song_id == SongModel.id)
            .join(ArtistModel, SongModel.artist_id == ArtistModel.id)
        )
        stmt = (
            self._window(stmt, user_id, since)
            .group_by(ArtistModel.id, ArtistModel.name)
            .order_by(plays.desc(), ArtistModel.id.asc())
            .limit(limit)
        )
        return await self._fetch(stmt)

    async def top_albums(
        self, user_id: int, since: datetime | None, limit: int
    ) -> list[dict[str, Any]]:
        """Most played albums of a user. Songs without an album are skipped.

        Returns:
            Dicts with album_id, title, plays
        """
        plays = func.count(ListenHistoryModel.id).label("plays")
        stmt = (
            select(AlbumModel.id.label("album_id"), AlbumModel.title, plays)
            .select_from(ListenHistoryModel)
            .join(SongModel, ListenHistoryModel.song_id == SongModel.id)
            .join(AlbumModel, SongModel.album_id == AlbumModel.id)
        )
        stmt = (
            self._window(stmt, user_id, since)
            .group_by(AlbumModel.id, AlbumModel.title)
            .order_by(plays.desc(), AlbumModel.id.asc())
            .limit(limit)
        )
        return await self._fetch(stmt)
