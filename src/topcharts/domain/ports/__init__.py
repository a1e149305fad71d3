"""Domain ports (interfaces) for top charts."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from topcharts.domain.entities import (
    CacheKey,
    CacheRecord,
    CacheStatus,
    NormalizedTopItem,
    TrackCandidate,
)

from .top_provider import ITopProvider, ITopProviderRegistry


# Hey future me, this is THE cache store contract. "Not found" is None, never an
# exception. Storage errors propagate to the caller unchanged!
class ITopCacheRepository(ABC):
    """Repository interface for top cache records."""

    @abstractmethod
    async def find_by_key(self, key: CacheKey) -> CacheRecord | None:
        """Exact composite lookup (null-coalescing on the optional subject fields)."""
        pass

    @abstractmethod
    async def find_valid_by_key(
        self, key: CacheKey, now: datetime
    ) -> CacheRecord | None:
        """Like find_by_key, but only successful records with expires_at > now."""
        pass

    @abstractmethod
    async def upsert(
        self,
        key: CacheKey,
        scanned_at: datetime,
        expires_at: datetime,
        status: CacheStatus,
        error_message: str | None = None,
    ) -> CacheRecord:
        """Insert or update the single row for key, atomically."""
        pass

    @abstractmethod
    async def delete_by_id(self, cache_id: int) -> bool:
        """Administrative purge."""
        pass


class ITopItemRepository(ABC):
    """Repository interface for the item rows cached under a cache record."""

    @abstractmethod
    async def replace_items(
        self, cache_id: int, key: CacheKey, items: list[NormalizedTopItem]
    ) -> None:
        pass

    @abstractmethod
    async def get_items(self, cache_id: int) -> list[NormalizedTopItem]:
        pass

    @abstractmethod
    async def delete_by_cache_id(self, cache_id: int) -> int:
        pass


class ICatalogReader(ABC):
    """Read access to the local song catalog."""

    @abstractmethod
    async def get_tracks_for_artist(self, artist_id: int) -> list[TrackCandidate]:
        """All local tracks of one artist (no pagination)."""
        pass

    @abstractmethod
    async def get_artist_name(self, artist_id: int) -> str | None:
        pass


class IListenHistoryReader(ABC):
    """Grouped play counts from the listening history."""

    @abstractmethod
    async def top_tracks(
        self, user_id: int, since: datetime | None, limit: int
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def top_artists(
        self, user_id: int, since: datetime | None, limit: int
    ) -> list[dict[str, Any]]:
        pass

    @abstractmethod
    async def top_albums(
        self, user_id: int, since: datetime | None, limit: int
    ) -> list[dict[str, Any]]:
        pass


# Yo, ILastfmClient is the PORT for Last.fm API! Last.fm is OPTIONAL (check
# lastfm.is_configured() before building a client). Methods return None when the
# artist is unknown to Last.fm and raise for transport failures.
class ILastfmClient(ABC):
    """Port for Last.fm API client operations."""

    @abstractmethod
    async def get_artist_top_tracks(
        self, artist: str, limit: int = 50
    ) -> list[dict[str, Any]] | None:
        """
        Get an artist's most played tracks.

        Args:
            artist: Artist name
            limit: Maximum number of tracks

        Returns:
            Raw Last.fm track dicts, or None if the artist is not found
        """
        pass


__all__ = [
    "ICatalogReader",
    "IListenHistoryReader",
    "ILastfmClient",
    "ITopCacheRepository",
    "ITopItemRepository",
    "ITopProvider",
    "ITopProviderRegistry",
]
