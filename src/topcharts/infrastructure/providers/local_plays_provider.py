"""Local-plays top provider.

Ranks a user's tracks, artists or albums by how often they were played, straight
from the listen_history table. No network, no credentials - this provider only
returns an empty list when there is nothing to rank.
"""

import logging
from typing import Any

from topcharts.domain.entities import (
    GetTopParams,
    ItemType,
    NormalizedTopItem,
    SubjectType,
    TopProviderResult,
)
from topcharts.domain.ports import ITopProvider
from topcharts.domain.value_objects import resolve_scope
from topcharts.infrastructure.persistence.database import SessionScope
from topcharts.infrastructure.persistence.repositories import ListenHistoryRepository

logger = logging.getLogger(__name__)

SUPPORTED_ITEM_TYPES = frozenset({ItemType.TRACK, ItemType.ARTIST, ItemType.ALBUM})


class LocalPlaysTopProvider(ITopProvider):
    """Top items from the local listening history."""

    def __init__(self, session_scope: SessionScope, default_limit: int = 50) -> None:
        """Initialize provider.

        Args:
            session_scope: Factory for transactional DB sessions
            default_limit: Items returned when params.limit is not set
        """
        self._session_scope = session_scope
        self._default_limit = default_limit

    @property
    def name(self) -> str:
        return "local-plays"

    def supports(self, params: GetTopParams) -> bool:
        return (
            params.subject_type == SubjectType.USER
            and params.item_type in SUPPORTED_ITEM_TYPES
        )

    async def get_top(self, params: GetTopParams) -> TopProviderResult:
        """Aggregate plays per track/artist/album for one user.

        Args:
            params: subject_id is the user id; scope_key bounds played_at

        Returns:
            Items ranked 1..N by descending play count
        """
        if params.subject_id is None:
            return TopProviderResult(items=[])
        if params.item_type not in SUPPORTED_ITEM_TYPES:
            return TopProviderResult(items=[])

        # Resolved on EVERY call - "30d" moves with the clock
        window = resolve_scope(params.scope_key)
        limit = params.limit or self._default_limit

        async with self._session_scope() as session:
            history = ListenHistoryRepository(session)
            if params.item_type == ItemType.TRACK:
                rows = await history.top_tracks(params.subject_id, window.since, limit)
                items = [self._track_item(rank, row) for rank, row in enumerate(rows, 1)]
            elif params.item_type == ItemType.ARTIST:
                rows = await history.top_artists(params.subject_id, window.since, limit)
                items = [
                    NormalizedTopItem(
                        rank=rank,
                        title=row["name"],
                        external_id=str(row["artist_id"]),
                        playcount=int(row["plays"]),
                    )
                    for rank, row in enumerate(rows, 1)
                ]
            else:
                rows = await history.top_albums(params.subject_id, window.since, limit)
                items = [
                    NormalizedTopItem(
                        rank=rank,
                        title=row["title"],
                        external_id=str(row["album_id"]),
                        playcount=int(row["plays"]),
                    )
                    for rank, row in enumerate(rows, 1)
                ]

        logger.debug(
            "local-plays: %d %s items for user %s (scope=%s)",
            len(items),
            ItemType(params.item_type).value,
            params.subject_id,
            params.scope_key,
        )
        return TopProviderResult(items=items)

    @staticmethod
    def _track_item(rank: int, row: dict[str, Any]) -> NormalizedTopItem:
        return NormalizedTopItem(
            rank=rank,
            title=row["title"],
            external_id=str(row["song_id"]),
            playcount=int(row["plays"]),
            duration_seconds=row.get("duration"),
        )
