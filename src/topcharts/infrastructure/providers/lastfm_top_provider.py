"""Last.fm top provider (artist -> top tracks).

Hey future me - Last.fm sends numbers as STRINGS ("playcount": "123456") and
sometimes leaves fields empty (mbid ""). Everything is coerced here so the rest of
the app only ever sees NormalizedTopItem with real ints or None.

Not configured (no API key) or no artist name = empty result, NOT an error. Only
transport problems raise (ExternalServiceError from the client).
"""

import logging
from collections.abc import Iterable
from typing import Any

from topcharts.domain.entities import (
    GetTopParams,
    ItemType,
    NormalizedTopItem,
    SubjectType,
    TopProviderResult,
)
from topcharts.domain.ports import ILastfmClient, ITopProvider

logger = logging.getLogger(__name__)


def coerce_int(value: Any) -> int | None:
    """Coerce Last.fm's numeric-or-string fields to int, None if not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            try:
                return int(float(text))
            except ValueError:
                return None
    return None


def _non_empty_str(value: Any) -> str | None:
    return value if isinstance(value, str) and value else None


def map_lastfm_track(position: int, track: dict[str, Any]) -> NormalizedTopItem:
    """Map one raw Last.fm track to a NormalizedTopItem.

    Args:
        position: 1-based position in the response (fallback rank)
        track: Raw track dict from artist.gettoptracks

    Returns:
        Normalized item
    """
    attr = track.get("@attr") if isinstance(track.get("@attr"), dict) else {}
    rank = coerce_int(attr.get("rank")) or position

    playcount = coerce_int(track.get("playcount"))
    if playcount is None:
        playcount = coerce_int(attr.get("playcount"))

    duration = coerce_int(track.get("duration"))

    return NormalizedTopItem(
        rank=rank,
        title=track.get("name") if isinstance(track.get("name"), str) else "",
        external_id=_non_empty_str(track.get("mbid")),
        playcount=playcount,
        listeners=coerce_int(track.get("listeners")),
        url=_non_empty_str(track.get("url")),
        # 0 means "unknown" on Last.fm
        duration_seconds=duration or None,
    )


class LastfmTopProvider(ITopProvider):
    """Global artist top tracks from Last.fm."""

    def __init__(
        self,
        client: ILastfmClient | None,
        default_limit: int = 50,
        supported_item_types: Iterable[ItemType] = (ItemType.TRACK,),
    ) -> None:
        """Initialize provider.

        Args:
            client: Last.fm client, None when Last.fm is not configured
            default_limit: Items requested when params.limit is not set
            supported_item_types: Item types answered for artist subjects
        """
        self._client = client
        self._default_limit = default_limit
        self._supported_item_types = frozenset(ItemType(t) for t in supported_item_types)

    @property
    def name(self) -> str:
        return "lastfm"

    def supports(self, params: GetTopParams) -> bool:
        return (
            params.subject_type == SubjectType.ARTIST
            and params.item_type in self._supported_item_types
        )

    async def get_top(self, params: GetTopParams) -> TopProviderResult:
        """Fetch an artist's top tracks.

        Args:
            params: subject_value carries the artist name

        Returns:
            Ranked items, empty when unconfigured or the artist is unknown

        Raises:
            ExternalServiceError: Last.fm transport or API failure
        """
        if self._client is None:
            logger.debug("lastfm: not configured, returning no items")
            return TopProviderResult(items=[])

        artist_name = (params.subject_value or "").strip()
        if not artist_name:
            return TopProviderResult(items=[])

        limit = params.limit or self._default_limit
        tracks = await self._client.get_artist_top_tracks(artist_name, limit=limit)
        if not tracks:
            return TopProviderResult(items=[])

        items = [map_lastfm_track(position, t) for position, t in enumerate(tracks, 1)]
        return TopProviderResult(items=items[:limit])
