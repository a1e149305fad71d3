"""Tests for LastfmTopProvider and the Last.fm track mapping."""

from unittest.mock import AsyncMock

import pytest

from topcharts.domain.entities import GetTopParams, ItemType, SubjectType
from topcharts.domain.exceptions import ExternalServiceError
from topcharts.domain.ports import ILastfmClient
from topcharts.infrastructure.providers import LastfmTopProvider
from topcharts.infrastructure.providers.lastfm_top_provider import (
    coerce_int,
    map_lastfm_track,
)

# Hey future me - shaped like a real artist.gettoptracks entry: numbers as strings,
# rank inside @attr, empty mbid for tracks MusicBrainz doesn't know.
RAW_TRACKS = [
    {
        "name": "Hysteria",
        "playcount": "1234567",
        "listeners": "456789",
        "mbid": "a1b2",
        "url": "https://www.last.fm/music/Muse/_/Hysteria",
        "duration": "227",
        "@attr": {"rank": "1"},
    },
    {
        "name": "Uprising",
        "listeners": "not-a-number",
        "mbid": "",
        "url": "",
        "duration": "0",
        "@attr": {"rank": "2", "playcount": "999"},
    },
]


def _params(**overrides: object) -> GetTopParams:
    fields: dict[str, object] = {
        "subject_type": SubjectType.ARTIST,
        "item_type": ItemType.TRACK,
        "scope_key": "all-time",
        "subject_id": 1,
        "subject_value": "Muse",
    }
    fields.update(overrides)
    return GetTopParams(**fields)  # type: ignore[arg-type]


@pytest.fixture
def client() -> AsyncMock:
    mock = AsyncMock(spec=ILastfmClient)
    mock.get_artist_top_tracks.return_value = RAW_TRACKS
    return mock


class TestCoerceInt:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("123", 123), (" 42 ", 42), ("12.7", 12), (7, 7), (3.9, 3), ("", None), ("abc", None), (None, None), (True, None)],
    )
    def test_coerce(self, value: object, expected: int | None) -> None:
        assert coerce_int(value) == expected


class TestMapLastfmTrack:
    def test_full_entry(self) -> None:
        item = map_lastfm_track(5, RAW_TRACKS[0])

        assert item.rank == 1
        assert item.title == "Hysteria"
        assert item.playcount == 1234567
        assert item.listeners == 456789
        assert item.external_id == "a1b2"
        assert item.url == "https://www.last.fm/music/Muse/_/Hysteria"
        assert item.duration_seconds == 227

    def test_sparse_entry(self) -> None:
        item = map_lastfm_track(2, RAW_TRACKS[1])

        assert item.playcount == 999  # from @attr
        assert item.listeners is None
        assert item.external_id is None
        assert item.url is None
        assert item.duration_seconds is None

    def test_rank_falls_back_to_position(self) -> None:
        item = map_lastfm_track(3, {"name": "X"})

        assert item.rank == 3
        assert item.playcount is None


class TestLastfmTopProvider:
    def test_supports_artist_tracks_only(self, client: AsyncMock) -> None:
        provider = LastfmTopProvider(client)

        assert provider.name == "lastfm"
        assert provider.supports(_params())
        assert not provider.supports(_params(item_type=ItemType.ALBUM))
        assert not provider.supports(_params(subject_type=SubjectType.USER))

    def test_supported_item_types_configurable(self, client: AsyncMock) -> None:
        provider = LastfmTopProvider(client, supported_item_types=[ItemType.TRACK, ItemType.ALBUM])

        assert provider.supports(_params(item_type=ItemType.ALBUM))

    async def test_get_top_maps_tracks(self, client: AsyncMock) -> None:
        provider = LastfmTopProvider(client)

        result = await provider.get_top(_params(limit=10))

        client.get_artist_top_tracks.assert_awaited_once_with("Muse", limit=10)
        assert [i.rank for i in result.items] == [1, 2]
        assert result.items[0].title == "Hysteria"

    async def test_default_limit(self, client: AsyncMock) -> None:
        provider = LastfmTopProvider(client, default_limit=25)

        await provider.get_top(_params())

        client.get_artist_top_tracks.assert_awaited_once_with("Muse", limit=25)

    async def test_without_client_returns_empty(self) -> None:
        result = await LastfmTopProvider(None).get_top(_params())

        assert result.items == []

    @pytest.mark.parametrize("value", [None, "", "   "])
    async def test_without_artist_name_returns_empty(
        self, client: AsyncMock, value: str | None
    ) -> None:
        result = await LastfmTopProvider(client).get_top(_params(subject_value=value))

        assert result.items == []
        client.get_artist_top_tracks.assert_not_awaited()

    async def test_unknown_artist_returns_empty(self, client: AsyncMock) -> None:
        client.get_artist_top_tracks.return_value = None

        result = await LastfmTopProvider(client).get_top(_params())

        assert result.items == []

    async def test_transport_errors_propagate(self, client: AsyncMock) -> None:
        client.get_artist_top_tracks.side_effect = ExternalServiceError("Last.fm down")

        with pytest.raises(ExternalServiceError):
            await LastfmTopProvider(client).get_top(_params())
