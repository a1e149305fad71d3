"""Tests for LastfmClient using httpx.MockTransport (no network)."""

from collections.abc import Callable
from typing import Any

import httpx
import pytest

from topcharts.config import LastfmSettings
from topcharts.domain.exceptions import ExternalServiceError
from topcharts.infrastructure.integrations import LastfmClient


def _client(handler: Callable[[httpx.Request], httpx.Response]) -> LastfmClient:
    return LastfmClient(
        LastfmSettings(api_key="test-key"), transport=httpx.MockTransport(handler)
    )


def _json(payload: Any, status_code: int = 200) -> Callable[[httpx.Request], httpx.Response]:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)

    return handler


class TestGetArtistTopTracks:
    async def test_sends_method_key_and_params(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"toptracks": {"track": []}})

        async with _client(handler) as client:
            await client.get_artist_top_tracks("Muse", limit=10)

        params = seen[0].url.params
        assert params["method"] == "artist.gettoptracks"
        assert params["api_key"] == "test-key"
        assert params["format"] == "json"
        assert params["artist"] == "Muse"
        assert params["limit"] == "10"

    async def test_returns_track_list(self) -> None:
        payload = {"toptracks": {"track": [{"name": "Hysteria"}, {"name": "Uprising"}]}}

        async with _client(_json(payload)) as client:
            tracks = await client.get_artist_top_tracks("Muse")

        assert [t["name"] for t in tracks or []] == ["Hysteria", "Uprising"]

    async def test_single_track_object_is_wrapped(self) -> None:
        payload = {"toptracks": {"track": {"name": "Only One"}}}

        async with _client(_json(payload)) as client:
            tracks = await client.get_artist_top_tracks("Muse")

        assert tracks == [{"name": "Only One"}]

    async def test_malformed_toptracks_is_empty(self) -> None:
        async with _client(_json({"toptracks": "nope"})) as client:
            assert await client.get_artist_top_tracks("Muse") == []

    async def test_unknown_artist_returns_none(self) -> None:
        payload = {"error": 6, "message": "The artist you supplied could not be found"}

        async with _client(_json(payload)) as client:
            assert await client.get_artist_top_tracks("Nobody") is None

    async def test_http_404_returns_none(self) -> None:
        async with _client(_json({}, status_code=404)) as client:
            assert await client.get_artist_top_tracks("Nobody") is None

    async def test_api_error_raises(self) -> None:
        payload = {"error": 10, "message": "Invalid API key"}

        async with _client(_json(payload)) as client:
            with pytest.raises(ExternalServiceError, match="Invalid API key"):
                await client.get_artist_top_tracks("Muse")

    async def test_http_error_raises(self) -> None:
        async with _client(_json({}, status_code=503)) as client:
            with pytest.raises(ExternalServiceError, match="503"):
                await client.get_artist_top_tracks("Muse")

    async def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            with pytest.raises(ExternalServiceError):
                await client.get_artist_top_tracks("Muse")

    async def test_invalid_json_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>oops</html>")

        async with _client(handler) as client:
            with pytest.raises(ExternalServiceError, match="invalid JSON"):
                await client.get_artist_top_tracks("Muse")

    async def test_non_object_payload_raises(self) -> None:
        async with _client(_json([1, 2, 3])) as client:
            with pytest.raises(ExternalServiceError):
                await client.get_artist_top_tracks("Muse")


class TestLastfmSettings:
    def test_is_configured(self) -> None:
        assert LastfmSettings(api_key="abc").is_configured()
        assert not LastfmSettings(api_key="").is_configured()

    def test_only_api_key_and_timeout(self) -> None:
        assert set(LastfmSettings.model_fields) == {"api_key", "timeout"}
