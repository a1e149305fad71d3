"""Last.fm HTTP client implementation."""

import logging
from typing import Any, cast

import httpx

from topcharts.config import LastfmSettings
from topcharts.domain.exceptions import ExternalServiceError
from topcharts.domain.ports import ILastfmClient

logger = logging.getLogger(__name__)

# Last.fm error 6 = "Invalid parameters", which is what an unknown artist returns
LASTFM_NOT_FOUND_ERROR = 6


class LastfmClient(ILastfmClient):
    """HTTP client for Last.fm API operations."""

    API_BASE_URL = "https://ws.audioscrobbler.com/2.0/"

    def __init__(
        self,
        settings: LastfmSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Last.fm client.

        Args:
            settings: Last.fm configuration settings
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.API_BASE_URL,
                timeout=self.settings.timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _make_request(
        self, method: str, params: dict[str, Any]
    ) -> dict[str, Any] | None:
        """
        Make a request to Last.fm API.

        Args:
            method: API method name
            params: Request parameters

        Returns:
            Response data or None if the entity was not found

        Raises:
            ExternalServiceError: Transport failure, HTTP error or malformed body
        """
        client = await self._get_client()

        request_params = {
            "method": method,
            "api_key": self.settings.api_key,
            "format": "json",
            **params,
        }

        try:
            response = await client.get("", params=request_params)
            if response.status_code == 404:
                return None
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                f"Last.fm API error: {e.response.status_code} for {method}"
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Last.fm request failed: {e}") from e
        except ValueError as e:
            raise ExternalServiceError(f"Last.fm returned invalid JSON for {method}") from e

        if not isinstance(data, dict):
            raise ExternalServiceError(f"Last.fm returned unexpected payload for {method}")

        # Hey future me - Last.fm answers most errors with HTTP 200 + {"error": N}!
        if "error" in data:
            if data.get("error") == LASTFM_NOT_FOUND_ERROR:
                logger.debug("Last.fm %s: not found (%s)", method, data.get("message"))
                return None
            raise ExternalServiceError(
                f"Last.fm API error {data.get('error')}: {data.get('message', 'unknown')}"
            )

        return cast(dict[str, Any], data)

    async def get_artist_top_tracks(
        self, artist: str, limit: int = 50
    ) -> list[dict[str, Any]] | None:
        """
        Get an artist's most played tracks (artist.gettoptracks).

        Args:
            artist: Artist name
            limit: Maximum number of tracks

        Returns:
            Raw track dicts, or None if Last.fm does not know the artist
        """
        response = await self._make_request(
            "artist.gettoptracks", {"artist": artist, "limit": str(limit)}
        )
        if response is None:
            return None

        toptracks = response.get("toptracks")
        if not isinstance(toptracks, dict):
            return []
        tracks = toptracks.get("track", [])
        # A single result comes back as an object instead of a list
        if isinstance(tracks, dict):
            tracks = [tracks]
        if not isinstance(tracks, list):
            return []
        return [t for t in tracks if isinstance(t, dict)]

    async def __aenter__(self) -> "LastfmClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()
