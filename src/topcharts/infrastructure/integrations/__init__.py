"""External service integrations."""

from .lastfm_client import LastfmClient

__all__ = ["LastfmClient"]
