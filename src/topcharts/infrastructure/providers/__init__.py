"""Top provider implementations."""

from .lastfm_top_provider import LastfmTopProvider
from .local_plays_provider import LocalPlaysTopProvider
from .registry import TopProviderRegistry

__all__ = ["LastfmTopProvider", "LocalPlaysTopProvider", "TopProviderRegistry"]
