"""Top charts: cached, ranked top items from local plays and Last.fm."""

__version__ = "0.1.0"
