"""Infrastructure persistence layer."""

from .database import Database, SessionScope
from .models import (
    AlbumModel,
    ArtistModel,
    Base,
    ListenHistoryModel,
    SongModel,
    TopCacheModel,
    TopItemModel,
)
from .repositories import (
    CatalogRepository,
    ListenHistoryRepository,
    TopCacheRepository,
    TopItemRepository,
)
from .retry import is_lock_error, with_db_retry

__all__ = [
    # Database
    "Database",
    "SessionScope",
    "Base",
    # Models
    "AlbumModel",
    "ArtistModel",
    "ListenHistoryModel",
    "SongModel",
    "TopCacheModel",
    "TopItemModel",
    # Repositories
    "CatalogRepository",
    "ListenHistoryRepository",
    "TopCacheRepository",
    "TopItemRepository",
    # Retry utilities
    "is_lock_error",
    "with_db_retry",
]
