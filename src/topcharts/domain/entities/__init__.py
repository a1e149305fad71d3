"""Domain entities for top charts.

Hey future me - these are plain dataclasses, no SQLAlchemy in here! The persistence
layer converts TopCacheModel/TopItemModel rows into these before anything above the
repositories sees them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SubjectType(str, Enum):
    """Entity a top chart is computed for."""

    ARTIST = "artist"
    USER = "user"
    TAG = "tag"
    GENRE = "genre"


class ItemType(str, Enum):
    """Thing being ranked."""

    TRACK = "track"
    ARTIST = "artist"
    ALBUM = "album"
    TAG = "tag"
    GENRE = "genre"


class CacheStatus(str, Enum):
    """Outcome of the last fetch attempt for a cache key."""

    SUCCESS = "success"
    FAILED = "failed"


# Listen up, CacheKey equality is NULL-COALESCING: subject_id None behaves like 0 and
# subject_value None behaves like "". That matches the unique constraint in the DB,
# which is built over the coalesced columns. Two keys that differ only by None vs 0
# are the SAME cache row!
@dataclass(frozen=True, eq=False)
class CacheKey:
    """Composite identity of a top cache record."""

    subject_type: SubjectType
    item_type: ItemType
    provider: str
    scope_key: str
    subject_id: int | None = None
    subject_value: str | None = None

    @property
    def subject_id_key(self) -> int:
        """subject_id coalesced to 0."""
        return self.subject_id if self.subject_id is not None else 0

    @property
    def subject_value_key(self) -> str:
        """subject_value coalesced to an empty string."""
        return self.subject_value if self.subject_value is not None else ""

    def normalized(self) -> tuple[str, int, str, str, str, str]:
        """Return the coalesced 6-tuple used for equality and uniqueness."""
        return (
            SubjectType(self.subject_type).value,
            self.subject_id_key,
            self.subject_value_key,
            ItemType(self.item_type).value,
            self.provider,
            self.scope_key,
        )

    def as_string(self) -> str:
        """Flatten the key into a single string (locks, log lines)."""
        return "|".join(str(part) for part in self.normalized())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheKey):
            return NotImplemented
        return self.normalized() == other.normalized()

    def __hash__(self) -> int:
        return hash(self.normalized())


@dataclass
class CacheRecord:
    """Persisted state of the last fetch attempt for a CacheKey."""

    id: int
    key: CacheKey
    scanned_at: datetime
    expires_at: datetime
    status: CacheStatus
    error_message: str | None = None

    def is_valid(self, now: datetime) -> bool:
        """Valid records are successful and not yet expired."""
        return self.status == CacheStatus.SUCCESS and self.expires_at > now


@dataclass
class NormalizedTopItem:
    """One ranked entry produced by a provider.

    Only rank is guaranteed; providers populate different subsets of the rest.
    The matched_* fields are filled by the orchestrator, never by providers.
    """

    rank: int
    title: str | None = None
    external_id: str | None = None
    playcount: int | None = None
    listeners: int | None = None
    score: float | None = None
    url: str | None = None
    duration_seconds: int | None = None
    matched_song_id: int | None = None
    match_confidence: float | None = None
    match_method: str | None = None


@dataclass
class TrackCandidate:
    """Local catalog track considered during matching."""

    id: int
    title: str
    duration_seconds: int | None = None


@dataclass(frozen=True)
class MatchResult:
    """Outcome of matching an external title against the local catalog."""

    song_id: int | None
    confidence: float
    method: str

    @property
    def matched(self) -> bool:
        return self.song_id is not None

    @classmethod
    def no_match(cls) -> MatchResult:
        return cls(song_id=None, confidence=0.0, method="no-match")


@dataclass
class GetTopParams:
    """Parameters of a single provider call."""

    subject_type: SubjectType
    item_type: ItemType
    scope_key: str
    subject_id: int | None = None
    subject_value: str | None = None
    limit: int | None = None


@dataclass
class TopProviderResult:
    """Items returned by a provider. Empty list means "no data", not failure."""

    items: list[NormalizedTopItem] = field(default_factory=list)


@dataclass
class TopChartsRequest:
    """What a caller asks the orchestrator for."""

    subject_type: SubjectType
    item_type: ItemType
    provider: str
    scope_key: str = "all-time"
    subject_id: int | None = None
    subject_value: str | None = None
    limit: int | None = None
    force_refresh: bool = False
    match_tracks: bool = True
    matched_only: bool = False

    def cache_key(self) -> CacheKey:
        return CacheKey(
            subject_type=SubjectType(self.subject_type),
            item_type=ItemType(self.item_type),
            provider=self.provider,
            scope_key=self.scope_key,
            subject_id=self.subject_id,
            subject_value=self.subject_value,
        )

    def provider_params(self) -> GetTopParams:
        return GetTopParams(
            subject_type=SubjectType(self.subject_type),
            item_type=ItemType(self.item_type),
            scope_key=self.scope_key,
            subject_id=self.subject_id,
            subject_value=self.subject_value,
            limit=self.limit,
        )


@dataclass
class TopChartsResult:
    """What the orchestrator hands back to callers."""

    items: list[NormalizedTopItem]
    from_cache: bool
    cache: CacheRecord | None = None
    persisted: bool = True


__all__ = [
    "CacheKey",
    "CacheRecord",
    "CacheStatus",
    "GetTopParams",
    "ItemType",
    "MatchResult",
    "NormalizedTopItem",
    "SubjectType",
    "TopChartsRequest",
    "TopChartsResult",
    "TopProviderResult",
    "TrackCandidate",
]
