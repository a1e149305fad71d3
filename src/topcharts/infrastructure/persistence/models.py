"""SQLAlchemy ORM models for topcharts."""

from datetime import UTC, datetime

import sqlalchemy as sa
from sqlalchemy import Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# Hey future me, utc_now() ensures ALL timestamps are UTC! Never use datetime.now()
# without timezone - that's "naive" datetime and causes comparison bugs.
def utc_now() -> datetime:
    """Get current UTC time."""
    return datetime.now(UTC)


# Hey future me - SQLite doesn't preserve timezone info! Stored UTC datetimes come
# back naive. ALWAYS run DB datetimes through this before comparing them with
# datetime.now(UTC), otherwise you get "can't compare offset-naive and offset-aware".
def ensure_utc_aware(dt: datetime) -> datetime:
    """Ensure datetime is UTC-aware, assuming naive datetimes are UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# CATALOG + HISTORY (owned by the library/playback side of the application)
# Hey future me - this core only READS these tables. They're modelled here so the
# aggregation queries are typed and tests can create a schema with create_all().
# =============================================================================


class ArtistModel(Base):
    """Local catalog artist."""

    __tablename__ = "artists"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)


class AlbumModel(Base):
    """Local catalog album."""

    __tablename__ = "albums"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[int | None] = mapped_column(
        ForeignKey("artists.id", ondelete="SET NULL"), nullable=True, index=True
    )


class SongModel(Base):
    """Local catalog song (a playable track)."""

    __tablename__ = "songs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    artist_id: Mapped[int] = mapped_column(
        ForeignKey("artists.id", ondelete="CASCADE"), nullable=False, index=True
    )
    album_id: Mapped[int | None] = mapped_column(
        ForeignKey("albums.id", ondelete="SET NULL"), nullable=True, index=True
    )
    # Seconds
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)


class ListenHistoryModel(Base):
    """One play of a song by a user."""

    __tablename__ = "listen_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    song_id: Mapped[int] = mapped_column(
        ForeignKey("songs.id", ondelete="CASCADE"), nullable=False
    )
    played_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )

    __table_args__ = (
        # The aggregation filters by user and time window
        Index("ix_listen_history_user_played", "user_id", "played_at"),
    )


# =============================================================================
# TOP CHARTS CACHE
# Hey future me - ONE row per distinct cache key, mutated in place on every fetch
# attempt. subject_id / subject_value are nullable, and NULLs never collide in a
# SQL UNIQUE constraint! That's why we store the coalesced copies subject_id_key
# (NULL -> 0) and subject_value_key (NULL -> '') as real NOT NULL columns and put
# the unique constraint on those. The repository fills them, never the caller.
# =============================================================================


class TopCacheModel(Base):
    """Last fetch attempt for a (subject, item, provider, scope) key."""

    __tablename__ = "top_cache"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # 'artist', 'user', 'tag', 'genre'
    subject_type: Mapped[str] = mapped_column(String(20), nullable=False)
    subject_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    subject_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subject_id_key: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    subject_value_key: Mapped[str] = mapped_column(
        String(255), nullable=False, default=""
    )
    # 'track', 'artist', 'album', 'tag', 'genre'
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    scope_key: Mapped[str] = mapped_column(String(50), nullable=False)
    scanned_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )
    expires_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    # 'success' or 'failed' (not enum - SQLite compatibility)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    items: Mapped[list["TopItemModel"]] = relationship(
        "TopItemModel",
        back_populates="cache",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TopItemModel.rank",
    )

    __table_args__ = (
        sa.UniqueConstraint(
            "subject_type",
            "subject_id_key",
            "subject_value_key",
            "item_type",
            "provider",
            "scope_key",
            name="uq_top_cache_key",
        ),
        sa.CheckConstraint(
            "status IN ('success', 'failed')", name="ck_top_cache_status"
        ),
        Index("ix_top_cache_expires_at", "expires_at"),
    )


class TopItemModel(Base):
    """A ranked item stored under a top cache record."""

    __tablename__ = "top_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    cache_id: Mapped[int] = mapped_column(
        ForeignKey("top_cache.id", ondelete="CASCADE"), nullable=False
    )
    subject_type: Mapped[str] = mapped_column(String(20), nullable=False)
    subject_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    subject_value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str | None] = mapped_column(String(512), nullable=True)
    external_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    playcount: Mapped[int | None] = mapped_column(sa.BigInteger, nullable=True)
    listeners: Mapped[int | None] = mapped_column(sa.BigInteger, nullable=True)
    score: Mapped[float | None] = mapped_column(Float, nullable=True)
    url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    # Seconds
    duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    matched_song_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    match_confidence: Mapped[float | None] = mapped_column(Float, nullable=True)
    match_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    cache: Mapped[TopCacheModel] = relationship(
        "TopCacheModel", back_populates="items"
    )

    __table_args__ = (Index("ix_top_items_cache_rank", "cache_id", "rank"),)
