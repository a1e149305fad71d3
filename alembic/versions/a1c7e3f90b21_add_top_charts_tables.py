"""add top_cache and top_items tables

Revision ID: a1c7e3f90b21
Revises:
Create Date: 2026-10-19 09:00:00.000000

Hey future me - TOP CHARTS CACHE!

top_cache holds ONE row per (subject, item type, provider, scope) key and is
mutated in place on every fetch attempt (success or failure). top_items holds the
ranked rows of the last successful fetch and is replaced wholesale.

KEY DESIGN DECISIONS:
1. subject_id / subject_value are nullable, so the unique constraint sits on the
   coalesced copies subject_id_key (NULL -> 0) and subject_value_key (NULL -> '').
   NULLs never collide in a SQL UNIQUE constraint!
2. status is a plain string + CHECK constraint, not an enum (SQLite).
3. top_items cascade-delete with their cache row.

The catalog tables (artists, albums, songs, listen_history) are owned by the
library side and are NOT created here.
"""

import logging

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "a1c7e3f90b21"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create top_cache and top_items (idempotent - skips existing tables)."""
    conn = op.get_bind()
    existing = set(sa.inspect(conn).get_table_names())

    if "top_cache" in existing:
        logging.info("Table top_cache already exists - skipping creation")
    else:
        op.create_table(
            "top_cache",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("subject_type", sa.String(20), nullable=False),
            sa.Column("subject_id", sa.Integer(), nullable=True),
            sa.Column("subject_value", sa.String(255), nullable=True),
            sa.Column("subject_id_key", sa.Integer(), nullable=False, server_default="0"),
            sa.Column(
                "subject_value_key", sa.String(255), nullable=False, server_default=""
            ),
            sa.Column("item_type", sa.String(20), nullable=False),
            sa.Column("provider", sa.String(50), nullable=False),
            sa.Column("scope_key", sa.String(50), nullable=False),
            sa.Column("scanned_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
            sa.Column("status", sa.String(20), nullable=False),
            sa.Column("error_message", sa.Text(), nullable=True),
            # SQLite can't ALTER TABLE ADD CONSTRAINT - constraints go inline
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
        )
        op.create_index("ix_top_cache_expires_at", "top_cache", ["expires_at"])

    if "top_items" in existing:
        logging.info("Table top_items already exists - skipping creation")
    else:
        op.create_table(
            "top_items",
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column(
                "cache_id",
                sa.Integer(),
                sa.ForeignKey("top_cache.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("subject_type", sa.String(20), nullable=False),
            sa.Column("subject_id", sa.Integer(), nullable=True),
            sa.Column("subject_value", sa.String(255), nullable=True),
            sa.Column("item_type", sa.String(20), nullable=False),
            sa.Column("rank", sa.Integer(), nullable=False),
            sa.Column("title", sa.String(512), nullable=True),
            sa.Column("external_id", sa.String(255), nullable=True),
            sa.Column("playcount", sa.BigInteger(), nullable=True),
            sa.Column("listeners", sa.BigInteger(), nullable=True),
            sa.Column("score", sa.Float(), nullable=True),
            sa.Column("url", sa.String(1024), nullable=True),
            sa.Column("duration", sa.Integer(), nullable=True),  # seconds
            sa.Column("matched_song_id", sa.Integer(), nullable=True),
            sa.Column("match_confidence", sa.Float(), nullable=True),
            sa.Column("match_method", sa.String(50), nullable=True),
            sa.Column(
                "created_at",
                sa.DateTime(timezone=True),
                nullable=False,
                server_default=sa.func.now(),
            ),
        )
        op.create_index("ix_top_items_cache_rank", "top_items", ["cache_id", "rank"])


def downgrade() -> None:
    """Drop top_items and top_cache (idempotent - skips missing tables)."""
    conn = op.get_bind()
    existing = set(sa.inspect(conn).get_table_names())

    # Drop in reverse order of creation (FK)
    if "top_items" in existing:
        op.drop_index("ix_top_items_cache_rank", table_name="top_items")
        op.drop_table("top_items")
    if "top_cache" in existing:
        op.drop_index("ix_top_cache_expires_at", table_name="top_cache")
        op.drop_table("top_cache")
