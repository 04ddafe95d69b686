"""Listening events, user summaries, and aggregations

Revision ID: 001_listening_schema
Revises:
Create Date: 2026-10-16

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_listening_schema"
down_revision = None
branch_labels = None
depends_on = None

event_source = sa.Enum("bulk-export", "live-sync", name="event_source")
aggregation_kind = sa.Enum(
    "date_frequency",
    "time_of_day",
    "day_of_week",
    "top_tracks",
    "top_artists",
    name="aggregation_kind",
)
aggregation_grouping = sa.Enum("day", "month", "year", name="aggregation_grouping")


def upgrade() -> None:
    """Create listening-history tables."""

    # Listening events table
    op.create_table(
        "listening_events",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("track_name", sa.String(500), nullable=False),
        sa.Column("artist_name", sa.String(500), nullable=False),
        sa.Column("played_at", sa.DateTime(), nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=False),
        sa.Column("source", event_source, nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_listening_events_user_id", "listening_events", ["user_id"])
    op.create_index("ix_listening_events_user_played_at", "listening_events", ["user_id", "played_at"])

    # User data summaries table
    op.create_table(
        "user_data_summaries",
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("total_tracks", sa.Integer(), nullable=False),
        sa.Column("total_artists", sa.Integer(), nullable=False),
        sa.Column("total_listening_time_ms", sa.BigInteger(), nullable=False),
        sa.Column("date_range_start", sa.DateTime(), nullable=True),
        sa.Column("date_range_end", sa.DateTime(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("user_id"),
    )

    # Listening aggregations table
    op.create_table(
        "listening_aggregations",
        sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("kind", aggregation_kind, nullable=False),
        sa.Column("grouping", aggregation_grouping, nullable=True),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("computed_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_listening_aggregations_user_kind",
        "listening_aggregations",
        ["user_id", "kind", "grouping"],
    )


def downgrade() -> None:
    """Drop listening-history tables and enums."""
    op.drop_table("listening_aggregations")
    op.drop_table("user_data_summaries")
    op.drop_table("listening_events")
    aggregation_grouping.drop(op.get_bind(), checkfirst=True)
    aggregation_kind.drop(op.get_bind(), checkfirst=True)
    event_source.drop(op.get_bind(), checkfirst=True)
