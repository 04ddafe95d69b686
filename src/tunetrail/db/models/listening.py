"""Listening data models: ListeningEventRow, UserDataSummary."""

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from tunetrail.db.base import Base, enum_values, utc_now
from tunetrail.db.enums import EventSource


class ListeningEventRow(Base):
    """One play of one track by one user (append-only)."""

    __tablename__ = "listening_events"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    track_name: Mapped[str] = mapped_column(String(500), nullable=False)
    artist_name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    played_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    source: Mapped[EventSource] = mapped_column(
        SQLEnum(EventSource, values_callable=enum_values, name="event_source"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (
        Index("ix_listening_events_user_id", "user_id"),
        Index("ix_listening_events_user_played_at", "user_id", "played_at"),
    )


class UserDataSummary(Base):
    """Per-user totals, upserted after every successful ingestion or sync."""

    __tablename__ = "user_data_summaries"

    user_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    total_tracks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_artists: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_listening_time_ms: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    date_range_start: Mapped[datetime | None] = mapped_column(DateTime)
    date_range_end: Mapped[datetime | None] = mapped_column(DateTime)
    # Last completed upload; live sync and purges never move it
    uploaded_at: Mapped[datetime | None] = mapped_column(DateTime)
