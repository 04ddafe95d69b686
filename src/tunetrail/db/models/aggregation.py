"""Pre-computed aggregation model."""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, DateTime, Index, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from tunetrail.db.base import Base, enum_values, utc_now
from tunetrail.db.enums import AggregationKind, Grouping


class ListeningAggregation(Base):
    """One aggregation view for one user. Replaced wholesale on recompute."""

    __tablename__ = "listening_aggregations"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[AggregationKind] = mapped_column(
        SQLEnum(AggregationKind, values_callable=enum_values, name="aggregation_kind"),
        nullable=False,
    )
    grouping: Mapped[Grouping | None] = mapped_column(
        SQLEnum(Grouping, values_callable=enum_values, name="aggregation_grouping"),
    )
    payload: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False)
    computed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)

    __table_args__ = (Index("ix_listening_aggregations_user_kind", "user_id", "kind", "grouping"),)
