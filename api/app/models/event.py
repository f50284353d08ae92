import enum
from datetime import UTC, datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.security import generate_event_id
from app.models.base import Base


class Variation(str, enum.Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


VARIATIONS: tuple[str, ...] = tuple(v.value for v in Variation)


class VisitorEvent(Base):
    """One tracking beacon hit. Append-only; removed only with its project."""

    __tablename__ = "visitor_events"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=generate_event_id)
    project_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    visitor_id: Mapped[str] = mapped_column(String(255), nullable=False)
    variation: Mapped[str] = mapped_column(String(1), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    referrer: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("variation IN ('A', 'B', 'C', 'D')", name="ck_visitor_events_variation"),
        Index("ix_visitor_events_project_variation", "project_id", "variation"),
    )
