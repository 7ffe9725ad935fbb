"""
CaddieAI Backend — Round Model
===============================

A Round is a single instance of a user playing a course, tracked by
status, current hole and start/end time.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import TIMESTAMP, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from caddie.database import Base
from caddie.models.mixins import TimestampMixin


class RoundStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class Round(TimestampMixin, Base):
    __tablename__ = "rounds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=RoundStatus.NOT_STARTED.value,
        server_default=text("'not_started'"),
    )
    current_hole: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    start_time: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    total_score: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (Index("idx_rounds_user", "user_id"),)

    def __repr__(self) -> str:
        return f"<Round(id={self.id}, user_id={self.user_id}, status='{self.status}')>"
