"""
CaddieAI Backend — Location Model
==================================

GPS fixes reported by the mobile app while a round is in progress. The
golf context uses the most recent fix of the round.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import TIMESTAMP, Float, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from caddie.database import Base
from caddie.models.mixins import utcnow


class LocationPoint(Base):
    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    round_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("rounds.id", ondelete="CASCADE"), nullable=True
    )
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    accuracy_meters: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    distance_to_pin_meters: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    position_on_hole: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    recorded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=utcnow
    )

    # Most-recent-fix-per-round lookup
    __table_args__ = (Index("idx_locations_round_time", "round_id", "recorded_at"),)
