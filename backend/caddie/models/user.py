"""
CaddieAI Backend — User Model
==============================

Only the golf-profile columns are modelled here; authentication state lives
with the auth service, which is not part of this package.
"""

from typing import Any, Dict, Optional

from sqlalchemy import JSON, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from caddie.database import Base
from caddie.models.mixins import TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    handicap: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    # beginner, intermediate, advanced, professional
    skill_level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    # aggressive, conservative, analytical, ...
    playing_style: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    preferences: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
