"""
CaddieAI Backend — User Course Model
=====================================

What:  Courses a user saved to their personal list ("My Courses").
How:   Each row is owned by exactly one user; names are unique per user.
       Coordinates are stored so the app can tell whether the user is
       standing at one of their courses.
"""

from typing import Optional

from sqlalchemy import Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from caddie.database import Base
from caddie.models.mixins import TimestampMixin


class UserCourse(TimestampMixin, Base):
    __tablename__ = "user_courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    course_name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "course_name", name="uq_user_courses_user_name"),
        Index("idx_user_courses_user", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<UserCourse(id={self.id}, user_id={self.user_id}, name='{self.course_name}')>"
