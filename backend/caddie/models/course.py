"""
CaddieAI Backend — Course and Hole Models
==========================================

What:  ORM models for the public course catalogue (`courses`, `holes`).
Who:   CourseService (CRUD, search, geo-lookup) and GolfContextService
       (course and hole context for AI prompts).

Table Design:
    - latitude / longitude: the course's reference point (clubhouse). Nearby
      searches prefilter on these columns with a bounding box, so they are
      indexed together.
    - boundary: optional polygon as a JSON list of [lat, lon] vertices, used
      for "is this GPS fix on the course" checks.
    - amenities: free-form JSON (driving range, pro shop, ...).
    - holes: one row per hole, deleted with the course.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from caddie.database import Base
from caddie.models.mixins import TimestampMixin


class Course(TimestampMixin, Base):
    """
    A golf course in the shared catalogue.

    Query Patterns:
        - By name (case-insensitive): uniqueness checks on create/update
        - Active courses ordered by name: list and search endpoints
        - Bounding box on (latitude, longitude): nearby search prefilter
    """

    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    total_holes: Mapped[int] = mapped_column(Integer, nullable=False, default=18)
    par_total: Mapped[int] = mapped_column(Integer, nullable=False, default=72)
    slope_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    course_rating: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    yardage_total: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    green_fee_range: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=text("true")
    )

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    boundary: Mapped[Optional[List[List[float]]]] = mapped_column(JSON, nullable=True)
    amenities: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    holes: Mapped[List["Hole"]] = relationship(
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Hole.hole_number",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_courses_name", "name"),
        Index("idx_courses_location", "latitude", "longitude"),
    )

    def __repr__(self) -> str:
        return f"<Course(id={self.id}, name='{self.name}', active={self.is_active})>"


class Hole(TimestampMixin, Base):
    """
    A single hole of a course.

    Pin coordinates are optional; when present GolfContextService uses them
    to compute the distance from the player's GPS fix to the pin.
    """

    __tablename__ = "holes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False
    )
    hole_number: Mapped[int] = mapped_column(Integer, nullable=False)
    par: Mapped[int] = mapped_column(Integer, nullable=False)
    yardage_men: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    yardage_women: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    stroke_index: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hazards: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    pin_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    pin_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    course: Mapped[Course] = relationship(back_populates="holes")

    __table_args__ = (
        UniqueConstraint("course_id", "hole_number", name="uq_holes_course_number"),
    )

    def __repr__(self) -> str:
        return f"<Hole(course_id={self.course_id}, number={self.hole_number}, par={self.par})>"
