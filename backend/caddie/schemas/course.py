"""
CaddieAI Backend — Course Schemas
==================================

What:  Pydantic models defining the course and user-course API contracts.
Who:   CourseService / UserCourseService return these; routes serialize them.

Schemas are kept apart from the SQLAlchemy models so the API can expose
computed fields (distance, can_play) and hide storage details (boundary).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Holes
# ══════════════════════════════════════════════════════════════════════════


class HoleCreate(BaseModel):
    hole_number: int = Field(ge=1, le=36, description="Hole number on the course")
    par: int = Field(ge=3, le=6, description="Par for the hole")
    yardage_men: Optional[int] = Field(default=None, ge=0, description="Men's tee yardage")
    yardage_women: Optional[int] = Field(default=None, ge=0, description="Women's tee yardage")
    stroke_index: Optional[int] = Field(default=None, ge=1, le=36, description="Handicap stroke index")
    description: Optional[str] = Field(default=None, max_length=2000)
    pin_latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    pin_longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class HoleResponse(BaseModel):
    id: int
    hole_number: int
    par: int
    yardage_men: Optional[int] = None
    yardage_women: Optional[int] = None
    stroke_index: Optional[int] = None
    description: Optional[str] = None

    model_config = {"from_attributes": True}


# ══════════════════════════════════════════════════════════════════════════
# Courses
# ══════════════════════════════════════════════════════════════════════════


class CourseBase(BaseModel):
    """Fields shared by create and update requests."""

    name: str = Field(min_length=1, max_length=200, description="Unique course name")
    description: Optional[str] = Field(default=None, max_length=4000)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    country: str = Field(min_length=1, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=50)
    website: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)
    total_holes: int = Field(default=18, ge=1, le=36)
    par_total: int = Field(default=72, ge=27, le=80)
    slope_rating: Optional[int] = Field(default=None, ge=55, le=155)
    course_rating: Optional[float] = Field(default=None, ge=50, le=90)
    yardage_total: Optional[int] = Field(default=None, ge=0)
    green_fee_range: Optional[str] = Field(default=None, max_length=100)
    timezone: Optional[str] = Field(default=None, max_length=64)
    is_active: bool = Field(default=True)
    latitude: float = Field(ge=-90, le=90, description="Reference point latitude (WGS84)")
    longitude: float = Field(ge=-180, le=180, description="Reference point longitude (WGS84)")
    amenities: Optional[Dict[str, Any]] = Field(default=None)
    boundary: Optional[List[List[float]]] = Field(
        default=None,
        description="Course boundary polygon as [lat, lon] vertices",
    )


class CourseCreate(CourseBase):
    holes: List[HoleCreate] = Field(default_factory=list)


class CourseUpdate(CourseBase):
    """Full replacement of the course's scalar fields; holes are left untouched."""


class CourseResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: str
    phone: Optional[str] = None
    website: Optional[str] = None
    email: Optional[str] = None
    total_holes: int
    par_total: int
    slope_rating: Optional[int] = None
    course_rating: Optional[float] = None
    yardage_total: Optional[int] = None
    green_fee_range: Optional[str] = None
    timezone: Optional[str] = None
    is_active: bool
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    amenities: Optional[Dict[str, Any]] = None
    holes: List[HoleResponse] = Field(default_factory=list)
    distance_km: Optional[float] = Field(
        default=None, description="Distance from the query point (nearby searches only)"
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PaginatedCourses(BaseModel):
    """
    Offset pagination for the course catalogue.

    The catalogue changes rarely and the portal shows numbered pages, so
    page/page_size pagination is used instead of cursors.
    """

    data: List[CourseResponse]
    total_count: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class NameAvailability(BaseModel):
    name: str
    available: bool


class LocationCheck(BaseModel):
    course_id: int
    within: bool


class DistanceResponse(BaseModel):
    course_id: int
    distance_km: Optional[float] = Field(
        description="Kilometres to the course reference point; null when the course has no location"
    )


# ══════════════════════════════════════════════════════════════════════════
# User courses
# ══════════════════════════════════════════════════════════════════════════


class UserCourseCreate(BaseModel):
    course_name: str = Field(min_length=1, max_length=200)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    country: Optional[str] = Field(default=None, max_length=100)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class UserCourseResponse(BaseModel):
    id: int
    course_name: str
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    latitude: float
    longitude: float
    distance_km: Optional[float] = None
    can_play: bool = Field(
        default=False, description="True when the user is within playing distance"
    )
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
