"""
CaddieAI Backend — ORM Models
==============================

Importing this package registers every table with `Base.metadata`, which
Alembic and the test-suite rely on.
"""

from caddie.models.course import Course, Hole
from caddie.models.location import LocationPoint
from caddie.models.round import Round, RoundStatus
from caddie.models.user import User
from caddie.models.user_course import UserCourse

__all__ = [
    "Course",
    "Hole",
    "LocationPoint",
    "Round",
    "RoundStatus",
    "User",
    "UserCourse",
]
