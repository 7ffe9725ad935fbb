"""
CaddieAI Backend — User Course Service ("My Courses")
======================================================

What:  Manages the courses a user saved to their personal list and answers
       "is this user standing at one of their courses right now".
Who:   Called by the /api/users/{user_id}/courses routes.

Every query is scoped by user_id; a course ID belonging to someone else is
treated exactly like a missing one.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from caddie.exceptions import CaddieError, ConflictError, DatabaseError, NotFoundError, ValidationError
from caddie.geo import bounding_box, haversine_m
from caddie.models.user import User
from caddie.models.user_course import UserCourse
from caddie.schemas.course import UserCourseCreate, UserCourseResponse

logger = logging.getLogger(__name__)

# A player within this distance of the saved location can start a round there
PLAYABLE_DISTANCE_M = 100.0


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


class UserCourseService:

    async def _get_owned(
        self, db: AsyncSession, user_id: int, course_id: int
    ) -> Optional[UserCourse]:
        result = await db.execute(
            select(UserCourse).where(
                UserCourse.id == course_id,
                UserCourse.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def add_user_course(
        self, db: AsyncSession, user_id: int, model: UserCourseCreate
    ) -> UserCourseResponse:
        """
        Save a course to the user's list.

        Raises:
            NotFoundError: The user does not exist.
            ConflictError: The user already saved a course with this name.
        """
        name = model.course_name.strip()
        try:
            user = await db.execute(select(User.id).where(User.id == user_id))
            if user.scalar_one_or_none() is None:
                raise NotFoundError(resource="user", resource_id=user_id)

            existing = await db.execute(
                select(UserCourse.id).where(
                    UserCourse.user_id == user_id,
                    func.lower(UserCourse.course_name) == name.lower(),
                )
            )
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(
                    message=f"A course with the name '{name}' already exists for this user",
                    context={"user_id": user_id, "course_name": name},
                )

            user_course = UserCourse(
                user_id=user_id,
                course_name=name,
                address=_strip(model.address),
                city=_strip(model.city),
                state=_strip(model.state),
                country=_strip(model.country),
                latitude=model.latitude,
                longitude=model.longitude,
            )
            db.add(user_course)
            await db.flush()

            logger.info(
                "User course created: %s (ID: %s) for user %s", name, user_course.id, user_id
            )
            return UserCourseResponse.model_validate(user_course)

        except CaddieError:
            raise
        except IntegrityError:
            raise ConflictError(
                message=f"A course with the name '{name}' already exists for this user",
                context={"user_id": user_id, "course_name": name},
            )
        except Exception as e:
            logger.error("Error creating user course %s for user %s: %s", name, user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "error_type": type(e).__name__})

    async def get_user_courses(self, db: AsyncSession, user_id: int) -> List[UserCourseResponse]:
        """The user's saved courses, most recently added first."""
        try:
            result = await db.execute(
                select(UserCourse)
                .where(UserCourse.user_id == user_id)
                .order_by(UserCourse.created_at.desc(), UserCourse.id.desc())
            )
            return [UserCourseResponse.model_validate(uc) for uc in result.scalars().all()]
        except Exception as e:
            logger.error("Error getting courses for user %s: %s", user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "error_type": type(e).__name__})

    async def get_user_course_by_id(
        self, db: AsyncSession, user_id: int, course_id: int
    ) -> Optional[UserCourseResponse]:
        try:
            user_course = await self._get_owned(db, user_id, course_id)
        except Exception as e:
            logger.error("Error getting course %s for user %s: %s", course_id, user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "course_id": course_id})
        return UserCourseResponse.model_validate(user_course) if user_course else None

    async def user_has_course_access(self, db: AsyncSession, user_id: int, course_id: int) -> bool:
        try:
            return await self._get_owned(db, user_id, course_id) is not None
        except Exception as e:
            logger.error(
                "Error checking course access for user %s, course %s: %s",
                user_id, course_id, e, exc_info=True,
            )
            raise DatabaseError(context={"user_id": user_id, "course_id": course_id})

    async def is_user_at_course(
        self,
        db: AsyncSession,
        user_id: int,
        course_id: int,
        latitude: float,
        longitude: float,
        proximity_threshold_m: float = PLAYABLE_DISTANCE_M,
    ) -> bool:
        """True when the point lies within `proximity_threshold_m` of a course the user owns."""
        try:
            user_course = await self._get_owned(db, user_id, course_id)
        except Exception as e:
            logger.error("Error checking if user %s is at course %s: %s", user_id, course_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "course_id": course_id})

        if user_course is None:
            return False
        distance_m = haversine_m(latitude, longitude, user_course.latitude, user_course.longitude)
        return distance_m <= proximity_threshold_m

    async def delete_user_course(self, db: AsyncSession, user_id: int, course_id: int) -> bool:
        try:
            user_course = await self._get_owned(db, user_id, course_id)
            if user_course is None:
                return False
            await db.delete(user_course)
            await db.flush()
        except Exception as e:
            logger.error("Error deleting course %s for user %s: %s", course_id, user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "course_id": course_id})

        logger.info("User course deleted: course %s for user %s", course_id, user_id)
        return True

    async def get_nearby_user_courses(
        self,
        db: AsyncSession,
        user_id: int,
        latitude: float,
        longitude: float,
        radius_km: float = 5.0,
    ) -> List[UserCourseResponse]:
        """
        The user's saved courses within `radius_km`, nearest first.

        Each result carries `distance_km`; `can_play` is set when the point
        is within playing distance of the course.
        """
        if radius_km <= 0:
            raise ValidationError("Search radius must be greater than zero", field="radius_km")

        radius_m = radius_km * 1000
        min_lat, max_lat, min_lon, max_lon = bounding_box(latitude, longitude, radius_m)
        query = select(UserCourse).where(
            UserCourse.user_id == user_id,
            UserCourse.latitude.between(min_lat, max_lat),
        )
        if min_lon >= -180.0 and max_lon <= 180.0:
            query = query.where(UserCourse.longitude.between(min_lon, max_lon))

        try:
            result = await db.execute(query)
            candidates = result.scalars().all()
        except Exception as e:
            logger.error("Error getting nearby courses for user %s: %s", user_id, e, exc_info=True)
            raise DatabaseError(context={"user_id": user_id, "error_type": type(e).__name__})

        nearby: List[UserCourseResponse] = []
        for user_course in candidates:
            distance_m = haversine_m(latitude, longitude, user_course.latitude, user_course.longitude)
            if distance_m > radius_m:
                continue
            response = UserCourseResponse.model_validate(user_course)
            response.distance_km = distance_m / 1000.0
            response.can_play = distance_m <= PLAYABLE_DISTANCE_M
            nearby.append(response)

        nearby.sort(key=lambda uc: uc.distance_km)
        return nearby


# ── Singleton Instance ────────────────────────────────────────────────────
user_course_service = UserCourseService()
