"""
CaddieAI Backend — Course Service (Catalogue CRUD and Geo-lookup)
==================================================================

What:  Create, read, update and delete courses; search by text, region and
       proximity; check whether a GPS fix lies on a course.
How:   SQLAlchemy async queries against `courses` / `holes`; distances are
       computed with caddie.geo after a bounding-box prefilter in SQL.
Who:   Called by the /api/courses routes and by other services that need
       course data.

Error Handling:
    CaddieError subclasses (NotFoundError, ConflictError, ValidationError)
    propagate unchanged. Anything else is logged with its traceback and
    wrapped in DatabaseError so clients only see a generic message.
"""

import logging
import math
from typing import Any, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from caddie.exceptions import (
    CaddieError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from caddie.geo import bounding_box, haversine_m, point_in_polygon
from caddie.models.course import Course, Hole
from caddie.schemas.course import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    PaginatedCourses,
)

logger = logging.getLogger(__name__)


def _strip(value: Optional[str]) -> Optional[str]:
    return value.strip() if value is not None else None


def _database_error(operation: str, exc: Exception, **context: Any) -> DatabaseError:
    logger.error("Database error during %s: %s", operation, str(exc), exc_info=True)
    return DatabaseError(
        message="Could not complete the course operation. Please try again.",
        context={"operation": operation, "error_type": type(exc).__name__, **context},
    )


def _search_clause(term: str):
    """Case-insensitive substring match over the descriptive course columns."""
    needle = term.strip().lower()
    columns = (
        Course.name,
        Course.description,
        Course.address,
        Course.city,
        Course.state,
        Course.country,
    )
    return or_(*(func.lower(col).contains(needle, autoescape=True) for col in columns))


def to_response(course: Course, distance_km: Optional[float] = None) -> CourseResponse:
    response = CourseResponse.model_validate(course)
    if distance_km is not None:
        response.distance_km = distance_km
    return response


class CourseService:
    """
    Business logic for the shared course catalogue.

    Stateless: every method receives the request's AsyncSession. Writes are
    flushed here and committed by `get_db_session()` when the request ends.
    """

    # ── Reads ─────────────────────────────────────────────────────────────

    async def _get(self, db: AsyncSession, course_id: int) -> Optional[Course]:
        result = await db.execute(select(Course).where(Course.id == course_id))
        return result.scalar_one_or_none()

    async def _find_by_name(self, db: AsyncSession, name: str) -> Optional[Course]:
        result = await db.execute(
            select(Course).where(func.lower(Course.name) == name.strip().lower())
        )
        return result.scalars().first()

    async def get_course_by_id(self, db: AsyncSession, course_id: int) -> Optional[CourseResponse]:
        try:
            course = await self._get(db, course_id)
            return to_response(course) if course else None
        except Exception as e:
            raise _database_error("get_course_by_id", e, course_id=course_id)

    async def get_course_by_name(self, db: AsyncSession, name: str) -> Optional[CourseResponse]:
        """Exact, case-insensitive name lookup."""
        try:
            course = await self._find_by_name(db, name)
            return to_response(course) if course else None
        except Exception as e:
            raise _database_error("get_course_by_name", e, name=name)

    async def get_all_courses(self, db: AsyncSession) -> List[CourseResponse]:
        try:
            result = await db.execute(select(Course).order_by(Course.name))
            return [to_response(c) for c in result.scalars().all()]
        except Exception as e:
            raise _database_error("get_all_courses", e)

    async def get_active_courses(self, db: AsyncSession) -> List[CourseResponse]:
        try:
            result = await db.execute(
                select(Course).where(Course.is_active.is_(True)).order_by(Course.name)
            )
            return [to_response(c) for c in result.scalars().all()]
        except Exception as e:
            raise _database_error("get_active_courses", e)

    async def search_courses(self, db: AsyncSession, term: Optional[str]) -> List[CourseResponse]:
        """
        Free-text search over name, description and address fields.

        A blank term is not an error: the caller gets every active course,
        which is what the mobile search box shows before the user types.
        """
        if not term or not term.strip():
            return await self.get_active_courses(db)
        try:
            result = await db.execute(
                select(Course)
                .where(Course.is_active.is_(True), _search_clause(term))
                .order_by(Course.name)
            )
            return [to_response(c) for c in result.scalars().all()]
        except Exception as e:
            raise _database_error("search_courses", e, term=term)

    async def get_nearby_courses(
        self,
        db: AsyncSession,
        latitude: float,
        longitude: float,
        radius_km: float,
    ) -> List[CourseResponse]:
        """
        Active courses whose reference point lies within `radius_km`,
        nearest first, each annotated with `distance_km`.

        Query plan:
            1. Bounding box on (latitude, longitude) → idx_courses_location
            2. Exact haversine distance in Python for the surviving rows
        """
        if radius_km <= 0:
            raise ValidationError("Search radius must be greater than zero", field="radius_km")

        radius_m = radius_km * 1000
        min_lat, max_lat, min_lon, max_lon = bounding_box(latitude, longitude, radius_m)
        query = select(Course).where(
            Course.is_active.is_(True),
            Course.latitude.is_not(None),
            Course.longitude.is_not(None),
            Course.latitude.between(min_lat, max_lat),
        )
        # A box crossing the antimeridian cannot be expressed as one BETWEEN
        if min_lon >= -180.0 and max_lon <= 180.0:
            query = query.where(Course.longitude.between(min_lon, max_lon))

        try:
            result = await db.execute(query)
            candidates = result.scalars().all()
        except Exception as e:
            raise _database_error("get_nearby_courses", e, latitude=latitude, longitude=longitude)

        nearby = []
        for course in candidates:
            distance_m = haversine_m(latitude, longitude, course.latitude, course.longitude)
            if distance_m <= radius_m:
                nearby.append((distance_m, course))
        nearby.sort(key=lambda pair: pair[0])

        logger.info(
            "Found %d courses within %.1f km of (%.5f, %.5f)",
            len(nearby), radius_km, latitude, longitude,
        )
        return [to_response(c, round(d / 1000, 3)) for d, c in nearby]

    async def get_courses_by_region(self, db: AsyncSession, region: str) -> List[CourseResponse]:
        """Active courses whose city, state or country equals `region` (case-insensitive)."""
        needle = region.strip().lower()
        try:
            result = await db.execute(
                select(Course)
                .where(
                    Course.is_active.is_(True),
                    or_(
                        func.lower(Course.city) == needle,
                        func.lower(Course.state) == needle,
                        func.lower(Course.country) == needle,
                    ),
                )
                .order_by(Course.name)
            )
            return [to_response(c) for c in result.scalars().all()]
        except Exception as e:
            raise _database_error("get_courses_by_region", e, region=region)

    # ── Writes ────────────────────────────────────────────────────────────

    async def create_course(self, db: AsyncSession, model: CourseCreate) -> CourseResponse:
        """
        Insert a course with its holes.

        Raises:
            ConflictError: A course with the same name (any case) exists.
            DatabaseError: Insert failed.
        """
        try:
            if await self._find_by_name(db, model.name) is not None:
                raise ConflictError(
                    message=f"A course with the name '{model.name.strip()}' already exists",
                    context={"name": model.name.strip()},
                )

            course = Course(
                holes=[
                    Hole(
                        hole_number=h.hole_number,
                        par=h.par,
                        yardage_men=h.yardage_men,
                        yardage_women=h.yardage_women,
                        stroke_index=h.stroke_index,
                        description=_strip(h.description),
                        pin_latitude=h.pin_latitude,
                        pin_longitude=h.pin_longitude,
                    )
                    for h in model.holes
                ],
            )
            self._apply(course, model)
            db.add(course)
            await db.flush()

            logger.info("Course created: %s (ID: %s)", course.name, course.id)
            return to_response(course)

        except CaddieError:
            raise
        except IntegrityError:
            # Lost a race with a concurrent insert of the same name
            raise ConflictError(
                message=f"A course with the name '{model.name.strip()}' already exists",
                context={"name": model.name.strip()},
            )
        except Exception as e:
            raise _database_error("create_course", e, name=model.name)

    async def update_course(
        self, db: AsyncSession, course_id: int, model: CourseUpdate
    ) -> CourseResponse:
        """
        Replace the scalar fields and location of a course. Holes are kept.

        Raises:
            NotFoundError: No course with this ID.
            ConflictError: Another course already uses the new name.
        """
        try:
            course = await self._get(db, course_id)
            if course is None:
                raise NotFoundError(resource="course", resource_id=course_id)

            same_name = await self._find_by_name(db, model.name)
            if same_name is not None and same_name.id != course_id:
                raise ConflictError(
                    message=f"A course with the name '{model.name.strip()}' already exists",
                    context={"name": model.name.strip(), "course_id": course_id},
                )

            self._apply(course, model)
            await db.flush()

            logger.info("Course updated: %s (ID: %s)", course.name, course_id)
            return to_response(course)

        except CaddieError:
            raise
        except IntegrityError:
            # Lost a race with a concurrent rename to the same name
            raise ConflictError(
                message=f"A course with the name '{model.name.strip()}' already exists",
                context={"name": model.name.strip(), "course_id": course_id},
            )
        except Exception as e:
            raise _database_error("update_course", e, course_id=course_id)

    async def delete_course(self, db: AsyncSession, course_id: int) -> bool:
        try:
            course = await self._get(db, course_id)
            if course is None:
                return False
            await db.delete(course)
            await db.flush()
            logger.info("Course deleted: ID %s", course_id)
            return True
        except Exception as e:
            raise _database_error("delete_course", e, course_id=course_id)

    @staticmethod
    def _apply(course: Course, model: CourseCreate) -> None:
        course.name = model.name.strip()
        course.description = _strip(model.description)
        course.address = _strip(model.address)
        course.city = _strip(model.city)
        course.state = _strip(model.state)
        course.country = model.country.strip()
        course.phone = _strip(model.phone)
        course.website = _strip(model.website)
        course.email = _strip(model.email)
        course.total_holes = model.total_holes
        course.par_total = model.par_total
        course.slope_rating = model.slope_rating
        course.course_rating = model.course_rating
        course.yardage_total = model.yardage_total
        course.green_fee_range = model.green_fee_range
        course.timezone = model.timezone
        course.is_active = model.is_active
        course.latitude = model.latitude
        course.longitude = model.longitude
        course.amenities = model.amenities
        course.boundary = model.boundary

    # ── Checks ────────────────────────────────────────────────────────────

    async def is_course_name_available(self, db: AsyncSession, name: str) -> bool:
        try:
            return await self._find_by_name(db, name) is None
        except Exception as e:
            raise _database_error("is_course_name_available", e, name=name)

    async def is_location_within_course(
        self, db: AsyncSession, course_id: int, latitude: float, longitude: float
    ) -> bool:
        """False when the course is unknown or has no boundary polygon."""
        try:
            course = await self._get(db, course_id)
        except Exception as e:
            raise _database_error("is_location_within_course", e, course_id=course_id)

        if course is None or not course.boundary:
            return False
        return point_in_polygon(latitude, longitude, course.boundary)

    async def get_distance_to_course(
        self, db: AsyncSession, course_id: int, latitude: float, longitude: float
    ) -> Optional[float]:
        """
        Kilometres from the point to the course's reference location.

        Returns None when the course has no stored location.

        Raises:
            NotFoundError: No course with this ID.
        """
        try:
            course = await self._get(db, course_id)
        except Exception as e:
            raise _database_error("get_distance_to_course", e, course_id=course_id)

        if course is None:
            raise NotFoundError(resource="course", resource_id=course_id)
        if course.latitude is None or course.longitude is None:
            return None
        return haversine_m(latitude, longitude, course.latitude, course.longitude) / 1000.0

    # ── Pagination ────────────────────────────────────────────────────────

    async def get_paginated_courses(
        self,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 20,
        term: Optional[str] = None,
    ) -> PaginatedCourses:
        """
        One page of active courses ordered by name, optionally filtered by
        the same free-text match as `search_courses`.
        """
        if page < 1:
            raise ValidationError("Page must be 1 or greater", field="page")
        if page_size < 1:
            raise ValidationError("Page size must be 1 or greater", field="page_size")

        filters = [Course.is_active.is_(True)]
        if term and term.strip():
            filters.append(_search_clause(term))

        try:
            count_result = await db.execute(select(func.count(Course.id)).where(*filters))
            total_count = count_result.scalar() or 0

            result = await db.execute(
                select(Course)
                .where(*filters)
                .order_by(Course.name)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            courses = result.scalars().all()
        except Exception as e:
            raise _database_error("get_paginated_courses", e, page=page, page_size=page_size)

        total_pages = math.ceil(total_count / page_size)
        return PaginatedCourses(
            data=[to_response(c) for c in courses],
            total_count=total_count,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_previous_page=page > 1,
        )


# ── Singleton Instance ────────────────────────────────────────────────────
course_service = CourseService()
