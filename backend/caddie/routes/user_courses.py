"""
CaddieAI Backend — User Course Routes
======================================

What:  /api/users/{user_id}/courses: a golfer's saved courses and the
       "am I at the course?" checks the mobile app runs before a round.
How:   Delegates to UserCourseService; ownership is always scoped by user_id.
"""

from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from caddie.database import get_db_session
from caddie.exceptions import NotFoundError
from caddie.schemas.common import ErrorResponse
from caddie.schemas.course import UserCourseCreate, UserCourseResponse
from caddie.services.user_course_service import PLAYABLE_DISTANCE_M, user_course_service

router = APIRouter(prefix="/api/users/{user_id}/courses", tags=["User Courses"])


@router.get("", response_model=List[UserCourseResponse])
async def list_user_courses(user_id: int, db: AsyncSession = Depends(get_db_session)) -> List[UserCourseResponse]:
    return await user_course_service.get_user_courses(db, user_id)


@router.post(
    "",
    response_model=UserCourseResponse,
    status_code=201,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def add_user_course(
    user_id: int, model: UserCourseCreate, db: AsyncSession = Depends(get_db_session)
) -> UserCourseResponse:
    return await user_course_service.add_user_course(db, user_id, model)


@router.get("/nearby", response_model=List[UserCourseResponse])
async def nearby_user_courses(
    user_id: int,
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    radius_km: float = Query(default=5.0, gt=0, le=500),
    db: AsyncSession = Depends(get_db_session),
) -> List[UserCourseResponse]:
    return await user_course_service.get_nearby_user_courses(db, user_id, latitude, longitude, radius_km)


@router.get(
    "/{course_id}",
    response_model=UserCourseResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_user_course(
    user_id: int, course_id: int, db: AsyncSession = Depends(get_db_session)
) -> UserCourseResponse:
    user_course = await user_course_service.get_user_course_by_id(db, user_id, course_id)
    if user_course is None:
        raise NotFoundError(resource="user course", resource_id=course_id)
    return user_course


@router.delete("/{course_id}", status_code=204, responses={404: {"model": ErrorResponse}})
async def delete_user_course(user_id: int, course_id: int, db: AsyncSession = Depends(get_db_session)) -> Response:
    if not await user_course_service.delete_user_course(db, user_id, course_id):
        raise NotFoundError(resource="user course", resource_id=course_id)
    return Response(status_code=204)


@router.get("/{course_id}/access")
async def course_access(user_id: int, course_id: int, db: AsyncSession = Depends(get_db_session)) -> dict:
    has_access = await user_course_service.user_has_course_access(db, user_id, course_id)
    return {"course_id": course_id, "has_access": has_access}


@router.get("/{course_id}/at-course")
async def at_course(
    user_id: int,
    course_id: int,
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    proximity_m: float = Query(default=PLAYABLE_DISTANCE_M, gt=0, le=10000),
    db: AsyncSession = Depends(get_db_session),
) -> dict:
    at = await user_course_service.is_user_at_course(
        db, user_id, course_id, latitude, longitude, proximity_threshold_m=proximity_m
    )
    return {"course_id": course_id, "at_course": at}
