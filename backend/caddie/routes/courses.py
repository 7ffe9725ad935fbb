"""
CaddieAI Backend — Course Catalogue Routes
===========================================

What:  /api/courses: browse, search, geo lookups and admin CRUD for the
       course catalogue.
How:   Parameter parsing only; every decision lives in CourseService.

Caching Strategy:
    Catalogue reads change rarely: list and detail responses get a short
    public cache. Geo queries depend on the caller's position and are not cached.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from caddie.database import get_db_session
from caddie.exceptions import NotFoundError
from caddie.schemas.common import ErrorResponse
from caddie.schemas.course import (
    CourseCreate,
    CourseResponse,
    CourseUpdate,
    DistanceResponse,
    LocationCheck,
    NameAvailability,
    PaginatedCourses,
)
from caddie.services.course_service import course_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/courses", tags=["Courses"])

CATALOGUE_CACHE = "public, max-age=60"


@router.get("", response_model=List[CourseResponse], summary="List courses")
async def list_courses(
    response: Response,
    include_inactive: bool = Query(default=False, description="Include retired courses"),
    db: AsyncSession = Depends(get_db_session),
) -> List[CourseResponse]:
    if include_inactive:
        courses = await course_service.get_all_courses(db)
    else:
        courses = await course_service.get_active_courses(db)
    response.headers["Cache-Control"] = CATALOGUE_CACHE
    response.headers["X-Total-Count"] = str(len(courses))
    return courses


@router.get("/paginated", response_model=PaginatedCourses, summary="One page of active courses")
async def paginated_courses(
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    q: Optional[str] = Query(default=None, max_length=200, description="Free-text filter"),
    db: AsyncSession = Depends(get_db_session),
) -> PaginatedCourses:
    return await course_service.get_paginated_courses(db, page=page, page_size=page_size, term=q)


@router.get("/search", response_model=List[CourseResponse], summary="Free-text course search")
async def search_courses(
    q: str = Query(default="", max_length=200),
    db: AsyncSession = Depends(get_db_session),
) -> List[CourseResponse]:
    return await course_service.search_courses(db, q)


@router.get("/nearby", response_model=List[CourseResponse], summary="Courses near a point")
async def nearby_courses(
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    radius_km: float = Query(default=25.0, gt=0, le=500),
    db: AsyncSession = Depends(get_db_session),
) -> List[CourseResponse]:
    return await course_service.get_nearby_courses(db, latitude, longitude, radius_km)


@router.get("/region/{region}", response_model=List[CourseResponse], summary="Courses in a city, state or country")
async def courses_by_region(region: str, db: AsyncSession = Depends(get_db_session)) -> List[CourseResponse]:
    return await course_service.get_courses_by_region(db, region)


@router.get("/name-available", response_model=NameAvailability)
async def name_available(
    name: str = Query(min_length=1, max_length=200),
    db: AsyncSession = Depends(get_db_session),
) -> NameAvailability:
    available = await course_service.is_course_name_available(db, name)
    return NameAvailability(name=name, available=available)


@router.get(
    "/by-name/{name}",
    response_model=CourseResponse,
    responses={404: {"model": ErrorResponse}},
)
async def course_by_name(name: str, db: AsyncSession = Depends(get_db_session)) -> CourseResponse:
    course = await course_service.get_course_by_name(db, name)
    if course is None:
        raise NotFoundError(resource="course", resource_id=name)
    return course


@router.get(
    "/{course_id}",
    response_model=CourseResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_course(
    course_id: int, response: Response, db: AsyncSession = Depends(get_db_session)
) -> CourseResponse:
    course = await course_service.get_course_by_id(db, course_id)
    if course is None:
        raise NotFoundError(resource="course", resource_id=course_id)
    response.headers["Cache-Control"] = CATALOGUE_CACHE
    return course


@router.post(
    "",
    response_model=CourseResponse,
    status_code=201,
    responses={409: {"model": ErrorResponse}},
)
async def create_course(model: CourseCreate, db: AsyncSession = Depends(get_db_session)) -> CourseResponse:
    return await course_service.create_course(db, model)


@router.put(
    "/{course_id}",
    response_model=CourseResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_course(
    course_id: int, model: CourseUpdate, db: AsyncSession = Depends(get_db_session)
) -> CourseResponse:
    return await course_service.update_course(db, course_id, model)


@router.delete("/{course_id}", status_code=204, responses={404: {"model": ErrorResponse}})
async def delete_course(course_id: int, db: AsyncSession = Depends(get_db_session)) -> Response:
    if not await course_service.delete_course(db, course_id):
        raise NotFoundError(resource="course", resource_id=course_id)
    return Response(status_code=204)


@router.get("/{course_id}/within", response_model=LocationCheck)
async def location_within_course(
    course_id: int,
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    db: AsyncSession = Depends(get_db_session),
) -> LocationCheck:
    within = await course_service.is_location_within_course(db, course_id, latitude, longitude)
    return LocationCheck(course_id=course_id, within=within)


@router.get(
    "/{course_id}/distance",
    response_model=DistanceResponse,
    responses={404: {"model": ErrorResponse}},
)
async def distance_to_course(
    course_id: int,
    latitude: float = Query(ge=-90, le=90),
    longitude: float = Query(ge=-180, le=180),
    db: AsyncSession = Depends(get_db_session),
) -> DistanceResponse:
    distance = await course_service.get_distance_to_course(db, course_id, latitude, longitude)
    return DistanceResponse(
        course_id=course_id,
        distance_km=round(distance, 3) if distance is not None else None,
    )
