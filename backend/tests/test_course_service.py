"""
CaddieAI Backend — Course Service Unit Tests
=============================================

What we test:
    ✅ Create and rename reject duplicate names (service check and DB race)
    ✅ Update/delete on missing courses
    ✅ Nearby search filters by exact distance and sorts nearest first
    ✅ Pagination arithmetic and input validation
    ✅ Boundary and distance checks
    ✅ Unexpected driver errors become DatabaseError
    ✅ Name, region and free-text lookups against a real SQLite schema
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.exc import IntegrityError

from caddie.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from caddie.models import Course, Hole
from caddie.schemas.course import CourseCreate, CourseUpdate
from caddie.services.course_service import CourseService

from conftest import NOW, make_course


def course_payload(**overrides):
    data = dict(
        name="  Torrey Pines South  ",
        country="USA",
        city="La Jolla",
        state="California",
        latitude=32.8998,
        longitude=-117.2517,
        par_total=72,
    )
    data.update(overrides)
    return data


class TestCreateCourse:

    def setup_method(self):
        self.service = CourseService()

    @pytest.mark.asyncio
    async def test_create_strips_and_returns_course(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=None)

        async def assign_id():
            course = mock_db_session.add.call_args[0][0]
            course.id = 10
            course.created_at = NOW
            course.updated_at = NOW

        mock_db_session.flush = AsyncMock(side_effect=assign_id)

        result = await self.service.create_course(mock_db_session, CourseCreate(**course_payload()))

        assert result.id == 10
        assert result.name == "Torrey Pines South"
        assert result.is_active is True
        mock_db_session.add.assert_called_once()

    @pytest.mark.asyncio
    async def test_duplicate_name_conflicts(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=make_course(name="Torrey Pines South"))

        with pytest.raises(ConflictError):
            await self.service.create_course(
                mock_db_session, CourseCreate(**course_payload(name="torrey pines south"))
            )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_integrity_error_becomes_conflict(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=None)
        mock_db_session.flush = AsyncMock(side_effect=IntegrityError("INSERT", {}, Exception("dup")))

        with pytest.raises(ConflictError):
            await self.service.create_course(mock_db_session, CourseCreate(**course_payload()))


class TestUpdateDeleteCourse:

    def setup_method(self):
        self.service = CourseService()

    @pytest.mark.asyncio
    async def test_update_missing_course(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=None)

        with pytest.raises(NotFoundError):
            await self.service.update_course(mock_db_session, 99, CourseUpdate(**course_payload()))

    @pytest.mark.asyncio
    async def test_update_keeps_own_name(self, mock_db_session, db_result, sample_course):
        mock_db_session.execute.side_effect = [
            db_result(scalar=sample_course),
            db_result(scalar=sample_course),
        ]
        payload = course_payload(name="Pebble Beach Golf Links", description="Updated")

        result = await self.service.update_course(mock_db_session, 1, CourseUpdate(**payload))

        assert result.description == "Updated"
        assert len(result.holes) == 2

    @pytest.mark.asyncio
    async def test_update_to_taken_name_conflicts(self, mock_db_session, db_result, sample_course):
        other = make_course(id=2, name="Spyglass Hill")
        mock_db_session.execute.side_effect = [
            db_result(scalar=sample_course),
            db_result(scalar=other),
        ]

        with pytest.raises(ConflictError):
            await self.service.update_course(
                mock_db_session, 1, CourseUpdate(**course_payload(name="Spyglass Hill"))
            )

    @pytest.mark.asyncio
    async def test_rename_race_becomes_conflict(self, mock_db_session, db_result, sample_course):
        mock_db_session.execute.side_effect = [
            db_result(scalar=sample_course),
            db_result(scalar=None),
        ]
        mock_db_session.flush = AsyncMock(side_effect=IntegrityError("UPDATE", {}, Exception("dup")))

        with pytest.raises(ConflictError):
            await self.service.update_course(
                mock_db_session, 1, CourseUpdate(**course_payload(name="Spyglass Hill"))
            )

    @pytest.mark.asyncio
    async def test_delete(self, mock_db_session, db_result, sample_course):
        mock_db_session.execute.return_value = db_result(scalar=sample_course)

        assert await self.service.delete_course(mock_db_session, 1) is True
        mock_db_session.delete.assert_awaited_once_with(sample_course)

    @pytest.mark.asyncio
    async def test_delete_missing(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=None)

        assert await self.service.delete_course(mock_db_session, 1) is False


class TestQueries:

    def setup_method(self):
        self.service = CourseService()

    @pytest.mark.asyncio
    async def test_nearby_filters_and_sorts(self, mock_db_session, db_result):
        near = make_course(id=1, name="Near", latitude=36.57, longitude=-121.95)
        nearer = make_course(id=2, name="Nearer", latitude=36.5682, longitude=-121.9501)
        far = make_course(id=3, name="Far", latitude=36.9, longitude=-121.95)
        mock_db_session.execute.return_value = db_result(rows=[near, far, nearer])

        results = await self.service.get_nearby_courses(mock_db_session, 36.5681, -121.95, 5)

        assert [c.name for c in results] == ["Nearer", "Near"]
        assert results[0].distance_km < results[1].distance_km < 5

    @pytest.mark.asyncio
    async def test_nearby_rejects_bad_radius(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.get_nearby_courses(mock_db_session, 0, 0, 0)

    @pytest.mark.asyncio
    async def test_blank_search_returns_active_courses(self, mock_db_session, db_result, sample_course):
        mock_db_session.execute.return_value = db_result(rows=[sample_course])

        results = await self.service.search_courses(mock_db_session, "   ")

        assert [c.id for c in results] == [1]

    @pytest.mark.asyncio
    async def test_paginated(self, mock_db_session, db_result, sample_course):
        mock_db_session.execute.side_effect = [
            db_result(count=45),
            db_result(rows=[sample_course]),
        ]

        page = await self.service.get_paginated_courses(mock_db_session, page=2, page_size=20)

        assert page.total_count == 45
        assert page.total_pages == 3
        assert page.has_next_page is True
        assert page.has_previous_page is True

    @pytest.mark.asyncio
    async def test_paginated_rejects_page_zero(self, mock_db_session):
        with pytest.raises(ValidationError):
            await self.service.get_paginated_courses(mock_db_session, page=0)

    @pytest.mark.asyncio
    async def test_name_available(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=None)

        assert await self.service.is_course_name_available(mock_db_session, "New Course") is True

    @pytest.mark.asyncio
    async def test_driver_error_is_wrapped(self, mock_db_session):
        mock_db_session.execute.side_effect = RuntimeError("connection reset")

        with pytest.raises(DatabaseError):
            await self.service.get_all_courses(mock_db_session)


class TestLocationChecks:

    def setup_method(self):
        self.service = CourseService()

    @pytest.mark.asyncio
    async def test_within_boundary(self, mock_db_session, db_result):
        course = make_course(boundary=[[36.56, -121.96], [36.56, -121.94], [36.58, -121.94], [36.58, -121.96]])
        mock_db_session.execute.return_value = db_result(scalar=course)

        assert await self.service.is_location_within_course(mock_db_session, 1, 36.57, -121.95) is True
        assert await self.service.is_location_within_course(mock_db_session, 1, 36.60, -121.95) is False

    @pytest.mark.asyncio
    async def test_no_boundary_is_never_within(self, mock_db_session, db_result, sample_course):
        mock_db_session.execute.return_value = db_result(scalar=sample_course)

        assert await self.service.is_location_within_course(mock_db_session, 1, 36.5681, -121.95) is False

    @pytest.mark.asyncio
    async def test_distance_to_course_km(self, mock_db_session, db_result, sample_course):
        mock_db_session.execute.return_value = db_result(scalar=sample_course)

        distance = await self.service.get_distance_to_course(mock_db_session, 1, 36.5771, -121.95)

        assert distance == pytest.approx(1.0, abs=0.01)

    @pytest.mark.asyncio
    async def test_distance_without_location(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=make_course(latitude=None, longitude=None))

        assert await self.service.get_distance_to_course(mock_db_session, 1, 0, 0) is None

    @pytest.mark.asyncio
    async def test_distance_to_missing_course(self, mock_db_session, db_result):
        mock_db_session.execute.return_value = db_result(scalar=None)

        with pytest.raises(NotFoundError):
            await self.service.get_distance_to_course(mock_db_session, 1, 0, 0)


def catalogue_course(name: str, **fields) -> Course:
    data = dict(name=name, country="USA", is_active=True, holes=[])
    data.update(fields)
    return Course(**data)


@pytest_asyncio.fixture
async def catalogue(sqlite_session):
    sqlite_session.add_all([
        catalogue_course(
            "Pebble Beach Golf Links",
            city="Pebble Beach",
            state="California",
            description="Clifftop links on the Monterey Peninsula",
            holes=[Hole(hole_number=1, par=4, yardage_men=380)],
        ),
        catalogue_course("Torrey Pines South", city="La Jolla", state="California"),
        catalogue_course(
            "Old Course", city="St Andrews", state="Fife", country="Scotland", address="Golf Place",
        ),
        catalogue_course("Closed Links", city="Fresno", state="California", is_active=False),
    ])
    await sqlite_session.commit()
    sqlite_session.expunge_all()
    return sqlite_session


class TestCatalogueQueries:
    """Runs the lookups against SQLite so the WHERE clauses are exercised."""

    def setup_method(self):
        self.service = CourseService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "region,expected",
        [
            ("  california ", ["Pebble Beach Golf Links", "Torrey Pines South"]),
            ("LA JOLLA", ["Torrey Pines South"]),
            ("scotland", ["Old Course"]),
            ("Calif", []),
        ],
    )
    async def test_region_matches_city_state_or_country(self, catalogue, region, expected):
        results = await self.service.get_courses_by_region(catalogue, region)
        assert [c.name for c in results] == expected

    @pytest.mark.asyncio
    async def test_get_by_name_ignores_case(self, catalogue):
        course = await self.service.get_course_by_name(catalogue, "pebble BEACH golf links")

        assert course is not None
        assert course.name == "Pebble Beach Golf Links"
        assert [h.par for h in course.holes] == [4]

    @pytest.mark.asyncio
    async def test_get_by_name_is_not_a_prefix_match(self, catalogue):
        assert await self.service.get_course_by_name(catalogue, "Pebble") is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "term,expected",
        [
            ("LINKS", ["Pebble Beach Golf Links"]),
            ("monterey", ["Pebble Beach Golf Links"]),
            ("fife", ["Old Course"]),
            ("golf", ["Old Course", "Pebble Beach Golf Links"]),
            ("100%", []),
        ],
    )
    async def test_search_term(self, catalogue, term, expected):
        results = await self.service.search_courses(catalogue, term)
        assert [c.name for c in results] == expected

    @pytest.mark.asyncio
    async def test_inactive_courses_are_not_searched(self, catalogue):
        results = await self.service.search_courses(catalogue, "fresno")
        assert results == []
