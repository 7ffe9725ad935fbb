"""
CaddieAI Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the whole suite.
How:   Services are exercised against a mocked AsyncSession; endpoint tests
       drive the FastAPI app through httpx's ASGITransport with the session
       dependency overridden, so no database server is needed.

Fixture Hierarchy:
    ├── mock_db_session:   AsyncMock standing in for AsyncSession
    ├── sqlite_session:    real AsyncSession on a fresh in-memory SQLite schema
    ├── db_result:         factory for the Result objects execute() returns
    ├── sample_course:     Course ORM instance with two holes
    ├── sample_user / sample_round
    ├── golf_context:      GolfContext on hole 1 of the sample course
    └── test_client:       httpx AsyncClient bound to the app
"""

import os

# Must be set before any caddie import reads the settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SMTP_HOST"] = ""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from caddie.database import Base
from caddie.models import Course, Hole, Round, User, UserCourse
from caddie.schemas.golf_context import (
    CourseContext,
    GolfContext,
    HoleContext,
    UserGolfProfile,
    WeatherContext,
)
from caddie.services.realtime_audio_service import realtime_audio_service

NOW = datetime(2026, 6, 1, 14, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_db_session():
    """
    A MagicMock that simulates AsyncSession behavior.

    Usage:
        mock_db_session.execute.return_value = db_result(scalar=course)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def sqlite_session():
    """
    AsyncSession bound to a throwaway in-memory SQLite database.

    Used where the SQL itself is under test (filters, ordering, case
    folding); StaticPool keeps the single in-memory connection alive.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def db_result():
    """Builds a mocked SQLAlchemy Result for one execute() call."""

    def make(scalar=None, rows=None, count=None):
        result = MagicMock()
        result.scalar_one_or_none.return_value = scalar
        result.scalar.return_value = count
        result.scalars.return_value.all.return_value = rows if rows is not None else []
        result.scalars.return_value.first.return_value = (rows or [scalar])[0] if (rows or scalar) else None
        return result

    return make


def make_course(**overrides) -> Course:
    fields = dict(
        id=1,
        name="Pebble Beach Golf Links",
        description="Clifftop links on the Monterey Peninsula",
        address="1700 17-Mile Drive",
        city="Pebble Beach",
        state="California",
        country="USA",
        total_holes=18,
        par_total=72,
        slope_rating=145,
        course_rating=75.5,
        is_active=True,
        latitude=36.5681,
        longitude=-121.9500,
        boundary=None,
        amenities={"driving_range": True},
        created_at=NOW,
        updated_at=NOW,
    )
    fields.update(overrides)
    holes = fields.pop("holes", [])
    course = Course(**fields)
    course.holes = holes
    return course


@pytest.fixture
def sample_course() -> Course:
    return make_course(
        holes=[
            Hole(id=11, course_id=1, hole_number=1, par=4, yardage_men=380, stroke_index=6,
                 description="Gentle opener", pin_latitude=36.5690, pin_longitude=-121.9480),
            Hole(id=17, course_id=1, hole_number=7, par=3, yardage_men=106, stroke_index=18),
        ]
    )


@pytest.fixture
def sample_user() -> User:
    return User(
        id=7,
        email="jordan@example.com",
        first_name="Jordan",
        last_name="Lee",
        handicap=12.4,
        skill_level="intermediate",
        playing_style="conservative",
    )


@pytest.fixture
def sample_round() -> Round:
    return Round(
        id=42,
        user_id=7,
        course_id=1,
        status="in_progress",
        current_hole=3,
        start_time=datetime.now(timezone.utc) - timedelta(minutes=75),
        total_score=13,
    )


@pytest.fixture
def sample_user_course() -> UserCourse:
    return UserCourse(
        id=5,
        user_id=7,
        course_name="Local Muni",
        city="Springfield",
        country="USA",
        latitude=40.0,
        longitude=-75.0,
        created_at=NOW,
        updated_at=NOW,
    )


@pytest.fixture
def golf_context() -> GolfContext:
    return GolfContext(
        user=UserGolfProfile(user_id=7, name="Jordan Lee", handicap=12.4, skill_level="intermediate"),
        course=CourseContext(course_id=1, name="Pebble Beach Golf Links", difficulty="Very Challenging"),
        current_hole=HoleContext(hole_id=11, hole_number=1, par=4, yardage=400,
                                 pin_latitude=36.5690, pin_longitude=-121.9480),
        weather=WeatherContext(conditions="Sunny", temperature=70, wind_speed=5, wind_direction="W"),
    )


@pytest.fixture(autouse=True)
def clean_voice_sessions():
    realtime_audio_service.reset()
    yield
    realtime_audio_service.reset()


@pytest_asyncio.fixture
async def test_client(mock_db_session):
    """
    httpx AsyncClient talking to the app in-process.

    The request-scoped database session is replaced by `mock_db_session`.
    """
    from caddie.database import get_db_session
    from caddie.main import app

    async def override_session():
        yield mock_db_session

    app.dependency_overrides[get_db_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
