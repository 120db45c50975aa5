'''
Pytest configuration for the FastAPI application.

This file sets up fixtures for:
1. Forcing the application into TEST_MODE before any code is imported.
2. A fresh SQLite database file per test, with every table created.
3. A FastAPI TestClient whose DB session and Clock are overridden.
4. Instances of all service classes, pre-injected with the test db session.
5. Seeded students, tutors and subjects built with factory_boy.
'''
import os

os.environ["TEST_MODE"] = "True"
os.environ.setdefault("SECRET_KEY", "peer-connect-test-secret-key")

import pytest
from datetime import datetime, time
from typing import AsyncGenerator
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

# --- FastAPI & Testing Imports ---
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, AsyncEngine, async_sessionmaker
from sqlalchemy.pool import NullPool

# --- Application Imports ---
from src.peer_connect_backend.main import app
from src.peer_connect_backend.common.config import settings
from src.peer_connect_backend.common.clock import Clock
from src.peer_connect_backend.core.matching import MatchingWeights
from src.peer_connect_backend.database.engine import get_db_session, build_session_factory
from src.peer_connect_backend.database import models as db_models
from src.peer_connect_backend.database.db_enums import (
    AcademicLevel,
    CampusLocation,
    LearningStyle,
    StudentLevel,
)
from src.peer_connect_backend.services.user_service import UserService
from src.peer_connect_backend.services.profile_service import ProfileService
from src.peer_connect_backend.services.availability_service import AvailabilityService
from src.peer_connect_backend.services.notification_service import NotificationService
from src.peer_connect_backend.services.matching_service import MatchingService
from src.peer_connect_backend.services.session_service import SessionService
from src.peer_connect_backend.services.review_service import ReviewService

from tests.constants import (
    TODAY,
    TOMORROW,
    TEST_STUDENT_ID,
    TEST_OTHER_STUDENT_ID,
    TEST_TUTOR_ID,
    TEST_OTHER_TUTOR_ID,
    TEST_STUDENT_EMAIL,
    TEST_TUTOR_EMAIL,
    SUBJECT_NAMES,
)
from tests.database import factories


@pytest.fixture(scope="session")
def anyio_backend():
    """
    Override the default 'anyio_backend' fixture.
    1. Forces the backend to 'asyncio'.
    2. Promotes the scope to 'session' (solves 'ScopeMismatch').
    """
    return "asyncio"


# --- 1. Database ---

@pytest.fixture(scope="function")
def db_url(tmp_path) -> str:
    """
    Creates a brand new SQLite file with the full schema and returns its async URL.
    The schema is created through a plain sync engine, outside any event loop.
    """
    db_path = tmp_path / "peer_connect_test.db"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    db_models.Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return f"sqlite+aiosqlite:///{db_path}"


@pytest.fixture(scope="function")
def test_engine(db_url: str) -> AsyncEngine:
    # NullPool: no connection outlives the event loop that opened it
    return create_async_engine(db_url, poolclass=NullPool)


@pytest.fixture(scope="function")
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(test_engine)


@pytest.fixture(scope="function")
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """
    Provides the session used by service tests and by the factories.
    Whatever a test leaves uncommitted is rolled back.
    """
    session = session_factory()
    factories.test_db_session = session
    try:
        yield session
    finally:
        await session.rollback()
        await session.close()
        factories.test_db_session = None


# --- 2. Doubles ---

@pytest.fixture(scope="function")
def mock_clock() -> Clock:
    """A Clock pinned to tests.constants.TODAY at 09:00."""
    clock = MagicMock(spec=Clock)
    clock.tz = ZoneInfo(settings.TIMEZONE)
    clock.today.return_value = TODAY
    clock.now.return_value = datetime.combine(TODAY, time(9, 0), tzinfo=clock.tz)
    return clock


@pytest.fixture(scope="function")
def weights() -> MatchingWeights:
    return MatchingWeights()


# --- 3. API client ---

@pytest.fixture(scope="function")
def client(test_engine: AsyncEngine, mock_clock: Clock) -> TestClient:
    """
    Runs the app against the per-test SQLite file.
    Each request gets its own session, committed on success like in production.
    """
    assert settings.TEST_MODE is True, \
        "TEST_MODE was not set to True! Check your .env file or environment."

    request_session_factory = build_session_factory(test_engine)

    async def override_get_db_session() -> AsyncGenerator[AsyncSession, None]:
        session = request_session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[Clock] = lambda: mock_clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# --- 4. SERVICE FIXTURES ---

@pytest.fixture(scope="function")
def user_service(db_session: AsyncSession) -> UserService:
    return UserService(db=db_session)

@pytest.fixture(scope="function")
def profile_service(db_session: AsyncSession) -> ProfileService:
    return ProfileService(db=db_session)

@pytest.fixture(scope="function")
def availability_service(db_session: AsyncSession, mock_clock: Clock) -> AvailabilityService:
    return AvailabilityService(db=db_session, clock=mock_clock)

@pytest.fixture(scope="function")
def notification_service(db_session: AsyncSession) -> NotificationService:
    return NotificationService(db=db_session)

@pytest.fixture(scope="function")
def matching_service(
    profile_service: ProfileService,
    availability_service: AvailabilityService,
    mock_clock: Clock,
    weights: MatchingWeights
) -> MatchingService:
    return MatchingService(
        profile_service=profile_service,
        availability_service=availability_service,
        clock=mock_clock,
        weights=weights
    )

@pytest.fixture(scope="function")
def session_service(
    db_session: AsyncSession,
    mock_clock: Clock,
    availability_service: AvailabilityService,
    notification_service: NotificationService,
    profile_service: ProfileService
) -> SessionService:
    return SessionService(
        db=db_session,
        clock=mock_clock,
        availability_service=availability_service,
        notification_service=notification_service,
        profile_service=profile_service
    )

@pytest.fixture(scope="function")
def review_service(db_session: AsyncSession, notification_service: NotificationService) -> ReviewService:
    return ReviewService(db=db_session, notification_service=notification_service)


# --- 5. DATA FIXTURES ---
# Every data fixture commits, so API requests (own sessions) see the rows too.

@pytest.fixture(scope="function")
async def learning_subjects(db_session: AsyncSession) -> dict[str, db_models.LearningSubjects]:
    subjects = {name: factories.LearningSubjectFactory.create(name=name) for name in SUBJECT_NAMES}
    await db_session.commit()
    return subjects


@pytest.fixture(scope="function")
async def test_student_orm(db_session: AsyncSession) -> db_models.Students:
    """College freshman on the main campus, visual learner, Mathematics + Physics."""
    student = factories.StudentFactory.create(
        id=TEST_STUDENT_ID,
        email=TEST_STUDENT_EMAIL,
        first_name="Ana",
        last_name="Reyes",
        academic_level=AcademicLevel.UNDERGRADUATE_FRESHMAN.value,
        preferred_learning_style=LearningStyle.VISUAL.value,
        campus_location=CampusLocation.MAIN_CAMPUS.value,
        subjects=["Mathematics", "Physics"],
    )
    await db_session.commit()
    return student


@pytest.fixture(scope="function")
async def test_other_student_orm(db_session: AsyncSession) -> db_models.Students:
    student = factories.StudentFactory.create(
        id=TEST_OTHER_STUDENT_ID,
        first_name="Ben",
        last_name="Santos",
        academic_level=AcademicLevel.SHS.value,
        preferred_learning_style=LearningStyle.AUDITORY.value,
        campus_location=CampusLocation.PUCU.value,
        subjects=["Chemistry", "Physics"],
    )
    await db_session.commit()
    return student


@pytest.fixture(scope="function")
async def test_tutor_orm(db_session: AsyncSession) -> db_models.Tutors:
    """College-level tutor at 50.00/h, teaching Mathematics, Physics, Calculus."""
    tutor = factories.TutorFactory.create(
        id=TEST_TUTOR_ID,
        email=TEST_TUTOR_EMAIL,
        first_name="Liam",
        last_name="Chen",
        preferred_student_level=StudentLevel.COLLEGE.value,
        subjects=["Mathematics", "Physics", "Calculus"],
        styles=[LearningStyle.VISUAL.value, LearningStyle.KINESTHETIC.value],
    )
    await db_session.commit()
    return tutor


@pytest.fixture(scope="function")
async def test_other_tutor_orm(db_session: AsyncSession) -> db_models.Tutors:
    tutor = factories.TutorFactory.create(
        id=TEST_OTHER_TUTOR_ID,
        first_name="Sophia",
        last_name="Park",
        campus_location=CampusLocation.PUCU.value,
        preferred_student_level=StudentLevel.SHS.value,
        subjects=["Chemistry", "Biology", "Statistics"],
        styles=[LearningStyle.AUDITORY.value, LearningStyle.MIXED.value],
    )
    await db_session.commit()
    return tutor


@pytest.fixture(scope="function")
async def tutor_available_tomorrow(
    db_session: AsyncSession,
    test_tutor_orm: db_models.Tutors
) -> db_models.TutorAvailability:
    slot = factories.AvailabilityFactory.create(tutor_id=test_tutor_orm.id, date=TOMORROW)
    await db_session.commit()
    return slot


@pytest.fixture(scope="function")
async def confirmed_session_orm(
    db_session: AsyncSession,
    test_student_orm: db_models.Students,
    tutor_available_tomorrow: db_models.TutorAvailability
) -> db_models.TutoringSessions:
    """Confirmed 10:00-12:00 session tomorrow between the test student and tutor."""
    session = factories.TutoringSessionFactory.create(
        student_id=test_student_orm.id,
        tutor_id=tutor_available_tomorrow.tutor_id,
        session_date=TOMORROW,
    )
    await db_session.commit()
    return session
