"""Shared pytest fixtures for the Tutordesk test suite."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta
from itertools import count

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.models import (
    Assessment,
    AssessmentSubmission,
    LearningSession,
    ParentProfile,
    Student,
    Subject,
    Teacher,
)
from app.services.records import SessionRecord, SubmissionRecord, utc_now
from main import app


# ---------------------------------------------------------------------------
# Async engine & session fixtures (in-memory SQLite)
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def async_engine():
    """Create a fresh in-memory async engine per test."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture()
async def db_session(async_engine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a transactional async session that rolls back after each test."""
    session_factory = async_sessionmaker(
        async_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture()
async def client(db_session: AsyncSession) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTPX async client wired to the FastAPI app with test DB override."""

    async def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db

    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Record factories for engine tests
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_session():
    """Build SessionRecord objects with sensible defaults."""
    ids = count(1)

    def _make(
        start_time: datetime,
        *,
        subject_id: int = 1,
        attended: bool = True,
        status: str = "completed",
        performance_score: float | None = None,
        student_id: int = 1,
        student_name: str = "Student",
        subject_name: str | None = None,
        teacher_id: int = 1,
    ) -> SessionRecord:
        return SessionRecord(
            id=next(ids),
            subject_id=subject_id,
            teacher_id=teacher_id,
            start_time=start_time,
            end_time=start_time + timedelta(hours=1),
            status=status,
            attended=attended,
            performance_score=performance_score,
            student_id=student_id,
            student_name=student_name,
            subject_name=subject_name,
        )

    return _make


@pytest.fixture()
def make_submission():
    """Build SubmissionRecord objects with sensible defaults."""
    ids = count(1)

    def _make(
        created_at: datetime,
        score: float | None,
        *,
        subject_id: int | None = 1,
        subject_name: str | None = None,
    ) -> SubmissionRecord:
        submission_id = next(ids)
        return SubmissionRecord(
            id=submission_id,
            assessment_id=submission_id,
            subject_id=subject_id,
            created_at=created_at,
            score=score,
            subject_name=subject_name,
        )

    return _make


# ---------------------------------------------------------------------------
# Convenience / data fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
async def seeded(db_session: AsyncSession) -> dict:
    """A parent with one child, a teacher, two subjects, sessions and scores.

    The child has 10 maths sessions over the last ten days (8 attended) and
    three maths submissions scored 70, 80 and 90.
    """
    now = utc_now()

    math = Subject(name="Mathematics")
    science = Subject(name="Science")
    parent = ParentProfile(name="Parent", email="parent@example.com")
    teacher = Teacher(name="Teacher", email="teacher@example.com")
    db_session.add_all([math, science, parent, teacher])
    await db_session.flush()

    child = Student(name="Amina", parent_profile_id=parent.id)
    child.subjects = [math, science]
    db_session.add(child)
    await db_session.flush()

    for i in range(10):
        start = now - timedelta(days=i + 1)
        db_session.add(
            LearningSession(
                student_id=child.id,
                subject_id=math.id,
                teacher_id=teacher.id,
                start_time=start,
                end_time=start + timedelta(hours=1),
                status="completed",
                attended=i < 8,
                performance_score=80.0,
            )
        )

    for score in (70, 80, 90):
        assessment = Assessment(title=f"Quiz {score}", subject_id=math.id)
        db_session.add(assessment)
        await db_session.flush()
        db_session.add(
            AssessmentSubmission(
                assessment_id=assessment.id,
                student_id=child.id,
                score=score,
                status="graded",
                created_at=now - timedelta(days=2),
            )
        )

    await db_session.commit()
    # Routes must load relationships from the database, not the identity map
    db_session.expunge_all()
    return {
        "parent_id": parent.id,
        "student_id": child.id,
        "teacher_id": teacher.id,
        "math_id": math.id,
        "science_id": science.id,
    }
