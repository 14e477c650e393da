"""Typed read-only records the progress engine consumes, and their loader.

The loader is the only place that touches the ORM; everything downstream
works on these frozen records.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Assessment, AssessmentSubmission, LearningSession, Student
from app.models.learning_session import STATUS_COMPLETED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectRef:
    id: int
    name: str


@dataclass(frozen=True)
class SessionRecord:
    id: int
    subject_id: int
    teacher_id: int
    start_time: datetime
    end_time: datetime
    status: str = "scheduled"
    attended: bool = False
    performance_score: float | None = None
    student_id: int | None = None
    student_name: str | None = None
    subject_name: str | None = None

    @property
    def counts_as_attended(self) -> bool:
        return self.attended and self.status == STATUS_COMPLETED


@dataclass(frozen=True)
class SubmissionRecord:
    id: int
    assessment_id: int
    subject_id: int | None
    created_at: datetime
    score: float | None = None
    subject_name: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class StudentRecords:
    """Everything the engine needs to know about one student."""

    student_id: int
    name: str
    subjects: tuple[SubjectRef, ...] = field(default_factory=tuple)
    sessions: tuple[SessionRecord, ...] = field(default_factory=tuple)
    submissions: tuple[SubmissionRecord, ...] = field(default_factory=tuple)


def utc_now() -> datetime:
    """Current UTC time as a naive datetime, comparable with stored values."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def naive_utc(value: datetime) -> datetime:
    """Drop tzinfo after converting to UTC; SQLite hands back naive values."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def session_record(
    session: LearningSession,
    student_name: str | None = None,
    subject_name: str | None = None,
) -> SessionRecord:
    return SessionRecord(
        id=session.id,
        subject_id=session.subject_id,
        teacher_id=session.teacher_id,
        start_time=naive_utc(session.start_time),
        end_time=naive_utc(session.end_time),
        status=session.status,
        attended=bool(session.attended),
        performance_score=session.performance_score,
        student_id=session.student_id,
        student_name=student_name,
        subject_name=subject_name,
    )


def submission_record(submission: AssessmentSubmission) -> SubmissionRecord:
    assessment = submission.assessment
    subject = assessment.subject if assessment is not None else None
    return SubmissionRecord(
        id=submission.id,
        assessment_id=submission.assessment_id,
        subject_id=assessment.subject_id if assessment is not None else None,
        created_at=naive_utc(submission.created_at),
        score=submission.score,
        subject_name=subject.name if subject is not None else None,
        title=assessment.title if assessment is not None else None,
    )


def student_records(student: Student) -> StudentRecords:
    """Convert a fully loaded Student into engine records."""
    return StudentRecords(
        student_id=student.id,
        name=student.name,
        subjects=tuple(SubjectRef(s.id, s.name) for s in student.subjects),
        sessions=tuple(session_record(s) for s in student.learning_sessions),
        submissions=tuple(submission_record(s) for s in student.assessment_submissions),
    )


def _student_load_options():
    return (
        selectinload(Student.subjects),
        selectinload(Student.learning_sessions),
        selectinload(Student.assessment_submissions)
        .selectinload(AssessmentSubmission.assessment)
        .selectinload(Assessment.subject),
    )


async def load_student_records(db: AsyncSession, student_id: int) -> StudentRecords | None:
    """Fetch a student with sessions, submissions and subjects resolved."""
    result = await db.execute(
        select(Student).where(Student.id == student_id).options(*_student_load_options())
    )
    student = result.scalar_one_or_none()
    if student is None:
        logger.debug("No student with id %d", student_id)
        return None
    return student_records(student)


async def load_parent_children(db: AsyncSession, parent_profile_id: int) -> list[StudentRecords]:
    """Fetch every child of a parent profile, ordered by name."""
    result = await db.execute(
        select(Student)
        .where(Student.parent_profile_id == parent_profile_id)
        .order_by(Student.name)
        .options(*_student_load_options())
    )
    return [student_records(s) for s in result.scalars().all()]


async def load_teacher_sessions(
    db: AsyncSession,
    teacher_id: int,
    since: datetime,
) -> list[SessionRecord]:
    """Fetch a teacher's sessions starting at or after *since*, students resolved."""
    result = await db.execute(
        select(LearningSession)
        .where(
            LearningSession.teacher_id == teacher_id,
            LearningSession.start_time >= since,
        )
        .options(
            selectinload(LearningSession.student),
            selectinload(LearningSession.subject),
        )
        .order_by(LearningSession.start_time)
    )
    return [
        session_record(s, student_name=s.student.name, subject_name=s.subject.name)
        for s in result.scalars().all()
    ]
