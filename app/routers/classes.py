"""Teacher class dashboard API routes."""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_teacher
from app.models.teacher import Teacher
from app.services.class_stats import (
    PERIOD_WEEK,
    ClassContext,
    build_class_dashboard,
    earliest_start,
)
from app.services.records import load_teacher_sessions, utc_now

router = APIRouter(prefix="/api/teachers", tags=["classes"])


class StudentStatOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    student_id: int
    name: str
    total_sessions: int
    attended_sessions: int
    attendance_rate: int
    score: int


class DailyAttendanceOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: str
    day: str
    attendance: float


class SubjectChangeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    subject: str
    from_score: int
    to_score: int
    change: int


class ClassDashboardOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    teacher_id: int
    teacher_name: str
    period: str
    subject_id: int | None
    period_start: datetime
    students: list[StudentStatOut]
    daily_attendance: list[DailyAttendanceOut]
    subject_changes: list[SubjectChangeOut]


def _subject_filter(subject_id: str | None) -> int | None:
    """Parse the subject query value; missing, "all" or non-numeric means every subject."""
    if subject_id is None or subject_id == "all" or not subject_id.isdigit():
        return None
    return int(subject_id)


@router.get("/{teacher_id}/class", response_model=ClassDashboardOut)
async def class_dashboard(
    period: str = PERIOD_WEEK,
    subject_id: str | None = None,
    student_sort: str = "score_high",
    change_sort: str = "high",
    teacher: Teacher = Depends(get_teacher),
    db: AsyncSession = Depends(get_db),
):
    """Attendance and score analytics across a teacher's students."""
    context = ClassContext(
        period=period,
        subject_id=_subject_filter(subject_id),
        student_sort=student_sort,
        change_sort=change_sort,
        now=utc_now(),
    )
    sessions = await load_teacher_sessions(db, teacher.id, earliest_start(context, context.now))
    dashboard = build_class_dashboard(teacher.id, context, sessions)

    return ClassDashboardOut(
        teacher_id=dashboard.teacher_id,
        teacher_name=teacher.name,
        period=dashboard.period,
        subject_id=dashboard.subject_id,
        period_start=dashboard.period_start,
        students=[StudentStatOut.model_validate(s) for s in dashboard.students],
        daily_attendance=[DailyAttendanceOut.model_validate(d) for d in dashboard.daily_attendance],
        subject_changes=[SubjectChangeOut.model_validate(c) for c in dashboard.subject_changes],
    )
