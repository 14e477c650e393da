"""Parent-facing progress API routes."""

from datetime import date, datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import get_parent_profile, get_student_records
from app.models.parent_profile import ParentProfile
from app.services.progress import (
    TIME_RANGE_LABELS,
    ProgressContext,
    build_family_overview,
    build_monthly_trend,
    build_progress_report,
    build_subject_breakdown,
    filter_records,
    resolve_date_range,
)
from app.services.records import StudentRecords, load_parent_children, utc_now

router = APIRouter(prefix="/api", tags=["progress"])


class _Out(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class DateRangeOut(_Out):
    start: datetime
    end: datetime


class AttendanceOut(_Out):
    total: int
    attended: int
    missed: int
    attendance_rate: int


class ScoresOut(_Out):
    count: int
    average: float
    highest: float
    lowest: float
    submissions: int


class SubjectProgressOut(_Out):
    subject_id: int
    name: str
    progress: int
    total_sessions: int
    attended_sessions: int
    attendance_rate: int
    assessments_count: int
    average_score: float
    grade: str
    grade_severity: str
    severity: str


class SubjectScoresOut(_Out):
    subject: str
    average_score: float
    count: int
    highest: float
    lowest: float
    grade: str
    grade_severity: str


class TrendBucketOut(_Out):
    month: str
    month_label: str
    progress: int
    attendance_rate: int
    average_score: int
    total_sessions: int
    total_assessments: int


class MonthlyAttendanceOut(_Out):
    month: str
    month_label: str
    total: int
    attended: int
    missed: int


class PerformanceOut(_Out):
    average: float
    highest: float
    lowest: float
    trend: str
    total_sessions: int


class SessionOut(_Out):
    id: int
    subject_id: int
    teacher_id: int
    start_time: datetime
    end_time: datetime
    status: str
    attended: bool
    performance_score: float | None


class SubmissionOut(_Out):
    id: int
    assessment_id: int
    subject_id: int | None
    subject_name: str | None
    title: str | None
    score: float | None
    created_at: datetime


class ProgressReportOut(_Out):
    student_id: int
    name: str
    time_range: str
    date_range: DateRangeOut
    subject_id: int | None
    overall_progress: int
    overall_severity: str
    attendance_rate: int
    average_score: float
    attendance: AttendanceOut
    scores: ScoresOut
    subjects: list[SubjectProgressOut]
    assessment_scores: list[SubjectScoresOut]
    trend: list[TrendBucketOut]
    monthly_attendance: list[MonthlyAttendanceOut]
    performance: PerformanceOut
    recent_sessions: list[SessionOut]
    recent_submissions: list[SubmissionOut]
    upcoming_sessions: list[SessionOut]


class ChildOverviewOut(_Out):
    student_id: int
    name: str
    overall_progress: int
    severity: str
    attendance_rate: int
    average_score: float
    total_sessions: int
    assessments_count: int


def progress_context(
    time_range: str = settings.DEFAULT_TIME_RANGE,
    start_date: date | None = None,
    end_date: date | None = None,
    subject_id: int | None = None,
) -> ProgressContext:
    """Build the request-scoped filter context from query parameters."""
    return ProgressContext(
        time_range=time_range,
        start_date=start_date,
        end_date=end_date,
        subject_id=subject_id,
        now=utc_now(),
    )


@router.get("/time-ranges")
async def time_range_options() -> dict[str, str]:
    """Selectable time range presets and their labels."""
    return TIME_RANGE_LABELS


@router.get("/students/{student_id}/progress", response_model=ProgressReportOut)
async def student_progress(
    records: StudentRecords = Depends(get_student_records),
    context: ProgressContext = Depends(progress_context),
):
    """Full progress dashboard for one student."""
    report = build_progress_report(context, records)
    return ProgressReportOut.model_validate(report)


@router.get("/students/{student_id}/progress/trend", response_model=list[TrendBucketOut])
async def student_progress_trend(
    records: StudentRecords = Depends(get_student_records),
    context: ProgressContext = Depends(progress_context),
):
    """Monthly progress trend for one student."""
    date_range = resolve_date_range(
        context.time_range, context.start_date, context.end_date, now=context.now
    )
    filtered = filter_records(
        records.sessions, records.submissions, date_range, context.subject_id
    )
    trend = build_monthly_trend(
        filtered.sessions, filtered.submissions, date_range, context.weights
    )
    return [TrendBucketOut.model_validate(bucket) for bucket in trend]


@router.get(
    "/students/{student_id}/progress/subjects", response_model=list[SubjectProgressOut]
)
async def student_subject_breakdown(
    records: StudentRecords = Depends(get_student_records),
    context: ProgressContext = Depends(progress_context),
):
    """Per-subject progress for one student, best subject first."""
    date_range = resolve_date_range(
        context.time_range, context.start_date, context.end_date, now=context.now
    )
    filtered = filter_records(
        records.sessions, records.submissions, date_range, context.subject_id
    )
    rows = build_subject_breakdown(
        records.subjects, filtered.sessions, filtered.submissions, context.weights
    )
    return [SubjectProgressOut.model_validate(row) for row in rows]


@router.get("/parents/{parent_id}/overview", response_model=list[ChildOverviewOut])
async def family_overview(
    parent: ParentProfile = Depends(get_parent_profile),
    context: ProgressContext = Depends(progress_context),
    db: AsyncSession = Depends(get_db),
):
    """Headline progress for every child of a parent."""
    children = await load_parent_children(db, parent.id)
    overview = build_family_overview(context, children)
    return [ChildOverviewOut.model_validate(child) for child in overview]
