"""Progress and attendance aggregation for parent dashboards.

Pipeline, recomputed from scratch on every filter change:

1. resolve the requested time range and filter a student's sessions and
   assessment submissions to it (optionally to one subject);
2. compute attendance rate and score statistics over the filtered records;
3. blend them into a weighted progress value and map it to grades / bands;
4. bucket the same records per calendar month for the trend chart and per
   subject for the breakdown table.

All functions are pure: they take records and return frozen results.
"""

from __future__ import annotations

import calendar
import logging
from collections import defaultdict
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, time

from app.config import settings
from app.models.learning_session import STATUS_COMPLETED, STATUS_SCHEDULED
from app.services.records import (
    SessionRecord,
    StudentRecords,
    SubjectRef,
    SubmissionRecord,
    utc_now,
)
from app.services.scoring import (
    ProgressWeights,
    clamp,
    grade_from_score,
    performance_trend,
    progress_severity,
    round_half_up,
    weighted_progress,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Time range presets
# ---------------------------------------------------------------------------
LAST_MONTH = "last_month"
LAST_3_MONTHS = "last_3_months"
LAST_6_MONTHS = "last_6_months"
LAST_YEAR = "last_year"
CUSTOM = "custom"

TIME_RANGE_MONTHS: dict[str, int] = {
    LAST_MONTH: 1,
    LAST_3_MONTHS: 3,
    LAST_6_MONTHS: 6,
    LAST_YEAR: 12,
}

TIME_RANGE_LABELS: dict[str, str] = {
    LAST_MONTH: "Last Month",
    LAST_3_MONTHS: "Last 3 Months",
    LAST_6_MONTHS: "Last 6 Months",
    LAST_YEAR: "Last Year",
    CUSTOM: "Custom Range",
}

FALLBACK_TIME_RANGE = LAST_3_MONTHS
UNKNOWN_SUBJECT = "Unknown"
RECENT_LIMIT = 5


# ===================================================================
# Result types
# ===================================================================


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


@dataclass(frozen=True)
class FilteredRecords:
    sessions: tuple[SessionRecord, ...] = ()
    submissions: tuple[SubmissionRecord, ...] = ()


@dataclass(frozen=True)
class AttendanceStats:
    total: int = 0
    attended: int = 0
    rate: float = 0.0

    @property
    def missed(self) -> int:
        return self.total - self.attended

    @property
    def attendance_rate(self) -> int:
        return round_half_up(self.rate)


@dataclass(frozen=True)
class ScoreStats:
    count: int = 0
    average: float = 0.0
    highest: float = 0
    lowest: float = 0
    submissions: int = 0


@dataclass(frozen=True)
class TrendBucket:
    month: str
    month_label: str
    progress: int
    attendance_rate: int
    average_score: int
    total_sessions: int
    total_assessments: int


@dataclass(frozen=True)
class SubjectProgress:
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


@dataclass(frozen=True)
class SubjectScores:
    subject: str
    average_score: float
    count: int
    highest: float
    lowest: float
    grade: str
    grade_severity: str


@dataclass(frozen=True)
class MonthlyAttendance:
    month: str
    month_label: str
    total: int
    attended: int
    missed: int


@dataclass(frozen=True)
class PerformanceStats:
    average: float = 0
    highest: float = 0
    lowest: float = 0
    trend: str = "steady"
    total_sessions: int = 0


@dataclass(frozen=True)
class ProgressContext:
    """Request-scoped filter state for one dashboard computation."""

    time_range: str = FALLBACK_TIME_RANGE
    start_date: date | None = None
    end_date: date | None = None
    subject_id: int | None = None
    weights: ProgressWeights = field(default_factory=ProgressWeights.from_settings)
    now: datetime | None = None


@dataclass(frozen=True)
class ProgressReport:
    student_id: int
    name: str
    time_range: str
    date_range: DateRange
    subject_id: int | None
    overall_progress: int
    overall_severity: str
    attendance_rate: int
    average_score: float
    attendance: AttendanceStats
    scores: ScoreStats
    subjects: tuple[SubjectProgress, ...]
    assessment_scores: tuple[SubjectScores, ...]
    trend: tuple[TrendBucket, ...]
    monthly_attendance: tuple[MonthlyAttendance, ...]
    performance: PerformanceStats
    recent_sessions: tuple[SessionRecord, ...]
    recent_submissions: tuple[SubmissionRecord, ...]
    upcoming_sessions: tuple[SessionRecord, ...]


@dataclass(frozen=True)
class ChildOverview:
    student_id: int
    name: str
    overall_progress: int
    severity: str
    attendance_rate: int
    average_score: float
    total_sessions: int
    assessments_count: int


# ===================================================================
# Date range resolution
# ===================================================================


def shift_months(moment: datetime, months: int) -> datetime:
    """Move *moment* by whole calendar months, clamping to the month's last day."""
    index = moment.year * 12 + (moment.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def effective_time_range(
    time_range: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> str:
    """The preset a request is actually computed with.

    Unknown presets, and ``custom`` without both dates, fall back to the last
    three months.
    """
    if time_range == CUSTOM:
        if start_date is not None and end_date is not None:
            return CUSTOM
        logger.debug("Custom range without both dates, using %s", FALLBACK_TIME_RANGE)
        return FALLBACK_TIME_RANGE
    if time_range not in TIME_RANGE_MONTHS:
        logger.debug("Unknown time range %r, using %s", time_range, FALLBACK_TIME_RANGE)
        return FALLBACK_TIME_RANGE
    return time_range


def resolve_date_range(
    time_range: str,
    start_date: date | None = None,
    end_date: date | None = None,
    now: datetime | None = None,
) -> DateRange:
    """Turn a preset name (or custom dates) into an inclusive datetime range."""
    if now is None:
        now = utc_now()

    preset = effective_time_range(time_range, start_date, end_date)
    if preset == CUSTOM:
        return DateRange(
            start=datetime.combine(start_date, time.min),
            end=datetime.combine(end_date, time.max),
        )
    return DateRange(start=shift_months(now, -TIME_RANGE_MONTHS[preset]), end=now)


def month_starts(date_range: DateRange) -> Iterator[datetime]:
    """Yield the first instant of every month touched by *date_range*."""
    current = datetime(date_range.start.year, date_range.start.month, 1)
    last = datetime(date_range.end.year, date_range.end.month, 1)
    while current <= last:
        yield current
        current = shift_months(current, 1)


def _month_key(moment: datetime) -> str:
    return moment.strftime("%Y-%m")


def _month_label(moment: datetime) -> str:
    return moment.strftime("%b %Y")


# ===================================================================
# Filtering
# ===================================================================


def filter_records(
    sessions: Iterable[SessionRecord],
    submissions: Iterable[SubmissionRecord],
    date_range: DateRange,
    subject_id: int | None = None,
) -> FilteredRecords:
    """Keep sessions and submissions dated inside *date_range*.

    With *subject_id* set, sessions must be for that subject and submissions
    must belong to an assessment of that subject.
    """
    kept_sessions = tuple(
        s
        for s in sessions
        if date_range.contains(s.start_time)
        and (subject_id is None or s.subject_id == subject_id)
    )
    kept_submissions = tuple(
        s
        for s in submissions
        if date_range.contains(s.created_at)
        and (subject_id is None or s.subject_id == subject_id)
    )
    return FilteredRecords(sessions=kept_sessions, submissions=kept_submissions)


# ===================================================================
# Rates
# ===================================================================


def attendance_stats(sessions: Iterable[SessionRecord]) -> AttendanceStats:
    """Attended share of *sessions*; 0 when there are none."""
    total = 0
    attended = 0
    for session in sessions:
        total += 1
        if session.counts_as_attended:
            attended += 1
    rate = clamp(attended / total * 100) if total else 0.0
    return AttendanceStats(total=total, attended=attended, rate=rate)


def score_stats(submissions: Iterable[SubmissionRecord]) -> ScoreStats:
    """Mean, max and min of the non-null scores; zeros when none are scored."""
    submissions = list(submissions)
    scores = [s.score for s in submissions if s.score is not None]
    if not scores:
        return ScoreStats(submissions=len(submissions))
    return ScoreStats(
        count=len(scores),
        average=clamp(sum(scores) / len(scores)),
        highest=max(scores),
        lowest=min(scores),
        submissions=len(submissions),
    )


# ===================================================================
# Trend and breakdowns
# ===================================================================


def build_monthly_trend(
    sessions: Iterable[SessionRecord],
    submissions: Iterable[SubmissionRecord],
    date_range: DateRange,
    weights: ProgressWeights | None = None,
    empty_progress: int | None = None,
) -> list[TrendBucket]:
    """One progress bucket per calendar month of *date_range*.

    A month with neither sessions nor scored submissions carries the previous
    month's progress forward (*empty_progress* for the first month).
    """
    if date_range.end < date_range.start:
        return []
    if empty_progress is None:
        empty_progress = settings.EMPTY_TREND_PROGRESS

    sessions_by_month: dict[str, list[SessionRecord]] = defaultdict(list)
    for session in sessions:
        sessions_by_month[_month_key(session.start_time)].append(session)
    submissions_by_month: dict[str, list[SubmissionRecord]] = defaultdict(list)
    for submission in submissions:
        submissions_by_month[_month_key(submission.created_at)].append(submission)

    buckets: list[TrendBucket] = []
    last_progress = empty_progress
    for month_start in month_starts(date_range):
        key = _month_key(month_start)
        attendance = attendance_stats(sessions_by_month.get(key, ()))
        scores = score_stats(submissions_by_month.get(key, ()))

        if attendance.total == 0 and scores.count == 0:
            progress = last_progress
        else:
            progress = weighted_progress(attendance.rate, scores.average, weights)

        buckets.append(
            TrendBucket(
                month=key,
                month_label=_month_label(month_start),
                progress=progress,
                attendance_rate=attendance.attendance_rate,
                average_score=round_half_up(scores.average),
                total_sessions=attendance.total,
                total_assessments=scores.count,
            )
        )
        last_progress = progress

    return buckets


def build_subject_breakdown(
    subjects: Iterable[SubjectRef],
    sessions: Sequence[SessionRecord],
    submissions: Sequence[SubmissionRecord],
    weights: ProgressWeights | None = None,
) -> list[SubjectProgress]:
    """Per-subject progress rows, highest progress first (stable on ties)."""
    rows: list[SubjectProgress] = []
    for subject in subjects:
        subject_sessions = [s for s in sessions if s.subject_id == subject.id]
        subject_submissions = [s for s in submissions if s.subject_id == subject.id]

        attendance = attendance_stats(subject_sessions)
        scores = score_stats(subject_submissions)
        progress = weighted_progress(attendance.rate, scores.average, weights)
        band = grade_from_score(scores.average)

        rows.append(
            SubjectProgress(
                subject_id=subject.id,
                name=subject.name,
                progress=progress,
                total_sessions=attendance.total,
                attended_sessions=attendance.attended,
                attendance_rate=attendance.attendance_rate,
                assessments_count=scores.submissions,
                average_score=round_half_up(scores.average, 1),
                grade=band.grade,
                grade_severity=band.severity,
                severity=progress_severity(progress),
            )
        )

    # sorted() is stable, including with reverse=True
    return sorted(rows, key=lambda row: row.progress, reverse=True)


def build_assessment_scores(submissions: Iterable[SubmissionRecord]) -> list[SubjectScores]:
    """Score summary per subject name, best average first."""
    by_subject: dict[str, list[SubmissionRecord]] = {}
    for submission in submissions:
        by_subject.setdefault(submission.subject_name or UNKNOWN_SUBJECT, []).append(submission)

    rows = []
    for subject, items in by_subject.items():
        scores = score_stats(items)
        average = round_half_up(scores.average, 1)
        band = grade_from_score(average)
        rows.append(
            SubjectScores(
                subject=subject,
                average_score=average,
                count=scores.submissions,
                highest=scores.highest,
                lowest=scores.lowest,
                grade=band.grade,
                grade_severity=band.severity,
            )
        )
    return sorted(rows, key=lambda row: row.average_score, reverse=True)


def build_monthly_attendance(
    sessions: Iterable[SessionRecord],
    date_range: DateRange,
) -> list[MonthlyAttendance]:
    """Session counts per calendar month of *date_range*; empty months are zeros."""
    if date_range.end < date_range.start:
        return []

    months = list(month_starts(date_range))
    by_month: dict[str, list[SessionRecord]] = {_month_key(m): [] for m in months}
    for session in sessions:
        key = _month_key(session.start_time)
        if key in by_month:
            by_month[key].append(session)

    rows = []
    for month_start in months:
        stats = attendance_stats(by_month[_month_key(month_start)])
        rows.append(
            MonthlyAttendance(
                month=_month_key(month_start),
                month_label=_month_label(month_start),
                total=stats.total,
                attended=stats.attended,
                missed=stats.missed,
            )
        )
    return rows


def build_performance_stats(sessions: Iterable[SessionRecord]) -> PerformanceStats:
    """Summarise tutor-assigned performance scores of completed sessions."""
    scored = sorted(
        (
            s
            for s in sessions
            if s.status == STATUS_COMPLETED and s.performance_score is not None
        ),
        key=lambda s: s.start_time,
    )
    if not scored:
        return PerformanceStats()

    values = [s.performance_score for s in scored]
    trend = "steady"
    if len(scored) > 1:
        trend = performance_trend(values[0], values[-1])

    return PerformanceStats(
        average=round_half_up(sum(values) / len(values), 1),
        highest=round_half_up(max(values), 1),
        lowest=round_half_up(min(values), 1),
        trend=trend,
        total_sessions=len(scored),
    )


# ===================================================================
# Dashboards
# ===================================================================


def build_progress_report(context: ProgressContext, records: StudentRecords) -> ProgressReport:
    """Compute a student's complete progress dashboard for *context*."""
    now = context.now or utc_now()
    preset = effective_time_range(context.time_range, context.start_date, context.end_date)
    date_range = resolve_date_range(
        context.time_range, context.start_date, context.end_date, now=now
    )
    filtered = filter_records(
        records.sessions, records.submissions, date_range, context.subject_id
    )
    logger.debug(
        "Student %d: %d sessions, %d submissions in %s..%s",
        records.student_id,
        len(filtered.sessions),
        len(filtered.submissions),
        date_range.start,
        date_range.end,
    )

    attendance = attendance_stats(filtered.sessions)
    scores = score_stats(filtered.submissions)
    overall = weighted_progress(attendance.rate, scores.average, context.weights)

    upcoming = sorted(
        (
            s
            for s in records.sessions
            if s.status == STATUS_SCHEDULED and s.start_time > now
        ),
        key=lambda s: s.start_time,
    )

    return ProgressReport(
        student_id=records.student_id,
        name=records.name,
        time_range=preset,
        date_range=date_range,
        subject_id=context.subject_id,
        overall_progress=overall,
        overall_severity=progress_severity(overall),
        attendance_rate=attendance.attendance_rate,
        average_score=round_half_up(scores.average, 1),
        attendance=attendance,
        scores=scores,
        subjects=tuple(
            build_subject_breakdown(
                records.subjects, filtered.sessions, filtered.submissions, context.weights
            )
        ),
        assessment_scores=tuple(build_assessment_scores(filtered.submissions)),
        trend=tuple(
            build_monthly_trend(
                filtered.sessions, filtered.submissions, date_range, context.weights
            )
        ),
        monthly_attendance=tuple(build_monthly_attendance(filtered.sessions, date_range)),
        performance=build_performance_stats(filtered.sessions),
        recent_sessions=tuple(
            sorted(filtered.sessions, key=lambda s: s.start_time, reverse=True)[:RECENT_LIMIT]
        ),
        recent_submissions=tuple(
            sorted(filtered.submissions, key=lambda s: s.created_at, reverse=True)[:RECENT_LIMIT]
        ),
        upcoming_sessions=tuple(upcoming[:RECENT_LIMIT]),
    )


def build_family_overview(
    context: ProgressContext,
    children: Iterable[StudentRecords],
) -> list[ChildOverview]:
    """Headline numbers for each child of a parent, in the given order."""
    now = context.now or utc_now()
    date_range = resolve_date_range(
        context.time_range, context.start_date, context.end_date, now=now
    )

    overview = []
    for child in children:
        filtered = filter_records(
            child.sessions, child.submissions, date_range, context.subject_id
        )
        attendance = attendance_stats(filtered.sessions)
        scores = score_stats(filtered.submissions)
        progress = weighted_progress(attendance.rate, scores.average, context.weights)
        overview.append(
            ChildOverview(
                student_id=child.student_id,
                name=child.name,
                overall_progress=progress,
                severity=progress_severity(progress),
                attendance_rate=attendance.attendance_rate,
                average_score=round_half_up(scores.average, 1),
                total_sessions=attendance.total,
                assessments_count=scores.submissions,
            )
        )
    return overview
