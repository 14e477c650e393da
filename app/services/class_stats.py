"""Teacher class dashboard: per-student stats, daily attendance, score changes."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

from app.services.progress import attendance_stats, shift_months
from app.services.records import SessionRecord, utc_now
from app.services.scoring import round_half_up

logger = logging.getLogger(__name__)

PERIOD_WEEK = "week"
PERIOD_MONTH = "month"
PERIOD_QUARTER = "quarter"
PERIOD_MONTHS: dict[str, int] = {PERIOD_MONTH: 1, PERIOD_QUARTER: 3}

STUDENT_SORTS = ("score_high", "score_low", "attendance_high", "attendance_low", "name")
DAILY_WINDOW_DAYS = 8


@dataclass(frozen=True)
class ClassContext:
    period: str = PERIOD_WEEK
    subject_id: int | None = None
    student_sort: str = "score_high"
    change_sort: str = "high"
    now: datetime | None = None


@dataclass(frozen=True)
class StudentStat:
    student_id: int
    name: str
    total_sessions: int
    attended_sessions: int
    attendance_rate: int
    score: int


@dataclass(frozen=True)
class DailyAttendance:
    date: str
    day: str
    attendance: float


@dataclass(frozen=True)
class SubjectChange:
    subject: str
    from_score: int
    to_score: int
    change: int


@dataclass(frozen=True)
class ClassDashboard:
    teacher_id: int
    period: str
    subject_id: int | None
    period_start: datetime
    students: tuple[StudentStat, ...]
    daily_attendance: tuple[DailyAttendance, ...]
    subject_changes: tuple[SubjectChange, ...]


def period_start(period: str, now: datetime) -> datetime:
    """Start of the reporting period; unknown periods mean one week."""
    months = PERIOD_MONTHS.get(period)
    if months is None:
        return now - timedelta(weeks=1)
    return shift_months(now, -months)


def _day_start(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def change_cutoff(now: datetime) -> datetime:
    """Boundary between "previous" and "current" scores: one month ago."""
    return _day_start(shift_months(now, -1))


def earliest_start(context: ClassContext, now: datetime) -> datetime:
    """Oldest session start any part of the dashboard looks at."""
    return min(
        period_start(context.period, now),
        _day_start(now - timedelta(days=DAILY_WINDOW_DAYS - 1)),
        shift_months(change_cutoff(now), -1),
    )


def _mean(values: Sequence[float]) -> float | None:
    return sum(values) / len(values) if values else None


def build_student_stats(
    sessions: Iterable[SessionRecord],
    sort: str = "score_high",
) -> list[StudentStat]:
    """Attendance and mean performance score per student.

    Unknown *sort* values keep the order students were first seen in.
    """
    by_student: dict[int, list[SessionRecord]] = {}
    for session in sessions:
        by_student.setdefault(session.student_id, []).append(session)

    stats = []
    for student_id, items in by_student.items():
        attendance = attendance_stats(items)
        mean = _mean([s.performance_score for s in items if s.performance_score is not None])
        stats.append(
            StudentStat(
                student_id=student_id,
                name=items[0].student_name or "",
                total_sessions=attendance.total,
                attended_sessions=attendance.attended,
                attendance_rate=attendance.attendance_rate,
                score=round_half_up(mean) if mean is not None else 0,
            )
        )

    if sort == "score_high":
        return sorted(stats, key=lambda s: s.score, reverse=True)
    if sort == "score_low":
        return sorted(stats, key=lambda s: s.score)
    if sort == "attendance_high":
        return sorted(stats, key=lambda s: s.attendance_rate, reverse=True)
    if sort == "attendance_low":
        return sorted(stats, key=lambda s: s.attendance_rate)
    if sort == "name":
        return sorted(stats, key=lambda s: s.name)
    return stats


def build_daily_attendance(
    sessions: Iterable[SessionRecord],
    now: datetime,
    days: int = DAILY_WINDOW_DAYS,
) -> list[DailyAttendance]:
    """Attendance percentage for each of the last *days* days, oldest first."""
    first_day = _day_start(now - timedelta(days=days - 1))
    by_day: dict[str, list[SessionRecord]] = {}
    for session in sessions:
        if first_day <= session.start_time <= now:
            by_day.setdefault(session.start_time.date().isoformat(), []).append(session)

    rows = []
    for offset in range(days):
        day = first_day + timedelta(days=offset)
        items = by_day.get(day.date().isoformat())
        attendance = 0.0
        if items:
            stats = attendance_stats(items)
            attendance = round_half_up(stats.rate, 1)
        rows.append(
            DailyAttendance(
                date=day.strftime("%d"),
                day=day.strftime("%a"),
                attendance=attendance,
            )
        )
    return rows


def build_subject_changes(
    sessions: Iterable[SessionRecord],
    now: datetime,
    sort: str = "high",
) -> list[SubjectChange]:
    """Mean performance score per subject, last month versus the month before."""
    cutoff = change_cutoff(now)
    window_start = shift_months(cutoff, -1)

    previous: dict[str, list[float]] = {}
    current: dict[str, list[float]] = {}
    for session in sessions:
        if session.start_time < window_start:
            continue
        subject = session.subject_name or str(session.subject_id)
        previous.setdefault(subject, [])
        current.setdefault(subject, [])
        if session.performance_score is None:
            continue
        bucket = previous if session.start_time < cutoff else current
        bucket[subject].append(session.performance_score)

    changes = []
    for subject in previous:
        before = _mean(previous[subject])
        after = _mean(current[subject])
        from_score = round_half_up(before) if before is not None else 0
        to_score = round_half_up(after) if after is not None else 0
        changes.append(
            SubjectChange(
                subject=subject,
                from_score=from_score,
                to_score=to_score,
                change=to_score - from_score,
            )
        )

    return sorted(changes, key=lambda c: c.change, reverse=(sort == "high"))


def build_class_dashboard(
    teacher_id: int,
    context: ClassContext,
    sessions: Iterable[SessionRecord],
) -> ClassDashboard:
    """Compute the class dashboard from a teacher's recent sessions."""
    now = context.now or utc_now()
    sessions = [
        s
        for s in sessions
        if context.subject_id is None or s.subject_id == context.subject_id
    ]
    start = period_start(context.period, now)
    in_period = [s for s in sessions if start <= s.start_time <= now]
    logger.debug(
        "Teacher %d: %d sessions since %s (%s)", teacher_id, len(in_period), start, context.period
    )

    return ClassDashboard(
        teacher_id=teacher_id,
        period=context.period if context.period in (PERIOD_WEEK, *PERIOD_MONTHS) else PERIOD_WEEK,
        subject_id=context.subject_id,
        period_start=start,
        students=tuple(build_student_stats(in_period, context.student_sort)),
        daily_attendance=tuple(build_daily_attendance(sessions, now)),
        subject_changes=tuple(build_subject_changes(sessions, now, context.change_sort)),
    )
