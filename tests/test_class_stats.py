"""Teacher class dashboard aggregation."""

from datetime import datetime

import pytest

from app.services.class_stats import (
    ClassContext,
    build_class_dashboard,
    build_daily_attendance,
    build_student_stats,
    build_subject_changes,
    change_cutoff,
    period_start,
)
from tests.clock import NOW


@pytest.mark.parametrize(
    "period, expected",
    [
        ("week", datetime(2026, 5, 8, 12, 0)),
        ("month", datetime(2026, 4, 15, 12, 0)),
        ("quarter", datetime(2026, 2, 15, 12, 0)),
        ("decade", datetime(2026, 5, 8, 12, 0)),
    ],
)
def test_period_start(period, expected):
    assert period_start(period, NOW) == expected


def test_change_cutoff_is_start_of_day_one_month_ago():
    assert change_cutoff(NOW) == datetime(2026, 4, 15)


# ---------------------------------------------------------------------------
# Student stats
# ---------------------------------------------------------------------------


@pytest.fixture()
def class_sessions(make_session):
    return [
        make_session(datetime(2026, 5, 10), student_id=2, student_name="Bo", performance_score=80),
        make_session(datetime(2026, 5, 11), student_id=2, student_name="Bo", attended=False),
        make_session(datetime(2026, 5, 12), student_id=1, student_name="Al", performance_score=90),
    ]


def test_student_stats_values(class_sessions):
    stats = {s.name: s for s in build_student_stats(class_sessions)}
    assert stats["Bo"].total_sessions == 2
    assert stats["Bo"].attended_sessions == 1
    assert stats["Bo"].attendance_rate == 50
    assert stats["Bo"].score == 80
    assert stats["Al"].attendance_rate == 100
    assert stats["Al"].score == 90


@pytest.mark.parametrize(
    "sort, order",
    [
        ("score_high", ["Al", "Bo"]),
        ("score_low", ["Bo", "Al"]),
        ("attendance_high", ["Al", "Bo"]),
        ("attendance_low", ["Bo", "Al"]),
        ("name", ["Al", "Bo"]),
        ("shoe_size", ["Bo", "Al"]),
    ],
)
def test_student_stats_sorting(class_sessions, sort, order):
    assert [s.name for s in build_student_stats(class_sessions, sort)] == order


def test_student_without_scores_has_zero_score(make_session):
    (stat,) = build_student_stats([make_session(NOW, student_name="Cy")])
    assert stat.score == 0
    assert stat.attendance_rate == 100


# ---------------------------------------------------------------------------
# Daily attendance
# ---------------------------------------------------------------------------


def test_daily_attendance_covers_eight_days(make_session):
    sessions = [
        make_session(datetime(2026, 5, 8, 10)),
        make_session(datetime(2026, 5, 14, 9)),
        make_session(datetime(2026, 5, 14, 15), attended=False),
        make_session(datetime(2026, 5, 15, 13)),
        make_session(datetime(2026, 5, 1, 10)),
    ]
    rows = build_daily_attendance(sessions, NOW)

    assert len(rows) == 8
    assert (rows[0].date, rows[0].day, rows[0].attendance) == ("08", "Fri", 100.0)
    assert rows[6].date == "14"
    assert rows[6].attendance == 50.0
    # the 13:00 session is still in the future
    assert (rows[7].date, rows[7].attendance) == ("15", 0.0)
    assert [r.attendance for r in rows[1:6]] == [0.0] * 5


# ---------------------------------------------------------------------------
# Subject changes
# ---------------------------------------------------------------------------


@pytest.fixture()
def change_sessions(make_session):
    return [
        make_session(datetime(2026, 3, 20), subject_name="Math", performance_score=70),
        make_session(datetime(2026, 4, 20), subject_name="Math", performance_score=80),
        make_session(datetime(2026, 4, 1), subject_name="Science", performance_score=90),
        make_session(datetime(2026, 5, 1), subject_name="Science", performance_score=85),
        make_session(datetime(2026, 3, 1), subject_name="Art", performance_score=60),
    ]


def test_subject_changes_compare_months(change_sessions):
    changes = {c.subject: c for c in build_subject_changes(change_sessions, NOW)}
    assert set(changes) == {"Math", "Science"}
    assert (changes["Math"].from_score, changes["Math"].to_score, changes["Math"].change) == (
        70,
        80,
        10,
    )
    assert changes["Science"].change == -5


def test_subject_changes_sort(change_sessions):
    high = build_subject_changes(change_sessions, NOW, sort="high")
    low = build_subject_changes(change_sessions, NOW, sort="low")
    assert [c.subject for c in high] == ["Math", "Science"]
    assert [c.subject for c in low] == ["Science", "Math"]


def test_subject_without_previous_scores_starts_from_zero(make_session):
    sessions = [make_session(datetime(2026, 5, 1), subject_name="Music", performance_score=75)]
    (change,) = build_subject_changes(sessions, NOW)
    assert change.from_score == 0
    assert change.to_score == 75
    assert change.change == 75


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


def test_class_dashboard_filters_subject_and_period(make_session):
    sessions = [
        make_session(datetime(2026, 5, 12), subject_id=1, student_id=1, student_name="Al"),
        make_session(datetime(2026, 5, 13), subject_id=2, student_id=2, student_name="Bo"),
        make_session(datetime(2026, 4, 1), subject_id=1, student_id=3, student_name="Cy"),
        make_session(datetime(2026, 5, 20), subject_id=1, student_id=4, student_name="Di"),
    ]

    week = build_class_dashboard(9, ClassContext(subject_id=1, now=NOW), sessions)
    assert week.teacher_id == 9
    assert week.period == "week"
    assert [s.name for s in week.students] == ["Al"]

    quarter = build_class_dashboard(
        9, ClassContext(period="quarter", student_sort="name", now=NOW), sessions
    )
    assert [s.name for s in quarter.students] == ["Al", "Bo", "Cy"]


def test_class_dashboard_unknown_period_reports_week(make_session):
    dashboard = build_class_dashboard(1, ClassContext(period="fortnight", now=NOW), [])
    assert dashboard.period == "week"
    assert dashboard.students == ()
    assert len(dashboard.daily_attendance) == 8
    assert dashboard.subject_changes == ()
