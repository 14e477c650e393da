"""HTTP API tests against the seeded in-memory database."""

from datetime import timedelta

import pytest

from app.models import Assessment, AssessmentSubmission
from app.services.records import utc_now


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_time_range_options(client):
    resp = await client.get("/api/time-ranges")
    assert resp.status_code == 200
    assert resp.json()["last_3_months"] == "Last 3 Months"
    assert "custom" in resp.json()


# ---------------------------------------------------------------------------
# Student progress
# ---------------------------------------------------------------------------


async def test_student_progress(client, seeded):
    resp = await client.get(
        f"/api/students/{seeded['student_id']}/progress", params={"time_range": "last_month"}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Amina"
    assert data["time_range"] == "last_month"
    assert data["attendance"]["total"] == 10
    assert data["attendance"]["missed"] == 2
    assert data["attendance_rate"] == 80
    assert data["average_score"] == 80.0
    assert data["overall_progress"] == 80
    assert data["overall_severity"] == "success"
    assert [s["name"] for s in data["subjects"]] == ["Mathematics", "Science"]
    assert data["subjects"][0]["grade"] == "B"
    assert data["subjects"][1]["total_sessions"] == 0
    assert data["assessment_scores"][0]["subject"] == "Mathematics"
    assert data["performance"]["average"] == 80.0
    assert len(data["recent_sessions"]) == 5
    assert data["upcoming_sessions"] == []


async def test_student_progress_subject_filter(client, seeded):
    resp = await client.get(
        f"/api/students/{seeded['student_id']}/progress",
        params={"subject_id": seeded["science_id"]},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["subject_id"] == seeded["science_id"]
    assert data["attendance"]["total"] == 0
    assert data["overall_progress"] == 0


async def test_student_progress_unknown_time_range_falls_back(client, seeded):
    resp = await client.get(
        f"/api/students/{seeded['student_id']}/progress", params={"time_range": "forever"}
    )
    assert resp.status_code == 200
    assert resp.json()["time_range"] == "last_3_months"


async def test_student_progress_custom_without_end_date_falls_back(client, seeded):
    resp = await client.get(
        f"/api/students/{seeded['student_id']}/progress",
        params={"time_range": "custom", "start_date": "2026-01-01"},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["time_range"] == "last_3_months"
    assert data["attendance"]["total"] == 10


async def test_submission_without_subject_is_grouped_as_unknown(client, db_session, seeded):
    reading = Assessment(title="Reading log", subject_id=None)
    db_session.add(reading)
    await db_session.flush()
    db_session.add(
        AssessmentSubmission(
            assessment_id=reading.id,
            student_id=seeded["student_id"],
            score=60,
            status="graded",
            created_at=utc_now() - timedelta(days=1),
        )
    )
    await db_session.commit()
    db_session.expunge_all()

    resp = await client.get(f"/api/students/{seeded['student_id']}/progress")
    assert resp.status_code == 200
    data = resp.json()
    assert [s["subject"] for s in data["assessment_scores"]] == ["Mathematics", "Unknown"]
    latest = data["recent_submissions"][0]
    assert latest["title"] == "Reading log"
    assert latest["subject_id"] is None
    assert latest["subject_name"] is None

    resp = await client.get(
        f"/api/students/{seeded['student_id']}/progress",
        params={"subject_id": seeded["math_id"]},
    )
    assert resp.json()["scores"]["submissions"] == 3


async def test_student_progress_not_found(client):
    resp = await client.get("/api/students/999/progress")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Student not found"


async def test_student_progress_rejects_bad_date(client, seeded):
    resp = await client.get(
        f"/api/students/{seeded['student_id']}/progress",
        params={"time_range": "custom", "start_date": "not-a-date"},
    )
    assert resp.status_code == 422


async def test_student_trend(client, seeded):
    resp = await client.get(f"/api/students/{seeded['student_id']}/progress/trend")
    assert resp.status_code == 200
    buckets = resp.json()
    assert len(buckets) >= 4
    assert buckets[-1]["total_sessions"] + buckets[-2]["total_sessions"] >= 1
    assert all(0 <= b["progress"] <= 100 for b in buckets)


async def test_student_subject_breakdown(client, seeded):
    resp = await client.get(f"/api/students/{seeded['student_id']}/progress/subjects")
    assert resp.status_code == 200
    rows = resp.json()
    assert [r["subject_id"] for r in rows] == [seeded["math_id"], seeded["science_id"]]
    assert rows[0]["progress"] == 80
    assert rows[1]["severity"] == "error"


# ---------------------------------------------------------------------------
# Parent overview
# ---------------------------------------------------------------------------


async def test_family_overview(client, seeded):
    resp = await client.get(f"/api/parents/{seeded['parent_id']}/overview")
    assert resp.status_code == 200
    children = resp.json()
    assert len(children) == 1
    assert children[0]["name"] == "Amina"
    assert children[0]["overall_progress"] == 80
    assert children[0]["assessments_count"] == 3


async def test_family_overview_unknown_parent(client):
    resp = await client.get("/api/parents/999/overview")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Teacher class dashboard
# ---------------------------------------------------------------------------


async def test_class_dashboard(client, seeded):
    resp = await client.get(
        f"/api/teachers/{seeded['teacher_id']}/class", params={"period": "month"}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["teacher_name"] == "Teacher"
    assert data["period"] == "month"
    (student,) = data["students"]
    assert student["name"] == "Amina"
    assert student["total_sessions"] == 10
    assert student["attendance_rate"] == 80
    assert student["score"] == 80
    assert len(data["daily_attendance"]) == 8
    assert [c["subject"] for c in data["subject_changes"]] == ["Mathematics"]


@pytest.mark.parametrize("subject", ["all", "abc", ""])
async def test_class_dashboard_subject_all(client, seeded, subject):
    resp = await client.get(
        f"/api/teachers/{seeded['teacher_id']}/class", params={"subject_id": subject}
    )
    assert resp.status_code == 200
    assert resp.json()["subject_id"] is None


async def test_class_dashboard_subject_filter(client, seeded):
    resp = await client.get(
        f"/api/teachers/{seeded['teacher_id']}/class",
        params={"subject_id": str(seeded["science_id"])},
    )
    assert resp.status_code == 200
    assert resp.json()["students"] == []


async def test_class_dashboard_unknown_teacher(client):
    resp = await client.get("/api/teachers/999/class")
    assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


async def test_insight_not_implemented(client, seeded):
    resp = await client.get(f"/api/students/{seeded['student_id']}/insights/skill_mastery")
    assert resp.status_code == 501
    assert "skill_mastery" in resp.json()["detail"]


async def test_insight_unknown_kind(client, seeded):
    resp = await client.get(f"/api/students/{seeded['student_id']}/insights/horoscope")
    assert resp.status_code == 404


async def test_insight_unknown_student(client):
    resp = await client.get("/api/students/999/insights/skill_mastery")
    assert resp.status_code == 404
