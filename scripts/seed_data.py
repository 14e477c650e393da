"""Seed the database with demo data (subjects, a family, a teacher, sessions).

Usage: uv run python scripts/seed_data.py
"""

import asyncio
import random
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Ensure project root is on sys.path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from sqlalchemy import select

from app.config import settings
from app.database import init_db, async_session
from app.models import (
    Assessment,
    AssessmentSubmission,
    LearningSession,
    ParentProfile,
    Student,
    Subject,
    Teacher,
)
from app.models.learning_session import STATUS_COMPLETED, STATUS_SCHEDULED

SEED_SUBJECTS = ["Mathematics", "Science", "English", "Quran Recitation"]

SEED_PARENT = {"name": "Demo Parent", "email": "parent@example.com"}
SEED_TEACHER = {"name": "Demo Teacher", "email": "teacher@example.com"}
SEED_CHILDREN = [
    {"name": "Amina", "grade_level": "Grade 5"},
    {"name": "Yusuf", "grade_level": "Grade 3"},
]


async def get_or_create(session, model, lookup: dict, **values):
    result = await session.execute(select(model).filter_by(**lookup))
    existing = result.scalar_one_or_none()
    if existing:
        print(f"  Exists: {model.__name__} {lookup}")
        return existing
    obj = model(**lookup, **values)
    session.add(obj)
    await session.flush()
    print(f"  Inserted: {model.__name__} {lookup}")
    return obj


async def seed() -> None:
    # Ensure data directory exists
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)

    # Create tables
    await init_db()
    print("Database tables created.")

    rng = random.Random(42)
    now = datetime.now(timezone.utc).replace(tzinfo=None)

    async with async_session() as session:
        subjects = [await get_or_create(session, Subject, {"name": name}) for name in SEED_SUBJECTS]
        parent = await get_or_create(
            session, ParentProfile, {"email": SEED_PARENT["email"]}, name=SEED_PARENT["name"]
        )
        teacher = await get_or_create(
            session, Teacher, {"email": SEED_TEACHER["email"]}, name=SEED_TEACHER["name"]
        )

        assessments = [
            await get_or_create(
                session, Assessment, {"title": f"{subject.name} quiz"}, subject_id=subject.id
            )
            for subject in subjects
        ]

        for child_data in SEED_CHILDREN:
            result = await session.execute(
                select(Student).where(
                    Student.parent_profile_id == parent.id,
                    Student.name == child_data["name"],
                )
            )
            if result.scalar_one_or_none():
                print(f"  Exists: Student {child_data['name']}")
                continue

            child = Student(parent_profile_id=parent.id, **child_data)
            child.subjects = subjects[:3]
            session.add(child)
            await session.flush()
            print(f"  Inserted: Student {child.name}")

            # Two sessions a week over the last four months, plus upcoming ones
            for week in range(-16, 2):
                for subject in child.subjects:
                    start = now + timedelta(weeks=week, days=rng.randint(0, 4), hours=rng.randint(0, 6))
                    completed = start < now
                    session.add(
                        LearningSession(
                            student_id=child.id,
                            subject_id=subject.id,
                            teacher_id=teacher.id,
                            title=f"{subject.name} lesson",
                            start_time=start,
                            end_time=start + timedelta(hours=1),
                            status=STATUS_COMPLETED if completed else STATUS_SCHEDULED,
                            attended=completed and rng.random() < 0.85,
                            performance_score=round(rng.uniform(55, 98), 2) if completed else None,
                        )
                    )

            for assessment in assessments[:3]:
                session.add(
                    AssessmentSubmission(
                        assessment_id=assessment.id,
                        student_id=child.id,
                        score=rng.randint(50, 100),
                        status="graded",
                        created_at=now - timedelta(days=rng.randint(1, 80)),
                    )
                )

        await session.commit()

    print("Seed data complete.")


if __name__ == "__main__":
    asyncio.run(seed())
