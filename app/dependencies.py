"""FastAPI dependencies for route handlers."""

import logging

from fastapi import Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.parent_profile import ParentProfile
from app.models.teacher import Teacher
from app.services.records import StudentRecords, load_student_records

logger = logging.getLogger(__name__)


async def get_student_records(
    student_id: int, db: AsyncSession = Depends(get_db)
) -> StudentRecords:
    """Load a student's records or fail with 404."""
    records = await load_student_records(db, student_id)
    if records is None:
        logger.warning("Progress requested for unknown student %d", student_id)
        raise HTTPException(status_code=404, detail="Student not found")
    return records


async def get_teacher(teacher_id: int, db: AsyncSession = Depends(get_db)) -> Teacher:
    """Require an existing teacher."""
    result = await db.execute(select(Teacher).where(Teacher.id == teacher_id))
    teacher = result.scalar_one_or_none()
    if teacher is None:
        logger.warning("Class dashboard requested for unknown teacher %d", teacher_id)
        raise HTTPException(status_code=404, detail="Teacher not found")
    return teacher


async def get_parent_profile(
    parent_id: int, db: AsyncSession = Depends(get_db)
) -> ParentProfile:
    """Require an existing parent profile."""
    result = await db.execute(select(ParentProfile).where(ParentProfile.id == parent_id))
    parent = result.scalar_one_or_none()
    if parent is None:
        logger.warning("Overview requested for unknown parent %d", parent_id)
        raise HTTPException(status_code=404, detail="Parent profile not found")
    return parent
