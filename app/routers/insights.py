"""Learning insight routes (skill mastery, focus areas, comparisons)."""

from fastapi import APIRouter, Depends, HTTPException

from app.dependencies import get_student_records
from app.services.insights import (
    INSIGHT_KINDS,
    InsightProvider,
    InsightsUnavailableError,
    get_insight_provider,
)
from app.services.records import StudentRecords

router = APIRouter(prefix="/api/students", tags=["insights"])


@router.get("/{student_id}/insights/{kind}")
async def student_insight(
    kind: str,
    records: StudentRecords = Depends(get_student_records),
    provider: InsightProvider = Depends(get_insight_provider),
):
    """Return one insight for a student, or 501 when no source backs it."""
    if kind not in INSIGHT_KINDS:
        raise HTTPException(status_code=404, detail="Unknown insight")
    try:
        data = await provider.get(kind, records.student_id)
    except InsightsUnavailableError as e:
        raise HTTPException(status_code=501, detail=str(e)) from e
    return {"student_id": records.student_id, "kind": kind, "data": data}
