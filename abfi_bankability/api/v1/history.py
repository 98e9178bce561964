"""GET /v1/projects/{project_id}/assessments - project assessment history"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from abfi_bankability.api.v1.schemas import AssessmentResponse, HistoryItem, HistoryResponse
from abfi_bankability.config import settings
from abfi_bankability.infrastructure.database.session import get_db
from abfi_bankability.infrastructure.database.repositories import AssessmentRepository

router = APIRouter()


@router.get("/projects/{project_id}/assessments", response_model=HistoryResponse)
def get_assessment_history(
    project_id: str,
    limit: int = Query(settings.history_limit, ge=1, le=100, description="Maximum assessments to return"),
    db: Session = Depends(get_db),
):
    """
    Retrieve a project's assessments, newest version first.

    Returns:
        Superseded and current assessments with composite score and rating
    """
    records = AssessmentRepository(db).get_assessments_by_project(project_id, limit=limit)

    history_items = [
        HistoryItem(
            assessment_number=r.assessment_number,
            composite_score=r.composite_score,
            rating=r.rating,
            version_number=r.version_number,
            is_current=r.is_current,
            assessed_at=r.assessed_at.isoformat(),
        )
        for r in records
    ]

    return HistoryResponse(project_id=project_id, assessments=history_items)


@router.get("/projects/{project_id}/assessments/latest", response_model=AssessmentResponse)
def get_latest_assessment(project_id: str, db: Session = Depends(get_db)):
    """Retrieve the project's current assessment"""
    record = AssessmentRepository(db).get_latest_assessment(project_id)

    if not record:
        raise HTTPException(status_code=404, detail="No assessment for project")

    return AssessmentResponse.from_record(record)
