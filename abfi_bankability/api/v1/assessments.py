"""POST /v1/assessments and GET /v1/assessments/{assessment_number} - bankability scoring endpoints"""

import time
import logging
from typing import Any, Callable, Tuple, TypeVar
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from abfi_bankability.api.v1.schemas import AssessmentRequest, AssessmentResponse, ValidationErrorResponse
from abfi_bankability.api.dependencies import get_request_id, get_scoring_policy
from abfi_bankability.config import settings
from abfi_bankability.infrastructure.database.session import get_db
from abfi_bankability.infrastructure.database.repositories import AssessmentRepository
from abfi_bankability.domain.exceptions import ValidationError
from abfi_bankability.domain.metrics import aggregate_supplier_volumes
from abfi_bankability.domain.models import (
    ConcentrationData,
    OperationalData,
    ProjectSupply,
    SupplyAgreement,
    SupplyPosition,
)
from abfi_bankability.domain.policy import ScoringPolicy
from abfi_bankability.domain.scoring import calculate_bankability_scores
from abfi_bankability.infrastructure.observability.metrics import record_assessment, record_validation_failure
from abfi_bankability.infrastructure.observability.logging import log_assessment
from abfi_bankability.utils.date_utils import validity_window

router = APIRouter()

T = TypeVar("T")


def _build(path: str, factory: Callable[..., T], **fields: Any) -> T:
    """Construct a domain record, prefixing validation errors with its request path"""
    try:
        return factory(**fields)
    except ValidationError as e:
        raise ValidationError(f"{path}.{e.field}" if path else e.field, e.message) from e


def _build_inputs(body: AssessmentRequest) -> Tuple[ProjectSupply, ConcentrationData, OperationalData]:
    """Translate the request body into validated domain records"""
    agreements = tuple(
        _build(f"agreements[{i}]", SupplyAgreement, **item.model_dump())
        for i, item in enumerate(body.agreements)
    )
    supply = _build(
        "",
        ProjectSupply,
        nameplate_capacity=body.nameplate_capacity,
        debt_tenor_years=body.debt_tenor_years,
        agreements=agreements,
    )

    if body.supply_positions is None:
        positions = tuple(aggregate_supplier_volumes(agreements))
    else:
        positions = tuple(
            _build(f"supply_positions[{i}]", SupplyPosition, **item.model_dump())
            for i, item in enumerate(body.supply_positions)
        )
    concentration = _build("", ConcentrationData, positions=positions, climate_zones=body.climate_zones)
    operational = _build("operational", OperationalData, **body.operational.model_dump())

    return supply, concentration, operational


@router.post("/assessments", response_model=AssessmentResponse, status_code=201)
def create_assessment(
    request_body: AssessmentRequest,
    request: Request,
    db: Session = Depends(get_db),
    policy: ScoringPolicy = Depends(get_scoring_policy),
):
    """
    Score a project's bankability.

    Flow:
    1. Validate supply, concentration and operational inputs
    2. Run the five category scorers, composite and rating
    3. Persist as the project's current assessment (unless persist=false)
    4. Return the full assessment
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        # 1. Build validated domain records
        supply, concentration, operational = _build_inputs(request_body)

        # 2. Score
        assessment = calculate_bankability_scores(
            supply,
            concentration,
            operational,
            policy=policy,
            prefix=settings.assessment_number_prefix,
        )

        # 3. Persist, superseding the previous current assessment
        record = None
        if request_body.persist:
            valid_from, valid_until = validity_window(assessment.assessed_at, settings.assessment_validity_days)
            record = AssessmentRepository(db).create_assessment(
                project_id=request_body.project_id,
                assessment=assessment,
                valid_from=valid_from,
                valid_until=valid_until,
                reassessment_reason=request_body.reassessment_reason,
            )
            db.commit()

        # Record metrics and logs
        duration_ms = (time.time() - start_time) * 1000
        record_assessment(assessment.rating.value, assessment.composite_score)
        log_assessment(
            request_id,
            request_body.project_id,
            assessment.assessment_number,
            assessment.composite_score,
            assessment.rating.value,
            record is not None,
            duration_ms,
        )

        return AssessmentResponse.from_assessment(request_body.project_id, assessment, record)

    except ValidationError as e:
        db.rollback()
        record_validation_failure(e.field)
        logging.warning(f"Invalid assessment input: {e}", extra={"request_id": request_id})
        raise HTTPException(
            status_code=422,
            detail=ValidationErrorResponse(field=e.field, message=e.message).model_dump(),
        )

    except IntegrityError as e:
        db.rollback()
        logging.warning(f"Concurrent reassessment rejected: {e.orig}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Project was reassessed concurrently, retry")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/assessments/{assessment_number}", response_model=AssessmentResponse)
def get_assessment(assessment_number: str, db: Session = Depends(get_db)):
    """Retrieve a stored assessment by its assessment number"""
    record = AssessmentRepository(db).get_by_assessment_number(assessment_number)

    if not record:
        raise HTTPException(status_code=404, detail="Assessment not found")

    return AssessmentResponse.from_record(record)
