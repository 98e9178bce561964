"""Data access layer for bankability assessments"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy.orm import Session
from abfi_bankability.infrastructure.database.models import BankabilityAssessmentRecord
from abfi_bankability.domain.models import BankabilityAssessment


class AssessmentRepository:
    """Repository for bankability assessments"""

    def __init__(self, db: Session):
        self.db = db

    def create_assessment(
        self,
        project_id: str,
        assessment: BankabilityAssessment,
        valid_from: Optional[datetime] = None,
        valid_until: Optional[datetime] = None,
        reassessment_reason: Optional[str] = None,
    ) -> BankabilityAssessmentRecord:
        """
        Persist an assessment as the project's current version.

        The previously current assessment (if any) is locked, marked
        superseded and linked to the new record; the version number
        increments.

        Raises:
            IntegrityError: On flush, if a concurrent request already wrote
                this project version
        """
        previous = self._lock_current(project_id)
        summary = assessment.summary

        db_assessment = BankabilityAssessmentRecord(
            project_id=project_id,
            assessment_number=assessment.assessment_number,
            assessed_at=assessment.assessed_at,
            volume_security_score=round(assessment.volume_security.score),
            counterparty_quality_score=round(assessment.counterparty_quality.score),
            contract_structure_score=round(assessment.contract_structure.score),
            concentration_risk_score=round(assessment.concentration_risk.score),
            operational_readiness_score=round(assessment.operational_readiness.score),
            category_details={
                name: {"score": category.score, "factors": dict(category.factors)}
                for name, category in assessment.categories().items()
            },
            composite_score=assessment.composite_score,
            rating=assessment.rating.value,
            rating_description=assessment.rating_description,
            nameplate_capacity=summary.nameplate_capacity,
            tier_volumes=dict(summary.tier_volumes),
            tier_percents=dict(summary.tier_percents),
            total_primary_volume=summary.total_primary_volume,
            total_primary_percent=summary.total_primary_percent,
            total_secondary_volume=summary.total_secondary_volume,
            total_secondary_percent=summary.total_secondary_percent,
            total_secured_volume=summary.total_secured_volume,
            total_secured_percent=summary.total_secured_percent,
            total_agreements=summary.total_agreements,
            weighted_avg_term=summary.weighted_avg_term,
            weighted_avg_gq=summary.weighted_avg_gq,
            supplier_hhi=summary.supplier_hhi,
            supplier_count=summary.supplier_count,
            largest_supplier_percent=summary.largest_supplier_percent,
            climate_zones=summary.climate_zones,
            strengths=list(assessment.strengths),
            monitoring_items=list(assessment.monitoring_items),
            valid_from=valid_from,
            valid_until=valid_until,
            version_number=previous.version_number + 1 if previous else 1,
            reassessment_reason=reassessment_reason,
            is_current=True,
        )
        self.db.add(db_assessment)
        self.db.flush()  # Get ID without committing

        if previous:
            previous.is_current = False
            previous.superseded_by_id = db_assessment.id

        return db_assessment

    def _lock_current(self, project_id: str) -> Optional[BankabilityAssessmentRecord]:
        # FOR UPDATE on the current row; uq_assessment_project_version covers a project with none
        return (
            self.db.query(BankabilityAssessmentRecord)
            .filter(
                BankabilityAssessmentRecord.project_id == project_id,
                BankabilityAssessmentRecord.is_current.is_(True),
            )
            .with_for_update()
            .first()
        )

    def get_assessments_by_project(self, project_id: str, limit: int = 20) -> List[BankabilityAssessmentRecord]:
        """Fetch a project's assessments, newest version first"""
        return (
            self.db.query(BankabilityAssessmentRecord)
            .filter(BankabilityAssessmentRecord.project_id == project_id)
            .order_by(BankabilityAssessmentRecord.version_number.desc())
            .limit(limit)
            .all()
        )

    def get_latest_assessment(self, project_id: str) -> Optional[BankabilityAssessmentRecord]:
        """Fetch the project's current assessment"""
        return (
            self.db.query(BankabilityAssessmentRecord)
            .filter(
                BankabilityAssessmentRecord.project_id == project_id,
                BankabilityAssessmentRecord.is_current.is_(True),
            )
            .first()
        )

    def get_by_assessment_number(self, assessment_number: str) -> Optional[BankabilityAssessmentRecord]:
        return (
            self.db.query(BankabilityAssessmentRecord)
            .filter(BankabilityAssessmentRecord.assessment_number == assessment_number)
            .first()
        )
