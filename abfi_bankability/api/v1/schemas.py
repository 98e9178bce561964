"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from typing import Dict, List, Mapping, Optional

from abfi_bankability.domain.models import BankabilityAssessment, CategoryScore, SupplySummary
from abfi_bankability.infrastructure.database.models import BankabilityAssessmentRecord


class AgreementSchema(BaseModel):
    """Supply agreement terms used for scoring"""

    supplier_id: str
    tier: str = Field(..., description="tier1 | tier2 | option | rofr")
    annual_volume: float = Field(..., description="Tonnes per annum")
    term_years: float
    pricing_mechanism: str = Field(..., description="fixed, fixed_with_escalation, index_with_floor_ceiling, ...")
    grower_qualification: int = Field(..., description="GQ1 (best) to GQ4")
    lender_step_in_rights: bool = False
    lender_consent_required: bool = False
    early_termination_notice_days: int = 0
    force_majeure_volume_reduction_cap: Optional[float] = None
    bank_guarantee_percent: Optional[float] = None
    take_or_pay: Optional[bool] = None
    supplier_track_record_years: Optional[float] = None


class SupplyPositionSchema(BaseModel):
    """Committed volume for one supplier"""

    supplier_id: str
    volume: float
    unit: str = "tonnes"
    grower_qualification: Optional[int] = None


class OperationalSchema(BaseModel):
    """Facility readiness indicators"""

    logistics_contracted: bool
    logistics_tested: bool
    qa_system_status: str = Field(..., description="operational | implementation | designed | planning")
    abfi_integration: str = Field(..., description="full | partial | manual | none")
    contingency_plans: str = Field(..., description="comprehensive | basic | limited | none")
    permits_complete_percent: Optional[float] = None
    infrastructure_completion_percent: Optional[float] = None
    on_time_delivery_percent: Optional[float] = None


class AssessmentRequest(BaseModel):
    """Request body for POST /v1/assessments"""

    project_id: str = Field(..., min_length=1, description="Project identifier")
    nameplate_capacity: float = Field(..., description="Facility feedstock capacity, tonnes per annum")
    debt_tenor_years: float
    agreements: List[AgreementSchema] = Field(default_factory=list)
    supply_positions: Optional[List[SupplyPositionSchema]] = Field(
        None, description="Per-supplier volumes; aggregated from agreements when omitted"
    )
    climate_zones: int = 1
    operational: OperationalSchema
    persist: bool = True
    reassessment_reason: Optional[str] = None


class CategoryScoreSchema(BaseModel):
    """Category sub-score with factor contributions"""

    score: float
    factors: Dict[str, float]

    @classmethod
    def from_domain(cls, category: CategoryScore) -> "CategoryScoreSchema":
        return cls(
            score=round(category.score, 1),
            factors={name: round(points, 2) for name, points in category.factors.items()},
        )


class SupplySummarySchema(BaseModel):
    """Supply position and concentration metrics"""

    nameplate_capacity: float
    tier_volumes: Dict[str, float]
    tier_percents: Dict[str, float]
    total_primary_volume: float
    total_primary_percent: float
    total_secondary_volume: float
    total_secondary_percent: float
    total_secured_volume: float
    total_secured_percent: float
    total_agreements: int
    weighted_avg_term: float
    weighted_avg_gq: float
    supplier_hhi: float
    supplier_count: int
    largest_supplier_percent: float
    climate_zones: int

    @classmethod
    def from_domain(cls, summary: SupplySummary) -> "SupplySummarySchema":
        fields = {name: getattr(summary, name) for name in cls.model_fields}
        return cls(**{name: dict(v) if isinstance(v, Mapping) else v for name, v in fields.items()})

    @classmethod
    def from_record(cls, record: BankabilityAssessmentRecord) -> "SupplySummarySchema":
        return cls(**{name: getattr(record, name) for name in cls.model_fields})


class AssessmentResponse(BaseModel):
    """Complete bankability assessment"""

    assessment_number: str
    project_id: str
    assessed_at: str
    volume_security: CategoryScoreSchema
    counterparty_quality: CategoryScoreSchema
    contract_structure: CategoryScoreSchema
    concentration_risk: CategoryScoreSchema
    operational_readiness: CategoryScoreSchema
    composite_score: int
    rating: str
    rating_description: str
    summary: SupplySummarySchema
    strengths: List[str]
    monitoring_items: List[str]
    persisted: bool
    version_number: Optional[int] = None
    is_current: Optional[bool] = None
    valid_until: Optional[str] = None

    @classmethod
    def from_assessment(
        cls,
        project_id: str,
        assessment: BankabilityAssessment,
        record: Optional[BankabilityAssessmentRecord] = None,
    ) -> "AssessmentResponse":
        categories = {
            name: CategoryScoreSchema.from_domain(category)
            for name, category in assessment.categories().items()
        }
        return cls(
            assessment_number=assessment.assessment_number,
            project_id=project_id,
            assessed_at=assessment.assessed_at.isoformat(),
            composite_score=assessment.composite_score,
            rating=assessment.rating.value,
            rating_description=assessment.rating_description,
            summary=SupplySummarySchema.from_domain(assessment.summary),
            strengths=list(assessment.strengths),
            monitoring_items=list(assessment.monitoring_items),
            persisted=record is not None,
            version_number=record.version_number if record else None,
            is_current=record.is_current if record else None,
            valid_until=record.valid_until.isoformat() if record and record.valid_until else None,
            **categories,
        )

    @classmethod
    def from_record(cls, record: BankabilityAssessmentRecord) -> "AssessmentResponse":
        categories = {
            name: CategoryScoreSchema(
                score=round(detail["score"], 1),
                factors={factor: round(points, 2) for factor, points in detail["factors"].items()},
            )
            for name, detail in record.category_details.items()
        }
        return cls(
            assessment_number=record.assessment_number,
            project_id=record.project_id,
            assessed_at=record.assessed_at.isoformat(),
            composite_score=record.composite_score,
            rating=record.rating,
            rating_description=record.rating_description or "",
            summary=SupplySummarySchema.from_record(record),
            strengths=list(record.strengths or []),
            monitoring_items=list(record.monitoring_items or []),
            persisted=True,
            version_number=record.version_number,
            is_current=record.is_current,
            valid_until=record.valid_until.isoformat() if record.valid_until else None,
            **categories,
        )


class ValidationErrorResponse(BaseModel):
    """422 body for scoring input that fails domain validation"""

    field: str
    message: str


class HistoryItem(BaseModel):
    """Single assessment in a project's history"""

    assessment_number: str
    composite_score: int
    rating: str
    version_number: int
    is_current: bool
    assessed_at: str


class HistoryResponse(BaseModel):
    """Response for GET /v1/projects/{project_id}/assessments"""

    project_id: str
    assessments: List[HistoryItem]
