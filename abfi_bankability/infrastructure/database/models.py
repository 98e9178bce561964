"""SQLAlchemy ORM models for persisted bankability assessments"""

import uuid
from sqlalchemy import Column, String, Boolean, Float, DateTime, Integer, ForeignKey, Text, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class BankabilityAssessmentRecord(Base):
    """Stored bankability assessment with temporal versioning per project"""

    __tablename__ = "bankability_assessment"
    __table_args__ = (UniqueConstraint("project_id", "version_number", name="uq_assessment_project_version"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(Text, nullable=False, index=True)
    assessment_number = Column(String(50), nullable=False, unique=True, index=True)
    assessed_at = Column(DateTime(timezone=True), nullable=False)

    # Category scores (0-100)
    volume_security_score = Column(Integer, nullable=False)
    counterparty_quality_score = Column(Integer, nullable=False)
    contract_structure_score = Column(Integer, nullable=False)
    concentration_risk_score = Column(Integer, nullable=False)
    operational_readiness_score = Column(Integer, nullable=False)
    category_details = Column(JSON, nullable=False)  # {category: {"score": float, "factors": {...}}}

    # Composite and rating
    composite_score = Column(Integer, nullable=False)
    rating = Column(String(3), nullable=False, index=True)
    rating_description = Column(String(100), nullable=True)

    # Supply position summary
    nameplate_capacity = Column(Float, nullable=False)
    tier_volumes = Column(JSON, nullable=True)
    tier_percents = Column(JSON, nullable=True)
    total_primary_volume = Column(Float, nullable=True)
    total_primary_percent = Column(Float, nullable=True)
    total_secondary_volume = Column(Float, nullable=True)
    total_secondary_percent = Column(Float, nullable=True)
    total_secured_volume = Column(Float, nullable=True)
    total_secured_percent = Column(Float, nullable=True)
    total_agreements = Column(Integer, nullable=True)
    weighted_avg_term = Column(Float, nullable=True)
    weighted_avg_gq = Column(Float, nullable=True)

    # Concentration metrics
    supplier_hhi = Column(Float, nullable=True)
    supplier_count = Column(Integer, nullable=True)
    largest_supplier_percent = Column(Float, nullable=True)
    climate_zones = Column(Integer, nullable=True)

    # Key findings
    strengths = Column(JSON, nullable=True)
    monitoring_items = Column(JSON, nullable=True)

    # Validity
    valid_from = Column(DateTime(timezone=True), nullable=True)
    valid_until = Column(DateTime(timezone=True), nullable=True, index=True)

    # Temporal versioning
    version_number = Column(Integer, nullable=False, default=1)
    superseded_by_id = Column(
        UUID(as_uuid=True), ForeignKey("bankability_assessment.id", ondelete="SET NULL"), nullable=True
    )
    reassessment_reason = Column(Text, nullable=True)
    is_current = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
