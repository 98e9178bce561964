"""Domain models - immutable records for bankability scoring inputs and results"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from abfi_bankability.domain.exceptions import ValidationError

TIERS = ("tier1", "tier2", "option", "rofr")
PRIMARY_TIERS = ("tier1", "tier2")
SECONDARY_TIERS = ("option", "rofr")

QA_STATUSES = ("operational", "implementation", "designed", "planning")
INTEGRATION_LEVELS = ("full", "partial", "manual", "none")
CONTINGENCY_LEVELS = ("comprehensive", "basic", "limited", "none")


def _require_number(
    name: str,
    value: object,
    minimum: float = 0.0,
    maximum: Optional[float] = None,
) -> None:
    """Reject missing, non-numeric, NaN and out-of-range values"""
    if value is None:
        raise ValidationError(name, "is required")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(name, "must be a number")
    if math.isnan(value) or math.isinf(value):
        raise ValidationError(name, "must be a finite number")
    if value < minimum:
        raise ValidationError(name, f"must be >= {minimum:g}")
    if maximum is not None and value > maximum:
        raise ValidationError(name, f"must be <= {maximum:g}")


def _require_optional_number(
    name: str,
    value: object,
    minimum: float = 0.0,
    maximum: Optional[float] = None,
) -> None:
    if value is not None:
        _require_number(name, value, minimum, maximum)


def _require_choice(name: str, value: object, choices: Tuple[str, ...]) -> None:
    if value not in choices:
        raise ValidationError(name, f"must be one of {', '.join(choices)}")


def _require_text(name: str, value: object) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(name, "must be a non-empty string")


class Rating(str, Enum):
    """Bankability rating bands, highest first"""

    AAA = "AAA"
    AA = "AA"
    A = "A"
    BBB = "BBB"
    BB = "BB"
    B = "B"
    CCC = "CCC"


@dataclass(frozen=True)
class SupplyPosition:
    """One supplier's committed volume toward a project"""

    supplier_id: str
    volume: float
    unit: str = "tonnes"
    grower_qualification: Optional[int] = None  # GQ1 (best) .. GQ4

    def __post_init__(self) -> None:
        _require_text("supplier_id", self.supplier_id)
        _require_number("volume", self.volume)
        _require_optional_number("grower_qualification", self.grower_qualification, 1, 4)


@dataclass(frozen=True)
class SupplyAgreement:
    """Single feedstock supply agreement as seen by the scoring engine"""

    supplier_id: str
    tier: str  # tier1 | tier2 | option | rofr
    annual_volume: float
    term_years: float
    pricing_mechanism: str
    grower_qualification: int
    lender_step_in_rights: bool = False
    lender_consent_required: bool = False
    early_termination_notice_days: int = 0
    force_majeure_volume_reduction_cap: Optional[float] = None  # percent
    bank_guarantee_percent: Optional[float] = None
    take_or_pay: Optional[bool] = None
    supplier_track_record_years: Optional[float] = None

    def __post_init__(self) -> None:
        _require_text("supplier_id", self.supplier_id)
        _require_choice("tier", self.tier, TIERS)
        _require_number("annual_volume", self.annual_volume)
        _require_number("term_years", self.term_years)
        _require_text("pricing_mechanism", self.pricing_mechanism)
        _require_number("grower_qualification", self.grower_qualification, 1, 4)
        _require_number("early_termination_notice_days", self.early_termination_notice_days)
        _require_optional_number(
            "force_majeure_volume_reduction_cap", self.force_majeure_volume_reduction_cap, 0, 100
        )
        _require_optional_number("bank_guarantee_percent", self.bank_guarantee_percent, 0, 100)
        _require_optional_number("supplier_track_record_years", self.supplier_track_record_years)


@dataclass(frozen=True)
class ProjectSupply:
    """Project-level supply position: capacity, debt tenor and agreements"""

    nameplate_capacity: float  # tonnes per annum
    debt_tenor_years: float
    agreements: Tuple[SupplyAgreement, ...] = ()

    def __post_init__(self) -> None:
        _require_number("nameplate_capacity", self.nameplate_capacity)
        if self.nameplate_capacity == 0:
            raise ValidationError("nameplate_capacity", "must be > 0")
        _require_number("debt_tenor_years", self.debt_tenor_years)
        agreements = tuple(self.agreements)
        for agreement in agreements:
            if not isinstance(agreement, SupplyAgreement):
                raise ValidationError("agreements", "must contain SupplyAgreement records")
        object.__setattr__(self, "agreements", agreements)

    def tier_volume(self, tier: str) -> float:
        return sum(a.annual_volume for a in self.agreements if a.tier == tier)

    @property
    def primary_volume(self) -> float:
        return sum(self.tier_volume(tier) for tier in PRIMARY_TIERS)

    @property
    def secondary_volume(self) -> float:
        return sum(self.tier_volume(tier) for tier in SECONDARY_TIERS)


@dataclass(frozen=True)
class ConcentrationData:
    """Supplier shares derived from a set of supply positions"""

    positions: Tuple[SupplyPosition, ...] = ()
    climate_zones: int = 1

    def __post_init__(self) -> None:
        positions = tuple(self.positions)
        for position in positions:
            if not isinstance(position, SupplyPosition):
                raise ValidationError("positions", "must contain SupplyPosition records")
        _require_number("climate_zones", self.climate_zones)
        object.__setattr__(self, "positions", positions)

    @property
    def total_volume(self) -> float:
        return sum(p.volume for p in self.positions)

    @property
    def supplier_count(self) -> int:
        return len({p.supplier_id for p in self.positions})

    @property
    def shares(self) -> List[float]:
        """Fractional volume share per position; empty when total volume is zero"""
        total = self.total_volume
        if total <= 0:
            return []
        return [p.volume / total for p in self.positions]

    @property
    def largest_share(self) -> float:
        return max(self.shares, default=0.0)


@dataclass(frozen=True)
class OperationalData:
    """Facility readiness indicators"""

    logistics_contracted: bool
    logistics_tested: bool
    qa_system_status: str
    abfi_integration: str
    contingency_plans: str
    permits_complete_percent: Optional[float] = None
    infrastructure_completion_percent: Optional[float] = None
    on_time_delivery_percent: Optional[float] = None

    def __post_init__(self) -> None:
        if not isinstance(self.logistics_contracted, bool):
            raise ValidationError("logistics_contracted", "must be a boolean")
        if not isinstance(self.logistics_tested, bool):
            raise ValidationError("logistics_tested", "must be a boolean")
        _require_choice("qa_system_status", self.qa_system_status, QA_STATUSES)
        _require_choice("abfi_integration", self.abfi_integration, INTEGRATION_LEVELS)
        _require_choice("contingency_plans", self.contingency_plans, CONTINGENCY_LEVELS)
        _require_optional_number("permits_complete_percent", self.permits_complete_percent, 0, 100)
        _require_optional_number(
            "infrastructure_completion_percent", self.infrastructure_completion_percent, 0, 100
        )
        _require_optional_number("on_time_delivery_percent", self.on_time_delivery_percent, 0, 100)


@dataclass(frozen=True)
class CategoryScore:
    """Category sub-score with per-factor point contributions"""

    score: float
    factors: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "factors", MappingProxyType(dict(self.factors)))


@dataclass(frozen=True)
class SupplySummary:
    """Supply position and concentration metrics reported with an assessment"""

    nameplate_capacity: float
    tier_volumes: Mapping[str, float]
    tier_percents: Mapping[str, float]
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

    def __post_init__(self) -> None:
        object.__setattr__(self, "tier_volumes", MappingProxyType(dict(self.tier_volumes)))
        object.__setattr__(self, "tier_percents", MappingProxyType(dict(self.tier_percents)))


@dataclass(frozen=True)
class BankabilityAssessment:
    """Complete result of one scoring run"""

    assessment_number: str
    assessed_at: datetime
    volume_security: CategoryScore
    counterparty_quality: CategoryScore
    contract_structure: CategoryScore
    concentration_risk: CategoryScore
    operational_readiness: CategoryScore
    composite_score: int
    rating: Rating
    rating_description: str
    summary: SupplySummary
    strengths: Tuple[str, ...] = ()
    monitoring_items: Tuple[str, ...] = ()

    def categories(self) -> Dict[str, CategoryScore]:
        return {
            "volume_security": self.volume_security,
            "counterparty_quality": self.counterparty_quality,
            "contract_structure": self.contract_structure,
            "concentration_risk": self.concentration_risk,
            "operational_readiness": self.operational_readiness,
        }
