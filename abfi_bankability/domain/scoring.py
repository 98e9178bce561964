"""
Bankability scoring engine - core business logic for project assessments.

Five independent category scorers feed a weighted composite:

- 30%: Volume security (supply coverage and contract term alignment)
- 25%: Counterparty quality (grower qualification and security package)
- 20%: Contract structure (pricing, termination, force majeure, step-in)
- 15%: Concentration risk (supplier HHI)
- 10%: Operational readiness (logistics, QA, integration, contingency)

Every function here is pure: thresholds and weights come from the
``ScoringPolicy`` passed in (the ABFI default when omitted).
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, Optional, Sequence, Tuple

from abfi_bankability.domain.assessment_numbers import DEFAULT_PREFIX, generate_assessment_number
from abfi_bankability.domain.exceptions import ValidationError
from abfi_bankability.domain.findings import derive_findings
from abfi_bankability.domain.metrics import (
    calculate_supplier_hhi,
    gq_pairs,
    term_pairs,
    weighted_average,
    weighted_average_gq,
    weighted_average_term,
)
from abfi_bankability.domain.models import (
    TIERS,
    BankabilityAssessment,
    CategoryScore,
    ConcentrationData,
    OperationalData,
    ProjectSupply,
    Rating,
    SupplyAgreement,
    SupplySummary,
)
from abfi_bankability.domain.policy import DEFAULT_SCORING_POLICY, ScoringPolicy
from abfi_bankability.utils.date_utils import utc_now


def _blend(factors: Dict[str, Optional[float]], weights: Dict[str, float]) -> CategoryScore:
    """
    Combine factor points into a category score.

    Factors whose points are None are not applicable to this input; they
    drop out and the remaining weights are renormalised.
    """
    active = {name: points for name, points in factors.items() if points is not None}
    total_weight = sum(weights[name] for name in active)
    if total_weight <= 0:
        return CategoryScore(score=0.0, factors={name: 0.0 for name in active})

    contributions = {name: points * weights[name] / total_weight for name, points in active.items()}
    score = min(max(sum(contributions.values()), 0.0), 100.0)
    return CategoryScore(score=score, factors=contributions)


def _volume_weighted(
    agreements: Sequence[SupplyAgreement],
    value: Callable[[SupplyAgreement], float],
) -> float:
    """Volume-weighted mean of a per-agreement value; plain mean when all volumes are zero"""
    if sum(a.annual_volume for a in agreements) > 0:
        return weighted_average((value(a), a.annual_volume) for a in agreements)
    return weighted_average((value(a), 1.0) for a in agreements)


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


# ============================================================================
# CATEGORY 1: VOLUME SECURITY
# ============================================================================


def _term_alignment_points(supply: ProjectSupply, policy: ScoringPolicy) -> float:
    points = policy.points("volume_security", "term_alignment")
    agreements = supply.agreements
    if not agreements:
        return points["shortfall"]

    tenor = supply.debt_tenor_years
    buffer_years = policy.parameter("volume_security", "tenor_buffer_years")
    minor_share = policy.parameter("volume_security", "minor_shortfall_share")

    if all(a.term_years >= tenor + buffer_years for a in agreements):
        return points["all_exceed_tenor_buffer"]
    if all(a.term_years >= tenor for a in agreements):
        return points["all_meet_tenor"]
    if weighted_average_term(term_pairs(agreements)) >= tenor:
        return points["weighted_meets_tenor"]
    if any(
        a.term_years < tenor and a.annual_volume < supply.primary_volume * minor_share
        for a in agreements
    ):
        return points["minor_shortfall"]
    return points["shortfall"]


def score_volume_security(
    supply: ProjectSupply, policy: ScoringPolicy = DEFAULT_SCORING_POLICY
) -> CategoryScore:
    """Coverage of nameplate capacity by primary and secondary supply, plus term alignment"""
    category = "volume_security"
    primary_percent = supply.primary_volume / supply.nameplate_capacity * 100
    secondary_percent = supply.secondary_volume / supply.nameplate_capacity * 100

    factors = {
        "primary_coverage": policy.table(category, "primary_coverage").lookup(primary_percent),
        "secondary_coverage": policy.table(category, "secondary_coverage").lookup(secondary_percent),
        "term_alignment": _term_alignment_points(supply, policy),
    }
    return _blend(factors, policy.weights(category))


# ============================================================================
# CATEGORY 2: COUNTERPARTY QUALITY
# ============================================================================


def _tier1_strength_points(agreements: Sequence[SupplyAgreement], policy: ScoringPolicy) -> float:
    points = policy.points("counterparty_quality", "tier1_strength")
    tier1 = [a for a in agreements if a.tier == "tier1"]

    if all(a.grower_qualification == 1 for a in tier1):
        return points["all_gq1"]
    if all(a.grower_qualification <= 2 for a in tier1):
        return points["all_gq2_or_better"]
    if sum(1 for a in tier1 if a.grower_qualification <= 2) > len(tier1) / 2:
        return points["majority_gq2_or_better"]
    return points["other"]


def _has_required_guarantee(agreement: SupplyAgreement, policy: ScoringPolicy) -> bool:
    guarantee = agreement.bank_guarantee_percent or 0
    if agreement.tier == "tier1":
        return guarantee >= policy.parameter("counterparty_quality", "tier1_min_guarantee_percent")
    if agreement.tier == "tier2":
        return guarantee >= policy.parameter("counterparty_quality", "tier2_min_guarantee_percent")
    return False


def score_counterparty_quality(
    agreements: Sequence[SupplyAgreement], policy: ScoringPolicy = DEFAULT_SCORING_POLICY
) -> CategoryScore:
    """Grower qualification, tier-1 counterparty strength and security package"""
    category = "counterparty_quality"
    if not agreements:
        return CategoryScore(score=0.0, factors={})

    avg_gq = _volume_weighted(agreements, lambda a: a.grower_qualification)
    secured = sum(1 for a in agreements if _has_required_guarantee(a, policy))
    security_percent = secured / len(agreements) * 100

    track_record = None
    if all(a.supplier_track_record_years is not None for a in agreements):
        years = _volume_weighted(agreements, lambda a: a.supplier_track_record_years)
        track_record = policy.table(category, "track_record").lookup(years)

    factors = {
        "weighted_gq": policy.table(category, "weighted_gq").lookup(avg_gq),
        "tier1_strength": _tier1_strength_points(agreements, policy),
        "security_package": policy.table(category, "security_package").lookup(security_percent),
        "track_record": track_record,
    }
    return _blend(factors, policy.weights(category))


# ============================================================================
# CATEGORY 3: CONTRACT STRUCTURE
# ============================================================================


def _termination_points(agreement: SupplyAgreement, policy: ScoringPolicy) -> float:
    name = "termination_with_consent" if agreement.lender_consent_required else "termination_without_consent"
    return policy.table("contract_structure", name).lookup(agreement.early_termination_notice_days)


def _force_majeure_points(agreement: SupplyAgreement, policy: ScoringPolicy) -> float:
    cap = agreement.force_majeure_volume_reduction_cap
    if cap is None:
        return policy.points("contract_structure", "force_majeure")["no_cap"]
    return policy.table("contract_structure", "force_majeure").lookup(cap)


def score_contract_structure(
    agreements: Sequence[SupplyAgreement], policy: ScoringPolicy = DEFAULT_SCORING_POLICY
) -> CategoryScore:
    """Pricing robustness, termination protection, force majeure, step-in rights, take-or-pay"""
    category = "contract_structure"
    if not agreements:
        return CategoryScore(score=0.0, factors={})

    pricing = policy.points(category, "pricing")
    step_in_percent = sum(1 for a in agreements if a.lender_step_in_rights) / len(agreements) * 100

    take_or_pay = None
    if all(a.take_or_pay is not None for a in agreements):
        covered_percent = _volume_weighted(agreements, lambda a: 100.0 if a.take_or_pay else 0.0)
        take_or_pay = policy.table(category, "take_or_pay").lookup(covered_percent)

    factors = {
        "pricing": _volume_weighted(
            agreements, lambda a: pricing.get(a.pricing_mechanism, pricing["default"])
        ),
        "termination": _volume_weighted(agreements, lambda a: _termination_points(a, policy)),
        "force_majeure": _volume_weighted(agreements, lambda a: _force_majeure_points(a, policy)),
        "step_in": policy.table(category, "step_in").lookup(step_in_percent),
        "take_or_pay": take_or_pay,
    }
    return _blend(factors, policy.weights(category))


# ============================================================================
# CATEGORY 4: CONCENTRATION RISK
# ============================================================================


def score_concentration_risk(
    data: ConcentrationData, policy: ScoringPolicy = DEFAULT_SCORING_POLICY
) -> CategoryScore:
    """
    Score supplier diversification from the HHI.

    Non-increasing in HHI: no supplier data (HHI 0) scores the ceiling, a
    single supplier (HHI 1) scores the floor.
    """
    category = "concentration_risk"
    hhi = calculate_supplier_hhi(data.positions)
    return _blend({"hhi": policy.table(category, "hhi").lookup(hhi)}, policy.weights(category))


# ============================================================================
# CATEGORY 5: OPERATIONAL READINESS
# ============================================================================


def score_operational_readiness(
    data: OperationalData, policy: ScoringPolicy = DEFAULT_SCORING_POLICY
) -> CategoryScore:
    """Logistics, QA, platform integration and contingency, plus optional delivery indicators"""
    category = "operational_readiness"

    logistics = policy.points(category, "logistics")
    if data.logistics_contracted and data.logistics_tested:
        logistics_points = logistics["contracted_and_tested"]
    elif data.logistics_contracted:
        logistics_points = logistics["contracted"]
    else:
        logistics_points = logistics["uncontracted"]

    def optional(name: str, value: Optional[float]) -> Optional[float]:
        return None if value is None else policy.table(category, name).lookup(value)

    factors = {
        "logistics": logistics_points,
        "quality_assurance": policy.points(category, "quality_assurance")[data.qa_system_status],
        "abfi_integration": policy.points(category, "abfi_integration")[data.abfi_integration],
        "contingency": policy.points(category, "contingency")[data.contingency_plans],
        "permits": optional("permits", data.permits_complete_percent),
        "infrastructure": optional("infrastructure", data.infrastructure_completion_percent),
        "delivery_performance": optional("delivery_performance", data.on_time_delivery_percent),
    }
    return _blend(factors, policy.weights(category))


# ============================================================================
# COMPOSITE SCORE & RATING
# ============================================================================


def calculate_composite_score(
    volume_security: float,
    counterparty_quality: float,
    contract_structure: float,
    concentration_risk: float,
    operational_readiness: float,
    policy: ScoringPolicy = DEFAULT_SCORING_POLICY,
) -> int:
    """
    Weighted composite of the five category scores, rounded half-up to a whole point.

    Weighting runs in Decimal so an exact x.5 composite rounds up rather
    than landing just below it in binary floating point.
    """
    weights = policy.category_weights
    scores = {
        "volume_security": volume_security,
        "counterparty_quality": counterparty_quality,
        "contract_structure": contract_structure,
        "concentration_risk": concentration_risk,
        "operational_readiness": operational_readiness,
    }
    raw = sum(
        (Decimal(str(score)) * Decimal(str(weights[name])) for name, score in scores.items()),
        Decimal("0"),
    )
    return min(max(_round_half_up(raw), 0), 100)


def get_rating(score: float, policy: ScoringPolicy = DEFAULT_SCORING_POLICY) -> Tuple[Rating, str]:
    """
    Map a composite score to its rating band.

    Bands are lower-inclusive: a score exactly on a threshold takes the
    higher band. Returns (rating, description).
    """
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0 <= score <= 100:
        raise ValidationError("composite_score", f"must be a number in [0, 100], got {score!r}")

    for band in policy.rating_bands:
        if score >= band.min_score:
            return band.rating, band.description

    # Unreachable: the lowest band starts at 0
    raise ValidationError("composite_score", f"no rating band covers {score!r}")


# ============================================================================
# MAIN SCORING FUNCTION
# ============================================================================


def summarize_supply(supply: ProjectSupply, concentration: ConcentrationData) -> SupplySummary:
    """Supply position and concentration metrics reported alongside the scores"""
    capacity = supply.nameplate_capacity

    def percent(volume: float) -> float:
        return round(volume / capacity * 100, 1)

    tier_volumes = {tier: supply.tier_volume(tier) for tier in TIERS}
    primary = supply.primary_volume
    secondary = supply.secondary_volume

    return SupplySummary(
        nameplate_capacity=capacity,
        tier_volumes=tier_volumes,
        tier_percents={tier: percent(volume) for tier, volume in tier_volumes.items()},
        total_primary_volume=primary,
        total_primary_percent=percent(primary),
        total_secondary_volume=secondary,
        total_secondary_percent=percent(secondary),
        total_secured_volume=primary + secondary,
        total_secured_percent=percent(primary + secondary),
        total_agreements=len(supply.agreements),
        weighted_avg_term=round(weighted_average_term(term_pairs(supply.agreements)), 1),
        weighted_avg_gq=round(weighted_average_gq(gq_pairs(supply.agreements)), 1),
        supplier_hhi=round(calculate_supplier_hhi(concentration.positions), 4),
        supplier_count=concentration.supplier_count,
        largest_supplier_percent=round(concentration.largest_share * 100, 1),
        climate_zones=concentration.climate_zones,
    )


def _require_record(name: str, value: object, record_type: type) -> None:
    if value is None:
        raise ValidationError(name, "is required")
    if not isinstance(value, record_type):
        raise ValidationError(name, f"must be a {record_type.__name__}, got {type(value).__name__}")


def calculate_bankability_scores(
    supply: ProjectSupply,
    concentration: ConcentrationData,
    operational: OperationalData,
    *,
    policy: Optional[ScoringPolicy] = None,
    now: Optional[datetime] = None,
    assessment_token: Optional[str] = None,
    prefix: str = DEFAULT_PREFIX,
) -> BankabilityAssessment:
    """
    Main entry point: score all five categories and assemble the assessment.

    Identical inputs always produce identical scores, rating and findings;
    only the assessment number and timestamp vary between runs (and not
    even those when ``now`` and ``assessment_token`` are supplied).

    Raises:
        ValidationError: If an input record is missing or of the wrong type
    """
    _require_record("supply", supply, ProjectSupply)
    _require_record("concentration", concentration, ConcentrationData)
    _require_record("operational", operational, OperationalData)
    policy = policy or DEFAULT_SCORING_POLICY

    categories = {
        "volume_security": score_volume_security(supply, policy),
        "counterparty_quality": score_counterparty_quality(supply.agreements, policy),
        "contract_structure": score_contract_structure(supply.agreements, policy),
        "concentration_risk": score_concentration_risk(concentration, policy),
        "operational_readiness": score_operational_readiness(operational, policy),
    }

    composite = calculate_composite_score(
        categories["volume_security"].score,
        categories["counterparty_quality"].score,
        categories["contract_structure"].score,
        categories["concentration_risk"].score,
        categories["operational_readiness"].score,
        policy,
    )
    rating, description = get_rating(composite, policy)

    summary = summarize_supply(supply, concentration)
    strengths, monitoring_items = derive_findings(categories, summary, supply)

    assessed_at = now or utc_now()
    return BankabilityAssessment(
        assessment_number=generate_assessment_number(assessed_at, assessment_token, prefix),
        assessed_at=assessed_at,
        composite_score=composite,
        rating=rating,
        rating_description=description,
        summary=summary,
        strengths=strengths,
        monitoring_items=monitoring_items,
        **categories,
    )
