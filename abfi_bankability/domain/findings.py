"""Key findings - strengths and monitoring items reported with an assessment"""

from typing import Dict, List, Tuple

from abfi_bankability.domain.models import CategoryScore, ProjectSupply, SupplySummary

CATEGORY_LABELS = {
    "volume_security": "Volume security",
    "counterparty_quality": "Counterparty quality",
    "contract_structure": "Contract structure",
    "concentration_risk": "Concentration risk",
    "operational_readiness": "Operational readiness",
}

STRONG_CATEGORY_SCORE = 80
WEAK_CATEGORY_SCORE = 60
STRONG_PRIMARY_COVERAGE_PERCENT = 120
STRONG_AVG_GQ = 1.5
DIVERSIFIED_HHI = 0.10
LARGEST_SUPPLIER_LIMIT_PERCENT = 30
MIN_CLIMATE_ZONES = 2
DIVERSE_CLIMATE_ZONES = 3


def derive_findings(
    categories: Dict[str, CategoryScore],
    summary: SupplySummary,
    supply: ProjectSupply,
) -> Tuple[Tuple[str, ...], Tuple[str, ...]]:
    """
    Derive (strengths, monitoring_items) from scores and supply metrics.

    Output order is fixed (category order, then supply checks) so identical
    inputs give identical findings.
    """
    strengths: List[str] = []
    monitoring: List[str] = []

    for name, label in CATEGORY_LABELS.items():
        score = categories[name].score
        if score >= STRONG_CATEGORY_SCORE:
            strengths.append(f"{label} scores {score:.0f}/100")
        elif score < WEAK_CATEGORY_SCORE:
            monitoring.append(f"{label} below bankable threshold ({score:.0f}/100)")

    if summary.total_primary_percent >= STRONG_PRIMARY_COVERAGE_PERCENT:
        strengths.append(
            f"Primary supply covers {summary.total_primary_percent:.0f}% of nameplate capacity"
        )
    if supply.agreements and summary.weighted_avg_gq <= STRONG_AVG_GQ:
        strengths.append(f"Weighted average grower qualification GQ{summary.weighted_avg_gq:.1f}")
    if summary.supplier_count > 0 and summary.supplier_hhi < DIVERSIFIED_HHI:
        strengths.append(f"Diversified supplier base across {summary.supplier_count} suppliers")
    if summary.climate_zones >= DIVERSE_CLIMATE_ZONES:
        strengths.append(f"Supply spread across {summary.climate_zones} climate zones")

    if summary.largest_supplier_percent > LARGEST_SUPPLIER_LIMIT_PERCENT:
        monitoring.append(
            f"Largest supplier provides {summary.largest_supplier_percent:.0f}% of contracted volume"
        )
    if summary.climate_zones == 0:
        monitoring.append("No climate zone reported for supply")
    elif summary.climate_zones < MIN_CLIMATE_ZONES:
        monitoring.append("Supply concentrated in a single climate zone")

    short = sum(1 for a in supply.agreements if a.term_years < supply.debt_tenor_years)
    if short:
        monitoring.append(f"{short} agreement(s) shorter than the {supply.debt_tenor_years:g}-year debt tenor")

    spot = sum(1 for a in supply.agreements if a.pricing_mechanism == "spot_reference")
    if spot:
        monitoring.append(f"{spot} agreement(s) priced against spot reference")

    without_step_in = sum(1 for a in supply.agreements if not a.lender_step_in_rights)
    if without_step_in:
        monitoring.append(f"{without_step_in} agreement(s) without lender step-in rights")

    return tuple(strengths), tuple(monitoring)
