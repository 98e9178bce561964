"""Supplier concentration and volume-weighted averages"""

from typing import Dict, Iterable, List, Sequence, Tuple

from abfi_bankability.domain.models import SupplyAgreement, SupplyPosition


def calculate_supplier_hhi(positions: Sequence[SupplyPosition]) -> float:
    """
    Herfindahl-Hirschman index over supplier volume shares.

    Sum of squared fractional shares: 1/n for n equal suppliers, 1.0 for a
    single supplier. Empty input or zero total volume returns 0.0 (no
    concentration data). Duplicate supplier ids are not merged; callers
    aggregate first (see ``aggregate_supplier_volumes``).
    """
    total = sum(p.volume for p in positions)
    if total <= 0:
        return 0.0
    return sum((p.volume / total) ** 2 for p in positions)


def aggregate_supplier_volumes(agreements: Iterable[SupplyAgreement]) -> List[SupplyPosition]:
    """Merge agreement volume per supplier, preserving first-seen order"""
    volumes: Dict[str, float] = {}
    for agreement in agreements:
        volumes[agreement.supplier_id] = volumes.get(agreement.supplier_id, 0.0) + agreement.annual_volume
    return [SupplyPosition(supplier_id=s, volume=v) for s, v in volumes.items()]


def weighted_average(pairs: Iterable[Tuple[float, float]]) -> float:
    """sum(value * weight) / sum(weight), or 0.0 when total weight is zero"""
    weighted_sum = 0.0
    total_weight = 0.0
    for value, weight in pairs:
        weighted_sum += value * weight
        total_weight += weight
    if total_weight == 0:
        return 0.0
    return weighted_sum / total_weight


def weighted_average_term(pairs: Iterable[Tuple[float, float]]) -> float:
    """Volume-weighted contract term from (term_years, volume) pairs"""
    return weighted_average(pairs)


def weighted_average_gq(pairs: Iterable[Tuple[float, float]]) -> float:
    """Volume-weighted grower qualification from (gq, volume) pairs"""
    return weighted_average(pairs)


def term_pairs(agreements: Iterable[SupplyAgreement]) -> List[Tuple[float, float]]:
    return [(a.term_years, a.annual_volume) for a in agreements]


def gq_pairs(agreements: Iterable[SupplyAgreement]) -> List[Tuple[float, float]]:
    return [(a.grower_qualification, a.annual_volume) for a in agreements]
