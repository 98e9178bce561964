"""Unit tests for concentration and weighted-average helpers"""

import pytest
from abfi_bankability.domain.metrics import (
    aggregate_supplier_volumes,
    calculate_supplier_hhi,
    gq_pairs,
    term_pairs,
    weighted_average,
    weighted_average_gq,
    weighted_average_term,
)
from abfi_bankability.domain.models import SupplyPosition


def _positions(*volumes):
    return [SupplyPosition(supplier_id=f"S{i}", volume=v) for i, v in enumerate(volumes, 1)]


@pytest.mark.parametrize("n", [1, 2, 5, 10, 40])
def test_hhi_equal_suppliers_is_one_over_n(n):
    assert calculate_supplier_hhi(_positions(*([250] * n))) == pytest.approx(1 / n)


def test_hhi_single_supplier():
    assert calculate_supplier_hhi(_positions(12345)) == 1.0


def test_hhi_uneven_shares():
    # 0.75^2 + 0.25^2
    assert calculate_supplier_hhi(_positions(3000, 1000)) == pytest.approx(0.625)


def test_hhi_empty_and_zero_volume():
    """No volume means no concentration data"""
    assert calculate_supplier_hhi([]) == 0.0
    assert calculate_supplier_hhi(_positions(0, 0)) == 0.0


def test_aggregate_supplier_volumes_merges_by_supplier(make_agreement):
    agreements = [
        make_agreement(supplier_id="B", annual_volume=1000),
        make_agreement(supplier_id="A", annual_volume=500),
        make_agreement(supplier_id="B", tier="option", annual_volume=250),
    ]

    positions = aggregate_supplier_volumes(agreements)

    assert [(p.supplier_id, p.volume) for p in positions] == [("B", 1250), ("A", 500)]


def test_weighted_average():
    assert weighted_average([(10, 3), (20, 1)]) == pytest.approx(12.5)


def test_weighted_average_zero_weight():
    assert weighted_average([(10, 0), (20, 0)]) == 0.0
    assert weighted_average([]) == 0.0


def test_weighted_term_and_gq(make_agreement):
    agreements = [
        make_agreement(supplier_id="S1", annual_volume=30000, term_years=10, grower_qualification=1),
        make_agreement(supplier_id="S2", annual_volume=10000, term_years=2, grower_qualification=3),
    ]

    assert weighted_average_term(term_pairs(agreements)) == pytest.approx(8.0)
    assert weighted_average_gq(gq_pairs(agreements)) == pytest.approx(1.5)
