"""Unit tests for validated domain records"""

from dataclasses import FrozenInstanceError

import pytest
from abfi_bankability.domain.exceptions import ValidationError
from abfi_bankability.domain.models import (
    CategoryScore,
    ConcentrationData,
    OperationalData,
    ProjectSupply,
    SupplyPosition,
)
from abfi_bankability.domain.scoring import calculate_bankability_scores


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"annual_volume": -1}, "annual_volume"),
        ({"annual_volume": None}, "annual_volume"),
        ({"annual_volume": "100"}, "annual_volume"),
        ({"annual_volume": float("nan")}, "annual_volume"),
        ({"term_years": -5}, "term_years"),
        ({"tier": "tier3"}, "tier"),
        ({"grower_qualification": 5}, "grower_qualification"),
        ({"grower_qualification": 0}, "grower_qualification"),
        ({"supplier_id": ""}, "supplier_id"),
        ({"pricing_mechanism": None}, "pricing_mechanism"),
        ({"force_majeure_volume_reduction_cap": 120}, "force_majeure_volume_reduction_cap"),
        ({"bank_guarantee_percent": -1}, "bank_guarantee_percent"),
        ({"early_termination_notice_days": -30}, "early_termination_notice_days"),
    ],
)
def test_agreement_validation_names_field(make_agreement, overrides, field):
    with pytest.raises(ValidationError) as exc_info:
        make_agreement(**overrides)

    assert exc_info.value.field == field


def test_agreement_is_immutable(make_agreement):
    agreement = make_agreement()

    with pytest.raises(FrozenInstanceError):
        agreement.annual_volume = 0


def test_assessment_breakdowns_are_read_only(bankable_supply, make_positions, make_operational):
    """Factor breakdowns and tier volumes cannot be altered after scoring"""
    assessment = calculate_bankability_scores(bankable_supply, make_positions(100000), make_operational())

    with pytest.raises(TypeError):
        assessment.volume_security.factors["primary_coverage"] = -999.0
    with pytest.raises(TypeError):
        assessment.summary.tier_volumes["tier1"] = -1.0
    with pytest.raises(TypeError):
        assessment.summary.tier_percents["tier1"] = -1.0

    assert assessment.volume_security.factors["primary_coverage"] == pytest.approx(50)
    assert assessment.summary.tier_volumes["tier1"] == 100000


def test_category_score_copies_its_factors():
    factors = {"hhi": 100.0}
    category = CategoryScore(score=100.0, factors=factors)

    factors["hhi"] = 0.0

    assert category.factors == {"hhi": 100.0}


def test_project_supply_requires_positive_capacity():
    with pytest.raises(ValidationError) as exc_info:
        ProjectSupply(nameplate_capacity=0, debt_tenor_years=10)

    assert exc_info.value.field == "nameplate_capacity"


def test_project_supply_rejects_foreign_agreements():
    with pytest.raises(ValidationError) as exc_info:
        ProjectSupply(nameplate_capacity=1000, debt_tenor_years=10, agreements=({"tier": "tier1"},))

    assert exc_info.value.field == "agreements"


def test_project_supply_tier_volumes(bankable_supply):
    assert bankable_supply.tier_volume("tier1") == 100000
    assert bankable_supply.primary_volume == 125000
    assert bankable_supply.secondary_volume == 35000
    assert isinstance(bankable_supply.agreements, tuple)


def test_supply_position_validation():
    with pytest.raises(ValidationError) as exc_info:
        SupplyPosition(supplier_id="S1", volume=-10)

    assert exc_info.value.field == "volume"


def test_concentration_data_shares():
    data = ConcentrationData(
        positions=[SupplyPosition(supplier_id="A", volume=300), SupplyPosition(supplier_id="B", volume=100)],
        climate_zones=2,
    )

    assert data.total_volume == 400
    assert data.supplier_count == 2
    assert data.shares == pytest.approx([0.75, 0.25])
    assert data.largest_share == pytest.approx(0.75)


def test_concentration_data_without_volume():
    data = ConcentrationData(positions=[SupplyPosition(supplier_id="A", volume=0)])

    assert data.shares == []
    assert data.largest_share == 0.0


@pytest.mark.parametrize(
    "overrides, field",
    [
        ({"qa_system_status": "unknown"}, "qa_system_status"),
        ({"abfi_integration": "api"}, "abfi_integration"),
        ({"contingency_plans": None}, "contingency_plans"),
        ({"logistics_contracted": "yes"}, "logistics_contracted"),
        ({"on_time_delivery_percent": 120}, "on_time_delivery_percent"),
        ({"permits_complete_percent": -1}, "permits_complete_percent"),
    ],
)
def test_operational_validation_names_field(make_operational, overrides, field):
    with pytest.raises(ValidationError) as exc_info:
        make_operational(**overrides)

    assert exc_info.value.field == field
    assert str(exc_info.value).startswith(f"{field}: ")


def test_operational_data_defaults(make_operational):
    data = make_operational()

    assert isinstance(data, OperationalData)
    assert data.permits_complete_percent is None
