"""Unit tests for scoring policy tables and loading"""

import copy
import json

import pytest
from abfi_bankability.domain.exceptions import PolicyError
from abfi_bankability.domain.models import ConcentrationData, SupplyPosition
from abfi_bankability.domain.policy import (
    DEFAULT_POLICY,
    Band,
    RuleTable,
    ScoringPolicy,
    load_policy,
)
from abfi_bankability.domain.scoring import get_rating, score_concentration_risk


INF = float("inf")


def test_rule_table_lower_inclusive():
    table = RuleTable([Band(10, INF, 100), Band(5, 10, 50), Band(-INF, 5, 0)])

    assert table.lookup(10) == 100
    assert table.lookup(9.999) == 50
    assert table.lookup(5) == 50
    assert table.lookup(-3) == 0


def test_rule_table_upper_inclusive_with_point_band():
    table = RuleTable(
        [Band(100, 100, 100), Band(90, 100, 80), Band(-INF, 90, 40)],
        upper_inclusive=True,
    )

    assert table.lookup(100) == 100
    assert table.lookup(99.5) == 80
    assert table.lookup(90) == 40


def test_rule_table_rejects_gaps():
    with pytest.raises(PolicyError):
        RuleTable([Band(10, INF, 100), Band(-INF, 5, 0)])


def test_rule_table_rejects_empty():
    with pytest.raises(PolicyError):
        RuleTable([])


def test_rule_table_uncovered_value():
    table = RuleTable([Band(0, 10, 1)])

    with pytest.raises(PolicyError):
        table.lookup(11)


def test_rule_table_from_config_accepts_null_bounds():
    table = RuleTable.from_config({"bands": [[None, 30, 100], [30, None, 50]], "upper_inclusive": True})

    assert table.lookup(30) == 100
    assert table.lookup(30.1) == 50


def test_default_policy_is_valid():
    policy = ScoringPolicy(DEFAULT_POLICY)

    assert policy.version == "1.0"
    assert [band.rating.value for band in policy.rating_bands] == ["AAA", "AA", "A", "BBB", "BB", "B", "CCC"]


def test_policy_rejects_weights_not_summing_to_one():
    config = copy.deepcopy(DEFAULT_POLICY)
    config["category_weights"]["volume_security"] = 0.5

    with pytest.raises(PolicyError):
        ScoringPolicy(config)


def test_policy_rejects_missing_category():
    config = copy.deepcopy(DEFAULT_POLICY)
    del config["category_weights"]["operational_readiness"]

    with pytest.raises(PolicyError):
        ScoringPolicy(config)


def test_policy_rejects_rating_bands_not_reaching_zero():
    config = copy.deepcopy(DEFAULT_POLICY)
    config["rating_bands"][-1]["min_score"] = 10

    with pytest.raises(PolicyError):
        ScoringPolicy(config)


def test_policy_rejects_unordered_rating_bands():
    config = copy.deepcopy(DEFAULT_POLICY)
    config["rating_bands"][0], config["rating_bands"][1] = config["rating_bands"][1], config["rating_bands"][0]

    with pytest.raises(PolicyError):
        ScoringPolicy(config)


def test_load_policy_from_json(tmp_path):
    """An external policy changes scoring without code changes"""
    config = copy.deepcopy(DEFAULT_POLICY)
    config["version"] = "2.0-test"
    config["concentration_risk"]["tables"]["hhi"] = [[None, None, 50]]
    config["rating_bands"][0]["min_score"] = 95
    path = tmp_path / "policy.json"
    path.write_text(json.dumps(config))

    policy = load_policy(path)

    assert policy.version == "2.0-test"
    single = ConcentrationData(positions=(SupplyPosition(supplier_id="S1", volume=100),))
    assert score_concentration_risk(single, policy).score == 50
    assert get_rating(92, policy)[0].value == "AA"


def test_load_policy_unreadable(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(PolicyError):
        load_policy(path)

    with pytest.raises(PolicyError):
        load_policy(tmp_path / "missing.json")
