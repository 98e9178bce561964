"""
Scoring policy - rule tables, factor weights and rating bands.

Threshold ladders are policy data, not control flow. Each ladder is an
ordered list of (lower, upper, points) bands evaluated in order; the first
band containing the value wins. ``None`` bounds are unbounded. Ladders are
lower-inclusive ([lower, upper)) unless declared ``upper_inclusive``
((lower, upper]), and a band whose lower equals its upper matches that
exact value only.

The default policy (version 1.0) reproduces the ABFI bankability framework.
Deployments can supply their own policy as a JSON file of the same shape
(see ``load_policy``).
"""

import json
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Tuple, Union

from abfi_bankability.domain.exceptions import PolicyError
from abfi_bankability.domain.models import Rating

CATEGORY_NAMES = (
    "volume_security",
    "counterparty_quality",
    "contract_structure",
    "concentration_risk",
    "operational_readiness",
)

INF = float("inf")


class Band(NamedTuple):
    lower: float
    upper: float
    points: float


@dataclass(frozen=True)
class RatingBand:
    rating: Rating
    min_score: float
    description: str


class RuleTable:
    """Ordered threshold ladder mapping a numeric value to points"""

    def __init__(self, bands: List[Band], upper_inclusive: bool = False):
        if not bands:
            raise PolicyError("Rule table must have at least one band")
        self.bands: Tuple[Band, ...] = tuple(bands)
        self.upper_inclusive = upper_inclusive
        self._check_contiguous()

    @classmethod
    def from_config(cls, table_config: Any) -> "RuleTable":
        """Build from ``[[lower, upper, points], ...]`` or ``{"bands": [...], "upper_inclusive": bool}``"""
        upper_inclusive = False
        rows = table_config
        if isinstance(table_config, Mapping):
            rows = table_config.get("bands")
            upper_inclusive = bool(table_config.get("upper_inclusive", False))
        if not isinstance(rows, (list, tuple)):
            raise PolicyError(f"Rule table bands must be a list, got {type(rows).__name__}")

        bands = []
        for row in rows:
            if not isinstance(row, (list, tuple)) or len(row) != 3:
                raise PolicyError(f"Rule band must be [lower, upper, points], got {row!r}")
            lower, upper, points = row
            bands.append(
                Band(
                    lower=-INF if lower is None else float(lower),
                    upper=INF if upper is None else float(upper),
                    points=float(points),
                )
            )
        return cls(bands, upper_inclusive=upper_inclusive)

    def _check_contiguous(self) -> None:
        ranges = sorted((b for b in self.bands if b.lower != b.upper), key=lambda b: b.lower)
        for band in ranges:
            if band.lower > band.upper:
                raise PolicyError(f"Rule band lower bound exceeds upper bound: {band}")
        for previous, current in zip(ranges, ranges[1:]):
            if previous.upper != current.lower:
                raise PolicyError(
                    f"Rule bands must be contiguous: {previous.upper:g} != {current.lower:g}"
                )

    def _contains(self, band: Band, value: float) -> bool:
        if band.lower == band.upper:
            return value == band.lower
        if self.upper_inclusive:
            return band.lower < value <= band.upper
        return band.lower <= value < band.upper

    def lookup(self, value: float) -> float:
        for band in self.bands:
            if self._contains(band, value):
                return band.points
        raise PolicyError(f"No rule band covers value {value!r}")


DEFAULT_POLICY: Dict[str, Any] = {
    "version": "1.0",
    "category_weights": {
        "volume_security": 0.30,
        "counterparty_quality": 0.25,
        "contract_structure": 0.20,
        "concentration_risk": 0.15,
        "operational_readiness": 0.10,
    },
    "volume_security": {
        "weights": {
            "primary_coverage": 0.5,
            "secondary_coverage": 0.3,
            "term_alignment": 0.2,
        },
        # Percent of nameplate capacity
        "tables": {
            "primary_coverage": [
                [125, None, 100],
                [120, 125, 90],
                [115, 120, 75],
                [110, 115, 60],
                [105, 110, 40],
                [100, 105, 20],
                [None, 100, 0],
            ],
            "secondary_coverage": [
                [35, None, 100],
                [30, 35, 90],
                [25, 30, 75],
                [20, 25, 60],
                [15, 20, 40],
                [10, 15, 20],
                [None, 10, 0],
            ],
        },
        "points": {
            "term_alignment": {
                "all_exceed_tenor_buffer": 100,
                "all_meet_tenor": 80,
                "weighted_meets_tenor": 60,
                "minor_shortfall": 40,
                "shortfall": 0,
            },
        },
        "parameters": {
            "tenor_buffer_years": 3,
            "minor_shortfall_share": 0.2,
        },
    },
    "counterparty_quality": {
        "weights": {
            "weighted_gq": 0.4,
            "tier1_strength": 0.35,
            "security_package": 0.25,
            "track_record": 0.15,
        },
        "tables": {
            # GQ1 is best
            "weighted_gq": {
                "upper_inclusive": True,
                "bands": [
                    [None, 1.5, 100],
                    [1.5, 2.0, 85],
                    [2.0, 2.5, 70],
                    [2.5, 3.0, 55],
                    [3.0, None, 40],
                ],
            },
            # Percent of agreements carrying the required bank guarantee
            "security_package": {
                "upper_inclusive": True,
                "bands": [
                    [100, 100, 100],
                    [90, 100, 80],
                    [80, 90, 60],
                    [None, 80, 40],
                ],
            },
            # Volume-weighted supplier track record, years
            "track_record": [
                [10, None, 100],
                [5, 10, 80],
                [3, 5, 60],
                [None, 3, 40],
            ],
        },
        "points": {
            "tier1_strength": {
                "all_gq1": 100,
                "all_gq2_or_better": 85,
                "majority_gq2_or_better": 70,
                "other": 50,
            },
        },
        "parameters": {
            "tier1_min_guarantee_percent": 10,
            "tier2_min_guarantee_percent": 5,
        },
    },
    "contract_structure": {
        "weights": {
            "pricing": 0.3,
            "termination": 0.3,
            "force_majeure": 0.2,
            "step_in": 0.2,
            "take_or_pay": 0.2,
        },
        "tables": {
            # Early termination notice, days
            "termination_with_consent": [
                [720, None, 100],
                [360, 720, 85],
                [180, 360, 50],
                [None, 180, 30],
            ],
            "termination_without_consent": [
                [360, None, 70],
                [180, 360, 50],
                [None, 180, 30],
            ],
            # Force majeure volume reduction cap, percent
            "force_majeure": {
                "upper_inclusive": True,
                "bands": [
                    [None, 30, 100],
                    [30, 50, 75],
                    [50, None, 50],
                ],
            },
            # Percent of agreements with lender step-in rights
            "step_in": [
                [100, None, 100],
                [80, 100, 70],
                [None, 80, 40],
            ],
            # Percent of volume under take-or-pay
            "take_or_pay": [
                [100, None, 100],
                [75, 100, 80],
                [50, 75, 60],
                [None, 50, 30],
            ],
        },
        "points": {
            "pricing": {
                "fixed": 100,
                "fixed_with_escalation": 100,
                "index_with_floor_ceiling": 85,
                "index_linked": 70,
                "spot_reference": 20,
                "default": 50,
            },
            "force_majeure": {
                "no_cap": 25,
            },
        },
        "parameters": {},
    },
    "concentration_risk": {
        "weights": {
            "hhi": 1.0,
        },
        "tables": {
            # Fractional Herfindahl-Hirschman index
            "hhi": [
                [None, 0.10, 100],
                [0.10, 0.15, 80],
                [0.15, 0.20, 60],
                [0.20, 0.25, 40],
                [0.25, None, 20],
            ],
        },
        "points": {},
        "parameters": {},
    },
    "operational_readiness": {
        "weights": {
            "logistics": 0.3,
            "quality_assurance": 0.3,
            "abfi_integration": 0.2,
            "contingency": 0.2,
            "permits": 0.15,
            "infrastructure": 0.15,
            "delivery_performance": 0.15,
        },
        "tables": {
            "permits": [
                [100, None, 100],
                [75, 100, 75],
                [50, 75, 50],
                [None, 50, 25],
            ],
            "infrastructure": [
                [90, None, 100],
                [70, 90, 80],
                [50, 70, 60],
                [25, 50, 40],
                [None, 25, 20],
            ],
            "delivery_performance": [
                [95, None, 100],
                [90, 95, 85],
                [80, 90, 70],
                [70, 80, 50],
                [None, 70, 25],
            ],
        },
        "points": {
            "logistics": {
                "contracted_and_tested": 100,
                "contracted": 80,
                "uncontracted": 60,
            },
            "quality_assurance": {
                "operational": 100,
                "implementation": 75,
                "designed": 50,
                "planning": 25,
            },
            "abfi_integration": {
                "full": 100,
                "partial": 75,
                "manual": 50,
                "none": 25,
            },
            "contingency": {
                "comprehensive": 100,
                "basic": 70,
                "limited": 40,
                "none": 20,
            },
        },
        "parameters": {},
    },
    "rating_bands": [
        {"rating": "AAA", "min_score": 90, "description": "Fully bankable, premium terms"},
        {"rating": "AA", "min_score": 85, "description": "Fully bankable, standard terms"},
        {"rating": "A", "min_score": 80, "description": "Bankable with standard covenants"},
        {"rating": "BBB", "min_score": 75, "description": "Bankable with enhanced covenants"},
        {"rating": "BB", "min_score": 70, "description": "Conditionally bankable, enhancements required"},
        {"rating": "B", "min_score": 65, "description": "Significant enhancements required"},
        {"rating": "CCC", "min_score": 0, "description": "Not bankable without restructuring"},
    ],
}


class ScoringPolicy:
    """Validated, read-only view over a policy configuration"""

    def __init__(self, config: Mapping[str, Any]):
        self.version = str(config.get("version", "custom"))
        self.category_weights = self._load_category_weights(config)
        self._weights: Dict[str, Dict[str, float]] = {}
        self._tables: Dict[Tuple[str, str], RuleTable] = {}
        self._points: Dict[Tuple[str, str], Dict[str, float]] = {}
        self._parameters: Dict[Tuple[str, str], float] = {}

        for category in CATEGORY_NAMES:
            section = config.get(category)
            if not isinstance(section, Mapping):
                raise PolicyError(f"Missing policy section: {category}")
            self._weights[category] = {k: float(v) for k, v in section.get("weights", {}).items()}
            for name, table_config in section.get("tables", {}).items():
                self._tables[(category, name)] = RuleTable.from_config(table_config)
            for name, points in section.get("points", {}).items():
                self._points[(category, name)] = {k: float(v) for k, v in points.items()}
            for name, value in section.get("parameters", {}).items():
                self._parameters[(category, name)] = float(value)

        self.rating_bands = self._load_rating_bands(config.get("rating_bands"))

    @staticmethod
    def _load_category_weights(config: Mapping[str, Any]) -> Dict[str, float]:
        weights = config.get("category_weights")
        if not isinstance(weights, Mapping) or set(weights) != set(CATEGORY_NAMES):
            raise PolicyError(f"category_weights must define exactly: {', '.join(CATEGORY_NAMES)}")
        resolved = {name: float(weights[name]) for name in CATEGORY_NAMES}
        if not math.isclose(sum(resolved.values()), 1.0, abs_tol=1e-9):
            raise PolicyError(f"category_weights must sum to 1.0, got {sum(resolved.values())}")
        return resolved

    @staticmethod
    def _load_rating_bands(rows: Any) -> Tuple[RatingBand, ...]:
        if not isinstance(rows, (list, tuple)) or not rows:
            raise PolicyError("rating_bands must be a non-empty list")
        try:
            bands = [
                RatingBand(
                    rating=Rating(row["rating"]),
                    min_score=float(row["min_score"]),
                    description=str(row["description"]),
                )
                for row in rows
            ]
        except (KeyError, TypeError, ValueError) as e:
            raise PolicyError(f"Invalid rating band: {e}") from e

        minimums = [b.min_score for b in bands]
        if minimums != sorted(minimums, reverse=True) or len(set(minimums)) != len(minimums):
            raise PolicyError("rating_bands must be ordered by strictly descending min_score")
        if minimums[0] > 100:
            raise PolicyError("Highest rating band must start at or below 100")
        if minimums[-1] != 0:
            raise PolicyError("Lowest rating band must start at 0")
        return tuple(bands)

    def weights(self, category: str) -> Dict[str, float]:
        return dict(self._weights[category])

    def table(self, category: str, name: str) -> RuleTable:
        try:
            return self._tables[(category, name)]
        except KeyError:
            raise PolicyError(f"Policy has no table {category}.{name}") from None

    def points(self, category: str, name: str) -> Dict[str, float]:
        try:
            return self._points[(category, name)]
        except KeyError:
            raise PolicyError(f"Policy has no points {category}.{name}") from None

    def parameter(self, category: str, name: str) -> float:
        try:
            return self._parameters[(category, name)]
        except KeyError:
            raise PolicyError(f"Policy has no parameter {category}.{name}") from None


def load_policy(path: Union[str, Path]) -> ScoringPolicy:
    """Load an externally supplied policy from a JSON file"""
    try:
        config = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PolicyError(f"Cannot read scoring policy {path}: {e}") from e
    if not isinstance(config, Mapping):
        raise PolicyError("Scoring policy must be a JSON object")
    return ScoringPolicy(config)


DEFAULT_SCORING_POLICY = ScoringPolicy(DEFAULT_POLICY)
