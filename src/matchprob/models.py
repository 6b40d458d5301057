"""Value types exchanged between the kernel components and its callers."""

from __future__ import annotations

import dataclasses
import math
from typing import Any, Dict, List, Mapping, Sequence, SupportsFloat

from .errors import InvalidInput, NumericDegeneracy

# Fields that must be finite and non-negative.
NON_NEGATIVE_FIELDS = (
    "home_attack",
    "away_attack",
    "home_concession",
    "away_concession",
    "home_advantage",
    "form",
    "weather",
    "motivation",
    "head_to_head",
)
# Signed momentum; only required to be finite.
SIGNED_FIELDS = ("recent_form",)

METHODS = ("poisson", "monte_carlo", "xg")


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def _coerce_float(value: object | None, field: str, default: float | None) -> float:
    if value is None:
        if default is None:
            raise InvalidInput(f"Missing required field {field}")
        return default
    if isinstance(value, bool):
        raise InvalidInput(f"Field {field} expected a number, got bool")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError as exc:
            raise InvalidInput(f"Field {field} is not numeric: {value!r}") from exc
    if isinstance(value, SupportsFloat):
        return float(value)
    raise InvalidInput(
        f"Field {field} expected float-compatible value, got {type(value).__name__}"
    )


def _check_number(value: object, field: str, *, allow_negative: bool = False) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInput(f"{field} must be a number, got {type(value).__name__}")
    if math.isnan(value):
        raise InvalidInput(f"{field} cannot be NaN")
    if math.isinf(value):
        raise InvalidInput(f"{field} cannot be infinite")
    if not allow_negative and value < 0:
        raise InvalidInput(f"{field} cannot be negative (got {value})")


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class RateParameters:
    """Human-facing team strength inputs.

    ``home_attack``/``away_attack`` are goals per match and
    ``home_concession``/``away_concession`` the defensive ratings folded into
    the opponent's attack.  The remaining fields are multipliers (typically
    0.5-1.5) except ``home_advantage`` (a 0-1 boost) and ``recent_form``
    (a signed momentum in roughly -0.5..0.5).
    """

    home_attack: float
    away_attack: float
    home_concession: float = 1.0
    away_concession: float = 1.0
    home_advantage: float = 0.3
    form: float = 1.0
    weather: float = 1.0
    motivation: float = 1.0
    head_to_head: float = 1.0
    recent_form: float = 0.0

    def validate(self) -> None:
        """Raise :class:`InvalidInput` unless every field is usable."""

        for name in NON_NEGATIVE_FIELDS:
            _check_number(getattr(self, name), name)
        for name in SIGNED_FIELDS:
            _check_number(getattr(self, name), name, allow_negative=True)

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "RateParameters":
        """Build parameters from a loosely typed mapping (CSV rows, JSON)."""

        if not isinstance(values, Mapping):
            raise InvalidInput(f"Expected mapping, got {type(values).__name__}")
        defaults = {
            field.name: field.default
            for field in dataclasses.fields(cls)
            if field.default is not dataclasses.MISSING
        }
        kwargs = {
            name: _coerce_float(values.get(name), name, defaults.get(name))
            for name in NON_NEGATIVE_FIELDS + SIGNED_FIELDS
        }
        params = cls(**kwargs)
        params.validate()
        return params

    def to_dict(self) -> Dict[str, float]:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True, slots=True)
class LambdaPair:
    """Poisson rates handed from the adjustment pipeline to a calculator."""

    home_lambda: float
    away_lambda: float

    @property
    def mean(self) -> float:
        return (self.home_lambda + self.away_lambda) / 2.0

    @property
    def difference(self) -> float:
        return abs(self.home_lambda - self.away_lambda)

    def to_dict(self) -> Dict[str, float]:
        return {
            "home_lambda": round(self.home_lambda, 3),
            "away_lambda": round(self.away_lambda, 3),
        }


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class OutcomeDistribution:
    """Home/draw/away shares (percent) with expected goals and confidence."""

    home_win_pct: float
    draw_pct: float
    away_win_pct: float
    expected_home_goals: float
    expected_away_goals: float
    confidence_pct: float

    @property
    def total_pct(self) -> float:
        return self.home_win_pct + self.draw_pct + self.away_win_pct

    def probabilities(self) -> tuple[float, float, float]:
        """Return the outcome shares as fractions in ``[0, 1]``."""

        return (
            self.home_win_pct / 100.0,
            self.draw_pct / 100.0,
            self.away_win_pct / 100.0,
        )

    def check_finite(self) -> None:
        for field in dataclasses.fields(self):
            if not math.isfinite(getattr(self, field.name)):
                raise NumericDegeneracy(f"{field.name} is not finite")

    def to_dict(self) -> Dict[str, float]:
        return {
            "home_win_pct": round(self.home_win_pct, 1),
            "draw_pct": round(self.draw_pct, 1),
            "away_win_pct": round(self.away_win_pct, 1),
            "expected_home_goals": round(self.expected_home_goals, 2),
            "expected_away_goals": round(self.expected_away_goals, 2),
            "confidence_pct": round(self.confidence_pct, 1),
        }


@dataclasses.dataclass(frozen=True, slots=True)
class ScorelineFrequency:
    home_goals: int
    away_goals: int
    probability_pct: float

    @property
    def score(self) -> str:
        return f"{self.home_goals}-{self.away_goals}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "home_goals": self.home_goals,
            "away_goals": self.away_goals,
            "probability_pct": round(self.probability_pct, 1),
        }


def rank_scorelines(
    weights: Mapping[tuple[int, int], float], scale: float, limit: int
) -> List[ScorelineFrequency]:
    """Return the ``limit`` heaviest scorelines, converting weights to percent.

    ``scale`` is what a weight of 1.0 is worth in percent (``100 / trials``
    for counts, ``100`` for probabilities).  Equal weights keep their
    insertion order.
    """

    ranked = sorted(weights.items(), key=lambda item: -item[1])[:limit]
    return [
        ScorelineFrequency(home_goals=home, away_goals=away, probability_pct=weight * scale)
        for (home, away), weight in ranked
    ]


@dataclasses.dataclass(frozen=True, slots=True)
class MarketProbabilities:
    """Derived goal markets, in percent."""

    btts_pct: float = 0.0
    over_15_pct: float = 0.0
    over_25_pct: float = 0.0
    under_25_pct: float = 0.0
    over_35_pct: float = 0.0
    clean_sheet_home_pct: float = 0.0
    clean_sheet_away_pct: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            field.name: round(getattr(self, field.name), 1)
            for field in dataclasses.fields(self)
        }


@dataclasses.dataclass(frozen=True, slots=True)
class GoalHistogram:
    """Per-side goal counts; the final bin collects every larger count."""

    home: tuple[int, ...]
    away: tuple[int, ...]

    def to_dict(self) -> Dict[str, List[int]]:
        return {"home": list(self.home), "away": list(self.away)}


@dataclasses.dataclass(frozen=True, slots=True)
class SimulationStats:
    trials: int
    seed: int
    standard_error_pct: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trials": self.trials,
            "seed": self.seed,
            "standard_error_pct": round(self.standard_error_pct, 2),
        }


@dataclasses.dataclass(frozen=True, slots=True)
class Prediction:
    """Shared output contract of the three prediction methods."""

    method: str
    lambdas: LambdaPair
    outcome: OutcomeDistribution
    markets: MarketProbabilities
    scorelines: Sequence[ScorelineFrequency]
    histogram: GoalHistogram | None = None
    stats: SimulationStats | None = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with boundary rounding; internal values stay unrounded."""

        payload: Dict[str, Any] = {
            "method": self.method,
            "lambdas": self.lambdas.to_dict(),
            **self.outcome.to_dict(),
            "markets": self.markets.to_dict(),
            "scorelines": [line.to_dict() for line in self.scorelines],
        }
        if self.histogram is not None:
            payload["goal_histogram"] = self.histogram.to_dict()
        if self.stats is not None:
            payload["simulation"] = self.stats.to_dict()
        return payload


__all__ = [
    "GoalHistogram",
    "LambdaPair",
    "METHODS",
    "MarketProbabilities",
    "OutcomeDistribution",
    "Prediction",
    "RateParameters",
    "ScorelineFrequency",
    "SimulationStats",
    "rank_scorelines",
]
