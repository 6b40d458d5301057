"""Bounded multiplicative pipeline turning team inputs into Poisson rates.

Each stage is a pure ``(rate, params, side) -> rate`` function that clamps
the factor it applies, so no single input can push a rate arbitrarily far.
The last stage clamps both rates into ``[LAMBDA_MIN, LAMBDA_MAX]``.
"""

from __future__ import annotations

import dataclasses
import logging
import warnings
from typing import Callable, Dict, List, Literal, Sequence

from .errors import OutOfRangeWarning
from .models import LambdaPair, RateParameters

logger = logging.getLogger(__name__)

Side = Literal["home", "away"]
StageFunction = Callable[[float, RateParameters, Side], float]

LAMBDA_MIN = 0.1
LAMBDA_MAX = 8.0

DEFENSE_BOUNDS = (0.6, 1.4)
DEFENSE_PIVOT = 1.8
FORM_BOUNDS = (0.5, 1.5)
EXTERNAL_BOUNDS = (0.8, 1.2)
HOME_ADVANTAGE_BOUNDS = (0.0, 1.0)
RECENT_FORM_BOUNDS = (-0.5, 0.5)

TYPICAL_ATTACK_MAX = 6.0
TYPICAL_CONCESSION_MAX = 4.0


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def _opponent(side: Side) -> Side:
    return "away" if side == "home" else "home"


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------


def defensive_strength(rate: float, params: RateParameters, side: Side) -> float:
    """Fold the opponent's defensive rating into the attacking rate."""

    rating = getattr(params, f"{_opponent(side)}_concession")
    return rate * (DEFENSE_PIVOT - clamp(rating, *DEFENSE_BOUNDS))


def form_factor(rate: float, params: RateParameters, side: Side) -> float:
    return rate * clamp(params.form, *FORM_BOUNDS)


def external_factors(rate: float, params: RateParameters, side: Side) -> float:
    """Weather and motivation scale both sides; head-to-head is complementary."""

    weather = clamp(params.weather, *EXTERNAL_BOUNDS)
    motivation = clamp(params.motivation, *EXTERNAL_BOUNDS)
    head_to_head = clamp(params.head_to_head, *EXTERNAL_BOUNDS)
    if side == "away":
        head_to_head = 2.0 - head_to_head
    return rate * weather * motivation * head_to_head


def home_advantage(rate: float, params: RateParameters, side: Side) -> float:
    if side != "home":
        return rate
    return rate * (1.0 + clamp(params.home_advantage, *HOME_ADVANTAGE_BOUNDS))


def recent_form(rate: float, params: RateParameters, side: Side) -> float:
    momentum = 1.0 + clamp(params.recent_form, *RECENT_FORM_BOUNDS)
    if side == "away":
        momentum = 2.0 - momentum
    return rate * momentum


def final_clamp(rate: float, params: RateParameters, side: Side) -> float:
    return clamp(rate, LAMBDA_MIN, LAMBDA_MAX)


@dataclasses.dataclass(frozen=True, slots=True)
class AdjustmentStage:
    name: str
    apply: StageFunction


DEFAULT_STAGES: tuple[AdjustmentStage, ...] = (
    AdjustmentStage("defensive_strength", defensive_strength),
    AdjustmentStage("form", form_factor),
    AdjustmentStage("external", external_factors),
    AdjustmentStage("home_advantage", home_advantage),
    AdjustmentStage("recent_form", recent_form),
    AdjustmentStage("final_clamp", final_clamp),
)


# ---------------------------------------------------------------------------
# Range checks
# ---------------------------------------------------------------------------


def check_typical_ranges(params: RateParameters) -> List[str]:
    """Return messages for inputs that are valid but unusually large."""

    messages: List[str] = []
    for name in ("home_attack", "away_attack"):
        value = getattr(params, name)
        if value > TYPICAL_ATTACK_MAX:
            messages.append(
                f"{name}={value:g} exceeds the typical maximum of {TYPICAL_ATTACK_MAX:g}"
            )
    for name in ("home_concession", "away_concession"):
        value = getattr(params, name)
        if value > TYPICAL_CONCESSION_MAX:
            messages.append(
                f"{name}={value:g} exceeds the typical maximum of {TYPICAL_CONCESSION_MAX:g}"
            )
    return messages


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@dataclasses.dataclass(frozen=True, slots=True)
class StageTrace:
    """Rates observed after one stage has been applied."""

    stage: str
    home_rate: float
    away_rate: float


class RateAdjustmentPipeline:
    """Apply an ordered sequence of stages to both sides' attack rates."""

    def __init__(self, stages: Sequence[AdjustmentStage] | None = None) -> None:
        self.stages: tuple[AdjustmentStage, ...] = tuple(
            DEFAULT_STAGES if stages is None else stages
        )
        if not self.stages:
            raise ValueError("At least one adjustment stage is required")

    @property
    def stage_names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def adjust(self, params: RateParameters) -> LambdaPair:
        trace = self.trace(params)
        final = trace[-1]
        pair = LambdaPair(home_lambda=final.home_rate, away_lambda=final.away_rate)
        logger.debug(
            "Adjusted rates %.3f/%.3f -> lambdas %.3f/%.3f",
            params.home_attack,
            params.away_attack,
            pair.home_lambda,
            pair.away_lambda,
        )
        return pair

    def trace(self, params: RateParameters) -> List[StageTrace]:
        """Validate ``params`` and return the rates after every stage."""

        params.validate()
        for message in check_typical_ranges(params):
            logger.warning("Input outside typical range: %s", message)
            warnings.warn(message, OutOfRangeWarning, stacklevel=3)

        rates: Dict[Side, float] = {
            "home": float(params.home_attack),
            "away": float(params.away_attack),
        }
        history: List[StageTrace] = []
        for stage in self.stages:
            for side in ("home", "away"):
                rates[side] = stage.apply(rates[side], params, side)
            history.append(
                StageTrace(stage=stage.name, home_rate=rates["home"], away_rate=rates["away"])
            )
        return history


def adjust(params: RateParameters) -> LambdaPair:
    """Run ``params`` through the default pipeline."""

    return RateAdjustmentPipeline().adjust(params)


__all__ = [
    "AdjustmentStage",
    "DEFAULT_STAGES",
    "LAMBDA_MAX",
    "LAMBDA_MIN",
    "RateAdjustmentPipeline",
    "StageTrace",
    "adjust",
    "check_typical_ranges",
    "clamp",
    "defensive_strength",
    "external_factors",
    "final_clamp",
    "form_factor",
    "home_advantage",
    "recent_form",
]
