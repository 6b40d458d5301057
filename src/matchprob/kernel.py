"""Facade exposing the three interchangeable prediction methods."""

from __future__ import annotations

import dataclasses
import logging
from typing import Dict, Mapping

from .adjustment import RateAdjustmentPipeline, clamp
from .analytic import PoissonCalculator
from .config import MatchprobConfig, get_config
from .errors import InvalidInput
from .models import METHODS, LambdaPair, Prediction, RateParameters
from .poisson import PoissonEngine
from .random_source import SeededRandom
from .simulation import MonteCarloSimulator, validate_trials

logger = logging.getLogger(__name__)

_METHOD_ALIASES = {
    "poisson": "poisson",
    "analytic": "poisson",
    "monte_carlo": "monte_carlo",
    "monte-carlo": "monte_carlo",
    "montecarlo": "monte_carlo",
    "xg": "xg",
}


def normalize_method(method: str) -> str:
    key = str(method).strip().lower()
    if key not in _METHOD_ALIASES:
        raise InvalidInput(
            f"Unknown prediction method {method!r}; expected one of {', '.join(METHODS)}"
        )
    return _METHOD_ALIASES[key]


def xg_confidence(pair: LambdaPair) -> float:
    return clamp(85.0 - pair.difference * 10.0, 60.0, 95.0)


@dataclasses.dataclass(frozen=True, slots=True)
class ModelComparison:
    """Predictions of every method for the same inputs."""

    predictions: Mapping[str, Prediction]

    def spread(self) -> Dict[str, float]:
        """Largest pairwise disagreement (percentage points) per outcome."""

        fields = ("home_win_pct", "draw_pct", "away_win_pct")
        result: Dict[str, float] = {}
        for field in fields:
            values = [getattr(p.outcome, field) for p in self.predictions.values()]
            result[field] = max(values) - min(values) if values else 0.0
        return result

    def max_spread(self) -> float:
        return max(self.spread().values(), default=0.0)

    def to_dict(self) -> Dict[str, object]:
        return {
            "predictions": {name: p.to_dict() for name, p in self.predictions.items()},
            "spread": {name: round(value, 1) for name, value in self.spread().items()},
        }


class PredictionKernel:
    """One independent set of random source, Poisson engine and calculators.

    A kernel may be reused sequentially so its density cache is amortised
    across calls.  It holds mutable state and must not be shared between
    threads; run one kernel per worker instead.
    """

    def __init__(self, config: MatchprobConfig | None = None, seed: int | None = None) -> None:
        self.config = config or get_config()
        self.seed = self.config.default_seed if seed is None else seed
        self.rng = SeededRandom(self.seed)
        self.engine = PoissonEngine(
            self.rng,
            normal_threshold=self.config.normal_threshold,
            precision=self.config.density_precision,
            max_entries=self.config.cache_max_entries,
        )
        self.pipeline = RateAdjustmentPipeline()
        self.calculator = PoissonCalculator(
            self.engine,
            max_goals=self.config.max_goals,
            top_scorelines=self.config.top_scorelines,
        )
        self.simulator = MonteCarloSimulator(
            self.engine, top_scorelines=self.config.top_scorelines
        )

    def _lambdas(self, source: RateParameters | LambdaPair) -> LambdaPair:
        if isinstance(source, LambdaPair):
            return source
        if isinstance(source, RateParameters):
            return self.pipeline.adjust(source)
        raise InvalidInput(
            f"Expected RateParameters or LambdaPair, got {type(source).__name__}"
        )

    def adjust(self, params: RateParameters) -> LambdaPair:
        return self.pipeline.adjust(params)

    def poisson(self, source: RateParameters | LambdaPair) -> Prediction:
        return self.calculator.calculate(self._lambdas(source))

    def monte_carlo(
        self,
        source: RateParameters | LambdaPair,
        trials: int | None = None,
        seed: int | None = None,
    ) -> Prediction:
        count = validate_trials(self.config.default_trials if trials is None else trials)
        pair = self._lambdas(source)
        return self.simulator.simulate(
            pair,
            count,
            self.seed if seed is None else seed,
        )

    def xg(self, params: RateParameters) -> Prediction:
        """Adjusted-xG method: pipeline rates through the analytic grid."""

        if not isinstance(params, RateParameters):
            raise InvalidInput("The xg method requires RateParameters")
        pair = self.pipeline.adjust(params)
        base = self.calculator.calculate(pair)
        outcome = dataclasses.replace(base.outcome, confidence_pct=xg_confidence(pair))
        return dataclasses.replace(base, method="xg", outcome=outcome)

    def predict(
        self,
        params: RateParameters,
        method: str = "poisson",
        *,
        trials: int | None = None,
        seed: int | None = None,
    ) -> Prediction:
        name = normalize_method(method)
        if name == "poisson":
            return self.poisson(params)
        if name == "monte_carlo":
            return self.monte_carlo(params, trials=trials, seed=seed)
        return self.xg(params)

    def compare(
        self,
        params: RateParameters,
        trials: int | None = None,
        seed: int | None = None,
    ) -> ModelComparison:
        predictions = {
            name: self.predict(params, name, trials=trials, seed=seed) for name in METHODS
        }
        comparison = ModelComparison(predictions=predictions)
        logger.debug("Method spread for %s: %.2f pts", params, comparison.max_spread())
        return comparison

    def reset(self) -> None:
        self.engine.clear_cache()
        self.rng.reseed(self.seed)


__all__ = ["ModelComparison", "PredictionKernel", "normalize_method", "xg_confidence"]
