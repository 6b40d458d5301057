"""Seeded Monte Carlo aggregation of Poisson goal draws."""

from __future__ import annotations

import logging
import math
from typing import Dict

from .errors import InvalidInput
from .models import (
    GoalHistogram,
    LambdaPair,
    MarketProbabilities,
    OutcomeDistribution,
    Prediction,
    SimulationStats,
    rank_scorelines,
)
from .poisson import PoissonEngine

logger = logging.getLogger(__name__)

HISTOGRAM_BINS = 10


def simulation_confidence(home_win_rate: float, trials: int) -> tuple[float, float]:
    """Return ``(confidence_pct, standard_error)`` for a simulation run.

    The binomial standard error of the home-win rate is subtracted from a
    baseline that grows with ``log10(trials)``; the result is kept within
    ``[0, 99]``.
    """

    variance = home_win_rate * (1.0 - home_win_rate)
    standard_error = math.sqrt(variance / trials)
    confidence = 90.0 + math.log10(trials) * 5.0 - standard_error * 1000.0
    return max(0.0, min(99.0, confidence)), standard_error


def validate_trials(trials: object) -> int:
    if isinstance(trials, bool) or not isinstance(trials, int):
        raise InvalidInput(f"trials must be an integer, got {type(trials).__name__}")
    if trials < 1:
        raise InvalidInput(f"trials must be at least 1 (got {trials})")
    return trials


class MonteCarloSimulator:
    """Estimate outcome probabilities by sampling goal counts.

    The simulator reseeds its engine's random source on every call, so the
    same ``(pair, trials, seed)`` always reproduces the same prediction.  The
    rates are assumed to come from the adjustment pipeline and are not
    re-validated.
    """

    def __init__(self, engine: PoissonEngine | None = None, *, top_scorelines: int = 8) -> None:
        self.engine = engine if engine is not None else PoissonEngine()
        self.top_scorelines = top_scorelines

    def simulate(self, pair: LambdaPair, trials: int, seed: int) -> Prediction:
        trials = validate_trials(trials)
        rng = self.engine.rng
        rng.reseed(seed)

        home_wins = draws = away_wins = 0
        total_home_goals = total_away_goals = 0
        btts = over_15 = over_25 = over_35 = 0
        clean_sheet_home = clean_sheet_away = 0
        scorelines: Dict[tuple[int, int], int] = {}
        home_bins = [0] * HISTOGRAM_BINS
        away_bins = [0] * HISTOGRAM_BINS
        last_bin = HISTOGRAM_BINS - 1

        sample = self.engine.sample
        home_lambda = pair.home_lambda
        away_lambda = pair.away_lambda
        for _ in range(trials):
            home_goals = sample(home_lambda)
            away_goals = sample(away_lambda)
            total_home_goals += home_goals
            total_away_goals += away_goals

            key = (home_goals, away_goals)
            scorelines[key] = scorelines.get(key, 0) + 1
            home_bins[min(home_goals, last_bin)] += 1
            away_bins[min(away_goals, last_bin)] += 1

            if home_goals > away_goals:
                home_wins += 1
            elif home_goals == away_goals:
                draws += 1
            else:
                away_wins += 1

            total = home_goals + away_goals
            if home_goals > 0 and away_goals > 0:
                btts += 1
            if total >= 2:
                over_15 += 1
            if total >= 3:
                over_25 += 1
            if total >= 4:
                over_35 += 1
            if away_goals == 0:
                clean_sheet_home += 1
            if home_goals == 0:
                clean_sheet_away += 1

        pct = 100.0 / trials
        confidence, standard_error = simulation_confidence(home_wins / trials, trials)
        outcome = OutcomeDistribution(
            home_win_pct=home_wins * pct,
            draw_pct=draws * pct,
            away_win_pct=away_wins * pct,
            expected_home_goals=total_home_goals / trials,
            expected_away_goals=total_away_goals / trials,
            confidence_pct=confidence,
        )
        outcome.check_finite()
        markets = MarketProbabilities(
            btts_pct=btts * pct,
            over_15_pct=over_15 * pct,
            over_25_pct=over_25 * pct,
            under_25_pct=(trials - over_25) * pct,
            over_35_pct=over_35 * pct,
            clean_sheet_home_pct=clean_sheet_home * pct,
            clean_sheet_away_pct=clean_sheet_away * pct,
        )
        logger.debug(
            "Simulated %d trials (seed %d) at %.3f/%.3f -> %.1f/%.1f/%.1f",
            trials,
            seed,
            home_lambda,
            away_lambda,
            outcome.home_win_pct,
            outcome.draw_pct,
            outcome.away_win_pct,
        )
        return Prediction(
            method="monte_carlo",
            lambdas=pair,
            outcome=outcome,
            markets=markets,
            scorelines=rank_scorelines(scorelines, pct, self.top_scorelines),
            histogram=GoalHistogram(home=tuple(home_bins), away=tuple(away_bins)),
            stats=SimulationStats(
                trials=trials, seed=seed, standard_error_pct=standard_error * 100.0
            ),
        )


__all__ = ["HISTOGRAM_BINS", "MonteCarloSimulator", "simulation_confidence", "validate_trials"]
