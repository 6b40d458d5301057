"""Closed-form outcome probabilities from a truncated bivariate Poisson grid."""

from __future__ import annotations

import logging
from typing import Dict

from .models import (
    LambdaPair,
    MarketProbabilities,
    OutcomeDistribution,
    Prediction,
    rank_scorelines,
)
from .poisson import PoissonEngine

logger = logging.getLogger(__name__)


def poisson_confidence(pair: LambdaPair) -> float:
    """Heuristic confidence: larger rate gaps and busier games score higher."""

    return min(95.0, 75.0 + pair.difference * 10.0 + min(pair.mean, 3.0) * 5.0)


class PoissonCalculator:
    """Sum independent Poisson densities over ``0..max_goals`` for each side.

    Goal counts above ``max_goals`` are dropped, so the raw home/draw/away
    mass falls slightly short of one.  The three outcome buckets are divided
    by their total; derived markets are reported from the raw grid mass.
    This truncation is an accepted approximation whose error grows with the
    rates and is negligible below the pipeline's ceiling of 8 goals.
    """

    def __init__(
        self,
        engine: PoissonEngine | None = None,
        *,
        max_goals: int = 10,
        top_scorelines: int = 8,
    ) -> None:
        if max_goals < 1:
            raise ValueError("max_goals must be at least 1")
        self.engine = engine if engine is not None else PoissonEngine()
        self.max_goals = max_goals
        self.top_scorelines = top_scorelines

    def calculate(self, pair: LambdaPair) -> Prediction:
        density = self.engine.density
        goals = range(self.max_goals + 1)
        home_densities = [density(pair.home_lambda, count) for count in goals]
        away_densities = [density(pair.away_lambda, count) for count in goals]

        home_win = draw = away_win = 0.0
        btts = over_15 = over_25 = under_25 = over_35 = 0.0
        clean_sheet_home = clean_sheet_away = 0.0
        grid: Dict[tuple[int, int], float] = {}

        for home_goals, home_p in enumerate(home_densities):
            for away_goals, away_p in enumerate(away_densities):
                p = home_p * away_p
                grid[(home_goals, away_goals)] = p

                if home_goals > away_goals:
                    home_win += p
                elif home_goals == away_goals:
                    draw += p
                else:
                    away_win += p

                total = home_goals + away_goals
                if home_goals > 0 and away_goals > 0:
                    btts += p
                if total >= 2:
                    over_15 += p
                if total >= 3:
                    over_25 += p
                else:
                    under_25 += p
                if total >= 4:
                    over_35 += p
                if away_goals == 0:
                    clean_sheet_home += p
                if home_goals == 0:
                    clean_sheet_away += p

        mass = home_win + draw + away_win
        if mass > 0.0:
            home_win, draw, away_win = home_win / mass, draw / mass, away_win / mass

        outcome = OutcomeDistribution(
            home_win_pct=home_win * 100.0,
            draw_pct=draw * 100.0,
            away_win_pct=away_win * 100.0,
            expected_home_goals=pair.home_lambda,
            expected_away_goals=pair.away_lambda,
            confidence_pct=poisson_confidence(pair),
        )
        outcome.check_finite()
        logger.debug(
            "Poisson grid 0..%d at %.3f/%.3f covered %.4f of the mass",
            self.max_goals,
            pair.home_lambda,
            pair.away_lambda,
            mass,
        )
        return Prediction(
            method="poisson",
            lambdas=pair,
            outcome=outcome,
            markets=MarketProbabilities(
                btts_pct=btts * 100.0,
                over_15_pct=over_15 * 100.0,
                over_25_pct=over_25 * 100.0,
                under_25_pct=under_25 * 100.0,
                over_35_pct=over_35 * 100.0,
                clean_sheet_home_pct=clean_sheet_home * 100.0,
                clean_sheet_away_pct=clean_sheet_away * 100.0,
            ),
            scorelines=rank_scorelines(grid, 100.0, self.top_scorelines),
        )


__all__ = ["PoissonCalculator", "poisson_confidence"]
