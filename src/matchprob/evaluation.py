"""Score kernel predictions against finished matches.

The helpers here measure how well a prediction method is calibrated: the
three-way Brier score, the log-likelihood of the observed result, hit rate
of the most likely outcome, sharpness and a binned calibration error.
Loading historical rows and tabulating scores use polars frames.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any, Literal

import polars as pl

from .errors import InvalidInput
from .kernel import PredictionKernel, normalize_method
from .models import OutcomeDistribution, RateParameters
from .simulation import validate_trials

logger = logging.getLogger(__name__)

Result = Literal["home", "draw", "away"]

PROBABILITY_FLOOR = 0.001
CALIBRATION_BINS = 10

__all__ = [
    "CalibrationBin",
    "EvaluationMetrics",
    "HistoricalMatch",
    "MatchScore",
    "calibration_table",
    "evaluate",
    "load_matches",
    "match_result",
    "scores_to_frame",
    "score_outcome",
]


@dataclasses.dataclass(frozen=True, slots=True)
class HistoricalMatch:
    """Pre-match inputs paired with the final score."""

    params: RateParameters
    home_goals: int
    away_goals: int
    match_id: str = ""


@dataclasses.dataclass(frozen=True, slots=True)
class MatchScore:
    """Scoring of a single prediction."""

    match_id: str
    result: Result
    predicted: Result
    home_probability: float
    draw_probability: float
    away_probability: float
    brier: float
    log_likelihood: float

    @property
    def correct(self) -> bool:
        return self.predicted == self.result

    @property
    def top_probability(self) -> float:
        return max(self.home_probability, self.draw_probability, self.away_probability)


@dataclasses.dataclass(frozen=True, slots=True)
class CalibrationBin:
    lower: float
    upper: float
    count: int
    average_predicted: float
    average_actual: float

    @property
    def error(self) -> float:
        return abs(self.average_predicted - self.average_actual)


@dataclasses.dataclass(slots=True)
class EvaluationMetrics:
    """Aggregated metrics for one method over a set of matches."""

    method: str
    total_matches: int
    scored_matches: int
    accuracy_pct: float
    average_brier: float
    average_log_likelihood: float
    sharpness: float
    calibration_error: float
    bins: Sequence[CalibrationBin]
    scores: Sequence[MatchScore] = dataclasses.field(repr=False)

    @property
    def reliability(self) -> float:
        return 1.0 - self.calibration_error

    @property
    def well_calibrated(self) -> bool:
        return self.calibration_error < 0.1


def match_result(home_goals: int, away_goals: int) -> Result:
    if home_goals > away_goals:
        return "home"
    if home_goals < away_goals:
        return "away"
    return "draw"


def _predicted_result(home: float, draw: float, away: float) -> Result:
    if home > draw and home > away:
        return "home"
    if away > draw and away > home:
        return "away"
    return "draw"


def score_outcome(
    outcome: OutcomeDistribution,
    home_goals: int,
    away_goals: int,
    match_id: str = "",
) -> MatchScore:
    """Score ``outcome`` against the final score ``home_goals``-``away_goals``."""

    home, draw, away = outcome.probabilities()
    result = match_result(home_goals, away_goals)
    actual = {"home": 0.0, "draw": 0.0, "away": 0.0}
    actual[result] = 1.0
    brier = (
        (home - actual["home"]) ** 2
        + (draw - actual["draw"]) ** 2
        + (away - actual["away"]) ** 2
    )
    observed = {"home": home, "draw": draw, "away": away}[result]
    return MatchScore(
        match_id=match_id,
        result=result,
        predicted=_predicted_result(home, draw, away),
        home_probability=home,
        draw_probability=draw,
        away_probability=away,
        brier=brier,
        log_likelihood=math.log(max(observed, PROBABILITY_FLOOR)),
    )


def _sharpness(scores: Sequence[MatchScore]) -> float:
    if not scores:
        return 0.0
    total_entropy = 0.0
    for score in scores:
        probabilities = (score.home_probability, score.draw_probability, score.away_probability)
        total_entropy -= sum(
            p * math.log2(max(p, PROBABILITY_FLOOR)) for p in probabilities
        )
    return 1.0 - (total_entropy / len(scores)) / math.log2(3)


def _calibration(scores: Sequence[MatchScore], bins: int) -> tuple[list[CalibrationBin], float]:
    if not scores:
        return [], 0.0
    width = 1.0 / bins
    grouped: list[list[MatchScore]] = [[] for _ in range(bins)]
    for score in scores:
        index = min(int(score.top_probability / width), bins - 1)
        grouped[index].append(score)
    summary: list[CalibrationBin] = []
    weighted_error = 0.0
    for index, members in enumerate(grouped):
        if not members:
            continue
        calibration_bin = CalibrationBin(
            lower=index * width,
            upper=(index + 1) * width,
            count=len(members),
            average_predicted=sum(m.top_probability for m in members) / len(members),
            average_actual=sum(1.0 for m in members if m.correct) / len(members),
        )
        summary.append(calibration_bin)
        weighted_error += calibration_bin.error * calibration_bin.count
    return summary, weighted_error / len(scores)


def evaluate(
    kernel: PredictionKernel,
    matches: Iterable[HistoricalMatch],
    method: str = "poisson",
    *,
    trials: int | None = None,
    seed: int | None = None,
    bins: int = CALIBRATION_BINS,
) -> EvaluationMetrics:
    """Predict every match with ``method`` and aggregate the scores.

    Matches whose parameters are rejected by the kernel are skipped and
    logged; an unknown method name or an invalid ``trials`` value raises
    :class:`InvalidInput` immediately.
    """

    name = normalize_method(method)
    if trials is not None:
        validate_trials(trials)
    scores: list[MatchScore] = []
    total = 0
    for match in matches:
        total += 1
        try:
            prediction = kernel.predict(match.params, name, trials=trials, seed=seed)
        except InvalidInput as exc:
            logger.warning("Skipping match %s: %s", match.match_id or total, exc)
            continue
        scores.append(
            score_outcome(prediction.outcome, match.home_goals, match.away_goals, match.match_id)
        )

    calibration_bins, calibration_error = _calibration(scores, bins)
    count = len(scores)
    metrics = EvaluationMetrics(
        method=name,
        total_matches=total,
        scored_matches=count,
        accuracy_pct=(100.0 * sum(1 for s in scores if s.correct) / count) if count else 0.0,
        average_brier=(sum(s.brier for s in scores) / count) if count else 0.0,
        average_log_likelihood=(sum(s.log_likelihood for s in scores) / count) if count else 0.0,
        sharpness=_sharpness(scores),
        calibration_error=calibration_error,
        bins=calibration_bins,
        scores=scores,
    )
    logger.info(
        "Evaluated %s on %d/%d matches: accuracy %.2f%% brier %.4f log-likelihood %.4f",
        name,
        count,
        total,
        metrics.accuracy_pct,
        metrics.average_brier,
        metrics.average_log_likelihood,
    )
    return metrics


def _row_to_match(row: Mapping[str, Any], index: int) -> HistoricalMatch:
    for column in ("home_goals", "away_goals"):
        if row.get(column) is None:
            raise InvalidInput(f"Row {index} is missing {column}")
    match_id = row.get("match_id")
    return HistoricalMatch(
        params=RateParameters.from_mapping(row),
        home_goals=int(row["home_goals"]),
        away_goals=int(row["away_goals"]),
        match_id=str(match_id) if match_id is not None else str(index),
    )


def load_matches(path: str | Path) -> list[HistoricalMatch]:
    """Load historical matches stored as CSV or Parquet.

    Columns are the :class:`RateParameters` field names plus ``home_goals``,
    ``away_goals`` and an optional ``match_id``.  Rows that cannot be parsed
    are skipped with a warning.
    """

    target = Path(path)
    if not target.exists():
        raise FileNotFoundError(f"Match history path does not exist: {target}")
    suffix = target.suffix.lower()
    if suffix == ".csv":
        frame = pl.read_csv(target)
    elif suffix == ".parquet":
        frame = pl.read_parquet(target)
    else:
        raise ValueError(f"Unsupported match history format: {target.suffix}")

    matches: list[HistoricalMatch] = []
    for index, row in enumerate(frame.iter_rows(named=True), start=1):
        try:
            matches.append(_row_to_match(row, index))
        except (InvalidInput, TypeError, ValueError) as exc:
            logger.warning("Skipping row %d of %s: %s", index, target, exc)
    return matches


def scores_to_frame(scores: Sequence[MatchScore]) -> pl.DataFrame:
    """Return per-match scores as a :class:`polars.DataFrame`."""

    return pl.DataFrame(
        [
            {**dataclasses.asdict(score), "correct": score.correct}
            for score in scores
        ],
        schema={
            "match_id": pl.Utf8,
            "result": pl.Utf8,
            "predicted": pl.Utf8,
            "home_probability": pl.Float64,
            "draw_probability": pl.Float64,
            "away_probability": pl.Float64,
            "brier": pl.Float64,
            "log_likelihood": pl.Float64,
            "correct": pl.Boolean,
        },
    )


def calibration_table(metrics: EvaluationMetrics) -> pl.DataFrame:
    """Return the calibration bins of ``metrics`` as a frame."""

    return pl.DataFrame(
        [
            {
                "lower": item.lower,
                "upper": item.upper,
                "count": item.count,
                "average_predicted": item.average_predicted,
                "average_actual": item.average_actual,
                "error": item.error,
            }
            for item in metrics.bins
        ],
        schema={
            "lower": pl.Float64,
            "upper": pl.Float64,
            "count": pl.Int64,
            "average_predicted": pl.Float64,
            "average_actual": pl.Float64,
            "error": pl.Float64,
        },
    )
