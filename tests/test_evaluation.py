from __future__ import annotations

import logging
import math
from pathlib import Path

import polars as pl
import pytest

from matchprob.errors import InvalidInput
from matchprob.evaluation import (
    PROBABILITY_FLOOR,
    HistoricalMatch,
    calibration_table,
    evaluate,
    load_matches,
    match_result,
    score_outcome,
    scores_to_frame,
)
from matchprob.models import OutcomeDistribution, RateParameters


def _outcome(home: float, draw: float, away: float) -> OutcomeDistribution:
    return OutcomeDistribution(home, draw, away, 1.5, 1.0, 80.0)


@pytest.fixture
def matches() -> list[HistoricalMatch]:
    return [
        HistoricalMatch(RateParameters(home_attack=2.1, away_attack=0.9), 2, 0, "a"),
        HistoricalMatch(RateParameters(home_attack=1.3, away_attack=1.3), 1, 1, "b"),
        HistoricalMatch(RateParameters(home_attack=math.nan, away_attack=1.0), 0, 1, "bad"),
        HistoricalMatch(RateParameters(home_attack=1.0, away_attack=2.0), 0, 2, "c"),
    ]


@pytest.mark.parametrize(
    "home_goals,away_goals,expected",
    [(2, 1, "home"), (0, 0, "draw"), (1, 3, "away")],
)
def test_match_result(home_goals: int, away_goals: int, expected: str) -> None:
    assert match_result(home_goals, away_goals) == expected


def test_score_home_win() -> None:
    score = score_outcome(_outcome(50.0, 30.0, 20.0), 2, 1, "m1")

    assert score.result == "home"
    assert score.predicted == "home"
    assert score.correct
    assert score.brier == pytest.approx(0.25 + 0.09 + 0.04)
    assert score.log_likelihood == pytest.approx(math.log(0.5))
    assert score.top_probability == pytest.approx(0.5)


def test_score_draw() -> None:
    score = score_outcome(_outcome(50.0, 30.0, 20.0), 1, 1)

    assert not score.correct
    assert score.brier == pytest.approx(0.25 + 0.49 + 0.04)
    assert score.log_likelihood == pytest.approx(math.log(0.3))


def test_log_likelihood_is_floored() -> None:
    score = score_outcome(_outcome(70.0, 30.0, 0.0), 0, 3)
    assert score.log_likelihood == pytest.approx(math.log(PROBABILITY_FLOOR))


def test_tied_favourites_predict_draw() -> None:
    assert score_outcome(_outcome(40.0, 20.0, 40.0), 1, 0).predicted == "draw"


def test_evaluate_skips_invalid_matches(kernel, matches, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="matchprob.evaluation"):
        metrics = evaluate(kernel, matches)

    assert metrics.method == "poisson"
    assert metrics.total_matches == 4
    assert metrics.scored_matches == 3
    assert [score.match_id for score in metrics.scores] == ["a", "b", "c"]
    assert any("bad" in record.getMessage() for record in caplog.records)

    assert 0.0 <= metrics.accuracy_pct <= 100.0
    assert 0.0 <= metrics.average_brier <= 2.0
    assert metrics.average_log_likelihood < 0.0
    assert 0.0 <= metrics.sharpness <= 1.0
    assert sum(item.count for item in metrics.bins) == 3
    assert metrics.reliability == pytest.approx(1.0 - metrics.calibration_error)


def test_evaluate_monte_carlo(kernel, matches) -> None:
    metrics = evaluate(kernel, matches, "monte-carlo", trials=1_000, seed=3)
    assert metrics.method == "monte_carlo"
    assert metrics.scored_matches == 3


def test_evaluate_rejects_unknown_method(kernel, matches) -> None:
    with pytest.raises(InvalidInput):
        evaluate(kernel, matches, "coin-flip")


def test_evaluate_empty(kernel) -> None:
    metrics = evaluate(kernel, [])
    assert metrics.scored_matches == 0
    assert metrics.accuracy_pct == 0.0
    assert metrics.bins == []


def test_load_matches_from_csv(history_csv: Path, caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="matchprob.evaluation"):
        loaded = load_matches(history_csv)

    assert [match.match_id for match in loaded] == ["m1", "m2", "m3", "m4"]
    first = loaded[0]
    assert first.params.home_attack == pytest.approx(1.9)
    assert first.params.form == 1.0
    assert (first.home_goals, first.away_goals) == (2, 0)
    assert any("row 5" in record.getMessage() for record in caplog.records)


def test_load_matches_from_parquet(tmp_path: Path) -> None:
    path = tmp_path / "history.parquet"
    pl.DataFrame(
        {
            "home_attack": [1.6, 1.1],
            "away_attack": [1.0, 1.4],
            "home_goals": [1, 0],
            "away_goals": [0, 0],
        }
    ).write_parquet(path)

    loaded = load_matches(path)

    assert len(loaded) == 2
    assert loaded[1].match_id == "2"
    assert loaded[1].params.away_attack == pytest.approx(1.4)


def test_load_matches_rejects_unknown_format(tmp_path: Path) -> None:
    path = tmp_path / "history.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported"):
        load_matches(path)


def test_load_matches_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_matches(tmp_path / "missing.csv")


def test_frames(kernel, history_csv: Path) -> None:
    metrics = evaluate(kernel, load_matches(history_csv))

    scores = scores_to_frame(metrics.scores)
    assert scores.height == 4
    assert scores["match_id"].to_list() == ["m1", "m2", "m3", "m4"]
    assert scores.schema["correct"] == pl.Boolean
    assert scores["brier"].min() >= 0.0

    table = calibration_table(metrics)
    assert table["count"].sum() == 4
    assert set(table.columns) == {
        "lower",
        "upper",
        "count",
        "average_predicted",
        "average_actual",
        "error",
    }


def test_empty_frames_keep_schema() -> None:
    frame = scores_to_frame([])
    assert frame.height == 0
    assert "log_likelihood" in frame.columns


@pytest.mark.parametrize("trials", [0, -3, True])
def test_evaluate_rejects_invalid_trials_before_scoring(kernel, history_csv, trials, caplog) -> None:
    loaded = load_matches(history_csv)
    with caplog.at_level(logging.WARNING, logger="matchprob.evaluation"):
        with pytest.raises(InvalidInput, match="trials"):
            evaluate(kernel, loaded, "monte-carlo", trials=trials)
    assert not any("Skipping match" in record.getMessage() for record in caplog.records)
