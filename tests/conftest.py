from __future__ import annotations

from pathlib import Path

import pytest

from matchprob.config import MatchprobConfig, reset_config
from matchprob.kernel import PredictionKernel
from matchprob.models import LambdaPair, RateParameters

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch):
    for name in (
        "MATCHPROB_TRIALS",
        "MATCHPROB_SEED",
        "MATCHPROB_MAX_GOALS",
        "MATCHPROB_TOP_SCORELINES",
        "MATCHPROB_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def kernel() -> PredictionKernel:
    return PredictionKernel(MatchprobConfig(default_trials=2_000), seed=7)


@pytest.fixture
def typical_pair() -> LambdaPair:
    return LambdaPair(home_lambda=1.8, away_lambda=1.2)


@pytest.fixture
def typical_params() -> RateParameters:
    return RateParameters(home_attack=1.8, away_attack=1.2)


@pytest.fixture
def history_csv() -> Path:
    return DATA_DIR / "historical_matches.csv"
