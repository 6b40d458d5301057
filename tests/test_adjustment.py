from __future__ import annotations

import logging
import math
import warnings

import pytest
from hypothesis import given, strategies as st

from matchprob.adjustment import (
    LAMBDA_MAX,
    LAMBDA_MIN,
    AdjustmentStage,
    RateAdjustmentPipeline,
    adjust,
    check_typical_ranges,
    defensive_strength,
    external_factors,
    final_clamp,
    form_factor,
    home_advantage,
    recent_form,
)
from matchprob.errors import InvalidInput, OutOfRangeWarning
from matchprob.models import RateParameters


def test_default_pipeline_rates(typical_params) -> None:
    pair = adjust(typical_params)
    # Neutral concession folds to 0.8, home advantage 0.3 boosts the home side.
    assert pair.home_lambda == pytest.approx(1.8 * 0.8 * 1.3)
    assert pair.away_lambda == pytest.approx(1.2 * 0.8)


def test_stage_order() -> None:
    assert RateAdjustmentPipeline().stage_names == [
        "defensive_strength",
        "form",
        "external",
        "home_advantage",
        "recent_form",
        "final_clamp",
    ]


def test_trace_records_every_stage(typical_params) -> None:
    trace = RateAdjustmentPipeline().trace(typical_params)
    assert [step.stage for step in trace] == RateAdjustmentPipeline().stage_names
    assert trace[0].home_rate == pytest.approx(1.44)
    assert trace[3].home_rate == pytest.approx(1.44 * 1.3)
    assert trace[3].away_rate == pytest.approx(0.96)


def test_defensive_strength_uses_opponent_rating() -> None:
    params = RateParameters(home_attack=1.0, away_attack=1.0, home_concession=1.0, away_concession=0.2)
    assert defensive_strength(1.0, params, "home") == pytest.approx(1.2)
    assert defensive_strength(1.0, params, "away") == pytest.approx(0.8)

    leaky = RateParameters(home_attack=1.0, away_attack=1.0, away_concession=3.0)
    assert defensive_strength(1.0, leaky, "home") == pytest.approx(0.4)


def test_form_factor_is_clamped() -> None:
    hot = RateParameters(home_attack=1.0, away_attack=1.0, form=3.0)
    cold = RateParameters(home_attack=1.0, away_attack=1.0, form=0.0)
    assert form_factor(2.0, hot, "home") == pytest.approx(3.0)
    assert form_factor(2.0, cold, "away") == pytest.approx(1.0)


def test_external_factors_head_to_head_is_complementary() -> None:
    params = RateParameters(home_attack=1.0, away_attack=1.0, head_to_head=1.5)
    assert external_factors(1.0, params, "home") == pytest.approx(1.2)
    assert external_factors(1.0, params, "away") == pytest.approx(0.8)

    conditions = RateParameters(home_attack=1.0, away_attack=1.0, weather=0.1, motivation=5.0)
    assert external_factors(1.0, conditions, "home") == pytest.approx(0.8 * 1.2)
    assert external_factors(1.0, conditions, "away") == pytest.approx(0.8 * 1.2)


def test_home_advantage_only_boosts_home() -> None:
    params = RateParameters(home_attack=1.0, away_attack=1.0, home_advantage=4.0)
    assert home_advantage(1.5, params, "home") == pytest.approx(3.0)
    assert home_advantage(1.5, params, "away") == 1.5


def test_recent_form_moves_sides_in_opposite_directions() -> None:
    params = RateParameters(home_attack=1.0, away_attack=1.0, recent_form=0.9)
    assert recent_form(2.0, params, "home") == pytest.approx(3.0)
    assert recent_form(2.0, params, "away") == pytest.approx(1.0)

    slump = RateParameters(home_attack=1.0, away_attack=1.0, recent_form=-0.2)
    assert recent_form(1.0, slump, "home") == pytest.approx(0.8)
    assert recent_form(1.0, slump, "away") == pytest.approx(1.2)


def test_final_clamp_bounds() -> None:
    params = RateParameters(home_attack=1.0, away_attack=1.0)
    assert final_clamp(0.0, params, "home") == LAMBDA_MIN
    assert final_clamp(50.0, params, "away") == LAMBDA_MAX
    assert final_clamp(2.5, params, "home") == 2.5


def test_extreme_inputs_are_clamped() -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", OutOfRangeWarning)
        pair = adjust(
            RateParameters(
                home_attack=1000.0,
                away_attack=0.0,
                away_concession=0.0,
                form=10.0,
                home_advantage=10.0,
            )
        )
    assert pair.home_lambda == LAMBDA_MAX
    assert pair.away_lambda == LAMBDA_MIN


@pytest.mark.parametrize(
    "field,value",
    [
        ("home_attack", -0.5),
        ("away_attack", math.nan),
        ("home_concession", math.inf),
        ("form", True),
        ("weather", "1.0"),
        ("recent_form", math.nan),
    ],
)
def test_invalid_parameters_raise(field: str, value: object) -> None:
    values = {"home_attack": 1.5, "away_attack": 1.2, field: value}
    with pytest.raises(InvalidInput, match=field):
        adjust(RateParameters(**values))


def test_negative_recent_form_is_valid() -> None:
    pair = adjust(RateParameters(home_attack=1.5, away_attack=1.5, recent_form=-0.5))
    assert pair.home_lambda == pytest.approx(1.5 * 0.8 * 1.3 * 0.5)
    assert pair.away_lambda == pytest.approx(1.5 * 0.8 * 1.5)


def test_out_of_range_inputs_warn(caplog) -> None:
    params = RateParameters(home_attack=7.0, away_attack=1.0, home_concession=4.5)
    assert len(check_typical_ranges(params)) == 2

    with caplog.at_level(logging.WARNING, logger="matchprob.adjustment"):
        with pytest.warns(OutOfRangeWarning, match="home_attack"):
            adjust(params)
    assert any("typical" in record.getMessage() for record in caplog.records)


def test_typical_inputs_do_not_warn(typical_params) -> None:
    assert check_typical_ranges(typical_params) == []
    with warnings.catch_warnings():
        warnings.simplefilter("error", OutOfRangeWarning)
        adjust(typical_params)


def test_custom_stages() -> None:
    doubled = AdjustmentStage("double", lambda rate, params, side: rate * 2.0)
    pipeline = RateAdjustmentPipeline([doubled])
    pair = pipeline.adjust(RateParameters(home_attack=1.1, away_attack=0.4))
    assert pair.home_lambda == pytest.approx(2.2)
    assert pair.away_lambda == pytest.approx(0.8)


def test_pipeline_requires_a_stage() -> None:
    with pytest.raises(ValueError):
        RateAdjustmentPipeline([])


_NON_NEGATIVE = st.floats(min_value=0.0, max_value=1e6, allow_nan=False, allow_infinity=False)


@st.composite
def _rate_parameters(draw: st.DrawFn) -> RateParameters:
    return RateParameters(
        home_attack=draw(_NON_NEGATIVE),
        away_attack=draw(_NON_NEGATIVE),
        home_concession=draw(_NON_NEGATIVE),
        away_concession=draw(_NON_NEGATIVE),
        home_advantage=draw(_NON_NEGATIVE),
        form=draw(_NON_NEGATIVE),
        weather=draw(_NON_NEGATIVE),
        motivation=draw(_NON_NEGATIVE),
        head_to_head=draw(_NON_NEGATIVE),
        recent_form=draw(
            st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)
        ),
    )


@given(params=_rate_parameters())
def test_adjusted_rates_always_within_bounds(params: RateParameters) -> None:
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", OutOfRangeWarning)
        pair = adjust(params)
    assert LAMBDA_MIN <= pair.home_lambda <= LAMBDA_MAX
    assert LAMBDA_MIN <= pair.away_lambda <= LAMBDA_MAX
