import math

import pytest

from app.signal_evaluator import MISSING_VALUES_EXPLANATION, ThresholdEvaluator, evaluate
from conftest import make_signal


@pytest.fixture
def evaluator():
    return ThresholdEvaluator()


def test_buy_when_all_three_conditions_hold(evaluator, thresholds):
    result = evaluator.evaluate(make_signal(30, 15, 25), thresholds)
    assert result.is_valid is True
    assert result.action == "BUY"
    assert "+DI (30.00) > threshold (25)" in result.explanation
    assert "-DI (15.00) < threshold (20)" in result.explanation
    assert "ADX (25.00) > minimum (20)" in result.explanation


def test_sell_when_adx_below_minimum(evaluator, thresholds):
    result = evaluator.evaluate(make_signal(10, 10, 10), thresholds)
    assert result.is_valid is True
    assert result.action == "SELL"
    assert "ADX (10.00) < minimum (20)" in result.explanation


@pytest.mark.parametrize(
    "plus_di, minus_di, adx",
    [
        (24.9, 15, 25),  # +DI below threshold
        (30, 20.1, 25),  # -DI above threshold
        (30, 15, 19.9),  # ADX below minimum
        (5, 40, 5),
    ],
)
def test_any_single_sell_condition_gives_sell(evaluator, thresholds, plus_di, minus_di, adx):
    result = evaluator.evaluate(make_signal(plus_di, minus_di, adx), thresholds)
    assert result.is_valid is True
    assert result.action == "SELL"


def test_exact_thresholds_give_no_decision(evaluator, thresholds):
    result = evaluator.evaluate(make_signal(25, 20, 20), thresholds)
    assert result.is_valid is False
    assert result.action is None
    assert "does not meet buy or sell criteria" in result.explanation.lower()


def test_boundary_value_is_not_buy(evaluator, thresholds):
    # +DI sits on its threshold, the other two would allow a BUY.
    result = evaluator.evaluate(make_signal(25, 15, 25), thresholds)
    assert result.action is None
    assert result.is_valid is False


@pytest.mark.parametrize("field", ["plus_di", "minus_di", "adx"])
def test_missing_indicator_is_invalid(evaluator, thresholds, field):
    values = {"plus_di": 30.0, "minus_di": 15.0, "adx": 25.0, field: None}
    result = evaluator.evaluate(make_signal(**values), thresholds)
    assert result.is_valid is False
    assert result.action is None
    assert result.explanation == MISSING_VALUES_EXPLANATION == "missing required indicator values"


def test_nan_indicator_counts_as_missing(evaluator, thresholds):
    result = evaluator.evaluate(make_signal(math.nan, 15, 25), thresholds)
    assert result.is_valid is False
    assert result.explanation == MISSING_VALUES_EXPLANATION == "missing required indicator values"


def test_fractional_thresholds_in_explanation(thresholds):
    custom = thresholds.model_copy(update={"plus_di_threshold": 22.5})
    result = evaluate(make_signal(30, 15, 25), custom)
    assert result.action == "BUY"
    assert "threshold (22.5)" in result.explanation


def test_evaluation_is_deterministic(evaluator, thresholds):
    signal = make_signal(27.3, 18.1, 31.0)
    first = evaluator.evaluate(signal, thresholds)
    second = evaluator.evaluate(signal, thresholds)
    assert first == second
