"""DMI/ADX threshold evaluation.

+DI and -DI measure the strength of upward and downward price movement, ADX
measures trend strength regardless of direction. A signal is a BUY only when
all three readings clear their thresholds strictly; any single reading on the
wrong side turns it into a SELL. Readings sitting exactly on their thresholds
(with nothing on the wrong side) produce no decision.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from app.models import BUY, SELL, TradingSignal

MISSING_VALUES_EXPLANATION = "missing required indicator values"
NO_CRITERIA_EXPLANATION = "Signal does not meet BUY or SELL criteria"


class Thresholds(Protocol):
    plus_di_threshold: float
    minus_di_threshold: float
    adx_minimum: float


@dataclass(slots=True)
class EvaluationResult:
    is_valid: bool
    action: str | None
    explanation: str


def _is_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def _fmt(value: float) -> str:
    return f"{value:g}"


class ThresholdEvaluator:
    """Classifies a signal as BUY, SELL or neither against the given thresholds."""

    def evaluate(self, signal: TradingSignal, thresholds: Thresholds) -> EvaluationResult:
        plus_di, minus_di, adx = signal.plus_di, signal.minus_di, signal.adx
        if not (_is_number(plus_di) and _is_number(minus_di) and _is_number(adx)):
            return EvaluationResult(False, None, MISSING_VALUES_EXPLANATION)

        plus_th = thresholds.plus_di_threshold
        minus_th = thresholds.minus_di_threshold
        adx_min = thresholds.adx_minimum

        if plus_di > plus_th and minus_di < minus_th and adx > adx_min:
            return EvaluationResult(
                True,
                BUY,
                f"Strong uptrend detected: +DI ({plus_di:.2f}) > threshold ({_fmt(plus_th)}), "
                f"-DI ({minus_di:.2f}) < threshold ({_fmt(minus_th)}), "
                f"ADX ({adx:.2f}) > minimum ({_fmt(adx_min)})",
            )

        if plus_di < plus_th or minus_di > minus_th or adx < adx_min:
            return EvaluationResult(
                True,
                SELL,
                f"Potential downtrend or weak trend: +DI ({plus_di:.2f}) < threshold ({_fmt(plus_th)}) "
                f"or -DI ({minus_di:.2f}) > threshold ({_fmt(minus_th)}) "
                f"or ADX ({adx:.2f}) < minimum ({_fmt(adx_min)})",
            )

        return EvaluationResult(False, None, NO_CRITERIA_EXPLANATION)


def evaluate(signal: TradingSignal, thresholds: Thresholds) -> EvaluationResult:
    return ThresholdEvaluator().evaluate(signal, thresholds)
