"""Take-profit / stop-loss derivation for simulated orders."""

from __future__ import annotations

import math

from app.errors import PriceUnavailable
from app.models import ACTIONS, BUY, DecisionRecord


def tp_sl_prices(action: str, reference_price: float, take_profit_pct: float, stop_loss_pct: float) -> tuple[float, float]:
    if action == BUY:
        return reference_price * (1 + take_profit_pct / 100), reference_price * (1 - stop_loss_pct / 100)
    return reference_price * (1 - take_profit_pct / 100), reference_price * (1 + stop_loss_pct / 100)


def derive_order(
    symbol: str,
    action: str,
    reference_price: float | None,
    leverage: int,
    take_profit_pct: float,
    stop_loss_pct: float,
) -> DecisionRecord:
    """Build the decision record for ``action`` entered at ``reference_price``.

    Exit prices are rounded to cents; the entry price is kept as retrieved.
    Leverage is carried along for display and does not move the exits.
    """
    if action not in ACTIONS:
        raise ValueError(f"invalid action: {action!r}")
    if take_profit_pct <= 0 or stop_loss_pct <= 0:
        raise ValueError("take profit and stop loss percentages must be positive")
    if (
        isinstance(reference_price, bool)
        or not isinstance(reference_price, (int, float))
        or not math.isfinite(reference_price)
        or reference_price <= 0
    ):
        raise PriceUnavailable(f"invalid reference price for {symbol}: {reference_price!r}")

    tp_price, sl_price = tp_sl_prices(action, float(reference_price), take_profit_pct, stop_loss_pct)
    return DecisionRecord(
        symbol=symbol,
        action=action,
        entry_price=float(reference_price),
        take_profit_price=round(tp_price, 2),
        stop_loss_price=round(sl_price, 2),
        leverage=int(leverage),
    )
