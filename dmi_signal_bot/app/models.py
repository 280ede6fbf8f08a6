"""Domain models for signals and simulated decisions."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

BUY = "BUY"
SELL = "SELL"
ACTIONS = (BUY, SELL)

STATUS_ACTIVE = "ACTIVE"
# Reserved for a lifecycle tracker; nothing in this service transitions to them.
STATUS_TP_HIT = "TP_HIT"
STATUS_SL_HIT = "SL_HIT"
STATUS_CLOSED = "CLOSED"
ORDER_STATUSES = (STATUS_ACTIVE, STATUS_TP_HIT, STATUS_SL_HIT, STATUS_CLOSED)


@dataclass(slots=True)
class TradingSignal:
    symbol: str
    plus_di: float | None
    minus_di: float | None
    adx: float | None
    timeframe: str


@dataclass(slots=True)
class DecisionRecord:
    symbol: str
    action: str
    entry_price: float
    take_profit_price: float
    stop_loss_price: float
    leverage: int
    timeframe: str | None = None
    status: str = STATUS_ACTIVE
    id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    closed_at: datetime | None = None

    @property
    def leverage_label(self) -> str:
        return f"{self.leverage}x"

    def to_dict(self) -> dict[str, Any]:
        """JSON shape used by the HTTP API; keys are camelCase like the config API."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "action": self.action,
            "entryPrice": self.entry_price,
            "takeProfitPrice": self.take_profit_price,
            "stopLossPrice": self.stop_loss_price,
            "leverage": self.leverage_label,
            "timeframe": self.timeframe,
            "status": self.status,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "closedAt": self.closed_at.isoformat() if self.closed_at else None,
        }
