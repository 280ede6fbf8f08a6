"""Parser for incoming webhook signal payloads."""

from __future__ import annotations

import math
from typing import Any

from app.errors import MalformedSignal
from app.models import TradingSignal

REQUIRED_FIELDS = ["symbol", "plusDI", "minusDI", "adx", "timeframe"]
_INDICATOR_FIELDS = {"plusDI", "minusDI", "adx"}


class SignalParser:
    """Turn a raw webhook payload into a ``TradingSignal``.

    Indicator values may arrive as JSON numbers or numeric strings (TradingView
    placeholders are rendered as text). Zero is a valid reading.
    """

    required_fields = REQUIRED_FIELDS

    def parse(self, payload: Any) -> TradingSignal:
        if not isinstance(payload, dict):
            raise MalformedSignal(self.required_fields, self.required_fields)

        missing = [name for name in self.required_fields if not self._present(name, payload.get(name))]
        if missing:
            raise MalformedSignal(missing, self.required_fields)

        return TradingSignal(
            symbol=str(payload["symbol"]).strip(),
            plus_di=self._to_float(payload["plusDI"]),
            minus_di=self._to_float(payload["minusDI"]),
            adx=self._to_float(payload["adx"]),
            timeframe=str(payload["timeframe"]).strip(),
        )

    def _present(self, name: str, value: Any) -> bool:
        if value is None:
            return False
        if name in _INDICATOR_FIELDS:
            return self._to_float(value) is not None
        return isinstance(value, str) and bool(value.strip())

    def _to_float(self, value: Any) -> float | None:
        if isinstance(value, bool):
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        return number if math.isfinite(number) else None
