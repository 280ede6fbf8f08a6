"""Unified reference-price client wrapper (paper/live)."""

from __future__ import annotations

from typing import Any

from app.binance_client import BinanceClient
from app.config import AppConfig


class _PaperPriceClient:
    """Serves prices from a static table; used for demos and offline runs."""

    def __init__(self, prices: dict[str, float] | None = None) -> None:
        self._last_price_by_symbol: dict[str, float] = {
            self.normalize_symbol(symbol): float(price) for symbol, price in (prices or {}).items()
        }

    async def test_connection(self) -> bool:
        return True

    async def get_last_price(self, symbol: str) -> float:
        price = self._last_price_by_symbol.get(self.normalize_symbol(symbol))
        if price is None:
            raise ValueError(f"market price unavailable for {symbol}")
        return price

    def normalize_symbol(self, symbol: str) -> str:
        return symbol.replace("/", "").replace("-", "").replace("_", "").upper().strip()


class PriceClient:
    """Common wrapper so callers do not depend on paper/live implementation."""

    def __init__(
        self,
        mode: str,
        base_url: str = "https://api.binance.com",
        timeout_sec: float = 10.0,
        paper_prices: dict[str, float] | None = None,
        logger: Any | None = None,
    ) -> None:
        self.mode = mode
        if mode == "live":
            self._client: Any = BinanceClient(base_url=base_url, timeout_sec=timeout_sec, logger=logger)
        elif mode == "paper":
            self._client = _PaperPriceClient(paper_prices)
        else:
            raise ValueError(f"unknown price mode: {mode!r}")

    @classmethod
    def from_config(cls, config: AppConfig, logger: Any | None = None) -> "PriceClient":
        return cls(
            mode=config.mode,
            base_url=config.binance.effective_url,
            timeout_sec=config.binance.timeout_sec,
            paper_prices=config.paper.prices,
            logger=logger,
        )

    async def test_connection(self) -> bool:
        return await self._client.test_connection()

    async def get_reference_price(self, symbol: str) -> float:
        return await self._client.get_last_price(symbol)
