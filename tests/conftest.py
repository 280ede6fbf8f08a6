from __future__ import annotations

import pytest
from loguru import logger

from app.config import AppConfig, StrategyConfig
from app.models import TradingSignal
from app.storage import MemoryStorage


class FakePriceClient:
    def __init__(self, price: float | None = 50000.0, error: Exception | None = None) -> None:
        self.price = price
        self.error = error
        self.calls: list[str] = []

    async def test_connection(self) -> bool:
        return self.error is None

    async def get_reference_price(self, symbol: str) -> float:
        self.calls.append(symbol)
        if self.error is not None:
            raise self.error
        return self.price


class FailingStorage(MemoryStorage):
    async def append_order(self, record):
        raise RuntimeError("disk full")


def make_signal(plus_di=30.0, minus_di=15.0, adx=25.0, symbol="BTCUSDT", timeframe="5m") -> TradingSignal:
    return TradingSignal(symbol=symbol, plus_di=plus_di, minus_di=minus_di, adx=adx, timeframe=timeframe)


def make_payload(**overrides) -> dict:
    payload = {"symbol": "BTCUSDT", "plusDI": 30, "minusDI": 15, "adx": 25, "timeframe": "5m"}
    payload.update(overrides)
    return payload


@pytest.fixture
def thresholds() -> StrategyConfig:
    return StrategyConfig(plus_di_threshold=25, minus_di_threshold=20, adx_minimum=20)


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    return AppConfig.model_validate(
        {
            "mode": "paper",
            "storage": {"backend": "memory"},
            "logging": {"dir": str(tmp_path / "logs")},
        }
    )


@pytest.fixture
def memory_storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def price_client() -> FakePriceClient:
    return FakePriceClient(50000.0)


@pytest.fixture
def test_logger():
    return logger
