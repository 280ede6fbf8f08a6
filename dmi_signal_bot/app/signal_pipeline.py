"""Webhook signal pipeline: validate, evaluate, derive and persist."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Protocol

from app.config import StrategyConfig
from app.errors import InvalidSignal, PersistenceFailure, PriceUnavailable
from app.models import DecisionRecord
from app.order_deriver import derive_order
from app.signal_evaluator import ThresholdEvaluator
from app.signal_parser import SignalParser


class ConfigSource(Protocol):
    async def get_config(self) -> StrategyConfig: ...


class PriceSource(Protocol):
    async def get_reference_price(self, symbol: str) -> float: ...


class OrderSink(Protocol):
    async def append_order(self, record: DecisionRecord) -> DecisionRecord: ...


@dataclass(slots=True)
class SignalOutcome:
    action: str
    explanation: str
    order: DecisionRecord


class SignalPipeline:
    """Processes one webhook signal at a time; each phase stops the run on failure."""

    def __init__(
        self,
        config_source: ConfigSource,
        price_source: PriceSource,
        order_sink: OrderSink,
        logger,
        parser: SignalParser | None = None,
        evaluator: ThresholdEvaluator | None = None,
    ) -> None:
        self.config_source = config_source
        self.price_source = price_source
        self.order_sink = order_sink
        self.logger = logger
        self.parser = parser or SignalParser()
        self.evaluator = evaluator or ThresholdEvaluator()

    async def process(self, payload: Any) -> SignalOutcome:
        signal = self.parser.parse(payload)
        self.logger.info(
            "SignalPipeline: received symbol={} timeframe={} +DI={} -DI={} ADX={}",
            signal.symbol,
            signal.timeframe,
            signal.plus_di,
            signal.minus_di,
            signal.adx,
        )

        config = await self.config_source.get_config()
        result = self.evaluator.evaluate(signal, config)
        if not result.is_valid or result.action is None:
            self.logger.info("SignalPipeline: rejected symbol={} reason={}", signal.symbol, result.explanation)
            raise InvalidSignal(result.explanation)

        try:
            reference_price = await self.price_source.get_reference_price(signal.symbol)
        except Exception as exc:  # noqa: BLE001
            self.logger.error("SignalPipeline: price lookup failed symbol={} err={}", signal.symbol, exc)
            raise PriceUnavailable(f"Failed to get price for {signal.symbol}") from exc

        record = derive_order(
            signal.symbol,
            result.action,
            reference_price,
            config.leverage,
            config.take_profit_percentage,
            config.stop_loss_percentage,
        )
        record = replace(record, timeframe=signal.timeframe)

        try:
            stored = await self.order_sink.append_order(record)
        except Exception as exc:  # noqa: BLE001
            self.logger.error("SignalPipeline: persisting order failed symbol={} err={}", signal.symbol, exc)
            raise PersistenceFailure(f"Failed to save order for {signal.symbol}") from exc

        self.logger.info(
            "SignalPipeline: order saved id={} action={} entry={} tp={} sl={} leverage={}",
            stored.id,
            stored.action,
            stored.entry_price,
            stored.take_profit_price,
            stored.stop_loss_price,
            stored.leverage_label,
        )
        return SignalOutcome(action=result.action, explanation=result.explanation, order=stored)
