"""Storage capability for strategy config and decision records.

Two interchangeable backends exist: ``Database`` (SQLite, primary) and
``MemoryStorage`` (process memory, fallback for ephemeral hosts). The backend
is chosen once at startup by ``open_storage``.
"""

from __future__ import annotations

import abc
import asyncio
import uuid
from collections import deque
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from app.config import AppConfig, StrategyConfig
from app.models import DecisionRecord


def new_order_id() -> str:
    return f"order_{uuid.uuid4().hex}"


def merge_strategy_config(current: StrategyConfig, changes: dict[str, Any]) -> StrategyConfig:
    """Apply a partial update (camelCase or snake_case keys) on top of ``current``.

    Raises ``pydantic.ValidationError`` for unknown keys or out-of-range values.
    """
    aliases = {name: field.alias or name for name, field in StrategyConfig.model_fields.items()}
    payload = current.model_dump(by_alias=True)
    for key, value in changes.items():
        payload[aliases.get(key, key)] = value
    return StrategyConfig.model_validate(payload)


class Storage(abc.ABC):
    """Get/set contract for the active configuration and the order log."""

    def __init__(self, default_config: StrategyConfig | None = None) -> None:
        self.default_config = default_config or StrategyConfig()

    async def init(self) -> None:
        return None

    async def close(self) -> None:
        return None

    @abc.abstractmethod
    async def healthcheck(self) -> bool: ...

    @abc.abstractmethod
    async def get_config(self) -> StrategyConfig:
        """Return the active config, creating it from defaults on first access."""

    @abc.abstractmethod
    async def _write_config(self, config: StrategyConfig) -> StrategyConfig: ...

    async def save_config(self, changes: dict[str, Any]) -> StrategyConfig:
        current = await self.get_config()
        return await self._write_config(merge_strategy_config(current, changes))

    async def reset_config(self) -> StrategyConfig:
        return await self._write_config(self.default_config)

    @abc.abstractmethod
    async def list_orders(self, limit: int | None = None) -> list[DecisionRecord]:
        """Newest first."""

    @abc.abstractmethod
    async def append_order(self, record: DecisionRecord) -> DecisionRecord:
        """Persist ``record`` and return a copy carrying its id and timestamps."""

    @abc.abstractmethod
    async def clear_orders(self) -> int: ...


class MemoryStorage(Storage):
    """Keeps everything in process memory; the order log is capped."""

    def __init__(self, default_config: StrategyConfig | None = None, order_limit: int = 100) -> None:
        super().__init__(default_config)
        self._config: StrategyConfig | None = None
        self._orders: deque[DecisionRecord] = deque(maxlen=order_limit)
        self._lock = asyncio.Lock()

    async def healthcheck(self) -> bool:
        return True

    async def get_config(self) -> StrategyConfig:
        if self._config is None:
            self._config = self.default_config
        return self._config

    async def _write_config(self, config: StrategyConfig) -> StrategyConfig:
        self._config = config
        return config

    async def list_orders(self, limit: int | None = None) -> list[DecisionRecord]:
        orders = list(reversed(self._orders))
        return orders[:limit] if limit is not None else orders

    async def append_order(self, record: DecisionRecord) -> DecisionRecord:
        now = datetime.now(UTC)
        stored = replace(record, id=new_order_id(), created_at=now, updated_at=now)
        async with self._lock:
            self._orders.append(stored)
        return stored

    async def clear_orders(self) -> int:
        async with self._lock:
            count = len(self._orders)
            self._orders.clear()
        return count


def create_storage(config: AppConfig) -> Storage:
    if config.storage.backend == "memory":
        return MemoryStorage(config.strategy, order_limit=config.storage.memory_order_limit)

    from app.database import Database

    return Database(config.storage.db_path, default_config=config.strategy)


async def open_storage(config: AppConfig, logger: Any) -> Storage:
    """Create and initialise the configured backend, falling back to memory if allowed."""
    storage = create_storage(config)
    try:
        await storage.init()
    except Exception as exc:  # noqa: BLE001
        if isinstance(storage, MemoryStorage) or not config.storage.fallback_to_memory:
            raise
        logger.error("Storage init failed for backend={}: {}; falling back to memory", config.storage.backend, exc)
        await storage.close()
        storage = MemoryStorage(config.strategy, order_limit=config.storage.memory_order_limit)
        await storage.init()
    logger.info("Storage ready backend={}", storage.__class__.__name__)
    return storage
