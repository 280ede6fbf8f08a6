"""Health checks for the storage backend and the price API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.price_client import PriceClient
from app.storage import Storage


@dataclass(slots=True)
class HealthStatus:
    storage: str = "OK"
    price_api: str = "OK"
    price_api_consecutive_errors: int = 0


class HealthMonitor:
    def __init__(self, storage: Storage, price_client: PriceClient, logger: Any | None = None) -> None:
        self.storage = storage
        self.price_client = price_client
        self.logger = logger
        self.status = HealthStatus()

    async def check_once(self) -> None:
        await self._check_storage()
        await self._check_price_api()

    async def _check_storage(self) -> None:
        try:
            await self.storage.healthcheck()
            self.status.storage = "OK"
        except Exception as exc:  # noqa: BLE001
            self.status.storage = "ERROR"
            self._log_error("HealthMonitor storage check failed: {}", exc)

    async def _check_price_api(self) -> None:
        try:
            ok = await self.price_client.test_connection()
            if not ok:
                raise RuntimeError("price API test_connection returned False")
            self.status.price_api = "OK"
            self.status.price_api_consecutive_errors = 0
        except Exception as exc:  # noqa: BLE001
            self.status.price_api = "ERROR"
            self.status.price_api_consecutive_errors += 1
            self._log_error("HealthMonitor price API check failed: {}", exc)

    def snapshot(self) -> dict[str, str | int]:
        healthy = self.status.storage == "OK" and self.status.price_api == "OK"
        return {
            "status": "OK" if healthy else "DEGRADED",
            "storage": self.status.storage,
            "price_api": self.status.price_api,
            "price_api_consecutive_errors": self.status.price_api_consecutive_errors,
        }

    def _log_error(self, message: str, *args: object) -> None:
        if self.logger is not None and hasattr(self.logger, "error"):
            self.logger.error(message, *args)
