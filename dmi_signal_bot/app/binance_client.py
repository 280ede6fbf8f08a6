"""Binance public market-data client with async wrappers."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


def build_query(params: dict[str, object]) -> str:
    """Build deterministic query string without None values."""
    filtered = {k: v for k, v in params.items() if v is not None}
    return urlencode(sorted(filtered.items()), doseq=True)


class BinanceClient:
    """Reads ticker prices from the Binance spot REST API.

    Only unauthenticated endpoints are used; no orders are ever sent.
    """

    def __init__(
        self,
        base_url: str = "https://api.binance.com",
        timeout_sec: float = 10.0,
        logger: Any | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self.logger = logger or logging.getLogger(__name__)

    async def test_connection(self) -> bool:
        try:
            await self._request("GET", "/api/v3/ping")
            return True
        except RuntimeError as exc:
            self._log_error("test_connection", exc)
            return False

    async def get_last_price(self, symbol: str) -> float:
        try:
            data = await self._request("GET", "/api/v3/ticker/price", {"symbol": self.normalize_symbol(symbol)})
            price = data.get("price") if isinstance(data, dict) else None
            if price is None:
                raise ValueError("last price missing")
            return float(price)
        except (RuntimeError, ValueError) as exc:
            self._log_error("get_last_price", exc)
            raise

    def normalize_symbol(self, symbol: str) -> str:
        return symbol.replace("/", "").replace("-", "").replace("_", "").upper().strip()

    async def _request(self, method: str, path: str, params: dict[str, object] | None = None) -> dict[str, Any]:
        return await asyncio.to_thread(self._request_sync, method, path, params)

    def _request_sync(self, method: str, path: str, params: dict[str, object] | None = None) -> dict[str, Any]:
        params = params or {}
        url = f"{self.base_url}{path}"
        if params:
            url = f"{url}?{build_query(params)}"

        req = Request(url=url, method=method.upper(), headers={"Accept": "application/json"})

        try:
            with urlopen(req, timeout=self.timeout_sec) as resp:
                raw = resp.read().decode("utf-8")
        except HTTPError as exc:
            raw = exc.read().decode("utf-8", errors="ignore")
            raise RuntimeError(f"HTTPError {exc.code}: {raw}") from exc
        except URLError as exc:
            raise RuntimeError(f"URLError: {exc}") from exc
        except TimeoutError as exc:
            raise RuntimeError(f"timeout: {exc}") from exc

        try:
            payload = json.loads(raw or "{}")
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"invalid JSON from {path}: {exc}") from exc
        if isinstance(payload, dict) and "code" in payload and "msg" in payload:
            raise RuntimeError(f"API error code={payload.get('code')} msg={payload.get('msg')}")
        return payload

    def _log_error(self, scope: str, exc: Exception) -> None:
        if hasattr(self.logger, "error"):
            self.logger.error("Binance client error [{}]: {}", scope, exc)
