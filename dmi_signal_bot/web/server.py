"""HTTP API for webhook signals, strategy settings and simulated orders."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.templating import Jinja2Templates
from loguru import logger as default_logger
from pydantic import ValidationError

from app.config import AppConfig, load_config
from app.errors import InvalidSignal, MalformedSignal, PersistenceFailure, PriceUnavailable
from app.health import HealthMonitor
from app.price_client import PriceClient
from app.signal_pipeline import SignalPipeline
from app.storage import Storage, open_storage


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
DASHBOARD_ORDER_LIMIT = 50

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@dataclass(slots=True)
class Services:
    config: AppConfig
    price_client: PriceClient
    logger: Any
    storage: Storage | None = None
    pipeline: SignalPipeline | None = None
    health_monitor: HealthMonitor | None = None


def _services(request: Request) -> Services:
    return request.app.state.services


def _error(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, **extra})


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _validate_settings(changes: dict[str, Any]) -> str | None:
    for key in ("takeProfitPercentage", "take_profit_percentage", "stopLossPercentage", "stop_loss_percentage"):
        if key in changes:
            number = _as_number(changes[key])
            if number is None or number <= 0:
                return "Take Profit and Stop Loss must be positive values"
    if "leverage" in changes:
        number = _as_number(changes["leverage"])
        if number is None or number < 1 or number > 125:
            return "Leverage must be between 1 and 125"
    return None


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


@router.post("/webhook")
async def process_webhook(request: Request):
    services = _services(request)
    payload = await _json_body(request)
    try:
        outcome = await services.pipeline.process(payload)
    except MalformedSignal as exc:
        return _error(400, "Missing required signal parameters", required=exc.required)
    except InvalidSignal as exc:
        return _error(400, "Invalid signal", message=exc.explanation)
    except PriceUnavailable as exc:
        return _error(503, "Reference price unavailable", message=str(exc))
    except PersistenceFailure:
        return _error(500, "Error processing webhook")
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Error processing webhook: %s", exc)
        return _error(500, "Error processing webhook")

    return {
        "message": "Signal processed successfully",
        "action": outcome.action,
        "explanation": outcome.explanation,
        "order": outcome.order.to_dict(),
    }


@router.get("/config")
async def get_config(request: Request):
    try:
        config = await _services(request).storage.get_config()
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Error reading configuration: %s", exc)
        return _error(500, "Error reading configuration")
    return config.to_api()


@router.post("/config")
async def update_config(request: Request):
    services = _services(request)
    changes = await _json_body(request)
    if not isinstance(changes, dict):
        return _error(400, "Configuration body must be a JSON object")

    message = _validate_settings(changes)
    if message is not None:
        return _error(400, message)

    try:
        config = await services.storage.save_config(changes)
    except ValidationError as exc:
        return _error(400, "Invalid configuration", details=exc.errors(include_url=False, include_context=False))
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Error updating configuration: %s", exc)
        return _error(500, "Error updating configuration")

    services.logger.info("Configuration updated: {}", config.to_api())
    return config.to_api()


@router.post("/config/reset")
async def reset_config(request: Request):
    services = _services(request)
    try:
        config = await services.storage.reset_config()
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Error resetting configuration: %s", exc)
        return _error(500, "Error resetting configuration")

    services.logger.info("Configuration reset to defaults")
    return {"message": "Configuration reset to defaults", "config": config.to_api()}


@router.get("/orders")
async def get_orders(request: Request, limit: int | None = Query(default=None, ge=1)):
    try:
        orders = await _services(request).storage.list_orders(limit=limit)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Error reading orders: %s", exc)
        return _error(500, "Error reading orders")
    return [order.to_dict() for order in orders]


@router.post("/orders/reset")
async def reset_orders(request: Request):
    services = _services(request)
    try:
        removed = await services.storage.clear_orders()
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Error clearing orders: %s", exc)
        return _error(500, "Error clearing orders")

    services.logger.info("Orders cleared count={}", removed)
    return {"message": "All orders have been cleared", "orders": []}


@router.get("/health")
async def health(request: Request):
    monitor = _services(request).health_monitor
    await monitor.check_once()
    return {**monitor.snapshot(), "timestamp": datetime.now(UTC).isoformat()}


async def dashboard(request: Request):
    services = _services(request)
    config = await services.storage.get_config()
    orders = await services.storage.list_orders(limit=DASHBOARD_ORDER_LIMIT)
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "config": config.to_api(),
            "orders": [order.to_dict() for order in orders],
            "mode": services.config.mode,
            "storage_backend": services.storage.__class__.__name__,
        },
    )


def create_app(
    config: AppConfig | None = None,
    storage: Storage | None = None,
    price_client: PriceClient | None = None,
    logger: Any | None = None,
) -> FastAPI:
    config = config or load_config()
    logger = logger or default_logger
    services = Services(
        config=config,
        price_client=price_client or PriceClient.from_config(config, logger=logger),
        logger=logger,
        storage=storage,
    )

    app = FastAPI(title="dmi_signal_bot web")
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.include_router(router)
    app.add_api_route("/", dashboard, methods=["GET"], include_in_schema=False)

    @app.on_event("startup")
    async def startup_event() -> None:
        if services.storage is None:
            services.storage = await open_storage(config, logger)
        else:
            await services.storage.init()
        services.pipeline = SignalPipeline(services.storage, services.price_client, services.storage, logger)
        services.health_monitor = HealthMonitor(services.storage, services.price_client, logger)
        logger.info(
            "Web app started mode={} storage={} environment={}",
            config.mode,
            services.storage.__class__.__name__,
            config.server.environment,
        )

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        if services.storage is not None:
            await services.storage.close()

    return app
