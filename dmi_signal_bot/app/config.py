"""Configuration loading and validation."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.errors import ConfigError

ROOT_DIR = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = ROOT_DIR / "config.yml"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class StrategyConfig(BaseModel):
    """Thresholds and exit parameters applied to every incoming signal."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    symbol: str = "BTCUSDT"
    timeframe: str = "5m"
    plus_di_threshold: float = Field(default=25.0, ge=0, alias="plusDIThreshold")
    minus_di_threshold: float = Field(default=20.0, ge=0, alias="minusDIThreshold")
    adx_minimum: float = Field(default=20.0, ge=0, alias="adxMinimum")
    take_profit_percentage: float = Field(default=2.0, gt=0, alias="takeProfitPercentage")
    stop_loss_percentage: float = Field(default=1.0, gt=0, alias="stopLossPercentage")
    leverage: int = Field(default=10, ge=1, le=125)

    def to_api(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ServerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str = "0.0.0.0"
    port: int = Field(default=5000, ge=1, le=65535)
    environment: str = Field(default="development", pattern=r"^(development|production|test)$")
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])


class BinanceConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    testnet: bool = False
    base_url: str = "https://api.binance.com"
    testnet_url: str = "https://testnet.binance.vision"
    timeout_sec: float = Field(default=10.0, gt=0)

    @property
    def effective_url(self) -> str:
        return self.testnet_url if self.testnet else self.base_url


class PaperConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    prices: dict[str, float] = Field(default_factory=dict)


class StorageConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    backend: str = Field(default="sqlite", pattern=r"^(sqlite|memory)$")
    db_path: str = "data/bot.db"
    fallback_to_memory: bool = True
    memory_order_limit: int = Field(default=100, ge=1)


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str = Field(default="INFO", pattern=r"^(TRACE|DEBUG|INFO|SUCCESS|WARNING|ERROR|CRITICAL)$")
    dir: str = "logs"
    rotation: str = "5 MB"
    retention: int = Field(default=5, ge=1)


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    mode: str = Field(default="live", pattern=r"^(paper|live)$")
    server: ServerConfig = Field(default_factory=ServerConfig)
    binance: BinanceConfig = Field(default_factory=BinanceConfig)
    paper: PaperConfig = Field(default_factory=PaperConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)


def _env_overrides(raw: dict[str, Any], environ: dict[str, str]) -> dict[str, Any]:
    data = {**raw}
    for nested in ["server", "binance", "storage", "logging"]:
        data[nested] = {**(data.get(nested) or {})}

    if environ.get("DMI_BOT_MODE"):
        data["mode"] = environ["DMI_BOT_MODE"]
    if environ.get("PORT"):
        data["server"]["port"] = environ["PORT"]
    env_name = environ.get("APP_ENV") or environ.get("NODE_ENV")
    if env_name:
        data["server"]["environment"] = env_name
    if environ.get("BINANCE_TESTNET"):
        data["binance"]["testnet"] = environ["BINANCE_TESTNET"].lower() in _TRUE_VALUES
    if environ.get("USE_FALLBACK_STORAGE", "").lower() in _TRUE_VALUES:
        data["storage"]["backend"] = "memory"
    return data


def load_config(path: str | Path | None = None, environ: dict[str, str] | None = None) -> AppConfig:
    """Load configuration from YAML file, apply environment overrides and validate schema.

    A missing file is not an error: built-in defaults are used instead.
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    config_path = Path(path or environ.get("DMI_BOT_CONFIG") or DEFAULT_CONFIG_PATH)
    raw_data: dict[str, Any] = {}
    if config_path.exists():
        try:
            with config_path.open("r", encoding="utf-8") as fh:
                raw_data = yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in '{config_path}': {exc}") from exc
        if not isinstance(raw_data, dict):
            raise ConfigError(f"Config '{config_path}' must be a mapping")

    try:
        return AppConfig.model_validate(_env_overrides(raw_data, environ))
    except ValidationError as exc:
        raise ConfigError(f"Invalid config '{config_path}': {exc}") from exc
