"""Application entrypoint."""

from __future__ import annotations

from pathlib import Path

import uvicorn

from app.config import AppConfig, load_config
from app.logger import setup_logger


def run(config_path: str | Path | None = None) -> None:
    config: AppConfig = load_config(config_path)
    logger = setup_logger(settings=config.logging, debug=config.server.environment == "development")

    from web.server import create_app

    app = create_app(config=config, logger=logger)

    logger.info("=" * 41)
    logger.info("DMI signal bot server starting")
    logger.info("Mode: {} | Environment: {}", config.mode, config.server.environment)
    logger.info("Listening on {}:{}", config.server.host, config.server.port)
    logger.info("Binance testnet: {}", "Enabled" if config.binance.testnet else "Disabled")
    logger.info("=" * 41)

    uvicorn.run(app, host=config.server.host, port=config.server.port, log_level="info")


if __name__ == "__main__":
    run()
