"""Logging configuration for console and rotating file logs."""

from __future__ import annotations

from pathlib import Path
import sys

from loguru import logger

from app.config import LoggingConfig


def setup_logger(log_dir: str | Path | None = None, settings: LoggingConfig | None = None, debug: bool = False):
    settings = settings or LoggingConfig()
    path = Path(log_dir or settings.dir)
    path.mkdir(parents=True, exist_ok=True)
    level = "DEBUG" if debug else settings.level

    logger.remove()
    logger.add(sys.stdout, level=level, enqueue=True)
    logger.add(
        path / "bot.log",
        level=level,
        rotation=settings.rotation,
        retention=settings.retention,
        enqueue=True,
        encoding="utf-8",
    )
    return logger
