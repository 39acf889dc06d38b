from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List

from .config import Config

logger = logging.getLogger("eventhub")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
# Libraries that log every Telegram poll or SQL statement.
NOISY_LOGGERS = ("httpx", "aiosqlite")


def _build_handlers(config: Config) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_dir = os.path.dirname(config.log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                config.log_file,
                maxBytes=config.log_max_bytes,
                backupCount=config.log_backup_count,
                encoding="utf-8",
            )
        )
    return handlers


def setup_logging(config: Config) -> logging.Logger:
    """Route bot and store logs to stdout and, if configured, a rotating file."""
    handlers = _build_handlers(config)
    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=config.log_level, handlers=handlers, force=True)
    logging.captureWarnings(True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.setLevel(config.log_level)
    logger.debug(
        "Logging configured (level=%s, file=%s, latency=%.2fs)",
        config.log_level,
        config.log_file,
        config.simulated_latency,
    )
    return logger


__all__ = ["setup_logging", "logger"]
