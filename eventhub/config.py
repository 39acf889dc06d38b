from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


@dataclass
class Config:
    bot_token: str
    database_path: str
    log_level: str = "INFO"
    log_file: str = os.path.join("data", "eventhub.log")
    log_max_bytes: int = 5 * 1024 * 1024
    log_backup_count: int = 3
    simulated_latency: float = 0.5
    payment_delay: float = 2.0
    seed_demo_data: bool = True


def _parse_bool(raw: str | None, default: bool = False) -> bool:
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "y", "on"):
        return True
    if value in ("0", "false", "no", "n", "off"):
        return False
    return default


def _parse_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _parse_float(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        return default
    return value if value >= 0 else default


def load_config() -> Config:
    load_dotenv()
    token = os.getenv("BOT_TOKEN")
    if not token:
        raise RuntimeError("BOT_TOKEN is required. Set it in .env")

    db_path = os.getenv("DATABASE_PATH", os.path.join("data", "eventhub.db"))
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_file = os.getenv("LOG_FILE", os.path.join("data", "eventhub.log"))
    log_max_bytes = _parse_int(os.getenv("LOG_MAX_BYTES"), 5 * 1024 * 1024)
    log_backup_count = _parse_int(os.getenv("LOG_BACKUP_COUNT"), 3)
    simulated_latency = _parse_float(os.getenv("SIMULATED_LATENCY"), 0.5)
    payment_delay = _parse_float(os.getenv("PAYMENT_DELAY"), 2.0)
    seed_demo_data = _parse_bool(os.getenv("SEED_DEMO_DATA", "true"), default=True)

    return Config(
        bot_token=token,
        database_path=db_path,
        log_level=log_level,
        log_file=log_file,
        log_max_bytes=log_max_bytes,
        log_backup_count=log_backup_count,
        simulated_latency=simulated_latency,
        payment_delay=payment_delay,
        seed_demo_data=seed_demo_data,
    )
