"""Environment-driven application settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    database_path: Path
    default_timezone: str
    currency: str
    seed_demo_data: bool
    demo_price_per_hour: int
    host: str
    port: int
    schedule_time_regex: str


@lru_cache
def get_settings() -> Settings:
    """Read settings once per process; call `cache_clear()` to reload."""
    return Settings(
        app_name=os.getenv("APP_NAME", "Pitchbook"),
        app_version=os.getenv("APP_VERSION", "0.1.0"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        database_path=Path(os.getenv("DATABASE_PATH", "data/pitchbook.db")),
        default_timezone=os.getenv("DEFAULT_TIMEZONE", "Europe/London"),
        currency=os.getenv("CURRENCY", "gbp"),
        seed_demo_data=_env_bool("SEED_DEMO_DATA", True),
        demo_price_per_hour=int(os.getenv("DEMO_PRICE_PER_HOUR", "6000")),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        schedule_time_regex=r"^([01]\d|2[0-3]):[0-5]\d$",
    )
