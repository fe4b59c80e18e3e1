"""
Environment configuration.

Values are read from the process environment after loading the `.env` file that
sits next to this module (python-dotenv does not override variables that are
already set).

Environment variables:
- SUPABASE_URL / SUPABASE_KEY: required when PROMOTION_STORE=supabase
- PROMOTION_STORE: "supabase" (default) or "memory"
- PROMOTION_SWEEP_INTERVAL_MINUTES: automatic sweep interval (default 60)
- PROMOTION_SWEEP_RECORD_TIMEOUT_SECONDS: per-record persistence timeout (default 30)
- PROMOTION_SWEEP_MAX_WORKERS: records processed in parallel per sweep (default 4)
- PROMOTION_SCHEDULER_ENABLED: start the automatic sweep with the API (default true)
- LOG_LEVEL: root log level for the API process (default INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

env_path = Path(__file__).parent / ".env"

_STORE_BACKENDS = {"supabase", "memory"}
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True, slots=True)
class Settings:
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    store_backend: str = "supabase"
    sweep_interval_minutes: int = 60
    sweep_record_timeout_seconds: float = 30.0
    sweep_max_workers: int = 4
    scheduler_enabled: bool = True
    log_level: str = "INFO"


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def _positive_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def load_settings() -> Settings:
    """Load settings from `.env` and the environment."""

    load_dotenv(dotenv_path=env_path)

    store_backend = os.getenv("PROMOTION_STORE", "supabase").strip().lower()
    if store_backend not in _STORE_BACKENDS:
        raise ValueError(
            f"PROMOTION_STORE must be one of {sorted(_STORE_BACKENDS)}, got {store_backend!r}"
        )

    return Settings(
        supabase_url=os.getenv("SUPABASE_URL"),
        supabase_key=os.getenv("SUPABASE_KEY"),
        store_backend=store_backend,
        sweep_interval_minutes=_positive_int("PROMOTION_SWEEP_INTERVAL_MINUTES", 60),
        sweep_record_timeout_seconds=_positive_float("PROMOTION_SWEEP_RECORD_TIMEOUT_SECONDS", 30.0),
        sweep_max_workers=_positive_int("PROMOTION_SWEEP_MAX_WORKERS", 4),
        scheduler_enabled=_flag("PROMOTION_SCHEDULER_ENABLED", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


__all__ = ["Settings", "load_settings"]
