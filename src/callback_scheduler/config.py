# src/callback_scheduler/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Every setting has a working default, so the service starts with no env at all.
- Consumers receive settings by injection; get_settings() is only used by the entrypoint.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "SCHEDULER"

DEFAULT_PORT = 8080
DEFAULT_DELIVERY_TIMEOUT_SECONDS = 10.0


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides variables that are already set in the environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_to_file: bool

    # ---- HTTP listener ----
    host: str
    port: int

    # ---- Outbound callbacks ----
    delivery_timeout_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "callback-scheduler").strip() or "callback-scheduler"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_to_file = _env_bool(_k("LOG_TO_FILE"), True)

        host = _env(_k("HOST"), "0.0.0.0").strip() or "0.0.0.0"
        port = _env_int(_k("PORT"), DEFAULT_PORT)

        # A non-positive timeout would make every delivery fail instantly.
        delivery_timeout_seconds = _env_float(
            _k("DELIVERY_TIMEOUT_SECONDS"), DEFAULT_DELIVERY_TIMEOUT_SECONDS
        )
        if delivery_timeout_seconds <= 0:
            delivery_timeout_seconds = DEFAULT_DELIVERY_TIMEOUT_SECONDS

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/callback_scheduler"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_to_file=log_to_file,
            host=host,
            port=port,
            delivery_timeout_seconds=delivery_timeout_seconds,
            data_dir=data_dir,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
