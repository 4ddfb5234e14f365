# src/focuslist/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing required at import time: every variable has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "FOCUSLIST"

# Manual timer input is MM:SS with at most 99 minutes.
MAX_TIMER_SECONDS = 99 * 60 + 59

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


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


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _clamp_duration(seconds: int) -> int:
    return max(1, min(MAX_TIMER_SECONDS, int(seconds)))


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_db_path: Path

    # ---- Timer ----
    work_seconds: int
    break_seconds: int
    persist_every_ticks: int

    # ---- Alerts ----
    sound_enabled: bool
    notifications_enabled: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "focuslist").strip() or "focuslist"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/focuslist"))
        store_db_path = _env_path(_k("STORE_DB_PATH"), data_dir / "store.sqlite3")

        work_seconds = _clamp_duration(_env_int(_k("WORK_SECONDS"), 25 * 60))
        break_seconds = _clamp_duration(_env_int(_k("BREAK_SECONDS"), 5 * 60))
        persist_every_ticks = max(1, _env_int(_k("PERSIST_EVERY_TICKS"), 1))

        sound_enabled = _env_bool(_k("SOUND_ENABLED"), False)
        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_db_path=store_db_path,
            work_seconds=work_seconds,
            break_seconds=break_seconds,
            persist_every_ticks=persist_every_ticks,
            sound_enabled=sound_enabled,
            notifications_enabled=notifications_enabled,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
