# src/tasktrack/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

One Settings object for the whole app; nothing here requires secrets.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "TASKTRACK"


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


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    log_to_file: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_dir: Path
    log_dir: Path

    # ---- Service ----
    queue_size: int
    default_user_id: str | None

    @staticmethod
    def from_env() -> "Settings":
        # .env next to where the app is started (not next to the installed package)
        load_dotenv(find_dotenv(usecwd=True), override=False)

        app_name = _env(_k("APP_NAME"), "tasktrack") or "tasktrack"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        log_to_file = _env_bool(_k("LOG_TO_FILE"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tasktrack"))
        tasks_dir = _env_path(_k("TASKS_DIR"), data_dir / "tasks")
        log_dir = _env_path(_k("LOG_DIR"), data_dir)

        queue_size = max(0, _env_int(_k("QUEUE_SIZE"), 0))
        default_user_id = _env(_k("USER_ID"), "").strip() or None

        return Settings(
            app_name=app_name,
            log_level=log_level,
            log_to_file=log_to_file,
            data_dir=data_dir,
            tasks_dir=tasks_dir,
            log_dir=log_dir,
            queue_size=queue_size,
            default_user_id=default_user_id,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
