# src/taskbell/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time (SMTP/Matrix credentials are optional).
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

ENV_PREFIX = "TASKBELL"

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


def parse_user_rooms(raw: str | None) -> dict[int, str]:
    """
    Parse "1=!abc:server, 2=!def:server" into {1: "!abc:server", 2: "!def:server"}.

    Malformed entries are skipped with a warning.
    """
    out: dict[int, str] = {}
    if not raw:
        return out
    for part in raw.replace(";", ",").split(","):
        part = part.strip()
        if not part:
            continue
        user_raw, sep, room_id = part.partition("=")
        room_id = room_id.strip()
        if not sep or not room_id:
            logger.warning("Ignoring malformed user room entry: %r", part)
            continue
        try:
            out[int(user_raw.strip())] = room_id
        except ValueError:
            logger.warning("Ignoring user room entry with non-numeric user id: %r", part)
    return out


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- Reminder scheduler ----
    reminder_enabled: bool
    reminder_interval_seconds: float
    reminder_window_seconds: float
    reminder_send_timeout_seconds: float

    # ---- SMTP ----
    smtp_host: str
    smtp_port: int
    smtp_username: str
    smtp_password: str
    smtp_sender: str
    smtp_starttls: bool
    smtp_timeout_seconds: float

    # ---- Matrix (live sessions) ----
    matrix_enabled: bool
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_store_path: Path
    matrix_user_rooms: dict[int, str]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskbell").strip() or "taskbell"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskbell"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "taskbell.sqlite3")

        reminder_enabled = _env_bool(_k("REMINDER_ENABLED"), True)
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 6 * 3600.0)
        reminder_window_seconds = _env_float(_k("REMINDER_WINDOW_SECONDS"), 24 * 3600.0)
        reminder_send_timeout_seconds = _env_float(_k("REMINDER_SEND_TIMEOUT_SECONDS"), 30.0)

        smtp_host = _env(_k("SMTP_HOST"), "").strip()
        smtp_port = _env_int(_k("SMTP_PORT"), 587)
        smtp_username = _env(_k("SMTP_USERNAME"), "").strip()
        smtp_password = _env(_k("SMTP_PASSWORD"), "")
        # Sender defaults to the login name, which is what most providers require.
        smtp_sender = _env(_k("SMTP_SENDER"), smtp_username).strip()
        smtp_starttls = _env_bool(_k("SMTP_STARTTLS"), True)
        smtp_timeout_seconds = _env_float(_k("SMTP_TIMEOUT_SECONDS"), 20.0)

        matrix_enabled = _env_bool(_k("MATRIX_ENABLED"), False)
        matrix_homeserver = _env(_k("MATRIX_HOMESERVER"), "").strip()
        matrix_user_id = _env(_k("MATRIX_USER_ID"), "").strip()
        matrix_password = _env(_k("MATRIX_PASSWORD"), "").strip()
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")
        matrix_user_rooms = parse_user_rooms(os.getenv(_k("MATRIX_USER_ROOMS")))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            reminder_enabled=reminder_enabled,
            reminder_interval_seconds=reminder_interval_seconds,
            reminder_window_seconds=reminder_window_seconds,
            reminder_send_timeout_seconds=reminder_send_timeout_seconds,
            smtp_host=smtp_host,
            smtp_port=smtp_port,
            smtp_username=smtp_username,
            smtp_password=smtp_password,
            smtp_sender=smtp_sender,
            smtp_starttls=smtp_starttls,
            smtp_timeout_seconds=smtp_timeout_seconds,
            matrix_enabled=matrix_enabled,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_store_path=matrix_store_path,
            matrix_user_rooms=matrix_user_rooms,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Return the process settings, reading the environment on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_env()
    return _SETTINGS
