# src/taskbell/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path


# Minimum console level per logger prefix; the longest matching prefix wins.
# Sweep summaries and notification fan-out stay visible at INFO; per-row store
# chatter and the Matrix sync loop only surface when something goes wrong.
_CONSOLE_LEVELS: dict[str, int] = {
    "taskbell": logging.DEBUG,
    "taskbell.tasks.reminder_scheduler": logging.INFO,
    "taskbell.notifications.notifier": logging.INFO,
    "taskbell.notifications.delivery": logging.WARNING,
    "taskbell.notifications.registry": logging.INFO,
    "taskbell.storage": logging.WARNING,
    "taskbell.tasks.task_store": logging.INFO,
    "taskbell.users.user_store": logging.WARNING,
    "taskbell.notifications.notification_store": logging.WARNING,
    "taskbell.connectors": logging.WARNING,
    "py.warnings": logging.ERROR,
}


def _console_threshold(name: str) -> int:
    best, level = "", logging.ERROR  # third-party (nio, asyncio, ...)
    for prefix, lvl in _CONSOLE_LEVELS.items():
        if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > len(best):
            best, level = prefix, lvl
    return level


class _ConsoleNoiseFilter(logging.Filter):
    """Keep the service console readable (see _CONSOLE_LEVELS); the file log gets everything."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= _console_threshold(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/taskbell",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """
    Configure logging with:
    - Console handler: filtered, for operators watching the service
    - File handler: full logs for debugging (reminder sweeps, delivery failures)

    Call this ONCE, very early (before first logger.info).
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "taskbell.log"

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(threadName)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(fmt)
    ch.addFilter(_ConsoleNoiseFilter())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_file), encoding="utf-8")
    fh.setLevel(file_level)
    fh.setFormatter(fmt)
    root.addHandler(fh)

    logging.captureWarnings(True)

    # nio logs every sync response at DEBUG; the file does not need that.
    logging.getLogger("nio").setLevel(logging.INFO)
