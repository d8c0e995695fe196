# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskbell.cli.bootstrap import create_initial_state
from taskbell.core.state import AppState

from .fakes import FakeMailer


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="taskbell-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "taskbell.sqlite3",
        reminder_enabled=True,
        reminder_interval_seconds=3600.0,
        reminder_window_seconds=24 * 3600.0,
        reminder_send_timeout_seconds=2.0,
        smtp_host="",
        smtp_port=587,
        smtp_username="",
        smtp_password="",
        smtp_sender="",
        smtp_starttls=True,
        smtp_timeout_seconds=5.0,
        matrix_enabled=False,
        matrix_user_rooms={},
    )


@pytest.fixture()
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture()
def state(settings: SimpleNamespace, mailer: FakeMailer):
    """
    AppState wired with real SQLite stores and a fake mail channel.

    NOTE: the stores stay real because status persistence and the comment log
    are part of what the end-to-end tests check.
    """
    app_state: AppState = create_initial_state(settings=settings, mailer=mailer)
    yield app_state
    app_state.scheduler.stop()
