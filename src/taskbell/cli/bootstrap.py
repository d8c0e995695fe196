# src/taskbell/cli/bootstrap.py

"""
Composition root:
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete stores, the mail channel, the registry, the notifier and the scheduler.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import MailChannel
from ..core.state import AppState
from ..notifications.mailer import OfflineMailChannel, SmtpMailChannel
from ..notifications.notification_store import NotificationStore
from ..notifications.notifier import StateChangeNotifier
from ..notifications.registry import ConnectedClientRegistry
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore
from ..users.user_store import UserStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_mailer(settings) -> MailChannel:
    host = (getattr(settings, "smtp_host", "") or "").strip()
    sender = (getattr(settings, "smtp_sender", "") or "").strip()
    if not host or not sender:
        logger.warning("SMTP is not configured (TASKBELL_SMTP_HOST/SENDER); mail will only be logged.")
        return OfflineMailChannel()
    logger.info("SMTP mail channel: %s:%s as %s", host, settings.smtp_port, sender)
    return SmtpMailChannel.from_settings(settings)


def create_initial_state(*, settings=None, mailer: MailChannel | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the mail channel) injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(settings.db_path)
    user_store = UserStore(settings.db_path)
    notification_store = NotificationStore(settings.db_path)

    if mailer is None:
        mailer = create_mailer(settings)

    registry = ConnectedClientRegistry()

    notifier = StateChangeNotifier(user_store, notification_store, mailer, registry)
    scheduler = ReminderScheduler(
        task_store,
        user_store,
        mailer,
        interval_seconds=settings.reminder_interval_seconds,
        window_seconds=settings.reminder_window_seconds,
        send_timeout_seconds=settings.reminder_send_timeout_seconds,
    )

    return AppState(
        settings=settings,
        task_store=task_store,
        user_store=user_store,
        notification_store=notification_store,
        registry=registry,
        mailer=mailer,
        notifier=notifier,
        scheduler=scheduler,
    )
