# src/taskbell/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..core.ports import MailChannel
from ..notifications.notification_store import NotificationStore
from ..notifications.notifier import StateChangeNotifier
from ..notifications.registry import ConnectedClientRegistry
from ..tasks.reminder_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore
from ..users.user_store import UserStore


@dataclass
class AppState:
    """
    Wired application components.

    Built once by cli.bootstrap.create_initial_state (or by tests with fakes);
    the registry is shared between connectors (writers) and the notifier (reader).
    """

    settings: Any

    task_store: TaskStore
    user_store: UserStore
    notification_store: NotificationStore

    registry: ConnectedClientRegistry
    mailer: MailChannel
    notifier: StateChangeNotifier
    scheduler: ReminderScheduler
