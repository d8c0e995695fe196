# src/taskbell/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the notification core.

The scheduler and notifier depend on Protocols instead of concrete stores/transports.
This keeps SQLite/SMTP/Matrix swappable and makes testing easier.
"""

from typing import Protocol

from ..tasks.task_models import Task
from ..users.user_store import User


class TaskRepo(Protocol):
    # Reminder sweep (full scan, no delta tracking)
    def list_all_tasks(self) -> list[Task]: ...

    # Status-update path
    def get_task(self, task_id: int) -> Task | None: ...
    def update_task_status(self, task_id: int, new_status: str, comment: str | None = None) -> bool: ...
    def swap_task_status(self, task_id: int, new_status: str, comment: str | None = None) -> str | None: ...


class UserRepo(Protocol):
    def find_user_by_id(self, user_id: int) -> User | None: ...


class NotificationRepo(Protocol):
    def insert_notification(self, user_id: int, message: str, timestamp: float) -> int: ...


class MailChannel(Protocol):
    """
    Outbound email transport.

    Implementations raise DeliveryError on failure; callers treat mail as best-effort.
    """

    def send_mail(self, recipient: str, subject: str, body: str) -> None: ...


class LiveSession(Protocol):
    """
    A connected user's real-time channel.

    push() raises LiveSessionError (a ConnectionError) when the session is broken.
    """

    def push(self, message: str) -> None: ...
