# tests/fakes.py

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from taskbell.errors import DeliveryError, LiveSessionError, StorageError
from taskbell.tasks.task_models import Task
from taskbell.users.user_store import User


def wait_until(predicate: Callable[[], bool], timeout: float = 2.0, step: float = 0.01) -> bool:
    """Poll `predicate` until it is true or `timeout` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(step)
    return predicate()


class FakeTaskRepo:
    """
    In-memory TaskRepo.

    Keeps tests purely about scheduling/notification logic; counts full scans so
    tests can observe how many sweeps ran.
    """

    def __init__(self, tasks: list[Task] | None = None, *, fail_listing: bool = False) -> None:
        self._lock = threading.Lock()
        self.tasks = {t.id: t for t in (tasks or [])}
        self.fail_listing = fail_listing
        self.list_calls = 0

    def list_all_tasks(self) -> list[Task]:
        with self._lock:
            self.list_calls += 1
            if self.fail_listing:
                raise StorageError("tasks table unavailable")
            return list(self.tasks.values())

    def get_task(self, task_id: int) -> Task | None:
        return self.tasks.get(task_id)

    def update_task_status(self, task_id: int, new_status: str, comment: str | None = None) -> bool:
        return self.swap_task_status(task_id, new_status, comment) is not None

    def swap_task_status(self, task_id: int, new_status: str, comment: str | None = None) -> str | None:
        with self._lock:
            t = self.tasks.get(task_id)
            if t is None:
                return None
            comments = t.comments
            if comment:
                comments = f"{comments}\n{comment}" if comments else comment
            self.tasks[task_id] = replace(t, status=new_status, comments=comments)
            return t.status


class FakeUserRepo:
    def __init__(self, users: list[User] | None = None, *, failing_ids: set[int] | None = None) -> None:
        self.users = {u.id: u for u in (users or [])}
        self.failing_ids = set(failing_ids or ())
        self.lookups: list[int] = []

    def find_user_by_id(self, user_id: int) -> User | None:
        self.lookups.append(user_id)
        if user_id in self.failing_ids:
            raise StorageError(f"users lookup failed for {user_id}")
        return self.users.get(user_id)


@dataclass(slots=True)
class StoredNotification:
    user_id: int
    message: str
    timestamp: float


@dataclass
class FakeNotificationRepo:
    fail: bool = False
    rows: list[StoredNotification] = field(default_factory=list)

    def insert_notification(self, user_id: int, message: str, timestamp: float) -> int:
        if self.fail:
            raise StorageError("insert into notifications failed")
        self.rows.append(StoredNotification(user_id=user_id, message=message, timestamp=timestamp))
        return len(self.rows)


@dataclass(slots=True)
class SentMail:
    recipient: str
    subject: str
    body: str


class FakeMailer:
    """
    Fake MailChannel.

    - records successful sends
    - `failing_recipients` raise DeliveryError
    - `hang` blocks every send until `release` is set (for timeout tests)
    """

    def __init__(self, *, failing_recipients: set[str] | None = None, hang: bool = False) -> None:
        self._lock = threading.Lock()
        self.sent: list[SentMail] = []
        self.attempts = 0
        self.failing_recipients = set(failing_recipients or ())
        self.hang = hang
        self.release = threading.Event()

    def send_mail(self, recipient: str, subject: str, body: str) -> None:
        with self._lock:
            self.attempts += 1
        if self.hang:
            self.release.wait(timeout=5.0)
        if recipient in self.failing_recipients:
            raise DeliveryError(f"SMTP rejected {recipient}")
        with self._lock:
            self.sent.append(SentMail(recipient=recipient, subject=subject, body=body))

    def sent_to(self, recipient: str) -> list[SentMail]:
        return [m for m in self.sent if m.recipient == recipient]


class FakeLiveSession:
    def __init__(self, *, broken: bool = False) -> None:
        self.pushed: list[str] = []
        self.broken = broken

    def push(self, message: str) -> None:
        if self.broken:
            raise LiveSessionError("connection reset by peer")
        self.pushed.append(message)


def make_task(
    task_id: int = 1,
    *,
    name: str = "Implement login",
    description: str = "Build the authentication module",
    due_in_hours: float | None = 6.0,
    now: float | None = None,
    status: str = "PENDING",
    user_id: int | None = 10,
    project_id: int | None = 1,
) -> Task:
    now = time.time() if now is None else now
    return Task(
        id=task_id,
        name=name,
        description=description,
        created_at=now - 3600,
        due_at=None if due_in_hours is None else now + due_in_hours * 3600,
        project_id=project_id,
        responsible_user_id=user_id,
        status=status,
    )


def make_user(user_id: int = 10, *, name: str = "Laura", email: str | None = "laura@example.com") -> User:
    return User(id=user_id, name=name, surname="Fernandez", email=email, password="secret")
