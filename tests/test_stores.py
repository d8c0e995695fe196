# tests/test_stores.py

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

import pytest

from taskbell.errors import StorageError
from taskbell.notifications.notification_store import NotificationStore
from taskbell.tasks.task_models import TaskStatus
from taskbell.tasks.task_store import TaskStore
from taskbell.users.user_store import UserStore


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "nested" / "taskbell.sqlite3"


def test_task_roundtrip_and_listing(db_path: Path) -> None:
    store = TaskStore(db_path)
    assert db_path.exists()

    t1 = store.add_task(name="  Write docs ", description="README", due_at=2000.0, project_id=1,
                        responsible_user_id=5, created_at=1000.0)
    t2 = store.add_task(name="Review PR", project_id=2)

    task = store.get_task(t1)
    assert task is not None
    assert task.name == "Write docs"
    assert task.description == "README"
    assert task.created_at == 1000.0
    assert task.due_at == 2000.0
    assert task.responsible_user_id == 5
    assert task.status == TaskStatus.PENDING
    assert task.comments == ""
    assert not task.is_completed

    assert [t.id for t in store.list_all_tasks()] == [t1, t2]
    assert [t.id for t in store.list_tasks_for_project(2)] == [t2]
    assert store.get_task(t2).due_at is None
    assert store.count_tasks() == 2
    assert store.get_task(9999) is None


def test_add_task_rejects_blank_name(db_path: Path) -> None:
    store = TaskStore(db_path)
    with pytest.raises(ValueError):
        store.add_task(name="   ")


def test_status_update_appends_to_comment_log(db_path: Path) -> None:
    store = TaskStore(db_path)
    tid = store.add_task(name="Deploy")

    assert store.update_task_status(tid, TaskStatus.IN_PROGRESS, "started")
    assert store.update_task_status(tid, TaskStatus.COMPLETED, "done")
    assert store.update_task_status(tid, TaskStatus.COMPLETED)

    task = store.get_task(tid)
    assert task.status == "COMPLETED"
    assert task.is_completed
    assert task.comments == "started\ndone"


def test_status_update_of_unknown_task_returns_false(db_path: Path) -> None:
    store = TaskStore(db_path)
    assert store.update_task_status(404, "COMPLETED", "nope") is False


def test_swap_returns_previous_status(db_path: Path) -> None:
    store = TaskStore(db_path)
    tid = store.add_task(name="Deploy")

    assert store.swap_task_status(tid, TaskStatus.IN_PROGRESS, "started") == "PENDING"
    assert store.swap_task_status(tid, TaskStatus.COMPLETED) == "IN_PROGRESS"
    assert store.swap_task_status(404, TaskStatus.COMPLETED) is None
    assert store.get_task(tid).comments == "started"


def test_concurrent_swaps_see_a_consistent_history(db_path: Path) -> None:
    store = TaskStore(db_path)
    tid = store.add_task(name="Contended")
    written = [f"S{i}" for i in range(16)]
    previous: list[str] = []
    lock = threading.Lock()

    def writer(status: str) -> None:
        prev = store.swap_task_status(tid, status)
        with lock:
            previous.append(prev)

    threads = [threading.Thread(target=writer, args=(s,)) for s in written]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    final = store.get_task(tid).status
    # Every write observed a distinct predecessor: no two writers read the same status.
    assert len(set(previous)) == len(written)
    assert set(previous) == ({"PENDING"} | set(written)) - {final}


def test_unknown_status_is_preserved(db_path: Path) -> None:
    store = TaskStore(db_path)
    tid = store.add_task(name="Odd", status="ON_HOLD")
    store.update_task_status(tid, "waiting-review")
    assert store.get_task(tid).status == "waiting-review"


def test_sqlite_failure_surfaces_as_storage_error(db_path: Path) -> None:
    store = TaskStore(db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute("DROP TABLE tasks")

    with pytest.raises(StorageError):
        store.list_all_tasks()


def test_old_schema_gets_missing_columns(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute("CREATE TABLE tasks (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, created_at REAL NOT NULL)")
        conn.execute("INSERT INTO tasks(name, created_at) VALUES ('legacy', 1.0)")

    store = TaskStore(db_path)
    (task,) = store.list_all_tasks()
    assert task.name == "legacy"
    assert task.status == "PENDING"
    assert task.due_at is None


def test_users(db_path: Path) -> None:
    store = UserStore(db_path)
    uid = store.add_user(name="Laura", surname="Fernandez", email="laura@example.com", password="x")
    no_mail = store.add_user(name="Ana", user_id=42)

    user = store.find_user_by_id(uid)
    assert user.name == "Laura"
    assert user.has_email
    assert store.get_email(uid) == "laura@example.com"

    assert no_mail == 42
    assert store.find_user_by_id(42).has_email is False
    assert store.get_email(42) is None
    assert store.find_user_by_id(7) is None
    assert store.get_email(7) is None


def test_notifications(db_path: Path) -> None:
    store = NotificationStore(db_path)
    first = store.insert_notification(1, "older", 100.0)
    second = store.insert_notification(1, "newer", 200.0)
    store.insert_notification(2, "someone else", 150.0)

    assert [n.message for n in store.list_for_user(1)] == ["newer", "older"]
    assert store.mark_read(first)
    assert not store.mark_read(999)

    unread = store.list_for_user(1, unread_only=True)
    assert [n.id for n in unread] == [second]
    assert store.list_for_user(1, limit=1)[0].created_at == 200.0


def test_stores_share_one_database(db_path: Path) -> None:
    TaskStore(db_path)
    UserStore(db_path)
    NotificationStore(db_path)

    with sqlite3.connect(db_path) as conn:
        names = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    assert {"tasks", "users", "notifications"} <= names
