# src/taskbell/tasks/task_store.py

from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path

from ..storage import SQLiteStore
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)


class TaskStore(SQLiteStore):
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - add columns with ALTER TABLE only when needed

    `comments` is an append-only log: status updates append a new line and
    never rewrite earlier entries.
    """

    def __init__(self, db_path: str | Path = "taskbell.sqlite3") -> None:
        super().__init__(db_path)
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    created_at REAL NOT NULL,
                    due_at REAL,
                    project_id INTEGER,
                    responsible_user_id INTEGER,
                    status TEXT NOT NULL DEFAULT 'PENDING',
                    comments TEXT NOT NULL DEFAULT ''
                )
                """
            )
            self._add_missing_columns(
                cur,
                "tasks",
                {
                    "description": "TEXT NOT NULL DEFAULT ''",
                    "due_at": "REAL",
                    "project_id": "INTEGER",
                    "responsible_user_id": "INTEGER",
                    "status": "TEXT NOT NULL DEFAULT 'PENDING'",
                    "comments": "TEXT NOT NULL DEFAULT ''",
                },
            )
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due_status ON tasks(status, due_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_project ON tasks(project_id)")

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            description=str(row["description"] or ""),
            created_at=float(row["created_at"] or 0.0),
            due_at=float(row["due_at"]) if row["due_at"] is not None else None,
            project_id=row["project_id"],
            responsible_user_id=row["responsible_user_id"],
            # Unknown statuses are preserved verbatim.
            status=str(row["status"] or TaskStatus.PENDING.value),
            comments=str(row["comments"] or ""),
        )

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._connect() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def add_task(
        self,
        *,
        name: str,
        description: str = "",
        due_at: float | None = None,
        project_id: int | None = None,
        responsible_user_id: int | None = None,
        status: str = TaskStatus.PENDING,
        comments: str = "",
        created_at: float | None = None,
    ) -> int:
        if not name or not name.strip():
            raise ValueError("name is required")
        if not status or not str(status).strip():
            raise ValueError("status is required")

        now = time.time() if created_at is None else float(created_at)

        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO tasks(
                    name, description, created_at, due_at,
                    project_id, responsible_user_id, status, comments
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    name.strip(),
                    (description or "").strip(),
                    now,
                    float(due_at) if due_at is not None else None,
                    project_id,
                    responsible_user_id,
                    str(status),
                    comments or "",
                ),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)

        logger.debug(
            "Task added id=%s name=%r status=%s due_at=%s user=%s",
            task_id,
            name,
            status,
            due_at,
            responsible_user_id,
        )
        return task_id

    def get_task(self, task_id: int) -> Task | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None

    def list_all_tasks(self) -> list[Task]:
        """Full scan used by the reminder sweep."""
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY id ASC").fetchall()
            return [self._row_to_task(r) for r in rows]

    def list_tasks_for_project(self, project_id: int) -> list[Task]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE project_id = ?
                ORDER BY COALESCE(due_at, created_at) ASC, id ASC
                """,
                (int(project_id),),
            ).fetchall()
            return [self._row_to_task(r) for r in rows]

    def update_task_status(self, task_id: int, new_status: str, comment: str | None = None) -> bool:
        """
        Set a new status and append `comment` (if any) to the comment log.

        Returns False when the task does not exist.
        """
        return self.swap_task_status(task_id, new_status, comment) is not None

    def swap_task_status(self, task_id: int, new_status: str, comment: str | None = None) -> str | None:
        """
        Like update_task_status, but returns the status the task had just before
        the update (None when the task does not exist).

        Read and write happen in one IMMEDIATE transaction, so a concurrent
        writer cannot slip in between them.
        """
        if not new_status or not str(new_status).strip():
            raise ValueError("new_status is required")

        comment = (comment or "").strip()
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute("SELECT status FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            if row is None:
                logger.warning("update_task_status: task %s not found", task_id)
                return None
            previous = str(row["status"] or TaskStatus.PENDING.value)

            if comment:
                conn.execute(
                    """
                    UPDATE tasks
                    SET status = ?,
                        comments = CASE
                            WHEN comments IS NULL OR comments = '' THEN ?
                            ELSE comments || char(10) || ?
                        END
                    WHERE id = ?
                    """,
                    (str(new_status), comment, comment, int(task_id)),
                )
            else:
                conn.execute(
                    "UPDATE tasks SET status = ? WHERE id = ?",
                    (str(new_status), int(task_id)),
                )

        logger.debug("Task %s status %s -> %s", task_id, previous, new_status)
        return previous
