# src/taskbell/notifications/notification_store.py

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from ..storage import SQLiteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Notification:
    id: int
    user_id: int
    message: str
    created_at: float
    read: bool


class NotificationStore(SQLiteStore):
    """Persisted (in-app) notifications, one row per delivered message."""

    def __init__(self, db_path: str | Path = "taskbell.sqlite3") -> None:
        super().__init__(db_path)
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS notifications (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id INTEGER NOT NULL,
                    message TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    read INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            self._add_missing_columns(cur, "notifications", {"read": "INTEGER NOT NULL DEFAULT 0"})
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_notifications_user ON notifications(user_id, created_at)"
            )

    @staticmethod
    def _row_to_notification(row: sqlite3.Row) -> Notification:
        return Notification(
            id=int(row["id"]),
            user_id=int(row["user_id"]),
            message=str(row["message"] or ""),
            created_at=float(row["created_at"] or 0.0),
            read=bool(row["read"]),
        )

    def insert_notification(self, user_id: int, message: str, timestamp: float) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO notifications(user_id, message, created_at) VALUES (?, ?, ?)",
                (int(user_id), message, float(timestamp)),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for notifications insert")
            return int(rowid)

    def list_for_user(self, user_id: int, *, unread_only: bool = False, limit: int = 50) -> list[Notification]:
        sql = "SELECT * FROM notifications WHERE user_id = ?"
        if unread_only:
            sql += " AND read = 0"
        sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
        with self._connect() as conn:
            rows = conn.execute(sql, (int(user_id), int(limit))).fetchall()
            return [self._row_to_notification(r) for r in rows]

    def mark_read(self, notification_id: int) -> bool:
        with self._connect() as conn:
            cur = conn.execute(
                "UPDATE notifications SET read = 1 WHERE id = ?", (int(notification_id),)
            )
            return cur.rowcount == 1
