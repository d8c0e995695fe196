# src/taskbell/users/user_store.py

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from ..storage import SQLiteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class User:
    id: int
    name: str
    surname: str
    email: str | None
    password: str
    is_admin: bool = False

    @property
    def has_email(self) -> bool:
        return bool(self.email and self.email.strip())


class UserStore(SQLiteStore):
    """SQLite user store. The notification core only reads id, name and email."""

    def __init__(self, db_path: str | Path = "taskbell.sqlite3") -> None:
        super().__init__(db_path)
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    surname TEXT NOT NULL DEFAULT '',
                    email TEXT,
                    password TEXT NOT NULL DEFAULT '',
                    is_admin INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            self._add_missing_columns(
                cur,
                "users",
                {
                    "surname": "TEXT NOT NULL DEFAULT ''",
                    "email": "TEXT",
                    "password": "TEXT NOT NULL DEFAULT ''",
                    "is_admin": "INTEGER NOT NULL DEFAULT 0",
                },
            )

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            surname=str(row["surname"] or ""),
            email=row["email"],
            password=str(row["password"] or ""),
            is_admin=bool(row["is_admin"]),
        )

    def add_user(
        self,
        *,
        name: str,
        surname: str = "",
        email: str | None = None,
        password: str = "",
        is_admin: bool = False,
        user_id: int | None = None,
    ) -> int:
        if not name or not name.strip():
            raise ValueError("name is required")

        with self._connect() as conn:
            cur = conn.execute(
                """
                INSERT INTO users(id, name, surname, email, password, is_admin)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (user_id, name.strip(), surname.strip(), email, password, int(bool(is_admin))),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for users insert")
            new_id = int(rowid)

        logger.debug("User added id=%s name=%r", new_id, name)
        return new_id

    def find_user_by_id(self, user_id: int) -> User | None:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (int(user_id),)).fetchone()
            return self._row_to_user(row) if row else None

    def get_email(self, user_id: int) -> str | None:
        user = self.find_user_by_id(user_id)
        return user.email if user else None
