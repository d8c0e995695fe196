# src/taskbell/notifications/registry.py

from __future__ import annotations

import logging
import threading

from ..core.ports import LiveSession

logger = logging.getLogger(__name__)


class ConnectedClientRegistry:
    """
    Thread-safe user_id -> LiveSession map.

    Session-lifecycle code (connectors) registers and unregisters sessions;
    the notifier only reads. Readers get the handle under the lock and push
    outside of it, so a slow push never blocks registration.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sessions: dict[int, LiveSession] = {}

    def register(self, user_id: int, session: LiveSession) -> LiveSession | None:
        """Register a session, returning the one it replaced (if any)."""
        with self._lock:
            previous = self._sessions.get(int(user_id))
            self._sessions[int(user_id)] = session
        logger.debug("Live session registered user=%s replaced=%s", user_id, previous is not None)
        return previous

    def unregister(self, user_id: int, session: LiveSession | None = None) -> bool:
        """
        Remove the session of `user_id`.

        If `session` is given, only remove it when it is still the registered one,
        so a late disconnect cannot drop a newer session of the same user.
        """
        with self._lock:
            current = self._sessions.get(int(user_id))
            if current is None:
                return False
            if session is not None and current is not session:
                return False
            del self._sessions[int(user_id)]
        logger.debug("Live session unregistered user=%s", user_id)
        return True

    def get(self, user_id: int) -> LiveSession | None:
        with self._lock:
            return self._sessions.get(int(user_id))

    def connected_user_ids(self) -> list[int]:
        with self._lock:
            return sorted(self._sessions)

    def __contains__(self, user_id: object) -> bool:
        if not isinstance(user_id, int):
            return False
        with self._lock:
            return user_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
