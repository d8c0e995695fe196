# src/taskbell/connectors/matrix_connector.py

from __future__ import annotations

"""
Matrix live-session connector.

Runs a Matrix client in a background thread (own event loop), joins the rooms
configured in TASKBELL_MATRIX_USER_ROOMS and registers one MatrixRoomSession per
app user in the ConnectedClientRegistry. The notifier pushes into those sessions
from its own thread; pushes are marshalled onto the connector loop.
"""

import asyncio
import contextlib
import logging
import threading
from dataclasses import dataclass

from nio import JoinError, RoomSendError

from ..errors import LiveSessionError
from ..notifications.registry import ConnectedClientRegistry
from .matrix_client import create_matrix_client

logger = logging.getLogger(__name__)

SYNC_TIMEOUT_MS = 30000
SYNC_RETRY_SECONDS = 5.0


async def _send_text(client, *, room_id: str, text: str):
    return await client.room_send(
        room_id=room_id,
        message_type="m.room.message",
        content={"msgtype": "m.text", "body": text},
    )


class MatrixRoomSession:
    """Live session that delivers pushes as text messages into one Matrix room."""

    def __init__(
        self,
        client,
        room_id: str,
        loop: asyncio.AbstractEventLoop,
        *,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._client = client
        self._room_id = room_id
        self._loop = loop
        self._timeout = float(timeout_seconds)

    @property
    def room_id(self) -> str:
        return self._room_id

    def push(self, message: str) -> None:
        with contextlib.suppress(RuntimeError):
            if asyncio.get_running_loop() is self._loop:
                # Blocking on our own loop would deadlock.
                raise LiveSessionError("push() called from the Matrix connector loop")

        coro = _send_text(self._client, room_id=self._room_id, text=message)
        try:
            fut = asyncio.run_coroutine_threadsafe(coro, self._loop)
        except RuntimeError as e:
            coro.close()
            raise LiveSessionError(f"Matrix connector loop is not running: {e}") from e

        try:
            resp = fut.result(timeout=self._timeout)
        except TimeoutError as e:
            fut.cancel()
            raise LiveSessionError(f"Matrix send to {self._room_id} timed out") from e
        except Exception as e:
            raise LiveSessionError(f"Matrix send to {self._room_id} failed: {e!r}") from e

        if isinstance(resp, RoomSendError):
            raise LiveSessionError(f"Matrix send to {self._room_id} rejected: {resp.message}")


async def _sync_until_stopped(client, stop_event: asyncio.Event) -> None:
    stop_wait = asyncio.ensure_future(stop_event.wait())
    try:
        while not stop_event.is_set():
            sync = asyncio.ensure_future(client.sync(timeout=SYNC_TIMEOUT_MS, full_state=False))
            done, _ = await asyncio.wait({sync, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
            if sync not in done:
                sync.cancel()
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await sync
                break
            try:
                sync.result()
            except Exception:
                logger.exception("Matrix sync failed; retrying in %.0fs", SYNC_RETRY_SECONDS)
                with contextlib.suppress(TimeoutError):
                    await asyncio.wait_for(stop_event.wait(), timeout=SYNC_RETRY_SECONDS)
    finally:
        stop_wait.cancel()


async def _run_live_sessions(settings, registry: ConnectedClientRegistry, stop_event: asyncio.Event) -> None:
    """
    init -> join rooms -> register sessions -> sync loop -> unregister.

    Shutdown model:
    - main thread sets stop_event via loop.call_soon_threadsafe(stop_event.set)
    """
    user_rooms: dict[int, str] = dict(getattr(settings, "matrix_user_rooms", {}) or {})
    if not user_rooms:
        logger.warning("Matrix enabled but TASKBELL_MATRIX_USER_ROOMS is empty; no live sessions.")

    client = await create_matrix_client(settings)
    if client is None:
        logger.error("Matrix client creation failed; live sessions disabled.")
        return

    loop = asyncio.get_running_loop()
    sessions: dict[int, MatrixRoomSession] = {}

    try:
        logger.info("Matrix initial sync...")
        await client.sync(timeout=SYNC_TIMEOUT_MS, full_state=True)
        logger.info("Matrix initial sync done. Joined rooms: %d", len(client.rooms))

        for user_id, room_id in user_rooms.items():
            if room_id not in client.rooms:
                resp = await client.join(room_id)
                if isinstance(resp, JoinError):
                    logger.warning("Cannot join room %s for user %s: %s", room_id, user_id, resp.message)
                    continue
            session = MatrixRoomSession(client, room_id, loop)
            registry.register(user_id, session)
            sessions[user_id] = session
            logger.info("Live session registered: user %s -> room %s", user_id, room_id)

        await _sync_until_stopped(client, stop_event)

    except asyncio.CancelledError:
        logger.info("Matrix connector cancelled.")
    except Exception:
        logger.exception("Matrix connector crashed.")
    finally:
        for user_id, session in sessions.items():
            registry.unregister(user_id, session)

        with contextlib.suppress(Exception):
            await client.close()

        logger.info("Matrix connector stopped.")


@dataclass
class MatrixBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except RuntimeError:
            logger.debug("Failed to signal Matrix stop (loop closed).", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_matrix_in_background(settings, registry: ConnectedClientRegistry) -> MatrixBackgroundRunner | None:
    """Start the Matrix connector in a background thread with its own event loop."""
    if not getattr(settings, "matrix_enabled", False):
        logger.info("Matrix connector disabled, not starting.")
        return None

    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event
        ready.set()

        try:
            loop.run_until_complete(_run_live_sessions(settings, registry, stop_event))
        finally:
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="taskbell-matrix", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Matrix thread did not initialize properly.")
        return None

    logger.info("Matrix background thread started.")
    return MatrixBackgroundRunner(thread=t, loop=loop, stop_event=stop_event)
