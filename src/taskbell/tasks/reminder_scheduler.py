# src/taskbell/tasks/reminder_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

A background sweep that:
- lists all tasks (full scan),
- keeps those due within the reminder window that are not COMPLETED,
- emails one reminder per eligible task to its responsible user.

The sweep runs on a dedicated thread with its own event loop, so it never shares
a thread with request handling. Every failure is logged per item and the sweep
moves on; nothing escapes to start()/stop() callers.
"""

import asyncio
import contextlib
import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from ..core.ports import MailChannel, TaskRepo, UserRepo
from ..notifications.delivery import DeliveryChannel, DeliveryOutcome, DeliveryStatus
from ..notifications.messages import build_reminder_body, build_reminder_subject, hours_remaining
from .task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 6 * 3600.0
DEFAULT_WINDOW_SECONDS = 24 * 3600.0
THREAD_NAME = "taskbell-reminders"
WORKER_THREAD_PREFIX = "taskbell-reminder-io"


def is_reminder_eligible(task: Task, now_ts: float, window_seconds: float = DEFAULT_WINDOW_SECONDS) -> bool:
    """
    True iff now < due_at <= now + window and the task is not COMPLETED.

    Any status other than COMPLETED (including unknown ones) is eligible.
    """
    if task.due_at is None:
        return False
    if task.status == TaskStatus.COMPLETED:
        return False
    return now_ts < task.due_at <= now_ts + window_seconds


@dataclass(slots=True)
class SweepReport:
    """
    Counters of one sweep.

    sent + skipped + failed == eligible; tasks whose eligibility could not be
    evaluated (malformed rows) are counted in `invalid` only.
    """

    started_at: float
    scanned: int = 0
    eligible: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0
    invalid: int = 0
    listing_failed: bool = False
    outcomes: dict[int, DeliveryOutcome] = field(default_factory=dict)

    def record(self, task_id: int, outcome: DeliveryOutcome) -> None:
        self.outcomes[task_id] = outcome
        if outcome.status == DeliveryStatus.DELIVERED:
            self.sent += 1
        elif outcome.status == DeliveryStatus.SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1


@dataclass
class _ScheduleHandle:
    """
    One active repeating schedule.

    `gate` orders stop() against the start of a sweep: once cancel() returns,
    the loop can no longer begin a new sweep (one already running may finish).
    """

    cancelled: threading.Event
    gate: threading.Lock
    thread: threading.Thread | None = None
    loop: asyncio.AbstractEventLoop | None = None
    wake: asyncio.Event | None = None

    def begin_sweep(self) -> bool:
        with self.gate:
            return not self.cancelled.is_set()

    def cancel(self) -> None:
        with self.gate:
            self.cancelled.set()
        loop, wake = self.loop, self.wake
        if loop is not None and wake is not None:
            # The loop may already be closed if the thread exited on its own.
            with contextlib.suppress(RuntimeError):
                loop.call_soon_threadsafe(wake.set)


class ReminderScheduler:
    def __init__(
        self,
        task_repo: TaskRepo,
        user_repo: UserRepo,
        mailer: MailChannel,
        *,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        send_timeout_seconds: float = 30.0,
        join_timeout_seconds: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._tasks = task_repo
        self._users = user_repo
        self._mailer = mailer
        self._interval = max(0.01, float(interval_seconds))
        self._window = float(window_seconds)
        self._send_timeout = max(0.01, float(send_timeout_seconds))
        self._join_timeout = float(join_timeout_seconds)
        self._clock = clock

        self._lock = threading.RLock()
        self._handle: _ScheduleHandle | None = None
        self._last_report: SweepReport | None = None

    @property
    def is_running(self) -> bool:
        with self._lock:
            handle = self._handle
        return handle is not None and handle.thread is not None and handle.thread.is_alive()

    @property
    def last_report(self) -> SweepReport | None:
        return self._last_report

    # ---- sweep ----

    async def sweep(self, now_ts: float | None = None) -> SweepReport:
        """Run one full scan. Never raises."""
        now = self._clock() if now_ts is None else float(now_ts)
        report = SweepReport(started_at=now)

        try:
            tasks = await asyncio.to_thread(self._tasks.list_all_tasks)
        except Exception:
            logger.exception("list_all_tasks failed; reminder sweep skipped")
            report.listing_failed = True
            self._last_report = report
            return report

        for task in tasks:
            report.scanned += 1
            try:
                eligible = is_reminder_eligible(task, now, self._window)
            except Exception:
                logger.exception("Cannot evaluate reminder eligibility task_id=%s", getattr(task, "id", None))
                report.invalid += 1
                continue
            if not eligible:
                continue

            report.eligible += 1
            try:
                outcome = await self._remind(task, now)
            except Exception as e:
                logger.exception("Reminder failed task_id=%s", task.id)
                outcome = DeliveryOutcome(DeliveryChannel.EMAIL, DeliveryStatus.FAILED, repr(e))
            report.record(task.id, outcome)

        logger.info(
            "Reminder sweep done: scanned=%d eligible=%d sent=%d skipped=%d failed=%d invalid=%d",
            report.scanned,
            report.eligible,
            report.sent,
            report.skipped,
            report.failed,
            report.invalid,
        )
        self._last_report = report
        return report

    async def _remind(self, task: Task, now_ts: float) -> DeliveryOutcome:
        user_id = task.responsible_user_id
        if user_id is None:
            return DeliveryOutcome.skipped(DeliveryChannel.EMAIL, "no responsible user")

        try:
            user = await asyncio.to_thread(self._users.find_user_by_id, user_id)
        except Exception as e:
            logger.exception("find_user_by_id failed task_id=%s user_id=%s", task.id, user_id)
            return DeliveryOutcome(DeliveryChannel.EMAIL, DeliveryStatus.FAILED, repr(e))

        if user is None:
            logger.debug("Task %s: user %s not found, reminder skipped", task.id, user_id)
            return DeliveryOutcome.skipped(DeliveryChannel.EMAIL, "user not found")

        email = (user.email or "").strip()
        if not email:
            logger.debug("Task %s: user %s has no email, reminder skipped", task.id, user_id)
            return DeliveryOutcome.skipped(DeliveryChannel.EMAIL, "no email")

        hours = hours_remaining(task.due_at or now_ts, now_ts)
        subject = build_reminder_subject(task)
        body = build_reminder_body(task, user.name, hours)

        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._mailer.send_mail, email, subject, body),
                timeout=self._send_timeout,
            )
        except TimeoutError:
            logger.warning(
                "Reminder mail timed out after %.1fs task_id=%s to=%s", self._send_timeout, task.id, email
            )
            return DeliveryOutcome(DeliveryChannel.EMAIL, DeliveryStatus.FAILED, "timeout")
        except Exception as e:
            logger.warning("Reminder mail failed task_id=%s to=%s: %r", task.id, email, e)
            return DeliveryOutcome(DeliveryChannel.EMAIL, DeliveryStatus.FAILED, repr(e))

        logger.info("Reminder sent task_id=%s to=%s hours=%d", task.id, email, hours)
        return DeliveryOutcome(DeliveryChannel.EMAIL, DeliveryStatus.DELIVERED)

    # ---- background schedule ----

    async def _run_loop(self, handle: _ScheduleHandle) -> None:
        """Sweep immediately, then once per interval, until the handle is cancelled."""
        while handle.begin_sweep():
            try:
                await self.sweep()
            except Exception:
                logger.exception("Reminder sweep crashed")

            if handle.cancelled.is_set() or handle.wake is None:
                break
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(handle.wake.wait(), timeout=self._interval)

    def _spawn(self) -> _ScheduleHandle:
        ready = threading.Event()
        handle = _ScheduleHandle(cancelled=threading.Event(), gate=threading.Lock())

        def runner() -> None:
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            # Own pool for to_thread(): a send that outlived its timeout must not
            # keep this thread alive at shutdown.
            executor = ThreadPoolExecutor(thread_name_prefix=WORKER_THREAD_PREFIX)
            loop.set_default_executor(executor)
            handle.loop = loop
            handle.wake = asyncio.Event()
            ready.set()

            try:
                loop.run_until_complete(self._run_loop(handle))
            except Exception:
                logger.exception("Reminder scheduler thread crashed")
            finally:
                executor.shutdown(wait=False, cancel_futures=True)
                with contextlib.suppress(Exception):
                    loop.close()
                logger.debug("Reminder scheduler thread exited")

        handle.thread = threading.Thread(target=runner, name=THREAD_NAME, daemon=True)
        handle.thread.start()
        ready.wait(timeout=5.0)
        return handle

    def _cancel(self, handle: _ScheduleHandle) -> None:
        handle.cancel()
        thread = handle.thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout)
            if thread.is_alive():
                logger.warning("Reminder sweep still running after %.1fs; leaving it to finish", self._join_timeout)

    def start(self) -> None:
        """Start (or restart) the repeating sweep. Never raises."""
        with self._lock:
            try:
                if self._handle is not None:
                    logger.info("Reminder scheduler already started; replacing the schedule")
                    previous, self._handle = self._handle, None
                    self._cancel(previous)

                self._handle = self._spawn()
                logger.info(
                    "Reminder scheduler started (interval=%.0fs window=%.0fs)",
                    self._interval,
                    self._window,
                )
            except Exception:
                logger.exception("Failed to start reminder scheduler")

    def stop(self) -> None:
        """Cancel the repeating sweep. Safe to call when not started and more than once."""
        with self._lock:
            handle, self._handle = self._handle, None
            if handle is None:
                return
            try:
                self._cancel(handle)
                logger.info("Reminder scheduler stopped")
            except Exception:
                logger.exception("Failed to stop reminder scheduler cleanly")
