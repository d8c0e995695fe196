# src/taskbell/notifications/notifier.py

from __future__ import annotations

"""
State-change notifier.

Called synchronously right after a task's new status is persisted:
- resolves the task owner (gate: nothing happens if the owner cannot be resolved),
- builds the transition message,
- persists it, emails it, and pushes it to the owner's live session.

Each of the three channels is best-effort and independent; notify() never raises.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from ..core.ports import MailChannel, NotificationRepo, UserRepo
from ..tasks.task_models import Task
from ..users.user_store import User
from .delivery import DeliveryChannel, DeliveryOutcome, attempt
from .messages import build_status_change_message
from .registry import ConnectedClientRegistry

logger = logging.getLogger(__name__)

STATUS_CHANGE_SUBJECT = "Task status update"


@dataclass(slots=True)
class NotificationReport:
    task_id: int
    user_id: int | None
    message: str | None = None
    outcomes: list[DeliveryOutcome] = field(default_factory=list)

    @property
    def recipient_resolved(self) -> bool:
        return self.message is not None

    def outcome(self, channel: DeliveryChannel) -> DeliveryOutcome | None:
        for o in self.outcomes:
            if o.channel == channel:
                return o
        return None


class StateChangeNotifier:
    def __init__(
        self,
        user_repo: UserRepo,
        notification_repo: NotificationRepo,
        mailer: MailChannel,
        registry: ConnectedClientRegistry,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._users = user_repo
        self._notifications = notification_repo
        self._mailer = mailer
        self._registry = registry
        self._clock = clock

    def _resolve_user(self, user_id: int | None) -> User | None:
        if user_id is None:
            return None
        try:
            return self._users.find_user_by_id(user_id)
        except Exception:
            logger.exception("find_user_by_id failed user_id=%s", user_id)
            return None

    def notify(self, task: Task, previous_status: str | None) -> NotificationReport:
        report = NotificationReport(task_id=task.id, user_id=task.responsible_user_id)
        try:
            self._notify(task, previous_status, report)
        except Exception:
            # Channels are already isolated; this only guards against bugs in the glue.
            logger.exception("notify crashed task_id=%s", task.id)
        return report

    def _notify(self, task: Task, previous_status: str | None, report: NotificationReport) -> None:
        user = self._resolve_user(task.responsible_user_id)
        if user is None:
            logger.warning(
                "Status change of task %s not notified: user %s could not be resolved",
                task.id,
                task.responsible_user_id,
            )
            return

        message = build_status_change_message(task, previous_status)
        report.message = message
        ctx = f"task_id={task.id} user_id={user.id}"

        report.outcomes.append(
            attempt(
                DeliveryChannel.PERSIST,
                lambda: self._notifications.insert_notification(user.id, message, self._clock()),
                context=ctx,
            )
        )

        if user.has_email:
            email = (user.email or "").strip()
            report.outcomes.append(
                attempt(
                    DeliveryChannel.EMAIL,
                    lambda: self._mailer.send_mail(email, STATUS_CHANGE_SUBJECT, message),
                    context=ctx,
                )
            )
        else:
            report.outcomes.append(DeliveryOutcome.skipped(DeliveryChannel.EMAIL, "no email"))

        session = self._registry.get(user.id)
        if session is not None:
            report.outcomes.append(
                attempt(DeliveryChannel.LIVE, lambda: session.push(message), context=ctx)
            )
        else:
            report.outcomes.append(DeliveryOutcome.skipped(DeliveryChannel.LIVE, "not connected"))

        logger.info(
            "Task %s status %s -> %s notified user=%s: %s",
            task.id,
            previous_status,
            task.status,
            user.id,
            ", ".join(f"{o.channel.value}={o.status.value}" for o in report.outcomes),
        )
