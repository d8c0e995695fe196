# src/taskbell/notifications/messages.py

"""
Message construction shared by the reminder sweep and the state-change notifier.

All builders are pure: the same inputs always produce the same text.
"""

from __future__ import annotations

import math

from ..tasks.task_models import Task

REMINDER_SUBJECT_PREFIX = "Task reminder"


def hours_remaining(due_at: float, now_ts: float) -> int:
    """Whole hours until `due_at`, rounded up (a task due in 20 minutes is "1 hour" away)."""
    return max(0, math.ceil((float(due_at) - float(now_ts)) / 3600.0))


def _hours_label(hours: int) -> str:
    return "1 hour" if hours == 1 else f"{hours} hours"


def build_status_change_message(task: Task, previous_status: str | None) -> str:
    # Statuses are opaque: rendered verbatim, None becomes "".
    prev = "" if previous_status is None else str(previous_status)
    new = "" if task.status is None else str(task.status)
    text = f'Task "{task.name}" changed status from {prev} to {new}.'
    description = (task.description or "").strip()
    if description:
        text += f"\nDescription: {description}"
    return text


def build_reminder_subject(task: Task) -> str:
    return f'{REMINDER_SUBJECT_PREFIX}: "{task.name}" is due soon'


def build_reminder_body(task: Task, user_name: str, hours: int) -> str:
    name = (user_name or "").strip() or "there"
    description = (task.description or "").strip() or "(no description)"
    return (
        f"Hello {name},\n"
        "\n"
        f'This is a reminder that the task "{task.name}" is due in {_hours_label(hours)}.\n'
        "\n"
        f"Description: {description}\n"
        f"Current status: {task.status}\n"
        f"Time remaining: {_hours_label(hours)}\n"
        "\n"
        "Please make sure it is completed on time."
    )
