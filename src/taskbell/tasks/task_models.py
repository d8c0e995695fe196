# src/taskbell/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class TaskStatus(StrEnum):
    """
    Known task statuses.

    Notes:
    - Task.status is stored as a plain string: the set is open and case-sensitive,
      so a value outside this enum is kept as-is rather than coerced.
    - Members compare equal to their string values.
    """

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


@dataclass(slots=True)
class Task:
    id: int
    name: str
    description: str
    created_at: float
    due_at: float | None

    project_id: int | None
    responsible_user_id: int | None

    status: str = TaskStatus.PENDING.value
    comments: str = ""

    @property
    def is_completed(self) -> bool:
        return self.status == TaskStatus.COMPLETED
