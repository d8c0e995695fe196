# src/taskbell/tasks/task_api.py

from __future__ import annotations

import logging

from ..core.state import AppState
from ..errors import StorageError
from .task_models import Task

logger = logging.getLogger(__name__)


def change_task_status(
    state: AppState,
    task_id: int,
    new_status: str,
    comment: str | None = None,
) -> Task | None:
    """
    Status-update path: persist the new status (appending `comment` to the task's
    comment log), then notify the owner synchronously.

    Returns the updated task, or None if the task does not exist.
    StorageError from the task store propagates: the caller's update failed.
    Notification problems never propagate.
    """
    # Previous status comes from the same transaction as the write.
    previous_status = state.task_store.swap_task_status(task_id, new_status, comment)
    if previous_status is None:
        logger.warning("change_task_status: task %s not found", task_id)
        return None

    updated = state.task_store.get_task(task_id)
    if updated is None:
        raise StorageError(f"task {task_id} disappeared after status update")

    state.notifier.notify(updated, previous_status)
    return updated
