"""
Task status lifecycle.

todo -> in_progress -> review -> completed is the usual flow, but any status
may move to any other. The only side effect is `completed_at`: stamped when
a task enters `completed`, cleared when it moves to anything else.
"""

from __future__ import annotations

from datetime import datetime

from collabhub.models.base import utcnow
from collabhub.models.task import Task, TaskStatus


def apply_status(task: Task, requested: TaskStatus | None, now: datetime | None = None) -> None:
    """
    Apply a status from an update payload.

    `requested` is None when the payload did not carry a status; then neither
    the status nor completed_at is touched. Re-sending `completed` for a task
    that already has a completion time keeps the original time.
    """
    if requested is None:
        return

    if requested is TaskStatus.completed:
        if task.status is not TaskStatus.completed or task.completed_at is None:
            task.completed_at = now or utcnow()
    else:
        task.completed_at = None

    task.status = requested
