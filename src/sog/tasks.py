"""Task state transitions and list filters.

The record mapper round-trips status, percent-complete and the completion
instant independently. The transitions here are the only place that keeps
them consistent: completed <=> percent 100 <=> completion instant set.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime, time, timedelta

from sog.ical.models import Task, TaskStatus

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    TaskStatus.needs_action: "TODO",
    TaskStatus.in_process: "DOING",
    TaskStatus.completed: "DONE",
    TaskStatus.cancelled: "CANCEL",
}


def mark_complete(task: Task, *, at: datetime | None = None) -> Task:
    """Return *task* completed at *at* (default: now, UTC) with 100% progress."""
    completed_at = at or datetime.now(UTC)
    logger.debug("Marking task %s complete", task.uid)
    return task.model_copy(
        update={
            "status": TaskStatus.completed,
            "percent_complete": 100,
            "completed": completed_at,
        }
    )


def mark_incomplete(task: Task) -> Task:
    """Return *task* reopened: needs-action, no completion instant.

    Partial progress is kept; a 100% figure is reset to 0.
    """
    percent = 0 if task.percent_complete == 100 else task.percent_complete
    logger.debug("Marking task %s incomplete", task.uid)
    return task.model_copy(
        update={
            "status": TaskStatus.needs_action,
            "percent_complete": percent,
            "completed": None,
        }
    )


def apply_task_update(
    task: Task,
    *,
    title: str | None = None,
    due: datetime | None = None,
    priority: int | None = None,
    description: str | None = None,
) -> Task:
    """Apply the non-empty changes to *task*; empty/zero values are ignored.

    A naive midnight *due* keeps an all-day task all-day. Any other *due*
    makes the task timed, and an all-day start becomes the start of that day
    in the zone of the new due.
    """
    update: dict[str, object] = {}
    if title:
        update["title"] = title
    if due is not None:
        update["due"] = due
        if not (task.all_day and due.tzinfo is None and due.time() == time.min):
            update["all_day"] = False
            if task.all_day and task.start is not None:
                logger.debug("Task %s is no longer all-day; anchoring start", task.uid)
                update["start"] = task.start.replace(tzinfo=due.tzinfo)
    if priority:
        if not 1 <= priority <= 9:
            raise ValueError(f"priority must be between 1 and 9, got {priority}")
        update["priority"] = priority
    if description:
        update["description"] = description
    return task.model_copy(update=update)


def is_open(task: Task) -> bool:
    return task.status not in (TaskStatus.completed, TaskStatus.cancelled)


def due_by(tasks: Iterable[Task], day: datetime) -> list[Task]:
    """Open tasks due on or before the calendar day of *day*."""
    cutoff = datetime(day.year, day.month, day.day) + timedelta(days=1)
    return [
        task
        for task in tasks
        if is_open(task) and task.due is not None and _naive(task.due) < cutoff
    ]


def overdue(tasks: Iterable[Task], *, now: datetime | None = None) -> list[Task]:
    """Open tasks whose due instant is already past."""
    reference = _naive(now or datetime.now().astimezone())
    return [
        task
        for task in tasks
        if is_open(task) and task.due is not None and _naive(task.due) < reference
    ]


def completed_tasks(tasks: Iterable[Task]) -> list[Task]:
    return [task for task in tasks if task.status == TaskStatus.completed]


def _naive(value: datetime) -> datetime:
    # Compare in local wall-clock time; floating values already are.
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
