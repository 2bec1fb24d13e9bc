"""Bulk decoding of stored calendar objects with skip-and-continue semantics.

A listing over a whole collection must survive individual third-party
objects that cannot be decoded; those are logged and skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sog.ical.errors import CalendarError
from sog.ical.mapper import decode_event, decode_task
from sog.ical.models import Event, Task, TaskStatus

logger = logging.getLogger(__name__)

# (data, etag) pairs as returned by the calendar server.
StoredObject = tuple[bytes | str, str | None]


def decode_events(objects: Iterable[StoredObject]) -> list[Event]:
    events: list[Event] = []
    for index, (data, etag) in enumerate(objects):
        try:
            events.append(decode_event(data, etag=etag))
        except CalendarError as exc:
            logger.warning("Skipping calendar object %d (etag=%s): %s", index, etag, exc)
    return events


def decode_tasks(objects: Iterable[StoredObject], *, include_completed: bool = True) -> list[Task]:
    tasks: list[Task] = []
    for index, (data, etag) in enumerate(objects):
        try:
            task = decode_task(data, etag=etag)
        except CalendarError as exc:
            logger.warning("Skipping task object %d (etag=%s): %s", index, etag, exc)
            continue
        if include_completed or task.status != TaskStatus.completed:
            tasks.append(task)
    return tasks
