"""Record mapper: Event/Task <-> VCALENDAR documents.

Encoding always produces one VCALENDAR wrapper (VERSION, PRODID) holding
exactly one VEVENT or VTODO. Decoding uses the first component of the
requested kind only; further components in the same document are ignored.

Decoding is tolerant at field level: a malformed date, integer or status
parameter leaves that field at its zero value. Only a document that cannot
be read at all, or that lacks the requested component, fails the call.
"""

from __future__ import annotations

from datetime import UTC, datetime, time
from typing import Any

import vobject
from vobject.base import Component, VObjectError

from sog.ical.errors import DocumentParseError, NoMatchingComponent, PropertyValueError
from sog.ical.models import Event, Method, Task, TaskStatus
from sog.ical.properties import (
    DecodedInstant,
    all_lines,
    decode_categories,
    decode_datetime,
    decode_duration,
    decode_enum,
    decode_integer,
    decode_participant,
    decode_text,
    encode_categories,
    encode_date_or_datetime,
    encode_enum,
    encode_integer,
    encode_participant,
    encode_text,
    encode_timestamp,
    first_line,
)

ICALENDAR_VERSION = "2.0"
PRODUCT_ID = "-//sog//sogcli//EN"
COMPONENT_EVENT = "VEVENT"
COMPONENT_TODO = "VTODO"


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def new_document(*, product_id: str = PRODUCT_ID, method: Method | None = None) -> Component:
    """Create an empty VCALENDAR wrapper, optionally tagged with a METHOD."""
    calendar = vobject.iCalendar()
    calendar.add("version").value = ICALENDAR_VERSION
    calendar.add("prodid").value = product_id
    if method is not None and method is not Method.unspecified:
        calendar.add("method").value = encode_enum(method)
    return calendar


def serialize(calendar: Component) -> bytes:
    return calendar.serialize().encode("utf-8")


def parse_document(data: bytes | str) -> Component:
    """Read an interchange document without converting property values."""
    try:
        text = data.decode("utf-8") if isinstance(data, bytes) else data
        return vobject.readOne(text, transform=False)
    except (VObjectError, UnicodeDecodeError, StopIteration) as exc:
        raise DocumentParseError(f"failed to decode iCalendar data: {exc}") from exc


def find_component(calendar: Component, kind: str) -> Component:
    """Return the first top-level child component named *kind*."""
    for child in calendar.components():
        if child.name.upper() == kind:
            return child
    raise NoMatchingComponent(kind)


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(UTC)


def _optional_instant(component: Component, name: str) -> DecodedInstant | None:
    line = first_line(component, name)
    if line is None:
        return None
    try:
        return decode_datetime(line)
    except PropertyValueError:
        return None


def optional_timestamp(component: Component, name: str) -> datetime | None:
    decoded = _optional_instant(component, name)
    return decoded.value if decoded is not None else None


def optional_integer(component: Component, name: str, *, low: int, high: int) -> int | None:
    line = first_line(component, name)
    if line is None:
        return None
    try:
        value = decode_integer(line)
    except PropertyValueError:
        return None
    if value < low or value > high:
        return None
    return value


def _fits(value: datetime | None, all_day: bool) -> datetime | None:
    # A date-only record cannot hold a time of day; treat the field as malformed.
    if value is not None and all_day and value.time() != time.min:
        return None
    return value


def _boundary(decoded: DecodedInstant | None, all_day: bool) -> datetime | None:
    if decoded is None or decoded.all_day != all_day:
        return None
    return decoded.value


def _decode_boundaries(component: Component) -> tuple[datetime | None, datetime | None, bool]:
    start = _optional_instant(component, "dtstart")
    end_line = first_line(component, "dtend")
    end = _optional_instant(component, "dtend")
    reference = start or end
    all_day = reference.all_day if reference is not None else False

    start_value = _boundary(start, all_day)
    end_value = _boundary(end, all_day)
    if end_line is None and start_value is not None:
        duration_line = first_line(component, "duration")
        if duration_line is not None:
            try:
                end_value = _fits(start_value + decode_duration(duration_line), all_day)
            except PropertyValueError:
                end_value = None
    return start_value, end_value, all_day


def _encode_attendees(
    component: Component,
    event: Event,
    *,
    attendee_role: str | None,
) -> None:
    for attendee in event.attendees:
        encode_participant(
            component,
            "attendee",
            attendee,
            status=attendee.status,
            role=attendee_role,
        )


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


def populate_event(
    component: Component,
    event: Event,
    *,
    stamp: datetime | None = None,
    attendee_role: str | None = None,
) -> Component:
    """Write *event*'s fields into an (empty) VEVENT component.

    DTSTAMP is always the encode-time instant, never taken from the record.
    """
    encode_text(component, "uid", event.uid, required=True)
    encode_text(component, "summary", event.title, required=True)
    encode_text(component, "description", event.description)
    encode_text(component, "location", event.location)
    encode_text(component, "url", event.url)
    encode_text(component, "status", event.status)
    encode_date_or_datetime(component, "dtstart", event.start, event.all_day)
    encode_date_or_datetime(component, "dtend", event.end, event.all_day)
    if event.organizer is not None:
        encode_participant(component, "organizer", event.organizer, include_rsvp=False)
    _encode_attendees(component, event, attendee_role=attendee_role)
    encode_timestamp(component, "dtstamp", stamp or _now())
    return component


def encode_event(
    event: Event, *, product_id: str = PRODUCT_ID, stamp: datetime | None = None
) -> bytes:
    """Encode *event* as a standalone VCALENDAR document (UTF-8 bytes)."""
    calendar = new_document(product_id=product_id)
    populate_event(calendar.add("vevent"), event, stamp=stamp)
    return serialize(calendar)


def event_fields(component: Component) -> dict[str, Any]:
    """Extract Event field values from a parsed VEVENT component."""
    start, end, all_day = _decode_boundaries(component)
    organizer_line = first_line(component, "organizer")
    return {
        "uid": decode_text(component, "uid") or "",
        "title": decode_text(component, "summary") or "",
        "description": decode_text(component, "description"),
        "location": decode_text(component, "location"),
        "start": start,
        "end": end,
        "all_day": all_day,
        "organizer": decode_participant(organizer_line) if organizer_line is not None else None,
        "attendees": [decode_participant(line) for line in all_lines(component, "attendee")],
        "status": decode_text(component, "status"),
        "url": decode_text(component, "url"),
    }


def event_from_component(component: Component, *, etag: str | None = None) -> Event:
    return Event(**event_fields(component), etag=etag)


def decode_event(data: bytes | str, *, etag: str | None = None) -> Event:
    """Decode the first VEVENT of *data*.

    Raises ``DocumentParseError`` or ``NoMatchingComponent``; malformed fields
    are left unset.
    """
    calendar = parse_document(data)
    return event_from_component(find_component(calendar, COMPONENT_EVENT), etag=etag)


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def populate_task(
    component: Component, task: Task, *, stamp: datetime | None = None
) -> Component:
    encode_text(component, "uid", task.uid, required=True)
    encode_text(component, "summary", task.title, required=True)
    encode_text(component, "description", task.description)
    encode_text(component, "status", encode_enum(task.status))
    encode_integer(component, "priority", task.priority)
    encode_integer(component, "percent-complete", task.percent_complete)
    encode_date_or_datetime(component, "dtstart", task.start, task.all_day)
    encode_date_or_datetime(component, "due", task.due, task.all_day)
    encode_timestamp(component, "completed", task.completed)
    encode_categories(component, task.categories)
    encode_timestamp(component, "dtstamp", stamp or _now())
    return component


def encode_task(task: Task, *, product_id: str = PRODUCT_ID, stamp: datetime | None = None) -> bytes:
    """Encode *task* as a standalone VCALENDAR document holding one VTODO."""
    calendar = new_document(product_id=product_id)
    populate_task(calendar.add("vtodo"), task, stamp=stamp)
    return serialize(calendar)


def task_from_component(component: Component, *, etag: str | None = None) -> Task:
    """Build a Task from a parsed VTODO.

    An unrecognised STATUS raises ``UnrecognizedEnumValue``.
    """
    status = TaskStatus.needs_action
    raw_status = decode_text(component, "status")
    if raw_status is not None:
        status = decode_enum("STATUS", raw_status, TaskStatus)

    due = _optional_instant(component, "due")
    start = _optional_instant(component, "dtstart")
    reference = due or start
    all_day = reference.all_day if reference is not None else False

    return Task(
        uid=decode_text(component, "uid") or "",
        title=decode_text(component, "summary") or "",
        description=decode_text(component, "description"),
        status=status,
        priority=optional_integer(component, "priority", low=0, high=9) or 0,
        percent_complete=optional_integer(component, "percent-complete", low=0, high=100) or 0,
        due=_boundary(due, all_day),
        start=_boundary(start, all_day),
        completed=optional_timestamp(component, "completed"),
        all_day=all_day,
        categories=decode_categories(component),
        etag=etag,
    )


def decode_task(data: bytes | str, *, etag: str | None = None) -> Task:
    """Decode the first VTODO of *data*."""
    calendar = parse_document(data)
    return task_from_component(find_component(calendar, COMPONENT_TODO), etag=etag)
