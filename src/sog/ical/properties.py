"""Property codec: one iCalendar content line <-> one typed value.

Content-line grammar, folding and text escaping are handled by vobject.
Documents are read with ``transform=False`` so date/date-time/duration
values arrive here as raw strings and are converted one property at a time;
a conversion failure raises ``PropertyValueError`` for that property only.

Encoders add a line to a vobject component and return it, or return
``None`` when the value is empty and therefore omitted.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum
from typing import NamedTuple, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from vobject.base import Component, ContentLine, ParseError
from vobject.icalendar import (
    stringToDate,
    stringToDateTime,
    stringToDurations,
    stringToTextValues,
    utc,
)

from sog.ical.errors import PropertyValueError, UnrecognizedEnumValue
from sog.ical.models import MAILTO_PREFIX, Participant, ParticipationStatus

VALUE_DATE = "DATE"
PARAM_VALUE = "VALUE"
PARAM_TZID = "TZID"
PARAM_COMMON_NAME = "CN"
PARAM_PARTSTAT = "PARTSTAT"
PARAM_RSVP = "RSVP"
PARAM_ROLE = "ROLE"

EnumT = TypeVar("EnumT", bound=StrEnum)


class DecodedInstant(NamedTuple):
    """A decoded DTSTART/DTEND/DUE value and whether it was date-only."""

    value: datetime
    all_day: bool


# ---------------------------------------------------------------------------
# Line access
# ---------------------------------------------------------------------------


def all_lines(component: Component, name: str) -> list[ContentLine]:
    """All property lines called *name*, in document order."""
    wanted = name.upper()
    return [
        child
        for child in component.getChildren()
        if isinstance(child, ContentLine) and child.name == wanted
    ]


def first_line(component: Component, name: str) -> ContentLine | None:
    lines = all_lines(component, name)
    return lines[0] if lines else None


def get_param(line: ContentLine, name: str) -> str | None:
    values = line.params.get(name.upper())
    if not values:
        return None
    return str(values[0])


def _raw_text(line: ContentLine) -> str:
    value = line.value
    if isinstance(value, list):
        return ",".join(str(item) for item in value)
    return str(value)


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


def encode_text(
    component: Component, name: str, value: str | None, *, required: bool = False
) -> ContentLine | None:
    """Add a text property; empty values are omitted unless *required*."""
    if not value and not required:
        return None
    line = component.add(name.lower())
    line.value = value or ""
    return line


def decode_text(component: Component, name: str) -> str | None:
    line = first_line(component, name)
    if line is None:
        return None
    text = _raw_text(line)
    return text if text.strip() else None


# ---------------------------------------------------------------------------
# Integers
# ---------------------------------------------------------------------------


def encode_integer(component: Component, name: str, value: int, *, required: bool = False):
    """Add an integer property; zero is omitted unless *required*."""
    if not value and not required:
        return None
    line = component.add(name.lower())
    line.value = str(int(value))
    return line


def decode_integer(line: ContentLine) -> int:
    raw = _raw_text(line).strip()
    try:
        return int(raw)
    except ValueError as exc:
        raise PropertyValueError(line.name, raw, "not an integer") from exc


# ---------------------------------------------------------------------------
# Dates and date-times
# ---------------------------------------------------------------------------


def _to_wire_datetime(instant: datetime) -> datetime:
    # Aware values travel as UTC ("Z" form); naive values stay floating.
    # vobject only recognises its own utc tzinfo when choosing the Z form.
    if instant.tzinfo is None:
        return instant
    return instant.astimezone(utc)


def encode_date_or_datetime(
    component: Component, name: str, instant: date | datetime | None, all_day: bool
) -> ContentLine | None:
    """Add a DATE value when *all_day* is true, a DATE-TIME value otherwise."""
    if instant is None:
        return None
    line = component.add(name.lower())
    if all_day:
        line.value = instant.date() if isinstance(instant, datetime) else instant
    elif isinstance(instant, datetime):
        line.value = _to_wire_datetime(instant)
    else:
        line.value = datetime(instant.year, instant.month, instant.day)
    return line


def encode_timestamp(component: Component, name: str, instant: datetime | None):
    """Add a UTC stamp property (DTSTAMP, CREATED, LAST-MODIFIED, COMPLETED)."""
    if instant is None:
        return None
    line = component.add(name.lower())
    line.value = _to_wire_datetime(instant)
    return line


def _coerce_tzid(tzid: str | None) -> ZoneInfo | None:
    if not tzid:
        return None
    try:
        return ZoneInfo(tzid)
    except (ZoneInfoNotFoundError, ValueError):
        # Unknown zones are read as floating local time.
        return None


def decode_datetime(line: ContentLine) -> DecodedInstant:
    """Decode a date or date-time property.

    All-day is decided by the ``VALUE=DATE`` parameter alone: a date-time at
    exact midnight is not all-day. Zoned values are returned in UTC.
    """
    value = line.value
    value_type = (get_param(line, PARAM_VALUE) or "").upper()
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return DecodedInstant(datetime(value.year, value.month, value.day), True)
    else:
        raw = str(value).strip()
        try:
            if value_type == VALUE_DATE:
                day = stringToDate(raw)
                return DecodedInstant(datetime(day.year, day.month, day.day), True)
            parsed = stringToDateTime(raw, _coerce_tzid(get_param(line, PARAM_TZID)))
        except (ParseError, ValueError, IndexError) as exc:
            raise PropertyValueError(line.name, raw, "not a valid date or date-time") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC)
    return DecodedInstant(parsed, False)


def decode_duration(line: ContentLine) -> timedelta:
    raw = _raw_text(line).strip()
    try:
        durations = stringToDurations(raw)
    except (ParseError, ValueError) as exc:
        raise PropertyValueError(line.name, raw, "not a valid duration") from exc
    if not durations:
        raise PropertyValueError(line.name, raw, "not a valid duration")
    return durations[0]


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


def decode_enum(name: str, raw: str, valid: type[EnumT]) -> EnumT:
    """Map a wire value (any case) onto *valid*; raises ``UnrecognizedEnumValue``."""
    members = {member.value: member for member in valid if member.value}
    normalized = raw.strip().lower()
    if normalized not in members:
        raise UnrecognizedEnumValue(name, raw, members)
    return members[normalized]


def encode_enum(value: StrEnum) -> str:
    return value.value.upper()


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------


def encode_participant(
    component: Component,
    name: str,
    participant: Participant,
    *,
    status: ParticipationStatus | None = None,
    include_rsvp: bool = True,
    role: str | None = None,
) -> ContentLine:
    """Add an ORGANIZER/ATTENDEE line for *participant*.

    PARTSTAT is only written when *status* is given.
    """
    line = component.add(name.lower())
    line.value = MAILTO_PREFIX + participant.email
    if participant.name:
        line.params[PARAM_COMMON_NAME] = [participant.name]
    if status is not None:
        line.params[PARAM_PARTSTAT] = [encode_enum(status)]
    if include_rsvp and participant.rsvp:
        line.params[PARAM_RSVP] = ["TRUE"]
    if role:
        line.params[PARAM_ROLE] = [role]
    return line


def decode_participant(line: ContentLine) -> Participant:
    """Build a Participant from an ORGANIZER/ATTENDEE line.

    An unknown PARTSTAT falls back to ``needs-action``.
    """
    status = ParticipationStatus.needs_action
    raw_status = get_param(line, PARAM_PARTSTAT)
    if raw_status:
        try:
            status = decode_enum(PARAM_PARTSTAT, raw_status, ParticipationStatus)
        except UnrecognizedEnumValue:
            status = ParticipationStatus.needs_action
    rsvp = (get_param(line, PARAM_RSVP) or "").strip().upper() == "TRUE"
    return Participant(
        email=_raw_text(line),
        name=get_param(line, PARAM_COMMON_NAME),
        status=status,
        rsvp=rsvp,
    )


# ---------------------------------------------------------------------------
# Categories
# ---------------------------------------------------------------------------


def encode_categories(component: Component, tags: Iterable[str]) -> ContentLine | None:
    values = [tag for tag in tags if tag]
    if not values:
        return None
    line = component.add("categories")
    line.value = values
    return line


def decode_categories(component: Component) -> list[str]:
    tags: list[str] = []
    for line in all_lines(component, "categories"):
        value = line.value
        values = value if isinstance(value, list) else stringToTextValues(str(value))
        tags.extend(str(tag) for tag in values)
    return tags
