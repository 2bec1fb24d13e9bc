"""Calendar interchange (RFC 5545) and scheduling (RFC 5546) core.

Pure, synchronous transformations between internal records and iCalendar
documents. Nothing here performs I/O, logs, or keeps state between calls.
"""

from sog.ical.errors import (
    CalendarError,
    DocumentParseError,
    NoMatchingComponent,
    PropertyValueError,
    UnrecognizedEnumValue,
)
from sog.ical.identifiers import domain_of, new_event_id, new_id, new_task_id
from sog.ical.itip import decode_invite, encode_cancellation, encode_invitation, encode_reply
from sog.ical.mapper import PRODUCT_ID, decode_event, decode_task, encode_event, encode_task
from sog.ical.models import (
    Event,
    Invite,
    Method,
    Participant,
    ParticipationStatus,
    Response,
    Task,
    TaskStatus,
)

__all__ = [
    "PRODUCT_ID",
    "CalendarError",
    "DocumentParseError",
    "Event",
    "Invite",
    "Method",
    "NoMatchingComponent",
    "Participant",
    "ParticipationStatus",
    "PropertyValueError",
    "Response",
    "Task",
    "TaskStatus",
    "UnrecognizedEnumValue",
    "decode_event",
    "decode_invite",
    "decode_task",
    "domain_of",
    "encode_cancellation",
    "encode_event",
    "encode_invitation",
    "encode_reply",
    "encode_task",
    "new_event_id",
    "new_id",
    "new_task_id",
]
