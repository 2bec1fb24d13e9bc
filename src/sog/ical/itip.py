"""iTIP scheduling messages (RFC 5546) carried as iCalendar documents.

Each message is one VCALENDAR with a METHOD and exactly one VEVENT:

- REQUEST: full meeting content, SEQUENCE, an optional COMMENT, every
  attendee reset to NEEDS-ACTION.
- REPLY: identifying fields only (UID, SEQUENCE, DTSTAMP), the organizer and
  a single ATTENDEE carrying the responder's PARTSTAT.
- CANCEL: STATUS:CANCELLED, the caller-supplied SEQUENCE and attendees
  without PARTSTAT.

The encoder never reads prior state. Incrementing SEQUENCE past the last
issued value, and rejecting stale replies, are caller concerns.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

from vobject.base import Component

from sog.ical.errors import PropertyValueError, UnrecognizedEnumValue
from sog.ical.mapper import (
    COMPONENT_EVENT,
    PRODUCT_ID,
    event_fields,
    find_component,
    new_document,
    optional_timestamp,
    parse_document,
    populate_event,
    serialize,
)
from sog.ical.models import Invite, Method, Participant, ParticipationStatus, Response
from sog.ical.properties import (
    decode_enum,
    decode_integer,
    decode_text,
    encode_integer,
    encode_participant,
    encode_text,
    encode_timestamp,
    first_line,
)

ROLE_REQUIRED_PARTICIPANT = "REQ-PARTICIPANT"
STATUS_CANCELLED = "CANCELLED"


def _new_message(method: Method, product_id: str) -> tuple[Component, Component]:
    calendar = new_document(product_id=product_id, method=method)
    return calendar, calendar.add("vevent")


def _encode_sequence(component: Component, sequence: int) -> None:
    encode_integer(component, "sequence", sequence, required=True)


def encode_invitation(
    invite: Invite, *, product_id: str = PRODUCT_ID, stamp: datetime | None = None
) -> bytes:
    """Encode *invite* as a METHOD:REQUEST document.

    Attendee statuses on the input are ignored: a freshly issued invitation
    always asks every attendee for a new response.
    """
    calendar, vevent = _new_message(Method.request, product_id)
    event = invite.to_event().model_copy(
        update={
            "attendees": [
                attendee.model_copy(update={"status": ParticipationStatus.needs_action})
                for attendee in invite.attendees
            ]
        }
    )
    populate_event(vevent, event, stamp=stamp, attendee_role=ROLE_REQUIRED_PARTICIPANT)
    _encode_sequence(vevent, invite.sequence)
    encode_timestamp(vevent, "created", invite.created)
    encode_timestamp(vevent, "last-modified", invite.last_modified)
    encode_text(vevent, "comment", invite.comment)
    return serialize(calendar)


def encode_reply(
    response: Response, *, product_id: str = PRODUCT_ID, stamp: datetime | None = None
) -> bytes:
    """Encode *response* as a METHOD:REPLY document.

    The meeting content (title, times, location) is not restated.
    """
    calendar, vevent = _new_message(Method.reply, product_id)
    encode_text(vevent, "uid", response.uid, required=True)
    encode_timestamp(vevent, "dtstamp", stamp or datetime.now(UTC))
    _encode_sequence(vevent, response.sequence)
    encode_participant(vevent, "organizer", response.organizer, include_rsvp=False)
    encode_participant(
        vevent,
        "attendee",
        response.attendee,
        status=response.status,
        include_rsvp=False,
    )
    encode_text(vevent, "comment", response.comment)
    return serialize(calendar)


def encode_cancellation(
    uid: str,
    organizer: Participant,
    attendees: Sequence[Participant],
    sequence: int,
    *,
    product_id: str = PRODUCT_ID,
    stamp: datetime | None = None,
) -> bytes:
    """Encode a METHOD:CANCEL document for meeting *uid* at *sequence*."""
    calendar, vevent = _new_message(Method.cancel, product_id)
    encode_text(vevent, "uid", uid, required=True)
    encode_timestamp(vevent, "dtstamp", stamp or datetime.now(UTC))
    _encode_sequence(vevent, sequence)
    encode_text(vevent, "status", STATUS_CANCELLED)
    encode_participant(vevent, "organizer", organizer, include_rsvp=False)
    for attendee in attendees:
        encode_participant(vevent, "attendee", attendee, include_rsvp=False)
    return serialize(calendar)


def _decode_method(calendar: Component) -> Method:
    raw = decode_text(calendar, "method")
    if raw is None:
        return Method.unspecified
    try:
        return decode_enum("METHOD", raw, Method)
    except UnrecognizedEnumValue:
        return Method.unspecified


def _decode_sequence(component: Component) -> int:
    line = first_line(component, "sequence")
    if line is None:
        return 0
    try:
        return max(decode_integer(line), 0)
    except PropertyValueError:
        return 0


def decode_invite(data: bytes | str) -> Invite:
    """Decode a scheduling document into an Invite.

    Only a missing VEVENT (``NoMatchingComponent``) or unreadable input
    (``DocumentParseError``) fails; malformed fields are left unset, an
    absent or unknown METHOD yields ``Method.unspecified`` and a missing
    SEQUENCE yields 0.
    """
    calendar = parse_document(data)
    vevent = find_component(calendar, COMPONENT_EVENT)
    fields = event_fields(vevent)
    return Invite(
        method=_decode_method(calendar),
        uid=fields["uid"],
        title=fields["title"],
        description=fields["description"],
        location=fields["location"],
        start=fields["start"],
        end=fields["end"],
        all_day=fields["all_day"],
        organizer=fields["organizer"],
        attendees=fields["attendees"],
        sequence=_decode_sequence(vevent),
        created=optional_timestamp(vevent, "created"),
        last_modified=optional_timestamp(vevent, "last-modified"),
        status=fields["status"],
        comment=decode_text(vevent, "comment"),
    )
