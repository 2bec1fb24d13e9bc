"""Meeting workflow: build the records behind invitations, replies and cancellations.

These helpers turn command input into ``Invite``/``Response`` records for the
scheduling encoder. Delivering the encoded documents is the transport's job.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sog.ical.identifiers import domain_of, new_id
from sog.ical.models import Invite, Method, Participant, ParticipationStatus, Response

logger = logging.getLogger(__name__)

DEFAULT_DURATION = timedelta(hours=1)

REPLY_ACTIONS = {
    "accept": ParticipationStatus.accepted,
    "decline": ParticipationStatus.declined,
    "tentative": ParticipationStatus.tentative,
}


@dataclass
class Cancellation:
    """Arguments for ``encode_cancellation`` derived from a known invite."""

    uid: str
    organizer: Participant
    attendees: list[Participant]
    sequence: int


def build_invitation(
    title: str,
    attendees: Sequence[str],
    *,
    organizer_email: str,
    start: datetime,
    end: datetime | None = None,
    duration: timedelta | None = None,
    organizer_name: str | None = None,
    description: str | None = None,
    location: str | None = None,
    now: datetime | None = None,
) -> Invite:
    """Create a REQUEST invite for a brand-new meeting.

    The end is *end* when given, otherwise ``start + duration`` (default one
    hour). Every attendee is asked to RSVP.
    """
    if not title.strip():
        raise ValueError("meeting title must be a non-empty string")
    if not attendees:
        raise ValueError("at least one attendee is required")

    resolved_end = end if end is not None else start + (duration or DEFAULT_DURATION)
    if resolved_end <= start:
        raise ValueError("meeting end must be after its start")

    created = now or datetime.now(UTC)
    invite = Invite(
        method=Method.request,
        uid=new_id(domain_of(organizer_email)),
        title=title.strip(),
        description=description,
        location=location,
        start=start,
        end=resolved_end,
        organizer=Participant(email=organizer_email, name=organizer_name),
        attendees=[Participant(email=address, rsvp=True) for address in attendees],
        sequence=0,
        created=created,
        last_modified=created,
    )
    logger.info("Built invitation %s for %d attendee(s)", invite.uid, len(invite.attendees))
    return invite


def _responder(invite: Invite, email: str, status: ParticipationStatus) -> Participant:
    probe = Participant(email=email)
    for attendee in invite.attendees:
        if attendee.email.lower() == probe.email.lower():
            return attendee.model_copy(update={"status": status, "rsvp": False})
    return probe.model_copy(update={"status": status})


def build_reply(
    invite: Invite,
    responder_email: str,
    status: ParticipationStatus | str,
    *,
    comment: str | None = None,
) -> Response:
    """Build a Response to *invite* against the invite's own sequence.

    *status* may be a participation status or one of the ``REPLY_ACTIONS``
    verbs (accept, decline, tentative).
    """
    if invite.organizer is None:
        raise ValueError(f"invite {invite.uid!r} has no organizer to reply to")
    if isinstance(status, str) and status in REPLY_ACTIONS:
        status = REPLY_ACTIONS[status]
    resolved = ParticipationStatus(status)
    if resolved is ParticipationStatus.needs_action:
        raise ValueError("a reply must accept, decline or tentatively accept")

    return Response(
        uid=invite.uid,
        attendee=_responder(invite, responder_email, resolved),
        organizer=invite.organizer,
        comment=comment,
        sequence=invite.sequence,
    )


def build_cancellation(invite: Invite, *, organizer_email: str | None = None) -> Cancellation:
    """Cancellation arguments for *invite* with SEQUENCE bumped past it."""
    organizer = invite.organizer
    if organizer_email:
        organizer = Participant(email=organizer_email)
    if organizer is None:
        raise ValueError(f"invite {invite.uid!r} has no organizer")
    return Cancellation(
        uid=invite.uid,
        organizer=organizer,
        attendees=[Participant(email=a.email, name=a.name) for a in invite.attendees],
        sequence=invite.sequence + 1,
    )
