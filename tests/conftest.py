"""Shared fixtures for the sog test suite."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from sog.ical.models import Event, Invite, Method, Participant, Task

STAMP = datetime(2026, 3, 1, 9, 0, tzinfo=UTC)

THIRD_PARTY_EVENT = """\
BEGIN:VCALENDAR
VERSION:2.0
PRODID:-//Example Corp//Calendar 1.0//EN
BEGIN:VEVENT
UID:standup-42@example.com
DTSTAMP:20260301T080000Z
SUMMARY:Daily standup\\, team A
DESCRIPTION:Line one\\nLine two
LOCATION:Room 4
DTSTART:20260302T093000Z
DTEND:20260302T094500Z
ORGANIZER;CN=Alice Smith:mailto:alice@example.com
ATTENDEE;CN=Bob;PARTSTAT=ACCEPTED:mailto:bob@example.com
ATTENDEE;PARTSTAT=SOMETHING-ELSE;RSVP=TRUE:MAILTO:carol@example.com
STATUS:CONFIRMED
END:VEVENT
END:VCALENDAR
"""


@pytest.fixture
def stamp() -> datetime:
    return STAMP


@pytest.fixture
def alice() -> Participant:
    return Participant(email="alice@example.com", name="Alice Smith")


@pytest.fixture
def timed_event(alice: Participant) -> Event:
    return Event(
        uid="evt-1@example.com",
        title="Planning",
        description="Quarterly planning, part 1; bring notes",
        location="Room 4",
        start=datetime(2026, 3, 2, 14, 0, tzinfo=UTC),
        end=datetime(2026, 3, 2, 15, 0, tzinfo=UTC),
        organizer=alice,
        attendees=[
            Participant(email="bob@example.com", name="Bob", rsvp=True),
            Participant(email="carol@example.com"),
        ],
    )


@pytest.fixture
def all_day_event() -> Event:
    return Event(
        uid="holiday-1@example.com",
        title="Company holiday",
        start=datetime(2026, 3, 5),
        end=datetime(2026, 3, 6),
        all_day=True,
    )


@pytest.fixture
def sample_task() -> Task:
    return Task(
        uid="task-1@sog",
        title="Write report",
        description="Numbers for Q1",
        priority=3,
        percent_complete=40,
        due=datetime(2026, 3, 10, 17, 0, tzinfo=UTC),
        categories=["work", "reports"],
    )


@pytest.fixture
def request_invite(alice: Participant) -> Invite:
    return Invite(
        method=Method.request,
        uid="meeting-1@example.com",
        title="Design review",
        location="Room 7",
        start=datetime(2026, 3, 3, 10, 0, tzinfo=UTC),
        end=datetime(2026, 3, 3, 11, 0, tzinfo=UTC),
        organizer=alice,
        attendees=[
            Participant(email="bob@example.com", name="Bob", rsvp=True),
            Participant(email="carol@example.com", rsvp=True),
        ],
        sequence=2,
    )


@pytest.fixture
def third_party_event() -> str:
    return THIRD_PARTY_EVENT
