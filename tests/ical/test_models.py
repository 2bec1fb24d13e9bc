"""Tests for the interchange records (sog.ical.models)."""

from __future__ import annotations

from datetime import UTC, date, datetime

import pytest
from pydantic import ValidationError

from sog.ical.models import (
    Event,
    Invite,
    Method,
    Participant,
    ParticipationStatus,
    Response,
    Task,
    normalize_address,
)

pytestmark = pytest.mark.unit


class TestNormalizeAddress:
    @pytest.mark.parametrize(
        "raw",
        [
            "bob@example.com",
            "mailto:bob@example.com",
            "MAILTO:bob@example.com",
            " MailTo:bob@example.com ",
        ],
    )
    def test_mailto_prefix_is_stripped(self, raw):
        assert normalize_address(raw) == "bob@example.com"

    def test_participant_email_is_normalized(self):
        assert Participant(email="Mailto:ann@example.com").email == "ann@example.com"

    def test_blank_name_is_none(self):
        assert Participant(email="ann@example.com", name="  ").name is None


class TestEvent:
    def test_defaults(self):
        event = Event()
        assert event.uid == ""
        assert event.attendees == []
        assert event.all_day is False
        assert event.start is None

    def test_empty_optional_text_is_none(self):
        event = Event(location="", description=" ", url="")
        assert event.location is None
        assert event.description is None
        assert event.url is None

    def test_plain_dates_are_widened(self):
        event = Event(start=date(2026, 3, 5), end=date(2026, 3, 6), all_day=True)
        assert event.start == datetime(2026, 3, 5)
        assert event.end == datetime(2026, 3, 6)

    def test_all_day_rejects_time_of_day(self):
        with pytest.raises(ValidationError):
            Event(start=datetime(2026, 3, 5, 10, 0), all_day=True)

    def test_all_day_drops_offset(self):
        event = Event(
            start=datetime(2026, 3, 5, tzinfo=UTC),
            end=datetime(2026, 3, 6, tzinfo=UTC),
            all_day=True,
        )
        assert event.start == datetime(2026, 3, 5)
        assert event.end == datetime(2026, 3, 6)

    def test_timed_values_keep_offset(self):
        event = Event(start=datetime(2026, 3, 5, tzinfo=UTC))
        assert event.start.tzinfo is not None

    def test_organizer_reply_state_is_cleared(self):
        organizer = Participant(
            email="alice@example.com", status=ParticipationStatus.accepted, rsvp=True
        )
        event = Event(organizer=organizer)
        assert event.organizer.status is ParticipationStatus.needs_action
        assert event.organizer.rsvp is False
        assert organizer.rsvp is True

    def test_unknown_field_is_rejected(self):
        with pytest.raises(ValidationError):
            Event(colour="red")


class TestTask:
    def test_categories_are_trimmed_and_deduplicated(self):
        task = Task(categories=[" work", "work", "", "home "])
        assert task.categories == ["work", "home"]

    @pytest.mark.parametrize(
        "field, value", [("priority", 10), ("priority", -1), ("percent_complete", 101)]
    )
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            Task(**{field: value})

    def test_all_day_rejects_time_of_day(self):
        with pytest.raises(ValidationError):
            Task(due=datetime(2026, 3, 5, 23, 59), all_day=True)

    def test_all_day_drops_offset(self):
        task = Task(
            due=datetime(2026, 3, 5, tzinfo=UTC),
            start=datetime(2026, 3, 1, tzinfo=UTC),
            all_day=True,
        )
        assert task.due == datetime(2026, 3, 5)
        assert task.start == datetime(2026, 3, 1)


class TestInvite:
    def test_defaults(self):
        invite = Invite()
        assert invite.method is Method.unspecified
        assert invite.sequence == 0

    def test_negative_sequence_is_rejected(self):
        with pytest.raises(ValidationError):
            Invite(sequence=-1)

    def test_to_event(self, request_invite):
        event = request_invite.to_event()
        assert event.uid == request_invite.uid
        assert event.title == request_invite.title
        assert event.start == request_invite.start
        assert event.attendees == request_invite.attendees

    def test_all_day_drops_offset(self):
        invite = Invite(start=datetime(2026, 3, 5, tzinfo=UTC), all_day=True)
        assert invite.start == datetime(2026, 3, 5)

    def test_organizer_reply_state_is_cleared(self):
        invite = Invite(
            organizer=Participant(email="alice@example.com", status=ParticipationStatus.declined)
        )
        assert invite.organizer.status is ParticipationStatus.needs_action


class TestResponse:
    def test_status_comes_from_attendee(self, alice):
        response = Response(
            uid="m@example.com",
            attendee=Participant(email="bob@example.com", status=ParticipationStatus.tentative),
            organizer=alice,
        )
        assert response.status is ParticipationStatus.tentative
        assert response.sequence == 0
        assert response.comment is None
