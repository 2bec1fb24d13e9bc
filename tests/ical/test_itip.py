"""Tests for iTIP scheduling messages (sog.ical.itip)."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from sog.ical.errors import DocumentParseError, NoMatchingComponent
from sog.ical.itip import decode_invite, encode_cancellation, encode_invitation, encode_reply
from sog.ical.mapper import decode_event
from sog.ical.models import Method, Participant, ParticipationStatus, Response

pytestmark = pytest.mark.unit


def _unfolded(data: bytes) -> bytes:
    return data.replace(b"\r\n ", b"")


def _message(method: str | None, *event_lines: str) -> str:
    lines = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//test//EN"]
    if method is not None:
        lines.append(f"METHOD:{method}")
    lines += ["BEGIN:VEVENT", "UID:m@example.com", *event_lines, "END:VEVENT", "END:VCALENDAR"]
    return "\r\n".join(lines) + "\r\n"


# ---------------------------------------------------------------------------
# REQUEST
# ---------------------------------------------------------------------------


class TestInvitation:
    def test_request_document(self, request_invite, stamp):
        data = _unfolded(encode_invitation(request_invite, stamp=stamp))
        assert b"METHOD:REQUEST" in data
        assert b"SEQUENCE:2" in data
        assert data.count(b"BEGIN:VEVENT") == 1
        assert data.count(b"ROLE=REQ-PARTICIPANT") == 2
        assert b"SUMMARY:Design review" in data

    def test_attendee_statuses_are_reset(self, request_invite, stamp):
        answered = request_invite.model_copy(
            update={
                "attendees": [
                    a.model_copy(update={"status": ParticipationStatus.accepted})
                    for a in request_invite.attendees
                ]
            }
        )
        data = _unfolded(encode_invitation(answered, stamp=stamp))
        assert data.count(b"PARTSTAT=NEEDS-ACTION") == 2
        assert b"ACCEPTED" not in data
        decoded = decode_invite(data)
        assert all(a.status is ParticipationStatus.needs_action for a in decoded.attendees)

    def test_round_trip(self, request_invite, stamp):
        decoded = decode_invite(encode_invitation(request_invite, stamp=stamp))
        assert decoded.method is Method.request
        assert decoded.uid == request_invite.uid
        assert decoded.title == "Design review"
        assert decoded.location == "Room 7"
        assert decoded.start == request_invite.start
        assert decoded.end == request_invite.end
        assert decoded.sequence == 2
        assert decoded.organizer == request_invite.organizer
        assert decoded.attendees == request_invite.attendees

    def test_created_and_last_modified(self, request_invite, stamp):
        created = datetime(2026, 2, 27, 8, 0, tzinfo=UTC)
        meeting = request_invite.model_copy(update={"created": created, "last_modified": stamp})
        decoded = decode_invite(encode_invitation(meeting, stamp=stamp))
        assert decoded.created == created
        assert decoded.last_modified == stamp

    def test_comment_round_trips(self, request_invite, stamp):
        meeting = request_invite.model_copy(update={"comment": "Agenda to follow, bring numbers"})
        data = _unfolded(encode_invitation(meeting, stamp=stamp))
        assert b"COMMENT:Agenda to follow\\, bring numbers" in data
        assert decode_invite(data).comment == "Agenda to follow, bring numbers"

    def test_comment_is_omitted_when_empty(self, request_invite, stamp):
        assert b"COMMENT" not in encode_invitation(request_invite, stamp=stamp)

    def test_input_is_not_mutated(self, request_invite, stamp):
        before = request_invite.model_copy(deep=True)
        encode_invitation(request_invite, stamp=stamp)
        assert request_invite == before


# ---------------------------------------------------------------------------
# REPLY
# ---------------------------------------------------------------------------


class TestReply:
    @pytest.fixture
    def response(self, alice):
        return Response(
            uid="meeting-1@example.com",
            attendee=Participant(
                email="bob@example.com", name="Bob", status=ParticipationStatus.declined
            ),
            organizer=alice,
            comment="On leave that week",
            sequence=2,
        )

    def test_reply_document(self, response, stamp):
        data = _unfolded(encode_reply(response, stamp=stamp))
        assert b"METHOD:REPLY" in data
        assert b"UID:meeting-1@example.com" in data
        assert b"SEQUENCE:2" in data
        assert b"DTSTAMP:20260301T090000Z" in data
        assert data.count(b"ATTENDEE") == 1
        assert b"PARTSTAT=DECLINED" in data
        assert b"RSVP" not in data

    def test_reply_omits_meeting_content(self, response, stamp):
        data = encode_reply(response, stamp=stamp)
        for name in (b"SUMMARY", b"DTSTART", b"DTEND", b"LOCATION", b"DESCRIPTION"):
            assert name not in data

    def test_reply_round_trip(self, response, stamp):
        decoded = decode_invite(encode_reply(response, stamp=stamp))
        assert decoded.method is Method.reply
        assert decoded.title == ""
        assert decoded.start is None
        assert decoded.organizer.email == "alice@example.com"
        (attendee,) = decoded.attendees
        assert attendee.email == "bob@example.com"
        assert attendee.status is ParticipationStatus.declined
        assert decoded.comment == "On leave that week"

    def test_reply_without_comment(self, response, stamp):
        data = encode_reply(response.model_copy(update={"comment": None}), stamp=stamp)
        assert b"COMMENT" not in data


# ---------------------------------------------------------------------------
# CANCEL
# ---------------------------------------------------------------------------


class TestCancellation:
    def test_cancel_document(self, request_invite, stamp):
        data = _unfolded(
            encode_cancellation(
                request_invite.uid,
                request_invite.organizer,
                request_invite.attendees,
                3,
                stamp=stamp,
            )
        )
        assert b"METHOD:CANCEL" in data
        assert b"STATUS:CANCELLED" in data
        assert b"SEQUENCE:3" in data
        assert data.count(b"ATTENDEE") == 2
        assert b"PARTSTAT" not in data

    def test_cancel_round_trip(self, request_invite, stamp):
        data = encode_cancellation(
            request_invite.uid, request_invite.organizer, request_invite.attendees, 3, stamp=stamp
        )
        decoded = decode_invite(data)
        assert decoded.method is Method.cancel
        assert decoded.status == "CANCELLED"
        assert decoded.sequence == 3
        assert [a.email for a in decoded.attendees] == ["bob@example.com", "carol@example.com"]


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


class TestDecodeInvite:
    def test_missing_method_is_unspecified(self):
        assert decode_invite(_message(None, "SUMMARY:x")).method is Method.unspecified

    @pytest.mark.parametrize("raw", ["PUBLISH", "X-CUSTOM"])
    def test_unknown_method_is_unspecified(self, raw):
        assert decode_invite(_message(raw, "SUMMARY:x")).method is Method.unspecified

    @pytest.mark.parametrize(
        "raw, expected",
        [("request", Method.request), ("Counter", Method.counter), ("REFRESH", Method.refresh)],
    )
    def test_method_is_case_insensitive(self, raw, expected):
        assert decode_invite(_message(raw)).method is expected

    def test_missing_sequence_is_zero(self):
        assert decode_invite(_message("REQUEST")).sequence == 0

    @pytest.mark.parametrize("raw", ["two", "-4"])
    def test_bad_sequence_is_zero(self, raw):
        assert decode_invite(_message("REQUEST", f"SEQUENCE:{raw}")).sequence == 0

    def test_malformed_fields_do_not_fail(self):
        meeting = decode_invite(
            _message("REQUEST", "SUMMARY:Kickoff", "DTSTART:whenever", "CREATED:yesterday")
        )
        assert meeting.title == "Kickoff"
        assert meeting.start is None
        assert meeting.created is None

    def test_missing_event_raises(self):
        data = "BEGIN:VCALENDAR\r\nVERSION:2.0\r\nMETHOD:REQUEST\r\nEND:VCALENDAR\r\n"
        with pytest.raises(NoMatchingComponent):
            decode_invite(data)

    def test_unreadable_input_raises(self):
        with pytest.raises(DocumentParseError):
            decode_invite(b"not an invite")


class TestReplyThroughRecordMapper:
    def test_reply_has_no_meeting_content(self, alice, stamp):
        response = Response(
            uid="meeting-1@example.com",
            attendee=Participant(email="bob@example.com", status=ParticipationStatus.accepted),
            organizer=alice,
        )
        event = decode_event(encode_reply(response, stamp=stamp))
        assert event.uid == "meeting-1@example.com"
        assert event.title == ""
        assert event.description is None
        assert event.location is None
        assert event.start is None
        assert event.end is None
