"""Internal records exchanged with the calendar interchange layer.

Every record is transient: built from command input or from a parsed
document, never cached. Optional fields use ``None`` as their zero value.
All-day boundaries are naive midnight datetimes; the end is exclusive.
"""

from __future__ import annotations

from datetime import date, datetime, time
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MAILTO_PREFIX = "mailto:"


class ParticipationStatus(StrEnum):
    """Attendee response state (PARTSTAT)."""

    needs_action = "needs-action"
    accepted = "accepted"
    declined = "declined"
    tentative = "tentative"


class TaskStatus(StrEnum):
    """VTODO lifecycle state (STATUS)."""

    needs_action = "needs-action"
    in_process = "in-process"
    completed = "completed"
    cancelled = "cancelled"


class Method(StrEnum):
    """Scheduling method tag carried by a VCALENDAR (METHOD).

    ``unspecified`` is produced when a document carries no recognisable
    METHOD; it must be treated as untrusted input, never as ``request``.
    """

    request = "request"
    reply = "reply"
    cancel = "cancel"
    counter = "counter"
    refresh = "refresh"
    unspecified = ""


def normalize_address(value: str) -> str:
    """Strip whitespace and a case-insensitive ``mailto:`` prefix from an address."""
    normalized = value.strip()
    if normalized[: len(MAILTO_PREFIX)].lower() == MAILTO_PREFIX:
        normalized = normalized[len(MAILTO_PREFIX) :]
    return normalized


def _empty_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _widen_date(value: Any) -> Any:
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    return value


def _has_time_of_day(value: datetime | None) -> bool:
    return value is not None and value.time() != time.min


def _floating(value: datetime | None) -> datetime | None:
    # All-day boundaries are calendar dates; an offset on them is meaningless.
    if value is None or value.tzinfo is None:
        return value
    return value.replace(tzinfo=None)


def _as_organizer(value: Participant | None) -> Participant | None:
    # The organizer line carries neither PARTSTAT nor RSVP.
    if value is None:
        return None
    return value.model_copy(
        update={"status": ParticipationStatus.needs_action, "rsvp": False}
    )


class Participant(BaseModel):
    """One organizer or attendee of a meeting."""

    model_config = ConfigDict(extra="forbid")

    email: str
    name: str | None = None
    status: ParticipationStatus = ParticipationStatus.needs_action
    rsvp: bool = False

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return normalize_address(value)

    @field_validator("name", mode="before")
    @classmethod
    def _normalize_name(cls, value: Any) -> Any:
        return _empty_to_none(value)


class Event(BaseModel):
    """A scheduled occurrence stored in a calendar collection."""

    model_config = ConfigDict(extra="forbid")

    uid: str = ""
    title: str = ""
    description: str | None = None
    location: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    all_day: bool = False
    organizer: Participant | None = None
    attendees: list[Participant] = Field(default_factory=list)
    status: str | None = None
    url: str | None = None
    # Opaque version token (ETag) owned by the storage server.
    etag: str | None = None

    @field_validator("description", "location", "status", "url", "etag", mode="before")
    @classmethod
    def _normalize_optional_text(cls, value: Any) -> Any:
        return _empty_to_none(value)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _widen_dates(cls, value: Any) -> Any:
        return _widen_date(value)

    @field_validator("organizer")
    @classmethod
    def _normalize_organizer(cls, value: Participant | None) -> Participant | None:
        return _as_organizer(value)

    @model_validator(mode="after")
    def _validate_all_day_boundaries(self) -> Event:
        if self.all_day and (_has_time_of_day(self.start) or _has_time_of_day(self.end)):
            raise ValueError("all-day events must not carry a time of day on start/end")
        if self.all_day:
            self.start = _floating(self.start)
            self.end = _floating(self.end)
        return self


class Task(BaseModel):
    """A schedulable unit of work (VTODO).

    Status, percent-complete and completion instant are independent fields;
    keeping them consistent is the job of the transitions in ``sog.tasks``.
    """

    model_config = ConfigDict(extra="forbid")

    uid: str = ""
    title: str = ""
    description: str | None = None
    status: TaskStatus = TaskStatus.needs_action
    priority: int = Field(default=0, ge=0, le=9)
    percent_complete: int = Field(default=0, ge=0, le=100)
    due: datetime | None = None
    start: datetime | None = None
    completed: datetime | None = None
    # Applies to due/start: date-only values when true.
    all_day: bool = False
    categories: list[str] = Field(default_factory=list)
    etag: str | None = None

    @field_validator("description", "etag", mode="before")
    @classmethod
    def _normalize_optional_text(cls, value: Any) -> Any:
        return _empty_to_none(value)

    @field_validator("due", "start", mode="before")
    @classmethod
    def _widen_dates(cls, value: Any) -> Any:
        return _widen_date(value)

    @field_validator("categories")
    @classmethod
    def _dedupe_categories(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for tag in value:
            normalized = tag.strip()
            if normalized and normalized not in seen:
                seen.append(normalized)
        return seen

    @model_validator(mode="after")
    def _validate_all_day_boundaries(self) -> Task:
        if self.all_day and (_has_time_of_day(self.due) or _has_time_of_day(self.start)):
            raise ValueError("all-day tasks must not carry a time of day on due/start")
        if self.all_day:
            self.due = _floating(self.due)
            self.start = _floating(self.start)
        return self


class Invite(BaseModel):
    """A scheduling message in flight (REQUEST, REPLY, CANCEL, ...)."""

    model_config = ConfigDict(extra="forbid")

    method: Method = Method.unspecified
    uid: str = ""
    title: str = ""
    description: str | None = None
    location: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    all_day: bool = False
    organizer: Participant | None = None
    attendees: list[Participant] = Field(default_factory=list)
    sequence: int = Field(default=0, ge=0)
    created: datetime | None = None
    last_modified: datetime | None = None
    status: str | None = None
    comment: str | None = None

    @field_validator("description", "location", "status", "comment", mode="before")
    @classmethod
    def _normalize_optional_text(cls, value: Any) -> Any:
        return _empty_to_none(value)

    @field_validator("start", "end", mode="before")
    @classmethod
    def _widen_dates(cls, value: Any) -> Any:
        return _widen_date(value)

    @field_validator("organizer")
    @classmethod
    def _normalize_organizer(cls, value: Participant | None) -> Participant | None:
        return _as_organizer(value)

    @model_validator(mode="after")
    def _validate_all_day_boundaries(self) -> Invite:
        if self.all_day and (_has_time_of_day(self.start) or _has_time_of_day(self.end)):
            raise ValueError("all-day invites must not carry a time of day on start/end")
        if self.all_day:
            self.start = _floating(self.start)
            self.end = _floating(self.end)
        return self

    def to_event(self) -> Event:
        """Project the meeting content of this invite onto an Event record."""
        return Event(
            uid=self.uid,
            title=self.title,
            description=self.description,
            location=self.location,
            start=self.start,
            end=self.end,
            all_day=self.all_day,
            organizer=self.organizer,
            attendees=list(self.attendees),
            status=self.status,
        )


class Response(BaseModel):
    """An attendee's reply to an invite.

    Staleness (a sequence lower than the one last seen) is not checked here.
    """

    model_config = ConfigDict(extra="forbid")

    uid: str
    attendee: Participant
    organizer: Participant
    comment: str | None = None
    sequence: int = Field(default=0, ge=0)

    @field_validator("comment", mode="before")
    @classmethod
    def _normalize_comment(cls, value: Any) -> Any:
        return _empty_to_none(value)

    @property
    def status(self) -> ParticipationStatus:
        return self.attendee.status
