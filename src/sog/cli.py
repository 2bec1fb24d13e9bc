"""CLI for sog: build and inspect calendar and scheduling documents.

Commands read ``.ics`` files (``-`` for stdin) and write the resulting
documents to stdout or ``--output``. Sending them to a mailbox or storing
them on a calendar server is left to the transport tools.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import click
from pydantic import BaseModel, ValidationError

from sog import __version__
from sog.config import ConfigError, SogConfig, load_config
from sog.core.logging import configure_logging, set_account_context
from sog.dates import parse_datetime, parse_duration, parse_task_date
from sog.ical.errors import CalendarError
from sog.ical.identifiers import domain_of, new_event_id, new_task_id
from sog.ical.itip import decode_invite, encode_cancellation, encode_invitation, encode_reply
from sog.ical.mapper import decode_event, decode_task, encode_event, encode_task
from sog.ical.models import Event, Invite, Method, Participant, Task
from sog.invites import REPLY_ACTIONS, build_cancellation, build_invitation, build_reply
from sog.tasks import STATUS_LABELS, apply_task_update, mark_complete, mark_incomplete

logger = logging.getLogger(__name__)

DISPLAY_DATETIME = "%a %b %d, %Y %H:%M"
DISPLAY_DATE = "%a %b %d, %Y"


@dataclass
class CliState:
    config: SogConfig
    account: str | None
    as_json: bool

    def require_account(self) -> str:
        if not self.account:
            raise click.ClickException(
                "No account specified (use --account or set account.email in the config)"
            )
        return self.account


pass_state = click.make_pass_decorator(CliState)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $SOG_CONFIG or ~/.config/sog/config.toml)",
)
@click.option("--account", default=None, help="Account e-mail address")
@click.option("--json", "as_json", is_flag=True, help="Print machine-readable JSON")
@click.option("--log-level", default=None, help="Override the configured log level")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    account: str | None,
    as_json: bool,
    log_level: str | None,
) -> None:
    """sog: calendar events, tasks and meeting invitations as iCalendar."""
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    configure_logging(level=log_level or config.logging.level, fmt=config.logging.format)
    email = account or config.account.email
    set_account_context(email)
    ctx.obj = CliState(config=config, account=email, as_json=as_json)


# ---------------------------------------------------------------------------
# I/O helpers
# ---------------------------------------------------------------------------


def _read_input(source: str) -> bytes:
    if source == "-":
        return click.get_binary_stream("stdin").read()
    try:
        return Path(source).read_bytes()
    except OSError as exc:
        raise click.ClickException(f"Failed to read {source}: {exc.strerror or exc}") from exc


def _write_output(data: bytes, output: Path | None, *, what: str) -> None:
    if output is None:
        click.echo(data.decode("utf-8"), nl=False)
        return
    try:
        output.write_bytes(data)
    except OSError as exc:
        raise click.ClickException(f"Failed to write {output}: {exc.strerror or exc}") from exc
    click.echo(f"Wrote {what} to {output}", err=True)


def _echo_json(payload: BaseModel | dict[str, Any]) -> None:
    data = payload.model_dump(mode="json") if isinstance(payload, BaseModel) else payload
    click.echo(json.dumps(data, sort_keys=True))


def _format_instant(value: datetime | None, all_day: bool) -> str:
    if value is None:
        return "-"
    return value.strftime(DISPLAY_DATE if all_day else DISPLAY_DATETIME)


def _format_participant(participant: Participant) -> str:
    text = participant.email
    if participant.name:
        text += f" ({participant.name})"
    return text


def _load_invite(source: str) -> Invite:
    try:
        return decode_invite(_read_input(source))
    except CalendarError as exc:
        raise click.ClickException(f"Failed to parse invite: {exc}") from exc


def _load_task(source: str) -> Task:
    try:
        return decode_task(_read_input(source))
    except CalendarError as exc:
        raise click.ClickException(f"Failed to parse task: {exc}") from exc


def _parse_or_fail(parser, value: str, option: str):
    try:
        return parser(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint=option) from exc


output_option = click.option(
    "-o",
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the document to a file instead of stdout",
)


# ---------------------------------------------------------------------------
# sog invite
# ---------------------------------------------------------------------------


@cli.group()
def invite() -> None:
    """Meeting invitations (iTIP REQUEST / REPLY / CANCEL)."""


@invite.command("create")
@click.argument("title")
@click.argument("attendees", nargs=-1, required=True)
@click.option("--start", required=True, help="Start time (YYYY-MM-DDTHH:MM)")
@click.option("--duration", default="1h", show_default=True, help="Duration (e.g. 30m, 1h30m)")
@click.option("--end", default=None, help="End time (alternative to --duration)")
@click.option("-l", "--location", default=None, help="Meeting location")
@click.option("-d", "--description", default=None, help="Meeting description")
@click.option("--organizer-name", default=None, help="Organizer display name")
@output_option
@pass_state
def invite_create(
    state: CliState,
    title: str,
    attendees: tuple[str, ...],
    start: str,
    duration: str,
    end: str | None,
    location: str | None,
    description: str | None,
    organizer_name: str | None,
    output: Path | None,
) -> None:
    """Create a meeting invitation for ATTENDEES."""
    organizer = state.require_account()
    start_at, _ = _parse_or_fail(parse_datetime, start, "--start")
    end_at = _parse_or_fail(parse_datetime, end, "--end")[0] if end else None
    length = None if end_at else _parse_or_fail(parse_duration, duration, "--duration")

    try:
        meeting = build_invitation(
            title,
            list(attendees),
            organizer_email=organizer,
            organizer_name=organizer_name or state.config.account.name,
            start=start_at,
            end=end_at,
            duration=length,
            description=description,
            location=location,
        )
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    data = encode_invitation(meeting, product_id=state.config.product_id)
    _write_output(data, output, what=f"invitation {meeting.uid}")


@invite.command("parse")
@click.argument("source")
@pass_state
def invite_parse(state: CliState, source: str) -> None:
    """Show the scheduling message in SOURCE (.ics file or - for stdin)."""
    meeting = _load_invite(source)
    if state.as_json:
        _echo_json(meeting)
        return

    method = meeting.method.value.upper() or "(unspecified)"
    click.echo(f"Method:    {method}")
    click.echo(f"UID:       {meeting.uid}")
    click.echo(f"Summary:   {meeting.title}")
    click.echo(f"Sequence:  {meeting.sequence}")
    click.echo(f"Start:     {_format_instant(meeting.start, meeting.all_day)}")
    click.echo(f"End:       {_format_instant(meeting.end, meeting.all_day)}")
    if meeting.location:
        click.echo(f"Location:  {meeting.location}")
    if meeting.description:
        click.echo(f"Desc:      {meeting.description}")
    if meeting.status:
        click.echo(f"Status:    {meeting.status}")
    if meeting.organizer is not None:
        click.echo(f"Organizer: {_format_participant(meeting.organizer)}")
    if meeting.attendees:
        click.echo("Attendees:")
        for attendee in meeting.attendees:
            label = attendee.status.value.upper()
            click.echo(f"  - {_format_participant(attendee)} [{label}]")
    if meeting.comment:
        click.echo(f"Comment:   {meeting.comment}")


@invite.command("reply")
@click.argument("source")
@click.option(
    "--status",
    "action",
    required=True,
    type=click.Choice(sorted(REPLY_ACTIONS)),
    help="Response to send",
)
@click.option("--comment", default=None, help="Optional comment for the organizer")
@click.option("--force", is_flag=True, help="Reply even if the document is not a REQUEST")
@output_option
@pass_state
def invite_reply(
    state: CliState,
    source: str,
    action: str,
    comment: str | None,
    force: bool,
    output: Path | None,
) -> None:
    """Answer the invitation in SOURCE."""
    responder = state.require_account()
    meeting = _load_invite(source)
    if meeting.method is not Method.request and not force:
        method = meeting.method.value.upper() or "unspecified"
        raise click.ClickException(
            f"Document is not an invitation (METHOD is {method}); use --force to reply anyway"
        )

    try:
        response = build_reply(meeting, responder, action, comment=comment)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    logger.info("Replying %s to %s", response.status.value, meeting.uid)
    data = encode_reply(response, product_id=state.config.product_id)
    _write_output(data, output, what=f"{action} reply")


@invite.command("cancel")
@click.argument("source")
@output_option
@pass_state
def invite_cancel(state: CliState, source: str, output: Path | None) -> None:
    """Cancel the meeting described by SOURCE (sequence is bumped by one)."""
    meeting = _load_invite(source)
    try:
        cancellation = build_cancellation(meeting, organizer_email=state.account)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    data = encode_cancellation(
        cancellation.uid,
        cancellation.organizer,
        cancellation.attendees,
        cancellation.sequence,
        product_id=state.config.product_id,
    )
    _write_output(data, output, what=f"cancellation {cancellation.uid}")


# ---------------------------------------------------------------------------
# sog event
# ---------------------------------------------------------------------------


@cli.group()
def event() -> None:
    """Calendar events (VEVENT)."""


@event.command("create")
@click.argument("title")
@click.option("--start", required=True, help="Start (YYYY-MM-DDTHH:MM, or YYYY-MM-DD for all-day)")
@click.option("--end", default=None, help="End (same format as --start)")
@click.option("--duration", default="1h", show_default=True, help="Duration for timed events")
@click.option("-l", "--location", default=None)
@click.option("-d", "--description", default=None)
@click.option("--attendee", "attendees", multiple=True, help="Attendee e-mail (repeatable)")
@output_option
@pass_state
def event_create(
    state: CliState,
    title: str,
    start: str,
    end: str | None,
    duration: str,
    location: str | None,
    description: str | None,
    attendees: tuple[str, ...],
    output: Path | None,
) -> None:
    """Create an event document ready to be stored on a calendar server."""
    start_at, all_day = _parse_or_fail(parse_datetime, start, "--start")
    if end:
        end_at, end_all_day = _parse_or_fail(parse_datetime, end, "--end")
        if end_all_day != all_day:
            raise click.BadParameter("must use the same format as --start", param_hint="--end")
        if all_day:
            # --end names the last included day; the stored end is exclusive.
            end_at += timedelta(days=1)
    elif all_day:
        end_at = start_at + timedelta(days=1)
    else:
        end_at = start_at + _parse_or_fail(parse_duration, duration, "--duration")

    domain = domain_of(state.account or "")
    organizer = (
        Participant(email=state.account, name=state.config.account.name)
        if state.account and attendees
        else None
    )
    try:
        record = Event(
            uid=new_event_id(domain),
            title=title,
            description=description,
            location=location,
            start=start_at,
            end=end_at,
            all_day=all_day,
            organizer=organizer,
            attendees=[Participant(email=address, rsvp=True) for address in attendees],
        )
    except ValidationError as exc:
        raise click.ClickException(str(exc)) from exc

    _write_output(
        encode_event(record, product_id=state.config.product_id),
        output,
        what=f"event {record.uid}",
    )


@event.command("show")
@click.argument("source")
@pass_state
def event_show(state: CliState, source: str) -> None:
    """Show the first event in SOURCE."""
    try:
        record = decode_event(_read_input(source))
    except CalendarError as exc:
        raise click.ClickException(f"Failed to parse event: {exc}") from exc

    if state.as_json:
        _echo_json(record)
        return

    click.echo(f"UID:         {record.uid}")
    click.echo(f"Summary:     {record.title}")
    click.echo(f"Start:       {_format_instant(record.start, record.all_day)}")
    click.echo(f"End:         {_format_instant(record.end, record.all_day)}")
    if record.all_day:
        click.echo("All day:     yes")
    if record.location:
        click.echo(f"Location:    {record.location}")
    if record.status:
        click.echo(f"Status:      {record.status}")
    if record.organizer is not None:
        click.echo(f"Organizer:   {_format_participant(record.organizer)}")
    for attendee in record.attendees:
        click.echo(f"Attendee:    {_format_participant(attendee)}")
    if record.url:
        click.echo(f"URL:         {record.url}")
    if record.description:
        click.echo(f"Description: {record.description}")


# ---------------------------------------------------------------------------
# sog tasks
# ---------------------------------------------------------------------------


@cli.group()
def tasks() -> None:
    """Tasks (VTODO)."""


def _print_task(state: CliState, task: Task) -> None:
    if state.as_json:
        _echo_json(task)
        return
    click.echo(f"UID:         {task.uid}")
    click.echo(f"Summary:     {task.title}")
    click.echo(f"Status:      {STATUS_LABELS[task.status]} ({task.status.value})")
    if task.priority:
        click.echo(f"Priority:    {task.priority}")
    if task.due is not None:
        click.echo(f"Due:         {_format_instant(task.due, task.all_day)}")
    if task.start is not None:
        click.echo(f"Start:       {_format_instant(task.start, task.all_day)}")
    if task.completed is not None:
        click.echo(f"Completed:   {_format_instant(task.completed, False)}")
    if task.percent_complete:
        click.echo(f"Progress:    {task.percent_complete}%")
    if task.categories:
        click.echo(f"Categories:  {', '.join(task.categories)}")
    if task.description:
        click.echo(f"Description: {task.description}")


@tasks.command("add")
@click.argument("title")
@click.option("--due", default=None, help="Due date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
@click.option("-p", "--priority", type=click.IntRange(0, 9), default=0, help="1=highest, 9=lowest")
@click.option("-d", "--description", default=None)
@click.option("-c", "--category", "categories", multiple=True, help="Category tag (repeatable)")
@output_option
@pass_state
def tasks_add(
    state: CliState,
    title: str,
    due: str | None,
    priority: int,
    description: str | None,
    categories: tuple[str, ...],
    output: Path | None,
) -> None:
    """Create a task document."""
    record = Task(
        uid=new_task_id(),
        title=title,
        description=description,
        priority=priority,
        due=_parse_or_fail(parse_task_date, due, "--due") if due else None,
        categories=list(categories),
    )
    _write_output(
        encode_task(record, product_id=state.config.product_id),
        output,
        what=f"task {record.uid}",
    )


@tasks.command("show")
@click.argument("source")
@pass_state
def tasks_show(state: CliState, source: str) -> None:
    """Show the first task in SOURCE."""
    _print_task(state, _load_task(source))


@tasks.command("update")
@click.argument("source")
@click.option("--title", default=None)
@click.option("--due", default=None, help="New due date (YYYY-MM-DD or YYYY-MM-DDTHH:MM)")
@click.option("-p", "--priority", type=click.IntRange(1, 9), default=None)
@click.option("-d", "--description", default=None)
@output_option
@pass_state
def tasks_update(
    state: CliState,
    source: str,
    title: str | None,
    due: str | None,
    priority: int | None,
    description: str | None,
    output: Path | None,
) -> None:
    """Rewrite the task in SOURCE with the given changes."""
    record = apply_task_update(
        _load_task(source),
        title=title,
        due=_parse_or_fail(parse_task_date, due, "--due") if due else None,
        priority=priority,
        description=description,
    )
    _write_output(
        encode_task(record, product_id=state.config.product_id),
        output,
        what=f"task {record.uid}",
    )


@tasks.command("done")
@click.argument("source")
@output_option
@pass_state
def tasks_done(state: CliState, source: str, output: Path | None) -> None:
    """Mark the task in SOURCE as completed."""
    record = mark_complete(_load_task(source))
    _write_output(
        encode_task(record, product_id=state.config.product_id),
        output,
        what=f"completed task {record.uid}",
    )


@tasks.command("undo")
@click.argument("source")
@output_option
@pass_state
def tasks_undo(state: CliState, source: str, output: Path | None) -> None:
    """Reopen the completed task in SOURCE."""
    record = mark_incomplete(_load_task(source))
    _write_output(
        encode_task(record, product_id=state.config.product_id),
        output,
        what=f"reopened task {record.uid}",
    )
