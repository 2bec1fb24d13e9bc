"""Parsing of user-supplied dates, times and durations for the command line."""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta

DATETIME_FORMAT = "%Y-%m-%dT%H:%M"
DATE_FORMAT = "%Y-%m-%d"

_RELATIVE_DAYS_PATTERN = re.compile(r"^\+(\d+)d$")
_DURATION_PART_PATTERN = re.compile(r"(\d+(?:\.\d+)?)(h|m|s)")
_DURATION_UNITS = {"h": "hours", "m": "minutes", "s": "seconds"}


def parse_date(value: str, *, today: date | None = None) -> datetime:
    """Parse ``today``, ``tomorrow``, ``yesterday``, ``+Nd`` or ``YYYY-MM-DD``.

    Returns local midnight of that day as a naive datetime.
    """
    base = today or date.today()
    midnight = datetime.combine(base, time.min)
    normalized = value.strip().lower()

    if normalized == "today":
        return midnight
    if normalized == "tomorrow":
        return midnight + timedelta(days=1)
    if normalized == "yesterday":
        return midnight - timedelta(days=1)

    relative = _RELATIVE_DAYS_PATTERN.match(normalized)
    if relative:
        return midnight + timedelta(days=int(relative.group(1)))

    try:
        return datetime.strptime(normalized, DATE_FORMAT)
    except ValueError as exc:
        raise ValueError(
            f"invalid date format: {value} (use YYYY-MM-DD, today, tomorrow, or +Nd)"
        ) from exc


def parse_datetime(value: str) -> tuple[datetime, bool]:
    """Parse ``YYYY-MM-DDTHH:MM`` (timed) or ``YYYY-MM-DD`` (all-day)."""
    normalized = value.strip()
    try:
        return datetime.strptime(normalized, DATETIME_FORMAT), False
    except ValueError:
        pass
    try:
        return datetime.strptime(normalized, DATE_FORMAT), True
    except ValueError as exc:
        raise ValueError(
            f"invalid datetime format: {value} (use YYYY-MM-DDTHH:MM or YYYY-MM-DD)"
        ) from exc


def parse_task_date(value: str, *, today: date | None = None) -> datetime:
    """Parse a task due date; a bare ``YYYY-MM-DD`` means 23:59 on that day."""
    normalized = value.strip()
    try:
        return datetime.strptime(normalized, DATETIME_FORMAT)
    except ValueError:
        pass
    try:
        return datetime.strptime(normalized, DATE_FORMAT) + timedelta(hours=23, minutes=59)
    except ValueError:
        return parse_date(normalized, today=today)


def parse_duration(value: str) -> timedelta:
    """Parse durations such as ``1h``, ``30m`` or ``1h30m``."""
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError("duration must be a non-empty string")

    total = timedelta()
    position = 0
    for match in _DURATION_PART_PATTERN.finditer(normalized):
        if match.start() != position:
            break
        total += timedelta(**{_DURATION_UNITS[match.group(2)]: float(match.group(1))})
        position = match.end()

    if position != len(normalized):
        raise ValueError(f"invalid duration: {value} (e.g. 1h, 30m, 1h30m)")
    return total
