"""Error taxonomy for calendar interchange decoding.

Decoding distinguishes document-level failures (fatal to the call) from
field-level failures (the field is left unset). Only the former escape the
Record Mapper and Scheduling decoder; ``PropertyValueError`` is raised by the
Property Codec and handled by its callers.
"""

from __future__ import annotations

from collections.abc import Iterable


class CalendarError(Exception):
    """Base error for calendar interchange encode/decode failures."""


class DocumentParseError(CalendarError):
    """Raised when the input bytes are not a readable interchange document."""


class NoMatchingComponent(CalendarError):
    """Raised when a document holds no component of the requested kind."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"no {kind} component found in calendar data")


class UnrecognizedEnumValue(CalendarError, ValueError):
    """Raised when a status/method value is outside its known set."""

    def __init__(self, name: str, value: str, valid: Iterable[str]) -> None:
        self.name = name
        self.value = value
        self.valid = tuple(sorted(valid))
        expected = ", ".join(self.valid)
        super().__init__(f"unrecognized {name} value {value!r} (expected one of: {expected})")


class PropertyValueError(CalendarError, ValueError):
    """Raised when a single property value cannot be parsed."""

    def __init__(self, name: str, value: str, reason: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"invalid {name} value {value!r}: {reason}")
