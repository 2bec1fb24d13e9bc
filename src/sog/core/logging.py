"""Structured logging for sog.

Uses structlog's ProcessorFormatter to upgrade every existing
``logging.getLogger(__name__)`` call site. Zero changes needed at call sites.

Two output formats:
- ``text``: Colored, human-readable console output (default)
- ``json``: Machine-parseable JSON lines

The active account is injected into every record via a ContextVar. Output
goes to stderr so documents written to stdout stay clean.
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar

import structlog

_account_context: ContextVar[str | None] = ContextVar("sog_account", default=None)


def set_account_context(email: str | None) -> None:
    """Set the account address for the current context."""
    _account_context.set(email)


def get_account_context() -> str | None:
    return _account_context.get()


def add_account_context(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: dict,
) -> dict:
    """Inject ``account`` key from the ContextVar into the event dict."""
    event_dict["account"] = _account_context.get()
    return event_dict


_NOISE_LOGGERS = ("vobject",)


def _build_processors(time_fmt: str) -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt=time_fmt),
        add_account_context,
        structlog.stdlib.ExtraAdder(),
    ]


def configure_logging(level: str = "WARNING", fmt: str = "text") -> None:
    """Configure structured logging for the process.

    Parameters
    ----------
    level:
        Root log level (e.g. "DEBUG", "INFO", "WARNING").
    fmt:
        Output format: ``"text"`` for colored console, ``"json"`` for JSON lines.
    """
    if fmt == "json":
        processors = _build_processors(time_fmt="iso")
        renderer = structlog.processors.JSONRenderer()
    else:
        processors = _build_processors(time_fmt="%H:%M:%S")
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
        foreign_pre_chain=processors,
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)

    root = logging.getLogger()
    # Remove existing handlers to avoid duplicate output on reconfiguration
    root.handlers.clear()
    root.addHandler(console_handler)
    root.setLevel(getattr(logging, level.upper(), logging.WARNING))

    for name in _NOISE_LOGGERS:
        logging.getLogger(name).setLevel(logging.ERROR)

    structlog.configure(
        processors=[
            *processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
