"""Globally-unique identifiers for new events, tasks and meetings.

Uniqueness is probabilistic: a high-resolution timestamp plus a domain hint.
The storage server is the authority on collisions; callers retry with a
fresh identifier when one is rejected.
"""

from __future__ import annotations

import time

DEFAULT_DOMAIN = "sog.local"
TASK_DOMAIN = "sog"


def new_id(domain_hint: str) -> str:
    """Return ``<nanoseconds>-<seconds>@<domain_hint>``."""
    now_ns = time.time_ns()
    domain = domain_hint.strip() or DEFAULT_DOMAIN
    return f"{now_ns}-{now_ns // 1_000_000_000}@{domain}"


def new_event_id(domain_hint: str) -> str:
    return new_id(domain_hint)


def new_task_id() -> str:
    return f"task-{time.time_ns()}@{TASK_DOMAIN}"


def domain_of(email: str) -> str:
    """Mail domain of *email*, or ``sog.local`` when it has none."""
    local, sep, domain = email.strip().partition("@")
    if not sep or not local or not domain or "@" in domain:
        return DEFAULT_DOMAIN
    return domain
