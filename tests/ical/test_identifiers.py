"""Tests for identifier generation (sog.ical.identifiers)."""

from __future__ import annotations

import re

import pytest

from sog.ical.identifiers import DEFAULT_DOMAIN, domain_of, new_event_id, new_id, new_task_id

pytestmark = pytest.mark.unit


class TestNewId:
    def test_format(self):
        uid = new_id("example.com")
        match = re.fullmatch(r"(\d+)-(\d+)@example\.com", uid)
        assert match is not None
        nanos, seconds = (int(part) for part in match.groups())
        assert nanos // 1_000_000_000 == seconds

    def test_blank_domain_falls_back(self):
        assert new_id("  ").endswith(f"@{DEFAULT_DOMAIN}")

    def test_event_id_uses_domain_hint(self):
        assert new_event_id("example.com").endswith("@example.com")

    def test_task_id(self):
        assert re.fullmatch(r"task-\d+@sog", new_task_id())


class TestDomainOf:
    @pytest.mark.parametrize(
        "email, expected",
        [
            ("alice@example.com", "example.com"),
            (" bob@mail.example.org ", "mail.example.org"),
            ("no-at-sign", DEFAULT_DOMAIN),
            ("trailing@", DEFAULT_DOMAIN),
            ("@leading.example", DEFAULT_DOMAIN),
            ("two@at@signs", DEFAULT_DOMAIN),
            ("", DEFAULT_DOMAIN),
        ],
    )
    def test_domain_of(self, email, expected):
        assert domain_of(email) == expected
