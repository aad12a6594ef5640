"""Tests for the per-project change log."""

from __future__ import annotations

import logging
import re

import pytest

from setrack.storage.changelog import ChangeLog, utc_timestamp
from setrack.storage.documents import DocumentStore


@pytest.fixture
def changelog(tmp_path):
    store = DocumentStore(tmp_path)
    return ChangeLog(store, clock=lambda: "2026-01-01T00:00:00.000Z")


class TestUtcTimestamp:
    def test_iso_format_with_milliseconds_and_z(self):
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z", utc_timestamp())


class TestAppend:
    """Appending lines."""

    def test_creates_file_with_one_line(self, changelog, tmp_path):
        changelog.append("p1", "CREATE project p1")
        content = (tmp_path / "p1.log").read_text(encoding="utf-8")
        assert content == "[2026-01-01T00:00:00.000Z] CREATE project p1\n"

    def test_appends_in_order(self, changelog):
        changelog.append("p1", "CREATE project p1")
        changelog.append("p1", "ADD requirement P1-REQ-001")
        lines = changelog.read("p1").splitlines()
        assert [line.split("] ", 1)[1] for line in lines] == [
            "CREATE project p1",
            "ADD requirement P1-REQ-001",
        ]

    def test_returns_written_line(self, changelog):
        line = changelog.append("p1", "UPDATE project p1 fields: name")
        assert line == "[2026-01-01T00:00:00.000Z] UPDATE project p1 fields: name"

    def test_default_clock_is_utc_now(self, tmp_path):
        changelog = ChangeLog(DocumentStore(tmp_path))
        line = changelog.append("p1", "CREATE project p1")
        assert re.fullmatch(r"\[\d{4}-\d{2}-\d{2}T[\d:.]{12}Z\] CREATE project p1", line)

    def test_logs_are_per_project(self, changelog):
        changelog.append("p1", "one")
        changelog.append("p2", "two")
        assert "two" not in changelog.read("p1")


class TestRead:
    def test_missing_log_is_empty(self, changelog):
        assert changelog.read("nobody") == ""


class TestRemove:
    """Best-effort deletion."""

    def test_removes_existing(self, changelog, tmp_path):
        changelog.append("p1", "CREATE project p1")
        changelog.remove("p1")
        assert not (tmp_path / "p1.log").exists()

    def test_missing_log_is_fine(self, changelog):
        changelog.remove("nobody")

    def test_os_errors_are_logged_not_raised(self, changelog, tmp_path, caplog):
        # A directory in place of the log makes unlink fail
        (tmp_path / "p1.log").mkdir()
        with caplog.at_level(logging.WARNING, logger="setrack.storage.changelog"):
            changelog.remove("p1")
        assert "Could not remove change log" in caplog.text
