"""Tests for the optional audit log."""

from __future__ import annotations

import logging
import os
import re
import stat

from ccprofile.audit import AuditLog


LINE_RE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] SWITCH: work \(console\)$")


def test_disabled_writes_nothing(tmp_path) -> None:
    log = AuditLog(tmp_path / ".audit.log")
    log.record("SWITCH", "work", "console")
    assert not (tmp_path / ".audit.log").exists()


def test_line_format_and_permissions(tmp_path) -> None:
    path = tmp_path / ".audit.log"
    log = AuditLog(path, enabled=True)
    log.record("SWITCH", "work", "console")
    log.record("REMOVE_ALIAS", "w")
    lines = path.read_text().splitlines()
    assert LINE_RE.match(lines[0])
    assert lines[1].endswith("] REMOVE_ALIAS: w")
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o600


def test_appends(tmp_path) -> None:
    path = tmp_path / ".audit.log"
    AuditLog(path, enabled=True).record("SAVE", "a")
    AuditLog(path, enabled=True).record("SAVE", "b")
    assert len(path.read_text().splitlines()) == 2


def test_write_failure_is_logged_not_raised(tmp_path, caplog) -> None:
    log = AuditLog(tmp_path / "missing-dir" / ".audit.log", enabled=True)
    with caplog.at_level(logging.WARNING, logger="ccprofile.audit"):
        log.record("SAVE", "work")
    assert "Could not write audit log" in caplog.text
