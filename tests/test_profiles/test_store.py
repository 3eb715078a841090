"""Tests for the profile metadata store and the current-profile pointer."""

from __future__ import annotations

import errno
import json
import os
import stat
from datetime import datetime, timezone

import pytest

from ccprofile.exceptions import ConfigError
from ccprofile.models import ProfileRecord
from ccprofile.profiles.store import ProfileStore, utc_timestamp


def _mode(path) -> int:
    return stat.S_IMODE(os.stat(path).st_mode)


class TestRecords:
    def test_read_missing(self, profile_store: ProfileStore) -> None:
        assert profile_store.read("work") is None
        assert not profile_store.exists("work")

    def test_write_then_read(self, profile_store: ProfileStore) -> None:
        record = ProfileRecord(created="2026-01-02T03:04:05Z", auth_method="console")
        profile_store.write("work", record)
        loaded = profile_store.read("work")
        assert loaded is not None
        assert loaded.created == "2026-01-02T03:04:05Z"
        assert loaded.auth_method == "console"
        assert loaded.last_used is None

    def test_file_is_plain_json_without_nulls(self, profile_store: ProfileStore) -> None:
        profile_store.write("work", ProfileRecord(auth_method="subscription"))
        data = json.loads(profile_store.record_path("work").read_text())
        assert data == {"auth_method": "subscription"}

    def test_unknown_keys_survive_rewrite(self, profile_store: ProfileStore) -> None:
        profile_store.ensure_directory()
        profile_store.record_path("work").write_text(json.dumps({"auth_method": "console", "note": "hi"}))
        profile_store.set_last_used("work", "2026-05-05T00:00:00Z")
        data = json.loads(profile_store.record_path("work").read_text())
        assert data["note"] == "hi"
        assert data["last_used"] == "2026-05-05T00:00:00Z"

    def test_corrupt_record_reads_empty(self, profile_store: ProfileStore) -> None:
        profile_store.ensure_directory()
        profile_store.record_path("work").write_text("{nope")
        assert profile_store.read("work") == ProfileRecord()
        assert profile_store.exists("work")

    def test_corrupt_record_is_not_rewritten(self, profile_store: ProfileStore) -> None:
        profile_store.ensure_directory()
        profile_store.record_path("work").write_text("{nope")
        profile_store.set_last_used("work", "2026-05-05T00:00:00Z")
        assert profile_store.record_path("work").read_text() == "{nope"

    def test_wrong_typed_field_keeps_the_rest(self, profile_store: ProfileStore) -> None:
        profile_store.ensure_directory()
        raw = {"created": 12345, "auth_method": "console", "note": "keep"}
        profile_store.record_path("work").write_text(json.dumps(raw))

        loaded = profile_store.read("work")
        assert loaded.auth_method == "console"
        assert loaded.created == "12345"

        profile_store.set_last_used("work", "2026-05-05T00:00:00Z")
        data = json.loads(profile_store.record_path("work").read_text())
        assert data == {**raw, "last_used": "2026-05-05T00:00:00Z"}

    def test_unusable_field_is_dropped_from_the_model_only(self, profile_store: ProfileStore) -> None:
        profile_store.ensure_directory()
        profile_store.record_path("work").write_text(
            json.dumps({"auth_method": ["console"], "created": "2026-01-01T00:00:00Z"})
        )
        loaded = profile_store.read("work")
        assert loaded.auth_method is None
        assert loaded.created == "2026-01-01T00:00:00Z"

    def test_delete_is_idempotent(self, profile_store: ProfileStore) -> None:
        profile_store.write("work", ProfileRecord())
        profile_store.delete("work")
        profile_store.delete("work")
        assert not profile_store.exists("work")

    def test_utc_timestamp_format(self) -> None:
        moment = datetime(2026, 10, 18, 9, 5, 3, tzinfo=timezone.utc)
        assert utc_timestamp(moment) == "2026-10-18T09:05:03Z"


class TestPermissions:
    def test_directory_and_record_are_owner_only(self, profile_store: ProfileStore) -> None:
        profile_store.write("work", ProfileRecord())
        assert _mode(profile_store.root) == 0o700
        assert _mode(profile_store.record_path("work")) == 0o600

    def test_pointer_is_owner_only(self, profile_store: ProfileStore) -> None:
        profile_store.set_current("work")
        assert _mode(profile_store.current_path) == 0o600


class TestEnumerate:
    def test_empty_when_directory_missing(self, profile_store: ProfileStore) -> None:
        assert profile_store.enumerate() == []

    def test_sorted_and_skips_side_files(self, profile_store: ProfileStore) -> None:
        for name in ["zeta", "alpha", "mid"]:
            profile_store.write(name, ProfileRecord())
        profile_store.set_current("alpha")
        (profile_store.root / ".aliases").write_text("a=alpha\n")
        (profile_store.root / ".zeta.json.x1y2.tmp").write_text("{")
        (profile_store.root / "notes.txt").write_text("hi")
        assert profile_store.enumerate() == ["alpha", "mid", "zeta"]


class TestInterruptedWrite:
    def test_failed_rename_leaves_record_intact(self, profile_store, monkeypatch) -> None:
        profile_store.write("work", ProfileRecord(created="2026-01-01T00:00:00Z", auth_method="console"))
        path = profile_store.record_path("work")
        before = path.read_bytes()

        def _boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("ccprofile.config.os.replace", _boom)
        with pytest.raises(ConfigError, match="Cannot write profile record work.json: disk full"):
            profile_store.write("work", ProfileRecord(auth_method="subscription"))

        assert path.read_bytes() == before
        assert [p.name for p in profile_store.root.iterdir()] == ["work.json"]

    def test_failed_pointer_write_is_config_error(self, profile_store, monkeypatch) -> None:
        def _boom(src, dst):
            raise OSError(errno.ENOSPC, "No space left on device")

        monkeypatch.setattr("ccprofile.config.os.replace", _boom)
        with pytest.raises(ConfigError, match="current profile pointer"):
            profile_store.set_current("work")

    def test_stray_temp_file_is_ignored(self, profile_store: ProfileStore) -> None:
        profile_store.write("work", ProfileRecord(auth_method="console"))
        (profile_store.root / ".work.json.abc123.tmp").write_text('{"auth_method": "subs')
        assert profile_store.enumerate() == ["work"]
        assert profile_store.read("work").auth_method == "console"


class TestCurrentPointer:
    def test_unset(self, profile_store: ProfileStore) -> None:
        assert profile_store.get_current() is None

    def test_set_get_clear(self, profile_store: ProfileStore) -> None:
        profile_store.set_current("work")
        assert profile_store.get_current() == "work"
        assert profile_store.current_path.read_text() == "work\n"
        profile_store.clear_current()
        assert profile_store.get_current() is None
        profile_store.clear_current()

    def test_blank_pointer_is_unset(self, profile_store: ProfileStore) -> None:
        profile_store.ensure_directory()
        profile_store.current_path.write_text("\n")
        assert profile_store.get_current() is None
