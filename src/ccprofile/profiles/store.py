"""Profile metadata store: one small JSON record per profile plus side files.

Layout of the profile directory (``0o700``)::

    <name>.json    ProfileRecord (created, auth_method, last_used), 0o600
    .current       name of the profile last switched to, 0o600
    .aliases       alias table, see ccprofile.profiles.aliases, 0o600
    .audit.log     optional audit trail, see ccprofile.audit, 0o600

Every write goes through :func:`~ccprofile.config.atomic_write`, so a
record, the pointer, or the alias table is either the old version or the
new one, never half of each. Secrets are never written here; they live in
the keychain (:mod:`ccprofile.auth.keychain`).
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ccprofile.config import atomic_write
from ccprofile.exceptions import ConfigError
from ccprofile.models import ProfileRecord

logger = logging.getLogger(__name__)

CURRENT_FILENAME = ".current"
ALIASES_FILENAME = ".aliases"
AUDIT_FILENAME = ".audit.log"
RECORD_SUFFIX = ".json"

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_TEXT_FIELDS = ("created", "auth_method", "last_used")


def utc_timestamp(moment: Optional[datetime] = None) -> str:
    """Format *moment* (default: now) as ``YYYY-MM-DDTHH:MM:SSZ``."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


class ProfileStore:
    """Read and write profile records and the current-profile pointer.

    Args:
        root: The profile directory. Nothing is created until
            :meth:`ensure_directory` or a write is called.

    Example::

        store = ProfileStore(Path("~/.config/ccprofile/profiles").expanduser())
        store.ensure_directory()
        store.write("work", ProfileRecord(auth_method="console"))
        store.set_current("work")
    """

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        """The profile directory."""
        return self._root

    @property
    def aliases_path(self) -> Path:
        return self._root / ALIASES_FILENAME

    @property
    def audit_path(self) -> Path:
        return self._root / AUDIT_FILENAME

    @property
    def current_path(self) -> Path:
        return self._root / CURRENT_FILENAME

    def ensure_directory(self) -> None:
        """Create the profile directory if needed and restrict it to the owner.

        The parent directory is tightened too when possible; failure there is
        ignored because it may not belong to this tool.

        Raises:
            ConfigError: If the directory cannot be created.
        """
        try:
            self._root.mkdir(parents=True, exist_ok=True)
            os.chmod(self._root, 0o700)
        except OSError as exc:
            raise ConfigError(f"Cannot create profile directory {self._root}: {exc}") from exc
        try:
            os.chmod(self._root.parent, 0o700)
        except OSError:
            logger.debug("could not restrict permissions on %s", self._root.parent)

    # --- Records ---

    def record_path(self, name: str) -> Path:
        """Path to the record file for profile *name*."""
        return self._root / f"{name}{RECORD_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.record_path(name).is_file()

    def read(self, name: str) -> Optional[ProfileRecord]:
        """Load the record for *name*.

        Returns:
            The record, ``None`` if there is none, or an empty record when
            the file exists but cannot be parsed.
        """
        path = self.record_path(name)
        if not path.is_file():
            return None
        data = self._read_raw(path)
        if data is None:
            return ProfileRecord()
        return ProfileRecord.model_validate(_coerce_fields(data, path.name))

    def _read_raw(self, path: Path) -> Optional[dict[str, Any]]:
        """Return the JSON object stored at *path*, or ``None`` if it is not one."""
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            logger.warning("Profile record %s is unreadable: %s", path.name, exc)
            return None
        if not isinstance(data, dict):
            logger.warning("Profile record %s is not a JSON object", path.name)
            return None
        return data

    def _write_raw(self, name: str, data: dict[str, Any]) -> None:
        self.ensure_directory()
        path = self.record_path(name)
        try:
            atomic_write(path, json.dumps(data, indent=2) + "\n")
        except OSError as exc:
            raise ConfigError(f"Cannot write profile record {path.name}: {exc}") from exc

    def write(self, name: str, record: ProfileRecord) -> None:
        """Atomically persist *record* as profile *name* (``0o600``).

        Raises:
            ConfigError: If the file cannot be written.
        """
        self._write_raw(name, record.model_dump(mode="json", exclude_none=True))

    def set_last_used(self, name: str, timestamp: Optional[str] = None) -> None:
        """Set ``last_used`` in the record, leaving every other key as stored.

        An unreadable record is left alone rather than replaced.
        """
        path = self.record_path(name)
        if path.is_file():
            data = self._read_raw(path)
            if data is None:
                return
        else:
            data = {}
        data["last_used"] = timestamp or utc_timestamp()
        self._write_raw(name, data)

    def delete(self, name: str) -> None:
        """Remove the record for *name*; a missing record is not an error."""
        path = self.record_path(name)
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise ConfigError(f"Cannot remove profile record {path.name}: {exc}") from exc

    def enumerate(self) -> list[str]:
        """Return the names of all saved profiles, sorted alphabetically.

        Hidden files (the pointer, alias table, audit log, and in-flight
        temp files) are skipped.
        """
        if not self._root.is_dir():
            return []
        return sorted(
            p.stem
            for p in self._root.glob(f"*{RECORD_SUFFIX}")
            if p.is_file() and not p.name.startswith(".")
        )

    # --- Current-profile pointer ---

    def get_current(self) -> Optional[str]:
        """Return the name in the pointer file, or ``None`` when unset."""
        try:
            value = self.current_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Cannot read current profile pointer: %s", exc)
            return None
        return value or None

    def set_current(self, name: str) -> None:
        self.ensure_directory()
        try:
            atomic_write(self.current_path, name + "\n")
        except OSError as exc:
            raise ConfigError(f"Cannot write current profile pointer: {exc}") from exc

    def clear_current(self) -> None:
        try:
            self.current_path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise ConfigError(f"Cannot clear current profile pointer: {exc}") from exc


def _coerce_fields(data: dict[str, Any], filename: str) -> dict[str, Any]:
    """Make the known fields of a raw record loadable without dropping the rest.

    Numbers become strings; values that cannot stand in for text are left
    out of the model (and logged) but stay in the file, since
    :meth:`ProfileStore.set_last_used` patches the raw JSON.
    """
    data = dict(data)
    for field in _TEXT_FIELDS:
        value = data.get(field)
        if value is None or isinstance(value, str):
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            data[field] = str(value)
        else:
            logger.warning("Ignoring malformed %r in profile record %s", field, filename)
            del data[field]
    return data
