"""Configuration: XDG paths, environment toggles, and atomic owner-only writes.

This module handles everything ccprofile needs before it can touch a profile:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.ccprofile/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_data_dir`, :func:`get_profiles_dir`. ``CCPROFILE_HOME``
  overrides the profile directory outright.
* **Environment toggles** -- :func:`load_settings` reads ``CCPROFILE_DEBUG``
  and ``CCPROFILE_AUDIT`` into a :class:`~ccprofile.models.Settings`.
* **Atomic writes** -- :func:`atomic_write` writes through a temp file in
  the target directory, restricts it to ``0o600`` before any content is
  written, and renames it into place so that a crash never leaves a torn
  record, pointer, or alias table.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from ccprofile.exceptions import ConfigError
from ccprofile.models import Settings

_APP_NAME = "ccprofile"
_PROFILES_DIRNAME = "profiles"

PROFILE_HOME_ENV = "CCPROFILE_HOME"
DEBUG_ENV = "CCPROFILE_DEBUG"
AUDIT_ENV = "CCPROFILE_AUDIT"

_TRUTHY = frozenset({"1", "true", "yes", "on"})
_FALSY = frozenset({"", "0", "false", "no", "off"})


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory without creating it.

    On Linux/BSD: ``$XDG_CONFIG_HOME/ccprofile/`` (default ``~/.config/ccprofile/``).
    On macOS/Windows: ``~/.ccprofile/``.

    Creation is left to :meth:`~ccprofile.profiles.store.ProfileStore.ensure_directory`
    so that permissions are set in one place.
    """
    if _is_xdg_platform():
        return _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    return _fallback_base_dir()


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/ccprofile/`` (default ``~/.local/share/ccprofile/``).
    On macOS/Windows: ``~/.ccprofile/logs/``.

    Returns:
        Absolute path to the data directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_profiles_dir() -> Path:
    """Return the profile directory.

    ``$CCPROFILE_HOME`` wins when set (for example ``~/.claude/profiles``);
    otherwise ``<config_dir>/profiles``.
    """
    override = os.environ.get(PROFILE_HOME_ENV, "")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _PROFILES_DIRNAME


# --- Environment toggles ---


def _env_flag(name: str) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if raw in _TRUTHY:
        return True
    if raw in _FALSY:
        return False
    raise ConfigError(
        f"Environment variable {name} must be a boolean (true/false, 1/0), got '{raw}'"
    )


def load_settings() -> Settings:
    """Read the debug and audit toggles from the environment.

    Returns:
        A :class:`~ccprofile.models.Settings` instance.

    Raises:
        ConfigError: If either variable holds something other than a boolean.
    """
    return Settings(debug=_env_flag(DEBUG_ENV), audit=_env_flag(AUDIT_ENV))


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Its permissions are
    set to *mode* before any content is written. On any failure the temp
    file is removed and *path* is left untouched.

    Raises:
        OSError: If the file cannot be written (permissions, disk full, etc.).
    """
    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise
