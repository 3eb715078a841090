"""Optional append-only audit trail of profile operations.

Enabled with ``CCPROFILE_AUDIT=true``. Each line reads::

    [2026-10-18 14:02:11] SWITCH: work (console)

The file is created ``0o600`` on first write. Audit failures are logged and
swallowed: losing an audit line must not fail the operation it describes.
"""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)


class AuditLog:
    """Append ``[timestamp] OPERATION: profile (details)`` lines to *path*.

    Args:
        path: Log file location.
        enabled: When False, :meth:`record` does nothing.
    """

    def __init__(self, path: Path, enabled: bool = False) -> None:
        self._path = path
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def path(self) -> Path:
        return self._path

    def record(self, operation: str, profile: str, details: str = "") -> None:
        if not self._enabled:
            return
        line = f"[{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}] {operation}: {profile}"
        if details:
            line += f" ({details})"
        try:
            fd = os.open(self._path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, 0o600)
            with os.fdopen(fd, "a", encoding="utf-8") as fh:
                fh.write(line + "\n")
        except OSError as exc:
            logger.warning("Could not write audit log %s: %s", self._path, exc)
