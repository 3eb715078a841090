"""Alias table: short names that resolve to profile names.

Stored as ``alias=target`` lines in ``.aliases`` inside the profile
directory. Keys are unique; when a file carries a key twice (hand edits,
older versions) the later line wins. Every change rewrites the whole file
through :func:`~ccprofile.config.atomic_write`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from ccprofile.config import atomic_write
from ccprofile.exceptions import ConfigError

logger = logging.getLogger(__name__)


class AliasTable:
    """Load, resolve, and edit the alias file at *path*."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, str]:
        """Return the alias mapping; an absent file is an empty table."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        table: dict[str, str] = {}
        for line in text.splitlines():
            alias, sep, target = line.strip().partition("=")
            if not sep or not alias or not target:
                if line.strip():
                    logger.debug("skipping malformed alias line %r", line)
                continue
            table.pop(alias, None)
            table[alias] = target
        return table

    def items(self) -> list[tuple[str, str]]:
        return list(self.load().items())

    def resolve(self, name: str, exists: Callable[[str], bool]) -> str:
        """Map *name* to a profile name.

        A profile called *name* always wins; otherwise the alias target is
        returned; otherwise *name* itself.
        """
        if exists(name):
            return name
        return self.load().get(name, name)

    def aliases_for(self, target: str) -> list[str]:
        """Return the aliases pointing at *target*, in file order."""
        return [alias for alias, dest in self.load().items() if dest == target]

    def set(self, alias: str, target: str) -> None:
        """Point *alias* at *target*, replacing any previous mapping for *alias*."""
        table = self.load()
        table.pop(alias, None)
        table[alias] = target
        self._save(table)

    def remove(self, alias: str) -> bool:
        """Drop *alias*; return False if it was not defined."""
        table = self.load()
        if alias not in table:
            return False
        del table[alias]
        self._save(table)
        return True

    def _save(self, table: dict[str, str]) -> None:
        text = "".join(f"{alias}={target}\n" for alias, target in table.items())
        try:
            atomic_write(self._path, text)
        except OSError as exc:
            raise ConfigError(f"Cannot write alias table {self._path.name}: {exc}") from exc
