"""Validation rules shared by profile names and alias names.

Profile names become file names in the profile directory and keychain
account names, so the rules keep them to a portable, non-hidden character
set and keep them away from the files the store itself uses.
"""

from __future__ import annotations

import re

from ccprofile.exceptions import InvalidNameError

MAX_NAME_LENGTH = 50

_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")

# Internal side files (.current, .aliases, .audit.log), temp prefixes, and
# device names that Windows refuses as file names.
RESERVED_NAMES = frozenset(
    {".", "..", "current", "aliases", "audit", "tmp", "temp", "con", "prn", "aux", "nul"}
)


def validate_name(name: str, kind: str = "Profile") -> str:
    """Check *name* against the naming rules and return it unchanged.

    Args:
        name: Candidate profile or alias name.
        kind: ``"Profile"`` or ``"Alias"``; used to prefix the error message.

    Returns:
        *name*, so callers can validate inline.

    Raises:
        InvalidNameError: With a message naming the specific rule broken.
    """
    if not name:
        raise InvalidNameError(f"{kind} name cannot be empty")
    if name.startswith("."):
        raise InvalidNameError(f"{kind} name cannot start with a dot")
    if not _NAME_RE.match(name):
        raise InvalidNameError(
            f"{kind} name '{name}' can only contain letters, numbers, dashes, and underscores"
        )
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidNameError(f"{kind} name cannot exceed {MAX_NAME_LENGTH} characters")
    if name.lower() in RESERVED_NAMES:
        raise InvalidNameError(f"'{name}' is a reserved {kind.lower()} name")
    return name


def is_valid_name(name: str) -> bool:
    """Return True if *name* passes :func:`validate_name`."""
    try:
        validate_name(name)
    except InvalidNameError:
        return False
    return True
