"""Canonical Pydantic models shared across all ccprofile modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Persisted models** -- serialised as JSON in the profile directory:
    :class:`ProfileRecord`.

**Configuration models** -- built from the environment and CLI flags:
    :class:`Settings`, :class:`ServiceNames`, :class:`ManagerPolicy`,
    :class:`ConfirmOverwrite`, and :class:`AutoSaveFailurePolicy`.

**Result models** -- returned by :class:`~ccprofile.profiles.manager.ProfileManager`
operations and rendered by the CLI:
    :class:`AuthKind`, :class:`HealthBucket`, :class:`TokenHealth`,
    :class:`SaveResult`, :class:`SwitchResult`, :class:`DeleteResult`,
    :class:`CurrentStatus`, and :class:`ProfileRow`.

All models use Pydantic v2.
"""

from __future__ import annotations

import enum
import getpass
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Enumerations ---


class AuthKind(str, enum.Enum):
    """Authentication kind of a live credential or a saved profile.

    The string values are what the profile records store under
    ``auth_method``; ``console`` is a static API key and ``subscription``
    is an OAuth token bundle.
    """

    NONE = "none"
    CONSOLE = "console"
    SUBSCRIPTION = "subscription"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["AuthKind"]:
        """Map a stored ``auth_method`` string to a member, or ``None`` if empty."""
        if not value or value == "null":
            return None
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class HealthBucket(str, enum.Enum):
    """Classification of a stored credential's remaining lifetime."""

    VALID = "valid"
    EXPIRES_IN = "expires-in"
    EXPIRES_SOON = "expires-soon"
    EXPIRED = "expired"
    UNKNOWN = "unknown"
    INVALID = "invalid"
    NOT_APPLICABLE = "n/a"


class ConfirmOverwrite(str, enum.Enum):
    """What ``save`` does when an implicit target already has a record."""

    PROMPT = "prompt"
    ALWAYS = "always"
    NEVER = "never"


class AutoSaveFailurePolicy(str, enum.Enum):
    """What ``switch`` does when the auto-save safety step fails."""

    PROCEED = "proceed"
    PROMPT = "prompt"
    ABORT = "abort"


# --- Persisted ---


class ProfileRecord(BaseModel):
    """Metadata stored in ``<profile>.json``.

    Every field is optional so that records written by older versions, or
    by hand, still load. Unknown keys are preserved on rewrite.
    """

    model_config = ConfigDict(extra="allow")

    created: Optional[str] = Field(default=None, description="UTC ISO-8601 creation time")
    auth_method: Optional[str] = Field(
        default=None, description="Auth kind detected at save time: console or subscription"
    )
    last_used: Optional[str] = Field(default=None, description="UTC ISO-8601 last switch/save time")


# --- Configuration ---


class Settings(BaseModel):
    """Runtime toggles read from the environment by :func:`~ccprofile.config.load_settings`."""

    debug: bool = Field(default=False, description="CCPROFILE_DEBUG: verbose diagnostics")
    audit: bool = Field(default=False, description="CCPROFILE_AUDIT: append to the audit log")


class ServiceNames(BaseModel):
    """Keychain service identifiers and the account used for the live slots.

    Claude Code reads its static API key from ``live_api_key`` and its OAuth
    bundle from ``live_oauth``, both under the OS user's account. Profile
    backups live under ``backup`` with the profile name as account.
    """

    backup: str = "Claude Profile Manager"
    live_api_key: str = "Claude Code"
    live_oauth: str = "Claude Code-credentials"
    account: str = Field(default_factory=getpass.getuser)

    def live_service(self, kind: AuthKind) -> str:
        """Return the live slot service that holds credentials of *kind*."""
        if kind == AuthKind.CONSOLE:
            return self.live_api_key
        if kind == AuthKind.SUBSCRIPTION:
            return self.live_oauth
        raise ValueError(f"No live credential slot for auth kind '{kind.value}'")

    def other_live_service(self, kind: AuthKind) -> str:
        """Return the live slot service that must be cleared when *kind* is active."""
        if kind == AuthKind.CONSOLE:
            return self.live_oauth
        return self.live_api_key


class ManagerPolicy(BaseModel):
    """Decisions the CLI makes interactively, expressed as data for the manager."""

    confirm_overwrite: ConfirmOverwrite = ConfirmOverwrite.PROMPT
    on_auto_save_failure: AutoSaveFailurePolicy = AutoSaveFailurePolicy.PROCEED


# --- Results ---


class TokenHealth(BaseModel):
    """Health bucket plus the human-readable label shown in ``list``."""

    bucket: HealthBucket
    label: str


class SaveResult(BaseModel):
    profile: str
    auth_kind: AuthKind = AuthKind.NONE
    aliases: list[str] = Field(default_factory=list)
    overwritten: bool = False
    cancelled: bool = False
    implicit: bool = False


class SwitchResult(BaseModel):
    profile: str
    auth_kind: AuthKind
    previous: Optional[str] = None
    auto_saved: bool = False
    notices: list[str] = Field(default_factory=list)


class DeleteResult(BaseModel):
    profile: str
    auth_kind: AuthKind
    was_current: bool = False
    dangling_aliases: list[str] = Field(default_factory=list)
    notices: list[str] = Field(default_factory=list)


class CurrentStatus(BaseModel):
    """Answer to ``ccprofile current``.

    ``profile`` is the pointer value; ``label`` is what to display, which
    falls back to ``(unnamed <kind>)`` or ``(no authentication)``.
    """

    profile: Optional[str] = None
    label: str
    live_auth: AuthKind


class ProfileRow(BaseModel):
    """One row of the ``list`` table."""

    name: str
    aliases: list[str] = Field(default_factory=list)
    auth_kind: AuthKind
    created: str
    last_used: str
    status: str
    is_current: bool = False

    @property
    def display_name(self) -> str:
        if not self.aliases:
            return self.name
        return f"{self.name} ({', '.join(self.aliases)})"
