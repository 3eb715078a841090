"""Profile lifecycle manager -- save, switch, delete, list, and aliases.

:class:`ProfileManager` is the only component that touches both stores at
once: the keychain (:class:`~ccprofile.auth.keychain.SecretStore`) for
secrets and the profile directory
(:class:`~ccprofile.profiles.store.ProfileStore`,
:class:`~ccprofile.profiles.aliases.AliasTable`) for metadata. Every public
method either returns a result model or raises a
:class:`~ccprofile.exceptions.CcprofileError`; nothing here prints or
prompts directly. Interactive decisions come in through
:class:`~ccprofile.models.ManagerPolicy` and the optional ``confirm``
callable.

A profile moves through ``absent -> saved -> active/inactive -> absent``.
Switching writes the live keychain slot first, then ``last_used``, then the
``.current`` pointer, so an interrupted switch can leave the pointer behind
the live credentials but never ahead of them.

For most use cases, call :func:`create_default_manager`.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from ccprofile.audit import AuditLog
from ccprofile.auth.detector import AuthKindDetector
from ccprofile.auth.health import assess
from ccprofile.auth.keychain import SecretStore
from ccprofile.exceptions import (
    AliasNotFoundError,
    AutoSaveError,
    ConfigError,
    CredentialNotFoundError,
    NoCredentialsError,
    NoTargetError,
    OperationCancelledError,
    ProfileNotFoundError,
    StoreUnavailableError,
    UnknownAuthKindError,
)
from ccprofile.models import (
    AuthKind,
    AutoSaveFailurePolicy,
    ConfirmOverwrite,
    CurrentStatus,
    DeleteResult,
    HealthBucket,
    ManagerPolicy,
    ProfileRecord,
    ProfileRow,
    SaveResult,
    ServiceNames,
    Settings,
    SwitchResult,
)
from ccprofile.profiles.aliases import AliasTable
from ccprofile.profiles.naming import validate_name
from ccprofile.profiles.store import TIMESTAMP_FORMAT, ProfileStore, utc_timestamp

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]


def format_date(value: Optional[str]) -> str:
    """Render a stored ISO timestamp as ``Mon DD``; ``unknown`` if absent or unparseable."""
    if not value:
        return "unknown"
    try:
        moment = datetime.strptime(value, TIMESTAMP_FORMAT)
    except ValueError:
        try:
            moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return "unknown"
    return moment.strftime("%b %d")


class ProfileManager:
    """Orchestrates every profile operation.

    Args:
        store: Profile records and the current-profile pointer.
        aliases: Alias table.
        secrets: Keychain adapter.
        services: Keychain service names and the live-slot account.
        audit: Audit log (may be disabled).
        policy: Overwrite and auto-save-failure decisions.
        confirm: Asks the user a yes/no question. Used only where the
            policy says ``prompt``; when ``None`` the answer is "no".

    Example::

        manager = create_default_manager()
        manager.save("work", aliases=["w"])
        manager.switch("w")
    """

    def __init__(
        self,
        store: ProfileStore,
        aliases: AliasTable,
        secrets: SecretStore,
        services: Optional[ServiceNames] = None,
        audit: Optional[AuditLog] = None,
        policy: Optional[ManagerPolicy] = None,
        confirm: Optional[Confirm] = None,
    ) -> None:
        self.store = store
        self.aliases = aliases
        self.secrets = secrets
        self.services = services or ServiceNames()
        self.audit = audit or AuditLog(store.audit_path, enabled=False)
        self.policy = policy or ManagerPolicy()
        self.detector = AuthKindDetector(secrets, store, self.services)
        self._confirm = confirm

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _ask(self, question: str) -> bool:
        if self._confirm is None:
            return False
        return self._confirm(question)

    def resolve(self, name_or_alias: str) -> str:
        """Validate *name_or_alias*, follow aliases, and validate the result."""
        validate_name(name_or_alias)
        name = self.aliases.resolve(name_or_alias, self.store.exists)
        return validate_name(name)

    def _require_profile(self, name_or_alias: str) -> str:
        name = self.resolve(name_or_alias)
        if not self.store.exists(name):
            raise ProfileNotFoundError(f"Profile '{name}' not found")
        return name

    def _live_secret(self, kind: AuthKind) -> Optional[str]:
        return self.secrets.get(self.services.account, self.services.live_service(kind))

    # ------------------------------------------------------------------ #
    # save
    # ------------------------------------------------------------------ #

    def save(self, name: Optional[str] = None, aliases: Iterable[str] = ()) -> SaveResult:
        """Save the live Claude Code credentials as profile *name*.

        Without *name*, the current profile is re-saved; if it already has a
        record the overwrite goes through :attr:`ManagerPolicy.confirm_overwrite`.

        Raises:
            NoTargetError: No *name* and no current profile.
            InvalidNameError: *name* or an alias breaks the naming rules.
            NoCredentialsError: Claude Code holds no credentials to save.
            StoreUnavailableError: The keychain could not be used.
            ConfigError: The profile record could not be written; the backup
                secret is put back as it was.
        """
        aliases = list(aliases)
        implicit = not name
        if implicit:
            name = self.store.get_current()
            if not name:
                raise NoTargetError(
                    "No profile name specified and no current profile active. "
                    "Usage: ccprofile save <name> [aliases...]"
                )

        validate_name(name)
        for alias in aliases:
            validate_name(alias, kind="Alias")

        existing = self.store.read(name)
        if implicit and existing is not None and not self._may_overwrite(name):
            logger.debug("overwrite of %r declined", name)
            return SaveResult(profile=name, cancelled=True, implicit=True)

        self.store.ensure_directory()

        kind = self.detector.detect_live()
        if kind == AuthKind.NONE:
            raise NoCredentialsError(
                "No Claude authentication found. Please authenticate Claude Code first."
            )

        secret = self._live_secret(kind)
        if secret is None:
            raise NoCredentialsError(f"Could not retrieve the live {kind.value} credentials")
        previous_secret = self.secrets.get(name, self.services.backup)
        self.secrets.save(name, self.services.backup, secret)

        now = utc_timestamp()
        record = existing.model_copy() if existing is not None else ProfileRecord()
        record.created = record.created or now
        record.auth_method = kind.value
        record.last_used = now
        try:
            self.store.write(name, record)
        except ConfigError:
            self._restore_backup(name, previous_secret)
            raise
        self.audit.record("SAVE", name, kind.value)

        for alias in aliases:
            self.aliases.set(alias, name)
            self.audit.record("ADD_ALIAS", alias, f"-> {name}")

        return SaveResult(
            profile=name,
            auth_kind=kind,
            aliases=aliases,
            overwritten=existing is not None,
            implicit=implicit,
        )

    def _restore_backup(self, name: str, previous_secret: Optional[str]) -> None:
        """Put the backup slot back the way it was before a failed save."""
        try:
            if previous_secret is None:
                self.secrets.delete(name, self.services.backup)
            else:
                self.secrets.save(name, self.services.backup, previous_secret)
        except StoreUnavailableError:
            logger.warning("Could not roll back the stored credentials for '%s'", name)

    def _may_overwrite(self, name: str) -> bool:
        mode = self.policy.confirm_overwrite
        if mode == ConfirmOverwrite.ALWAYS:
            return True
        if mode == ConfirmOverwrite.NEVER:
            return False
        return self._ask(f"Profile '{name}' already exists. Overwrite existing credentials?")

    # ------------------------------------------------------------------ #
    # switch
    # ------------------------------------------------------------------ #

    def switch(self, name_or_alias: str) -> SwitchResult:
        """Make profile *name_or_alias* the live Claude Code credential.

        Everything that can fail for the target is checked before anything
        is written. Then, if a different subscription profile is current,
        its live (possibly refreshed) token bundle is saved back first.

        Raises:
            InvalidNameError: The name or its alias target is invalid.
            ProfileNotFoundError: No such profile.
            UnknownAuthKindError: The profile's auth kind is not recognised.
            CredentialNotFoundError: The profile's secret is gone from the keychain.
            AutoSaveError: Auto-save failed and the policy is ``abort``.
            OperationCancelledError: Auto-save failed and the user declined to continue.
            StoreUnavailableError: The keychain could not be used.
        """
        name = self._require_profile(name_or_alias)

        kind = self.detector.detect_profile(name)
        if kind not in (AuthKind.CONSOLE, AuthKind.SUBSCRIPTION):
            raise UnknownAuthKindError(
                f"Unknown authentication type '{kind.value}' for profile '{name}'"
            )
        secret = self.secrets.get(name, self.services.backup)
        if secret is None:
            raise CredentialNotFoundError(f"Could not retrieve credentials for profile '{name}'")

        result = SwitchResult(profile=name, auth_kind=kind)
        previous = self.store.get_current()
        if previous and previous != name:
            result.previous = previous
            self._auto_save_before_switch(previous, result)

        if kind == AuthKind.SUBSCRIPTION:
            health = assess(secret)
            if health.bucket == HealthBucket.EXPIRED:
                result.notices.append(
                    f"Token for profile '{name}' has expired ({health.label}). "
                    "You may encounter authentication errors."
                )
            elif health.bucket == HealthBucket.EXPIRES_SOON:
                result.notices.append(f"Token for profile '{name}' {health.label}")

        account = self.services.account
        self.secrets.save(account, self.services.live_service(kind), secret)
        other = self.services.other_live_service(kind)
        try:
            self.secrets.delete(account, other)
        except StoreUnavailableError:
            other_kind = "subscription" if kind == AuthKind.CONSOLE else "console"
            result.notices.append(
                f"Failed to clear the live {other_kind} credentials; consider restarting Claude Code"
            )

        self.store.set_last_used(name)
        self.store.set_current(name)
        self.audit.record("SWITCH", name, kind.value)
        return result

    def _auto_save_before_switch(self, previous: str, result: SwitchResult) -> None:
        if not self.store.exists(previous):
            return
        try:
            if self.detector.detect_profile(previous) != AuthKind.SUBSCRIPTION:
                return
            result.auto_saved = self._capture_live_bundle(previous)
        except (NoCredentialsError, StoreUnavailableError) as exc:
            self._handle_auto_save_failure(previous, str(exc), result)

    def _capture_live_bundle(self, profile: str) -> bool:
        """Copy the live token bundle into *profile*'s backup if it changed.

        Returns:
            True if the backup was rewritten, False if it was already current.
        """
        live = self._live_secret(AuthKind.SUBSCRIPTION)
        if live is None:
            raise NoCredentialsError("No live subscription credentials found")
        try:
            parsed = json.loads(live)
        except (json.JSONDecodeError, ValueError):
            parsed = None
        if not isinstance(parsed, dict):
            raise NoCredentialsError("Live credentials are not a valid OAuth token bundle")

        if self.secrets.get(profile, self.services.backup) == live:
            logger.debug("live token bundle for %r unchanged; skipping auto-save", profile)
            return False
        self.secrets.save(profile, self.services.backup, live)
        self.audit.record("AUTO_SAVE", profile)
        return True

    def _handle_auto_save_failure(self, previous: str, reason: str, result: SwitchResult) -> None:
        message = f"Could not save current credentials for '{previous}': {reason}"
        mode = self.policy.on_auto_save_failure
        if mode == AutoSaveFailurePolicy.ABORT:
            raise AutoSaveError(f"{message}. Switch aborted.")
        if mode == AutoSaveFailurePolicy.PROMPT and not self._ask(f"{message}. Continue switching?"):
            raise OperationCancelledError("Switch cancelled.")
        logger.info(message)
        result.notices.append(f"{message}. Proceeding anyway.")

    # ------------------------------------------------------------------ #
    # current / delete / list
    # ------------------------------------------------------------------ #

    def current(self) -> CurrentStatus:
        """Report the current profile pointer and the live auth kind."""
        live = self.detector.detect_live()
        name = self.store.get_current()
        if name:
            label = name
        elif live != AuthKind.NONE:
            label = f"(unnamed {live.value})"
        else:
            label = "(no authentication)"
        return CurrentStatus(profile=name, label=label, live_auth=live)

    def delete(self, name_or_alias: str) -> DeleteResult:
        """Remove a profile's backup secret, its record, and the pointer if it was current.

        Aliases that point at the profile are left alone and reported in
        :attr:`DeleteResult.dangling_aliases`.

        Raises:
            InvalidNameError: The name or its alias target is invalid.
            ProfileNotFoundError: No such profile.
        """
        name = self._require_profile(name_or_alias)
        kind = self.detector.detect_profile(name)
        result = DeleteResult(profile=name, auth_kind=kind)

        # The backup goes whatever the kind; a profile of unknown kind may still hold one.
        try:
            self.secrets.delete(name, self.services.backup)
        except StoreUnavailableError:
            result.notices.append(
                f"Could not remove the stored credentials for '{name}' from the keychain"
            )

        self.store.delete(name)
        if self.store.get_current() == name:
            self.store.clear_current()
            result.was_current = True

        result.dangling_aliases = self.aliases.aliases_for(name)
        self.audit.record("DELETE", name, kind.value)
        return result

    def list_profiles(self) -> list[ProfileRow]:
        """Build one :class:`ProfileRow` per saved profile. Never writes."""
        current = self.store.get_current()
        alias_table = self.aliases.load()
        rows: list[ProfileRow] = []
        for name in self.store.enumerate():
            record = self.store.read(name) or ProfileRecord()
            kind = self.detector.detect_profile(name)
            rows.append(
                ProfileRow(
                    name=name,
                    aliases=[a for a, target in alias_table.items() if target == name],
                    auth_kind=kind,
                    created=format_date(record.created),
                    last_used=format_date(record.last_used),
                    status=self._status(name, kind),
                    is_current=name == current,
                )
            )
        return rows

    def _status(self, name: str, kind: AuthKind) -> str:
        if kind not in (AuthKind.CONSOLE, AuthKind.SUBSCRIPTION):
            return "n/a"
        secret = self.secrets.get(name, self.services.backup)
        if secret is None:
            return "missing"
        if kind == AuthKind.CONSOLE:
            return "ready"
        return assess(secret).label

    # ------------------------------------------------------------------ #
    # Aliases
    # ------------------------------------------------------------------ #

    def add_alias(self, alias: str, name: str) -> None:
        """Point *alias* at the existing profile *name*.

        Raises:
            InvalidNameError: Either name breaks the naming rules.
            ProfileNotFoundError: *name* has no record.
        """
        validate_name(alias, kind="Alias")
        validate_name(name)
        if not self.store.exists(name):
            raise ProfileNotFoundError(f"Profile '{name}' not found")
        self.store.ensure_directory()
        self.aliases.set(alias, name)
        self.audit.record("ADD_ALIAS", alias, f"-> {name}")

    def list_aliases(self) -> list[tuple[str, str]]:
        """Return ``(alias, profile)`` pairs in file order."""
        return self.aliases.items()

    def remove_alias(self, alias: str) -> None:
        """Delete *alias*.

        Raises:
            InvalidNameError: *alias* breaks the naming rules.
            AliasNotFoundError: *alias* is not defined.
        """
        validate_name(alias, kind="Alias")
        if not self.aliases.remove(alias):
            raise AliasNotFoundError(f"Alias '{alias}' not found")
        self.audit.record("REMOVE_ALIAS", alias)


def create_default_manager(
    settings: Optional[Settings] = None,
    policy: Optional[ManagerPolicy] = None,
    confirm: Optional[Confirm] = None,
) -> ProfileManager:
    """Create a :class:`ProfileManager` over the user's profile directory and keychain.

    Args:
        settings: Environment toggles; read with
            :func:`~ccprofile.config.load_settings` when omitted.
        policy: Interactive decisions, see :class:`~ccprofile.models.ManagerPolicy`.
        confirm: Yes/no prompt used when *policy* says ``prompt``.
    """
    from ccprofile.config import get_profiles_dir, load_settings

    settings = settings or load_settings()
    store = ProfileStore(get_profiles_dir())
    return ProfileManager(
        store=store,
        aliases=AliasTable(store.aliases_path),
        secrets=SecretStore(),
        services=ServiceNames(),
        audit=AuditLog(store.audit_path, enabled=settings.audit),
        policy=policy,
        confirm=confirm,
    )
