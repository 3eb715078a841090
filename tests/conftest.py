"""Shared test fixtures for ccprofile.

Provides an in-memory keyring backend, an isolated profile directory, a
ready-made :class:`~ccprofile.profiles.manager.ProfileManager`, output
state management, and a CLI runner. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path

import keyring
import pytest
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from ccprofile.auth.keychain import SecretStore
from ccprofile.models import ServiceNames
from ccprofile.output import reset_output
from ccprofile.profiles.aliases import AliasTable
from ccprofile.profiles.manager import ProfileManager
from ccprofile.profiles.store import ProfileStore


ACCOUNT = "tester"

API_KEY = "sk-ant-api03-" + "x" * 95
OTHER_API_KEY = "sk-ant-api03-" + "y" * 95


def make_bundle(expires_in: int = 30 * 24 * 3600, token: str = "access-1") -> str:
    """A subscription token bundle expiring *expires_in* seconds from now."""
    expires_ms = int(time.time() + expires_in) * 1000
    return json.dumps(
        {
            "claudeAiOauth": {
                "accessToken": token,
                "refreshToken": f"refresh-{token}",
                "expiresAt": expires_ms,
            }
        }
    )


# ---------------------------------------------------------------------------
# Keyring backend
# ---------------------------------------------------------------------------


class MemoryKeyring(KeyringBackend):
    """Dictionary-backed keyring.

    ``failing`` holds operation names (``get``, ``set``, ``delete``) that
    should raise a :class:`~keyring.errors.KeyringError` whose message
    contains ``backend-detail`` so tests can check it never leaks.
    """

    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.entries: dict[tuple[str, str], str] = {}
        self.failing: set[str] = set()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failing:
            raise KeyringError(f"backend-detail: {operation} refused by daemon")

    def get_password(self, service: str, username: str) -> str | None:
        self._maybe_fail("get")
        return self.entries.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self._maybe_fail("set")
        self.entries[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        self._maybe_fail("delete")
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise PasswordDeleteError("Password not found") from None

    def list_accounts(self, service: str) -> list[str]:
        return [user for (svc, user) in self.entries if svc == service]


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and the package logger after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time; CliRunner swaps those streams per invocation. The CLI
    callback also stops ``ccprofile`` log records from propagating, which
    would hide them from ``caplog``.
    """
    yield
    reset_output()
    logger = logging.getLogger("ccprofile")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_keyring() -> MemoryKeyring:
    return MemoryKeyring()


@pytest.fixture
def services() -> ServiceNames:
    return ServiceNames(account=ACCOUNT)


@pytest.fixture
def secret_store(memory_keyring: MemoryKeyring) -> SecretStore:
    """SecretStore over the in-memory backend, without the read-time floor."""
    return SecretStore(backend=memory_keyring, min_read_seconds=0)


@pytest.fixture
def profile_store(tmp_path: Path) -> ProfileStore:
    return ProfileStore(tmp_path / "profiles")


@pytest.fixture
def manager(
    profile_store: ProfileStore, secret_store: SecretStore, services: ServiceNames
) -> ProfileManager:
    return ProfileManager(
        store=profile_store,
        aliases=AliasTable(profile_store.aliases_path),
        secrets=secret_store,
        services=services,
    )


@pytest.fixture
def live(memory_keyring: MemoryKeyring, services: ServiceNames):
    """Helpers to put credentials into, and read them from, the live slots."""

    class Live:
        def console(self, key: str = API_KEY) -> None:
            memory_keyring.entries.pop((services.live_oauth, ACCOUNT), None)
            memory_keyring.entries[(services.live_api_key, ACCOUNT)] = key

        def subscription(self, bundle: str | None = None) -> str:
            bundle = bundle or make_bundle()
            memory_keyring.entries.pop((services.live_api_key, ACCOUNT), None)
            memory_keyring.entries[(services.live_oauth, ACCOUNT)] = bundle
            return bundle

        def logout(self) -> None:
            memory_keyring.entries.pop((services.live_api_key, ACCOUNT), None)
            memory_keyring.entries.pop((services.live_oauth, ACCOUNT), None)

        @property
        def api_key(self) -> str | None:
            return memory_keyring.entries.get((services.live_api_key, ACCOUNT))

        @property
        def oauth(self) -> str | None:
            return memory_keyring.entries.get((services.live_oauth, ACCOUNT))

        def backup(self, profile: str) -> str | None:
            return memory_keyring.entries.get((services.backup, profile))

    return Live()


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, memory_keyring: MemoryKeyring
) -> Path:
    """Isolate the CLI: profile directory, XDG dirs, OS user, and keyring.

    Returns:
        The profile directory used by the CLI.
    """
    profiles_dir = tmp_path / "profiles"
    monkeypatch.setenv("CCPROFILE_HOME", str(profiles_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("LOGNAME", ACCOUNT)
    monkeypatch.setenv("USER", ACCOUNT)
    monkeypatch.setenv("NO_COLOR", "1")
    monkeypatch.delenv("CCPROFILE_DEBUG", raising=False)
    monkeypatch.delenv("CCPROFILE_AUDIT", raising=False)
    monkeypatch.setattr(keyring, "get_keyring", lambda: memory_keyring)
    return profiles_dir


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
