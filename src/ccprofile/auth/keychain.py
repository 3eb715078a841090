"""Secure store adapter over the OS credential store.

:class:`SecretStore` wraps a :mod:`keyring` backend (macOS Keychain,
freedesktop Secret Service, Windows Credential Locker) behind four
operations keyed by ``(account, service)``: :meth:`~SecretStore.save`,
:meth:`~SecretStore.get`, :meth:`~SecretStore.delete`, and
:meth:`~SecretStore.list_accounts`.

Two guarantees hold for every caller:

* Reads take at least :data:`MIN_READ_SECONDS` of wall-clock time whether
  the entry exists or not, so the time a lookup takes does not reveal
  which profile accounts exist.
* Backend exceptions never reach the caller verbatim. A missing entry is
  ``None`` (or a no-op for deletes); anything else becomes a generic
  :class:`~ccprofile.exceptions.StoreUnavailableError`.

See Also:
    :class:`~ccprofile.models.ServiceNames` -- which services hold what.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import keyring
from keyring.backend import KeyringBackend
from keyring.errors import KeyringError, PasswordDeleteError

from ccprofile.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

MIN_READ_SECONDS = 0.010
"""Floor on the duration of :meth:`SecretStore.get`, hit or miss."""


class SecretStore:
    """Read/write secrets in the OS credential store.

    Args:
        backend: Keyring backend to use. Defaults to whatever
            :func:`keyring.get_keyring` selects for the platform; tests pass
            an in-memory backend.
        min_read_seconds: Minimum duration of a :meth:`get` call.

    Example::

        store = SecretStore()
        store.save("work", "Claude Profile Manager", "sk-ant-api03-...")
        assert store.get("work", "Claude Profile Manager").startswith("sk-ant")
    """

    def __init__(
        self,
        backend: Optional[KeyringBackend] = None,
        min_read_seconds: float = MIN_READ_SECONDS,
    ) -> None:
        self._backend = backend if backend is not None else keyring.get_keyring()
        self._min_read_seconds = min_read_seconds

    @property
    def backend(self) -> KeyringBackend:
        """The keyring backend in use."""
        return self._backend

    def save(self, account: str, service: str, secret: str) -> None:
        """Create or replace the secret for ``(account, service)``.

        Raises:
            StoreUnavailableError: If the backend refuses the write.
        """
        try:
            self._backend.set_password(service, account, secret)
        except (KeyringError, OSError) as exc:
            logger.debug("keyring write failed for service %r: %s", service, type(exc).__name__)
            raise StoreUnavailableError(
                f"Credential store unavailable: could not save credentials for '{account}'"
            ) from None

    def get(self, account: str, service: str) -> Optional[str]:
        """Return the secret for ``(account, service)``, or ``None`` if absent.

        Empty secrets count as absent. The call is padded with a sleep so it
        never returns in less than the configured minimum duration.

        Raises:
            StoreUnavailableError: If the backend cannot be read.
        """
        started = time.monotonic()
        try:
            secret = self._backend.get_password(service, account)
        except (KeyringError, OSError) as exc:
            self._pad(started)
            logger.debug("keyring read failed for service %r: %s", service, type(exc).__name__)
            raise StoreUnavailableError(
                f"Credential store unavailable: could not read credentials for '{account}'"
            ) from None
        self._pad(started)
        return secret or None

    def delete(self, account: str, service: str) -> None:
        """Remove the secret for ``(account, service)``; absent entries are fine.

        Raises:
            StoreUnavailableError: If the backend fails for any reason other
                than the entry not existing.
        """
        try:
            self._backend.delete_password(service, account)
        except PasswordDeleteError:
            # Raised by every bundled backend when the item is not there.
            logger.debug("nothing to delete for service %r", service)
        except (KeyringError, OSError) as exc:
            logger.debug("keyring delete failed for service %r: %s", service, type(exc).__name__)
            raise StoreUnavailableError(
                f"Credential store unavailable: could not delete credentials for '{account}'"
            ) from None

    def list_accounts(self, service: str) -> frozenset[str]:
        """Return the accounts that hold a secret under *service*.

        Keyring has no portable enumeration API, so this only works for
        backends that expose a ``list_accounts(service)`` method; everything
        else yields an empty set.
        """
        lister = getattr(self._backend, "list_accounts", None)
        if lister is None:
            return frozenset()
        try:
            return frozenset(lister(service))
        except (KeyringError, OSError) as exc:
            logger.debug("keyring enumeration failed: %s", type(exc).__name__)
            return frozenset()

    def _pad(self, started: float) -> None:
        remaining = self._min_read_seconds - (time.monotonic() - started)
        if remaining > 0:
            time.sleep(remaining)
