"""Work out which kind of authentication is live, or which a profile holds.

Two questions are answered here:

* :meth:`AuthKindDetector.detect_live` -- what is Claude Code using *right
  now*? Looks at the two live keychain slots.
* :meth:`AuthKindDetector.detect_profile` -- what kind of credential does a
  saved profile hold? The ``auth_method`` stored in the profile record is
  authoritative; the heuristics below it exist only for records written
  before that field existed, or by hand.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Optional

from ccprofile.auth.keychain import SecretStore
from ccprofile.models import AuthKind, ServiceNames

if TYPE_CHECKING:
    from ccprofile.profiles.store import ProfileStore

logger = logging.getLogger(__name__)

API_KEY_PREFIX = "sk-ant-api"
API_KEY_LENGTH = 108

WELL_KNOWN_NAMES = {
    "console": AuthKind.CONSOLE,
    "api": AuthKind.CONSOLE,
    "subscription": AuthKind.SUBSCRIPTION,
    "sub": AuthKind.SUBSCRIPTION,
}


def classify_secret(secret: str) -> AuthKind:
    """Guess the auth kind of *secret* from its shape (best effort).

    * ``sk-ant-api…`` of the standard API-key length -> console.
    * A JSON object, or a three-part dot-delimited token -> subscription.
    * Anything else -> unknown.
    """
    text = secret.strip()
    if len(text) == API_KEY_LENGTH and text.startswith(API_KEY_PREFIX):
        return AuthKind.CONSOLE
    if text.startswith("{") and text.endswith("}"):
        try:
            if isinstance(json.loads(text), dict):
                return AuthKind.SUBSCRIPTION
        except (json.JSONDecodeError, ValueError):
            pass
    parts = text.split(".")
    if len(parts) == 3 and all(parts):
        return AuthKind.SUBSCRIPTION
    return AuthKind.UNKNOWN


class AuthKindDetector:
    """Classify live and stored credentials.

    Args:
        secrets: Keychain adapter.
        store: Profile metadata store, for the persisted ``auth_method``.
        services: Service names of the live slots and the backup service.
    """

    def __init__(self, secrets: SecretStore, store: ProfileStore, services: ServiceNames) -> None:
        self._secrets = secrets
        self._store = store
        self._services = services

    def detect_live(self) -> AuthKind:
        """Return the kind of the credential Claude Code currently holds.

        The OAuth slot is checked first: when both slots are populated the
        subscription is the one in active use.
        """
        account = self._services.account
        if self._secrets.get(account, self._services.live_oauth) is not None:
            return AuthKind.SUBSCRIPTION
        if self._secrets.get(account, self._services.live_api_key) is not None:
            return AuthKind.CONSOLE
        return AuthKind.NONE

    def detect_profile(self, name: str) -> AuthKind:
        """Return the auth kind of the saved profile *name*."""
        record = self._store.read(name)
        stored: Optional[AuthKind] = AuthKind.parse(record.auth_method) if record else None
        if stored is not None:
            return stored

        secret = self._secrets.get(name, self._services.backup)
        if secret is None:
            logger.debug("profile %r has no auth_method and no backup; using live auth", name)
            return self.detect_live()

        if name in WELL_KNOWN_NAMES:
            return WELL_KNOWN_NAMES[name]
        kind = classify_secret(secret)
        logger.debug("profile %r classified by credential shape as %s", name, kind.value)
        return kind
