"""Credential handling: the keychain adapter, auth-kind detection, and token health.

The main entry points are:

- :class:`SecretStore` -- save/get/delete secrets in the OS credential store.
- :class:`AuthKindDetector` -- classify live and stored credentials as
  ``console`` (API key) or ``subscription`` (OAuth bundle).
- :func:`assess` / :func:`check_token_health` -- bucket a token's remaining
  lifetime into a human-readable status.
"""

from ccprofile.auth.detector import AuthKindDetector, classify_secret
from ccprofile.auth.health import assess, check_token_health, classify, parse_expiry
from ccprofile.auth.keychain import MIN_READ_SECONDS, SecretStore

__all__ = [
    "AuthKindDetector",
    "MIN_READ_SECONDS",
    "SecretStore",
    "assess",
    "check_token_health",
    "classify",
    "classify_secret",
    "parse_expiry",
]
