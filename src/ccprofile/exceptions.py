"""Exception hierarchy for ccprofile.

All exceptions inherit from :class:`CcprofileError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`ccprofile.exit_codes`.
The top-level error handler in :func:`ccprofile.app.main` catches
``CcprofileError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Messages are written for the user: they name the operation and the reason,
and never include raw credential-store error text.

Subclass hierarchy::

    CcprofileError (exit 1)
    +-- InvalidUsageError          (exit 2)
    |   +-- InvalidNameError
    |   +-- NoTargetError
    +-- AuthError                  (exit 3)
    |   +-- NoCredentialsError
    |   +-- UnknownAuthKindError
    |   +-- AutoSaveError
    +-- NotFoundError              (exit 4)
    |   +-- ProfileNotFoundError
    |   +-- AliasNotFoundError
    |   +-- CredentialNotFoundError
    +-- StoreUnavailableError      (exit 5)
    +-- OperationCancelledError    (exit 130)
    +-- ConfigError                (exit 1)
"""

from ccprofile.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CANCELLED,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_STORE_UNAVAILABLE,
)


class CcprofileError(Exception):
    """Base exception for all ccprofile errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`ccprofile.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CcprofileError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class InvalidNameError(InvalidUsageError):
    """Raised when a profile or alias name breaks a naming rule."""


class NoTargetError(InvalidUsageError):
    """Raised when ``save`` has no explicit name and no current profile."""


class AuthError(CcprofileError):
    """Raised when there are no usable credentials for the requested operation."""

    exit_code = EXIT_AUTH_FAILURE


class NoCredentialsError(AuthError):
    """Raised when no live Claude Code credentials exist to save."""


class UnknownAuthKindError(AuthError):
    """Raised when a profile's auth kind cannot be determined."""


class AutoSaveError(AuthError):
    """Raised when auto-save before a switch fails and the policy is ``abort``."""


class NotFoundError(CcprofileError):
    """Raised when a profile, alias, or stored credential does not exist."""

    exit_code = EXIT_NOT_FOUND


class ProfileNotFoundError(NotFoundError):
    """Raised when no profile record exists for a name."""


class AliasNotFoundError(NotFoundError):
    """Raised when removing an alias that is not defined."""


class CredentialNotFoundError(NotFoundError):
    """Raised when a profile's backed-up secret is missing from the keychain."""


class StoreUnavailableError(CcprofileError):
    """Raised when the OS credential store cannot be accessed.

    The message is deliberately generic; backend error details are only
    emitted at debug level.
    """

    exit_code = EXIT_STORE_UNAVAILABLE


class OperationCancelledError(CcprofileError):
    """Raised when the user declines to continue an interactive operation."""

    exit_code = EXIT_CANCELLED


class ConfigError(CcprofileError):
    """Raised for configuration problems: a profile directory that cannot be
    created or written, or a bad environment setting."""

    exit_code = EXIT_GENERIC_FAILURE
