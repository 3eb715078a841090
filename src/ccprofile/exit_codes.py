"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific failure category and is referenced by the
corresponding :class:`~ccprofile.exceptions.CcprofileError` subclass.
Shell wrappers can inspect the exit code to tell a missing profile apart
from a locked keychain without parsing stderr.

Example::

    $ ccprofile switch nope
    $ echo $?
    4   # EXIT_NOT_FOUND -- no profile or alias named "nope"
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments: a bad profile/alias name or a missing target."""

EXIT_AUTH_FAILURE = 3
"""No usable credentials: nothing live to save, or an unrecognised auth kind."""

EXIT_NOT_FOUND = 4
"""The named profile, alias, or stored credential does not exist."""

EXIT_STORE_UNAVAILABLE = 5
"""The OS credential store could not be read or written."""

EXIT_CANCELLED = 130
"""The user declined a confirmation or interrupted the command."""
