"""Profile storage: metadata records, the current pointer, aliases, and naming rules.

The lifecycle operations that tie these to the keychain live in
:mod:`ccprofile.profiles.manager`; import :class:`ProfileManager` from there.
"""

from ccprofile.profiles.aliases import AliasTable
from ccprofile.profiles.naming import validate_name
from ccprofile.profiles.store import ProfileStore

__all__ = ["AliasTable", "ProfileStore", "validate_name"]
