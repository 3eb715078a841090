"""ccprofile -- Save and switch between Claude Code credential profiles.

Claude Code keeps exactly one credential in the OS keychain: either a static
Console API key or a Claude subscription OAuth token bundle. ccprofile
snapshots that credential under a name and swaps saved ones back in, so a
user can move between accounts without logging in again.

Typical workflow::

    ccprofile save work w        # snapshot the live credentials as "work"
    ccprofile switch personal    # make another profile live
    ccprofile list               # profiles, types, and token health

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG paths, environment toggles, and atomic writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    audit: Optional append-only operation log.
    auth: Keychain adapter, auth-kind detection, token health.
    profiles: Profile records, aliases, naming rules, and the manager.
"""

__version__ = "0.1.0"
