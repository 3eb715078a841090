"""Profile commands -- save, list, switch, current, and delete.

Each callback is registered on the root app twice, under its full name and
a hidden short name (``s``, ``ls``, ``sw``, ``c``, ``rm``); see
:func:`ccprofile.app.register_commands`.

The callbacks are thin: they build a
:class:`~ccprofile.profiles.manager.ProfileManager` from the shared options
in ``ctx.obj``, call one engine operation, and render the result.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer

from ccprofile.commands import engine_errors
from ccprofile.exceptions import ProfileNotFoundError
from ccprofile.models import AutoSaveFailurePolicy, ConfirmOverwrite, ManagerPolicy
from ccprofile.output import (
    OutputFormat,
    debug,
    get_output,
    info,
    print_data,
    success,
    suggest,
    warning,
)

if TYPE_CHECKING:
    from pydantic import BaseModel

    from ccprofile.profiles.manager import ProfileManager


def _obj(ctx: typer.Context) -> dict:
    return ctx.obj if isinstance(ctx.obj, dict) else {}


def _build_manager(ctx: typer.Context, policy: Optional[ManagerPolicy] = None) -> ProfileManager:
    """Create the engine for this invocation.

    Prompts go through :func:`typer.confirm` unless ``--no-input`` is set, in
    which case the manager gets no confirm callable and every ``prompt``
    decision resolves to "no".
    """
    from ccprofile.profiles.manager import create_default_manager

    obj = _obj(ctx)
    confirm = None if obj.get("no_input") else (lambda question: typer.confirm(question))
    return create_default_manager(settings=obj.get("settings"), policy=policy, confirm=confirm)


def _emit_result(result: BaseModel) -> bool:
    """Print *result* as JSON on stdout in ``--json`` mode; return True if done so."""
    output = get_output()
    if output.format != OutputFormat.JSON:
        return False
    output.print_json(result.model_dump(mode="json"))
    return True


def save_command(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(
        None, help="Profile name. Defaults to the current profile."
    ),
    aliases: Optional[list[str]] = typer.Argument(
        None, help="Aliases to point at the profile."
    ),
    yes: bool = typer.Option(
        False, "--yes", "-y", help="Overwrite the current profile without asking."
    ),
) -> None:
    """Save the live Claude Code credentials as a profile.

    Example::

        ccprofile save work w
        ccprofile save          # re-save the current profile
    """
    obj = _obj(ctx)
    if yes:
        overwrite = ConfirmOverwrite.ALWAYS
    elif obj.get("no_input"):
        overwrite = ConfirmOverwrite.NEVER
    else:
        overwrite = ConfirmOverwrite.PROMPT

    with engine_errors():
        manager = _build_manager(ctx, ManagerPolicy(confirm_overwrite=overwrite))
        result = manager.save(name, aliases or [])

    if result.cancelled:
        info("Save cancelled.")
        if overwrite == ConfirmOverwrite.NEVER:
            suggest(f"Pass --yes to overwrite '{result.profile}' without a prompt")
        return
    if _emit_result(result):
        return

    verb = "Updated" if result.overwritten else "Saved"
    success(f"{verb} {result.auth_kind.value} profile '{result.profile}'")
    for alias in result.aliases:
        success(f"Alias '{alias}' -> '{result.profile}'")
    if not result.overwritten:
        suggest(f"Switch back to it later with: ccprofile switch {result.profile}")


def list_command(ctx: typer.Context) -> None:
    """List saved profiles with their type and credential status.

    The current profile is marked with ``*``.

    Example::

        ccprofile list
        ccprofile --json list
    """
    with engine_errors():
        rows = _build_manager(ctx).list_profiles()
    output = get_output()

    if output.format == OutputFormat.JSON:
        output.print_json([row.model_dump(mode="json") for row in rows])
        return
    if not rows:
        info("No profiles saved yet.")
        suggest("Save the live credentials with: ccprofile save <name>")
        return

    headers = ["", "Profile", "Type", "Created", "Last Used", "Status"]
    table_rows = [
        [
            "*" if row.is_current else "",
            row.display_name,
            row.auth_kind.value,
            row.created,
            row.last_used,
            row.status,
        ]
        for row in rows
    ]
    output.print_table(headers, table_rows, title="Claude Code Profiles")


def switch_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name or alias."),
    on_autosave_failure: Optional[AutoSaveFailurePolicy] = typer.Option(
        None,
        "--on-autosave-failure",
        case_sensitive=False,
        help="What to do if the current profile's refreshed token cannot be saved first.",
    ),
) -> None:
    """Switch Claude Code to a saved profile.

    If the current profile is a subscription, its live (possibly refreshed)
    token bundle is saved back before the swap.

    Example::

        ccprofile switch work
        ccprofile sw w --on-autosave-failure abort
    """
    obj = _obj(ctx)
    if on_autosave_failure is not None:
        choice = on_autosave_failure
    elif obj.get("no_input"):
        choice = AutoSaveFailurePolicy.PROCEED
    else:
        choice = AutoSaveFailurePolicy.PROMPT

    with engine_errors():
        manager = _build_manager(ctx, ManagerPolicy(on_auto_save_failure=choice))
        result = manager.switch(name)

    for notice in result.notices:
        warning(notice)
    if result.auto_saved:
        debug(f"Saved refreshed credentials for '{result.previous}'")
    if _emit_result(result):
        return

    success(f"Switched to profile '{result.profile}' ({result.auth_kind.value})")
    suggest("Restart Claude Code to use the new credentials")
    suggest("Press Ctrl+D twice to exit, then run: claude -c")


def current_command(ctx: typer.Context) -> None:
    """Show the current profile.

    Prints ``(unnamed <type>)`` when Claude Code holds credentials that were
    never saved, and ``(no authentication)`` when it holds none.
    """
    with engine_errors():
        status = _build_manager(ctx).current()
    if _emit_result(status):
        return
    print_data(status.label)


def delete_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Profile name or alias."),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation."),
) -> None:
    """Delete a saved profile and its stored credentials.

    Asks for confirmation unless ``--force`` or ``--no-input`` is given.
    Aliases that pointed at the profile are kept and listed afterwards.

    Example::

        ccprofile delete old --force
    """
    obj = _obj(ctx)
    with engine_errors():
        manager = _build_manager(ctx)
        target = manager.resolve(name)
        if not manager.store.exists(target):
            raise ProfileNotFoundError(f"Profile '{target}' not found")

    if not force and not obj.get("no_input"):
        if not typer.confirm(f"Delete profile '{target}'?"):
            info("Cancelled.")
            raise typer.Exit()

    with engine_errors():
        result = manager.delete(target)

    for notice in result.notices:
        warning(notice)
    if _emit_result(result):
        return

    success(f"Deleted profile '{result.profile}'")
    if result.was_current:
        info("It was the current profile; no profile is current now.")
    if result.dangling_aliases:
        joined = ", ".join(result.dangling_aliases)
        suggest(f"Aliases still pointing at it: {joined} (remove with: ccprofile alias remove <alias>)")
