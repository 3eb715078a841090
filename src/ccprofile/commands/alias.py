"""Alias commands -- add, list, and remove short names for profiles.

Provides the ``ccprofile alias`` sub-command group. Aliases are resolved by
``switch`` and ``delete``; a profile with the same name always wins over an
alias.
"""

from __future__ import annotations

import typer

from ccprofile.commands import engine_errors
from ccprofile.output import OutputFormat, get_output, info, success, suggest

alias_app = typer.Typer(no_args_is_help=True)


def _manager(ctx: typer.Context):
    from ccprofile.profiles.manager import create_default_manager

    settings = ctx.obj.get("settings") if isinstance(ctx.obj, dict) else None
    return create_default_manager(settings=settings)


@alias_app.command("add")
def alias_add(
    ctx: typer.Context,
    alias: str = typer.Argument(help="Short name to create."),
    name: str = typer.Argument(help="Existing profile it points at."),
) -> None:
    """Point an alias at an existing profile.

    Example::

        ccprofile alias add w work
    """
    with engine_errors():
        _manager(ctx).add_alias(alias, name)
    success(f"Alias '{alias}' -> '{name}'")


@alias_app.command("list")
def alias_list(ctx: typer.Context) -> None:
    """List all aliases."""
    with engine_errors():
        pairs = _manager(ctx).list_aliases()
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_json({alias: target for alias, target in pairs})
        return
    if not pairs:
        info("No aliases defined.")
        suggest("Create one with: ccprofile alias add <alias> <profile>")
        return
    output.print_table(["Alias", "Profile"], [[a, t] for a, t in pairs], title="Aliases")


@alias_app.command("remove")
def alias_remove(
    ctx: typer.Context,
    alias: str = typer.Argument(help="Alias to remove."),
) -> None:
    """Remove an alias. The profile it pointed at is untouched."""
    with engine_errors():
        _manager(ctx).remove_alias(alias)
    success(f"Removed alias '{alias}'")


alias_app.command("rm", hidden=True)(alias_remove)
