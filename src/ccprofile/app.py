"""Typer application and CLI entry point for ccprofile.

This module wires together the top-level Typer application and registers the
profile commands (``save``, ``list``, ``switch``, ``current``, ``delete``,
each with a hidden short name) and the ``alias`` group.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~ccprofile.exceptions.CcprofileError` becomes a one-line error and
its exit code; anything else is written to a crash log under the data
directory.

See Also:
    :mod:`ccprofile.profiles.manager`: The engine the commands call.
    :mod:`ccprofile.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from ccprofile import __version__
from ccprofile.exit_codes import EXIT_CANCELLED, EXIT_GENERIC_FAILURE


app = typer.Typer(
    name="ccprofile",
    help="Save and switch between Claude Code credential profiles.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ccprofile {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
    no_input: bool = typer.Option(
        False, "--no-input", help="Disable interactive prompts."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Reads the environment toggles, initialises the global
    :class:`~ccprofile.output.OutputManager` and logging from CLI flags, and
    stores shared options in ``ctx.obj`` for the sub-commands.

    Args:
        ctx: Typer invocation context.
        version: If ``True``, print the version string and exit.
        json_output: Force JSON output format.
        plain_output: Force plain-text output format.
        no_color: Disable all colour and Rich markup.
        quiet: Suppress non-essential diagnostic output.
        verbose: Enable debug-level diagnostic output. ``CCPROFILE_DEBUG``
            has the same effect.
        no_input: Disable all interactive prompts.
    """
    from ccprofile.commands import engine_errors
    from ccprofile.config import load_settings
    from ccprofile.output import OutputFormat, OutputManager, configure_logging, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    with engine_errors():
        settings = load_settings()

    verbose = verbose or settings.debug
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    configure_logging(verbose)

    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings
    ctx.obj["no_input"] = no_input
    ctx.obj["verbose"] = verbose


def register_commands() -> None:
    """Attach the profile commands and the alias group to :data:`app`."""
    from ccprofile.commands.alias import alias_app
    from ccprofile.commands.profile import (
        current_command,
        delete_command,
        list_command,
        save_command,
        switch_command,
    )

    for name, short, callback in (
        ("save", "s", save_command),
        ("list", "ls", list_command),
        ("switch", "sw", switch_command),
        ("current", "c", current_command),
        ("delete", "rm", delete_command),
    ):
        app.command(name)(callback)
        app.command(short, hidden=True)(callback)
    app.add_typer(alias_app, name="alias", help="Manage profile aliases.")


register_commands()


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path.

    The traceback never includes credential values: the engine only ever
    holds them in local variables, which :func:`traceback.format_exc` does
    not render.
    """
    from ccprofile.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    log_path.chmod(0o600)
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``ccprofile`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_CANCELLED)
    except Exception as exc:
        from ccprofile.exceptions import CcprofileError
        from ccprofile.output import error

        if isinstance(exc, CcprofileError):
            error(str(exc))
            sys.exit(exc.exit_code)
        else:
            log_path = _write_crash_log(exc)
            error(f"Unexpected error. Debug log: {log_path}")
            sys.exit(EXIT_GENERIC_FAILURE)
