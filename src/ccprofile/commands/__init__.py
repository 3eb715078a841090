"""Built-in CLI sub-commands for ccprofile.

* :mod:`~ccprofile.commands.profile` -- ``save``, ``list``, ``switch``,
  ``current``, and ``delete``, registered as plain callbacks on the root app.
* :mod:`~ccprofile.commands.alias` -- the ``alias`` sub-command group.

Command bodies run inside :func:`engine_errors`, which prints a
:class:`~ccprofile.exceptions.CcprofileError` as a single ``Error:`` line
and exits with the error's code.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import typer

from ccprofile.exceptions import CcprofileError
from ccprofile.output import error


@contextmanager
def engine_errors() -> Iterator[None]:
    try:
        yield
    except CcprofileError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
