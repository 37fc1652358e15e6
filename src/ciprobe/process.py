"""External program specification and invocation.

Users name external programs (the diff viewer, the preprocessing filter) as
a single string on the command line. That string is split into an argument
list once, with POSIX shell-word rules (:func:`shlex.split`), and every
invocation afterwards works on the list; no shell ever runs.

* :func:`parse_command` -- user string to argv.
* :func:`format_command` -- argv back to a readable line for ``--debug``.
* :func:`run_filter` -- pipe a file through a program, replacing it with the
  program's output.
* :func:`run_viewer` -- launch a program on a list of files and wait.
"""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path
from typing import Sequence

from ciprobe.cache.store import replace_atomically
from ciprobe.exceptions import DiffToolError, InvalidUsageError, PreprocessError
from ciprobe.output import debug


def parse_command(text: str) -> list[str]:
    """Split a user-supplied program string into an argument list.

    Args:
        text: e.g. ``"sort -u"`` or ``"meld --newtab"``.

    Returns:
        The argument tokens, program name first.

    Raises:
        InvalidUsageError: If *text* is empty or has unbalanced quotes.
    """
    try:
        argv = shlex.split(text)
    except ValueError as exc:
        raise InvalidUsageError(f"Cannot parse command '{text}': {exc}") from exc
    if not argv:
        raise InvalidUsageError("Command must not be empty")
    return argv


def format_command(argv: Sequence[str]) -> str:
    """Render *argv* as one line, quoting arguments that contain whitespace."""
    parts = []
    for arg in argv:
        arg = str(arg)
        if not arg or any(ch.isspace() for ch in arg):
            parts.append(shlex.quote(arg))
        else:
            parts.append(arg)
    return " ".join(parts)


def run_filter(argv: Sequence[str], path: Path) -> None:
    """Replace the contents of *path* with the output of *argv* run on it.

    The file is fed to the program's stdin and its stdout is collected in a
    temporary file beside *path*, which then replaces *path* in one rename.
    *path* is left untouched when the program fails.

    Raises:
        PreprocessError: If the program cannot be started or exits non-zero.
    """
    debug(f"{format_command(argv)} < {path}")
    try:
        with open(path, "rb") as stdin:
            result = subprocess.run(
                list(argv),
                stdin=stdin,
                capture_output=True,
                check=False,
            )
    except OSError as exc:
        raise PreprocessError(f"Cannot run preprocess command '{argv[0]}': {exc}") from exc

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        detail = f": {stderr}" if stderr else ""
        raise PreprocessError(
            f"Preprocess command '{format_command(argv)}' exited with status "
            f"{result.returncode} on {path.name}{detail}"
        )

    replace_atomically(path, result.stdout)


def run_viewer(argv: Sequence[str], paths: Sequence[Path]) -> int:
    """Run *argv* with *paths* appended and wait for it to finish.

    Output is not captured and the exit status is not interpreted (``diff``
    exits 1 when the files differ); it is only returned to the caller.

    Raises:
        DiffToolError: If the program cannot be started.
    """
    command = [*argv, *(str(p) for p in paths)]
    debug(format_command(command))
    try:
        completed = subprocess.run(command, check=False)
    except OSError as exc:
        raise DiffToolError(f"Cannot run diff command '{argv[0]}': {exc}") from exc
    return completed.returncode
