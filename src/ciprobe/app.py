"""Console-script entry points for ``grep-deploys`` and ``diff-jobs``.

Both entry points share :func:`run`, which installs signal handlers, invokes
the command's Typer app in non-standalone mode, and maps every outcome to an
exit code:

* :class:`~ciprobe.exceptions.CiprobeError` -- message on stderr, exit 1.
  Network failures outside ``--debug`` also suggest re-running with it.
* Click usage errors -- usage message on stderr, exit 1.
* Ctrl-C -- ``Cancelled.`` on stderr, exit 130.
* Anything else -- traceback written to a crash log in the tool's cache
  directory, exit 1.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import click
import typer

from ciprobe.exit_codes import EXIT_FAILURE, EXIT_INTERRUPTED, EXIT_SUCCESS


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(tool: str) -> str:
    """Write the current traceback to the tool's cache directory and return its path."""
    from ciprobe.config import get_cache_dir

    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = get_cache_dir(tool) / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def run(app: typer.Typer, tool: str) -> None:
    """Run *app* and exit with the code matching its outcome.

    Raises:
        SystemExit: Always.
    """
    from ciprobe.exceptions import CiprobeError, NetworkError
    from ciprobe.output import error, get_output, suggest

    _setup_signal_handlers()
    try:
        result = app(prog_name=tool, standalone_mode=False)
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except click.exceptions.Abort:
        sys.stderr.write("Aborted!\n")
        sys.exit(EXIT_FAILURE)
    except click.exceptions.ClickException as exc:
        exc.show()
        sys.exit(EXIT_FAILURE)
    except CiprobeError as exc:
        error(str(exc))
        if isinstance(exc, NetworkError) and not get_output().is_verbose:
            suggest("Re-run with --debug to see the underlying request.")
        sys.exit(exc.exit_code)
    except Exception:
        log_path = _write_crash_log(tool)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_FAILURE)

    sys.exit(result if isinstance(result, int) else EXIT_SUCCESS)


def main_grep_deploys() -> None:
    """Entry point of the ``grep-deploys`` console script."""
    from ciprobe.commands.grep_deploys import TOOL_NAME, grep_deploys_app

    run(grep_deploys_app, TOOL_NAME)


def main_diff_jobs() -> None:
    """Entry point of the ``diff-jobs`` console script."""
    from ciprobe.commands.diff_jobs import TOOL_NAME, diff_jobs_app

    run(diff_jobs_app, TOOL_NAME)
