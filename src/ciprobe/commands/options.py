"""Options shared by both commands."""

from __future__ import annotations

import typer

from ciprobe import __version__
from ciprobe.cache import JobFileCache
from ciprobe.config import ENV_REPO, ENV_SERVER, ENV_TOKEN, get_cache_dir
from ciprobe.output import OutputFormat, OutputManager, info, set_output


def version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"ciprobe {__version__}")
        raise typer.Exit()


VersionOption = typer.Option(
    False,
    "--version",
    callback=version_callback,
    is_eager=True,
    help="Show version and exit.",
)
TokenOption = typer.Option(
    None, "--token", "-t", help=f"API token (default: ${ENV_TOKEN})."
)
ServerOption = typer.Option(
    None,
    "--server",
    help=f"Server base URL (default: ${ENV_SERVER}, the git remote, or https://gitlab.com).",
)
RepoOption = typer.Option(
    None,
    "--repo",
    help=f"Repository identifier, e.g. group/project (default: ${ENV_REPO} or the git remote).",
)
DebugOption = typer.Option(
    False, "--debug", "-d", help="Print the equivalent commands to stderr."
)
ClearCacheOption = typer.Option(
    False,
    "--clear-cache",
    help="Delete cached trace and artifact files before running. Crash logs are kept.",
)
PlainOption = typer.Option(False, "--plain", help="Plain text output, even on a terminal.")
NoColorOption = typer.Option(False, "--no-color", help="Disable color output.")
QuietOption = typer.Option(
    False, "--quiet", "-q", help="Suppress informational messages and suggestions."
)


def setup_output(
    debug: bool = False,
    quiet: bool = False,
    plain: bool = False,
    no_color: bool = False,
) -> None:
    """Install the output manager for this run from the output flags."""
    fmt = OutputFormat.PLAIN if plain else OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=debug))


def open_cache(tool: str, clear: bool) -> JobFileCache:
    """Open the job cache of *tool*, emptying it first when *clear* is set."""
    cache = JobFileCache(get_cache_dir(tool))
    if clear:
        removed = cache.clear()
        info(f"Removed {removed} cached file(s) from {cache.directory}")
    return cache
