"""``grep-deploys`` -- search the job traces of recent deployments.

Lists up to one page of deployments (newest first, optionally filtered by
environment and status), downloads each deployment job's trace, and prints
every line matching ``--regex`` under a one-line summary of the deployment.
Traces without a match are deleted from the cache; matching ones are kept
for later inspection.
"""

from __future__ import annotations

import re
from typing import Optional

import typer

from ciprobe.client import ApiClient
from ciprobe.commands.options import (
    ClearCacheOption,
    DebugOption,
    NoColorOption,
    PlainOption,
    QuietOption,
    RepoOption,
    ServerOption,
    TokenOption,
    VersionOption,
    open_cache,
    setup_output,
)
from ciprobe.config import resolve_config
from ciprobe.deployments import iter_deployments
from ciprobe.exceptions import InvalidUsageError
from ciprobe.logsearch import search_deployment_logs

TOOL_NAME = "grep-deploys"

grep_deploys_app = typer.Typer(
    name=TOOL_NAME,
    help="Search deployment job logs by regular expression.",
    add_completion=False,
    rich_markup_mode="rich",
)


def compile_pattern(regex: Optional[str]) -> Optional[re.Pattern[str]]:
    """Compile ``--regex``; ``None`` (the default) matches everything.

    Raises:
        InvalidUsageError: If *regex* is not a valid regular expression.
    """
    if regex is None:
        return None
    try:
        return re.compile(regex)
    except re.error as exc:
        raise InvalidUsageError(f"Invalid --regex '{regex}': {exc}") from exc


@grep_deploys_app.command()
def grep_deploys(
    regex: Optional[str] = typer.Option(
        None, "--regex", "-r", help="Regular expression to search for (default: every line)."
    ),
    env: Optional[str] = typer.Option(
        None, "--env", "-e", help="Only deployments to this environment."
    ),
    status: Optional[str] = typer.Option(
        None, "--status", "-s", help="Only deployments with this status, e.g. success or failed."
    ),
    token: Optional[str] = TokenOption,
    server: Optional[str] = ServerOption,
    repo: Optional[str] = RepoOption,
    debug: bool = DebugOption,
    quiet: bool = QuietOption,
    plain: bool = PlainOption,
    no_color: bool = NoColorOption,
    clear_cache: bool = ClearCacheOption,
    version: bool = VersionOption,
) -> None:
    """Search the job logs of the most recent deployments.

    Example::

        grep-deploys --env production --status failed --regex 'ERROR|FATAL'
    """
    setup_output(debug=debug, quiet=quiet, plain=plain, no_color=no_color)
    pattern = compile_pattern(regex)
    config = resolve_config(cli_token=token, cli_server=server, cli_repo=repo, debug=debug)
    cache = open_cache(TOOL_NAME, clear_cache)

    with ApiClient(config) as client:
        deployments = iter_deployments(client, environment=env, status=status)
        search_deployment_logs(client, deployments, cache, pattern)
