"""``diff-jobs`` -- compare one artifact file between two job runs.

Downloads ``ARTIFACT_PATH`` from the artifacts of both jobs into the cache,
optionally pipes each copy through ``--preprocess`` (for example to sort or
pretty-print it), and opens the two files in ``--difftool``.
"""

from __future__ import annotations

from typing import Optional

import typer

from ciprobe.artifacts import DEFAULT_DIFFTOOL, diff_artifacts
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
from ciprobe.process import parse_command

TOOL_NAME = "diff-jobs"

diff_jobs_app = typer.Typer(
    name=TOOL_NAME,
    help="Diff an artifact file between two CI jobs.",
    add_completion=False,
    rich_markup_mode="rich",
)


@diff_jobs_app.command()
def diff_jobs(
    job_id_left: int = typer.Argument(help="Job shown on the left."),
    job_id_right: int = typer.Argument(help="Job shown on the right."),
    artifact_path: str = typer.Argument(help="File path inside the jobs' artifacts."),
    token: Optional[str] = TokenOption,
    server: Optional[str] = ServerOption,
    repo: Optional[str] = RepoOption,
    difftool: str = typer.Option(
        DEFAULT_DIFFTOOL, "--difftool", help="Diff program; the two files are appended."
    ),
    preprocess: Optional[str] = typer.Option(
        None, "--preprocess", help="Filter each file through this program (stdin to stdout) first."
    ),
    debug: bool = DebugOption,
    quiet: bool = QuietOption,
    plain: bool = PlainOption,
    no_color: bool = NoColorOption,
    clear_cache: bool = ClearCacheOption,
    version: bool = VersionOption,
) -> None:
    """Diff ARTIFACT_PATH between JOB_ID_LEFT and JOB_ID_RIGHT.

    Example::

        diff-jobs 100 101 report.xml --preprocess "xmllint --format -" --difftool meld
    """
    setup_output(debug=debug, quiet=quiet, plain=plain, no_color=no_color)
    difftool_argv = parse_command(difftool)
    preprocess_argv = parse_command(preprocess) if preprocess is not None else None
    config = resolve_config(cli_token=token, cli_server=server, cli_repo=repo, debug=debug)
    cache = open_cache(TOOL_NAME, clear_cache)

    with ApiClient(config) as client:
        diff_artifacts(
            client,
            cache,
            job_id_left,
            job_id_right,
            artifact_path,
            difftool=difftool_argv,
            preprocess=preprocess_argv,
        )
