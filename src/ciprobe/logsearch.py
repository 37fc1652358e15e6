"""Deployment trace search.

For every deployment, in the order given, the job's trace is downloaded to
``{job_id}.log`` in the job cache and scanned line by line. A trace with at
least one matching line is reported (a summary line, then each match) and
its file is kept; a trace without a match is deleted and produces no output.

The whole sequence is always processed, so every match across the result set
is shown.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable, Optional

from ciprobe.cache import JobFileCache
from ciprobe.client import ApiClient
from ciprobe.models import CacheEntry, Config, Deployment
from ciprobe.output import print_data, print_heading

_UNITS = (
    ("days", 86400),
    ("hours", 3600),
    ("minutes", 60),
)


def hdate(created_at: datetime, now: Optional[datetime] = None) -> str:
    """Describe how long ago *created_at* was, in its single largest unit.

    Naive datetimes are taken to be UTC. A timestamp in the future counts
    as zero seconds ago.

    Example::

        >>> now = datetime(2024, 1, 2, tzinfo=timezone.utc)
        >>> hdate(now - timedelta(seconds=3661), now)
        '1 hours ago'
    """
    if now is None:
        now = datetime.now(timezone.utc)
    seconds = max(0, int((_as_utc(now) - _as_utc(created_at)).total_seconds()))
    for unit, size in _UNITS:
        if seconds >= size:
            return f"{seconds // size} {unit} ago"
    return f"{seconds} seconds ago"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def job_url(config: Config, job_id: int) -> str:
    """Web page of a job, e.g. ``https://gitlab.com/group/proj/-/jobs/42``."""
    return f"{config.server_url}/{config.repo_slug}/-/jobs/{job_id}"


def format_summary(
    config: Config,
    deployment: Deployment,
    now: Optional[datetime] = None,
) -> str:
    """One-line description of a deployment whose trace matched."""
    return (
        f"#{deployment.job_id} {job_url(config, deployment.job_id)} "
        f"{deployment.user_name} {deployment.environment_slug} "
        f"{hdate(deployment.created_at, now)}"
    )


def matching_lines(text: str, pattern: Optional[re.Pattern[str]]) -> list[str]:
    """Return the lines of *text* that *pattern* finds a match in.

    ``None`` stands for the match-everything pattern.
    """
    lines = text.splitlines()
    if pattern is None:
        return lines
    return [line for line in lines if pattern.search(line)]


def search_deployment_logs(
    client: ApiClient,
    deployments: Iterable[Deployment],
    cache: JobFileCache,
    pattern: Optional[re.Pattern[str]] = None,
    now: Optional[datetime] = None,
) -> list[CacheEntry]:
    """Download, scan and report the trace of every deployment's job.

    Args:
        client: Open API client.
        deployments: Deployments to process, consumed once, in order.
        cache: Job cache the traces are written to.
        pattern: Compiled search pattern. ``None`` matches every line and
            keeps every trace, including empty ones.
        now: Reference time for relative dates; defaults to the current time.

    Returns:
        One :class:`~ciprobe.models.CacheEntry` per deployment, in order.
        Entries with ``retained=False`` no longer exist on disk.

    Raises:
        NetworkError: If a trace download fails. Earlier traces stay cached.
    """
    config = client.config
    if now is None:
        now = datetime.now(timezone.utc)

    entries: list[CacheEntry] = []
    for deployment in deployments:
        path = cache.path_for(deployment.job_id, "log")
        client.download(client.api_url("jobs", str(deployment.job_id), "trace"), path)

        text = path.read_bytes().decode("utf-8", errors="replace")
        matches = matching_lines(text, pattern)
        retained = pattern is None or bool(matches)

        if retained:
            print_heading(format_summary(config, deployment, now))
            for line in matches:
                print_data(line)
        else:
            cache.discard(path)

        entries.append(
            CacheEntry(job_id=deployment.job_id, local_path=path, retained=retained)
        )
    return entries
