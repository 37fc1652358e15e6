"""Artifact download and diffing.

An artifact is fetched by path from two jobs into the job cache (left job
first), optionally rewritten by a preprocessing filter, and then handed to a
diff program as two file paths. Both files stay in the cache afterwards.
"""

from __future__ import annotations

from pathlib import PurePosixPath
from typing import Optional, Sequence

from ciprobe.cache import JobFileCache
from ciprobe.client import ApiClient, quote_path
from ciprobe.models import ArtifactPair
from ciprobe.process import run_filter, run_viewer

DEFAULT_DIFFTOOL = "diff -u"
_FALLBACK_EXT = "artifact"


def artifact_extension(artifact_path: str) -> str:
    """Cache file extension for *artifact_path*: its suffix, or ``artifact``.

    Example::

        >>> artifact_extension("reports/junit.xml")
        'xml'
    """
    suffix = PurePosixPath(artifact_path).suffix.lstrip(".")
    return suffix or _FALLBACK_EXT


def fetch_artifact_pair(
    client: ApiClient,
    cache: JobFileCache,
    left_job_id: int,
    right_job_id: int,
    artifact_path: str,
) -> ArtifactPair:
    """Download *artifact_path* from both jobs into the cache, left first.

    Raises:
        NetworkError: If either download fails.
    """
    relative = artifact_path.lstrip("/")
    ext = artifact_extension(relative)

    files = []
    for job_id in (left_job_id, right_job_id):
        dest = cache.path_for(job_id, ext)
        url = client.api_url("jobs", str(job_id), "artifacts", quote_path(relative))
        files.append(client.download(url, dest))

    return ArtifactPair(
        left_job_id=left_job_id,
        right_job_id=right_job_id,
        artifact_path=relative,
        left_file=files[0],
        right_file=files[1],
    )


def diff_artifacts(
    client: ApiClient,
    cache: JobFileCache,
    left_job_id: int,
    right_job_id: int,
    artifact_path: str,
    difftool: Sequence[str],
    preprocess: Optional[Sequence[str]] = None,
) -> ArtifactPair:
    """Fetch an artifact from two jobs and open the pair in *difftool*.

    Args:
        client: Open API client.
        cache: Job cache the artifacts are written to.
        left_job_id: Job shown on the left.
        right_job_id: Job shown on the right.
        artifact_path: Path inside the jobs' artifact archive.
        difftool: Diff program argv; the two file paths are appended.
        preprocess: Optional filter argv. Each file is piped through it and
            replaced by its output before the diff program starts.

    Returns:
        The cached pair, after preprocessing.

    Raises:
        NetworkError: If a download fails.
        PreprocessError: If the filter fails; the diff program is not run.
        DiffToolError: If the diff program cannot be started.
    """
    pair = fetch_artifact_pair(client, cache, left_job_id, right_job_id, artifact_path)

    if preprocess:
        # Same job on both sides shares one cache file; filter it once.
        for path in dict.fromkeys((pair.left_file, pair.right_file)):
            run_filter(preprocess, path)

    run_viewer(difftool, [pair.left_file, pair.right_file])
    return pair
