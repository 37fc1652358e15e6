"""Per-tool directory of cached trace and artifact files.

The directory is shared by every invocation of the same tool and is written
without locking; two concurrent runs against the same job race on the same
file path.
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

_JOB_FILE = re.compile(r"^\d+\.[^.]+$")


def replace_atomically(path: Path, data: bytes) -> None:
    """Write *data* to *path* atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is removed and *path* keeps its previous content.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="wb",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


class JobFileCache:
    """A directory of files keyed by job identifier.

    Args:
        directory: Cache root, normally from
            :func:`~ciprobe.config.get_cache_dir`. Created if missing.

    Example::

        cache = JobFileCache(get_cache_dir("grep-deploys"))
        path = cache.path_for(42, "log")   # <cache>/42.log
    """

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    @property
    def directory(self) -> Path:
        """The cache root."""
        return self._directory

    def path_for(self, job_id: int, ext: str) -> Path:
        """Return the file path for *job_id* with extension *ext* (no leading dot)."""
        return self._directory / f"{job_id}.{ext}"

    def discard(self, path: Path) -> None:
        """Delete a cache file. A file that is already gone is not an error."""
        try:
            path.unlink()
        except FileNotFoundError:
            return
        logger.debug("Discarded %s", path)

    def entries(self) -> list[Path]:
        """Return the job files (``{job_id}.{ext}``), sorted by name.

        Temp files and crash logs in the same directory are not entries.
        """
        return sorted(
            p for p in self._directory.iterdir()
            if p.is_file() and _JOB_FILE.match(p.name)
        )

    def clear(self) -> int:
        """Delete every job file and return how many were removed."""
        entries = self.entries()
        for path in entries:
            path.unlink()
        logger.debug("Cleared %d file(s) from %s", len(entries), self._directory)
        return len(entries)
