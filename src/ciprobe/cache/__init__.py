"""On-disk job cache for ciprobe.

This package provides :class:`JobFileCache`, a directory of plain files
named after the job they were fetched from (``{job_id}.log`` for traces,
``{job_id}.{ext}`` for artifacts). Unlike a response cache, entries are
ordinary files so they can be handed to external programs and inspected by
the user after the run.

Entries never expire. They are removed when a trace does not match the
search pattern, or when the user passes ``--clear-cache``.
"""

from ciprobe.cache.store import JobFileCache, replace_atomically

__all__ = ["JobFileCache", "replace_atomically"]
