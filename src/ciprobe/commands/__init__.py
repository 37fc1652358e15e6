"""Typer applications for the two console scripts.

Each module defines a single-command Typer app; :mod:`ciprobe.app` runs it
with top-level error handling.

Modules:
    grep_deploys: ``grep-deploys`` -- search deployment traces.
    diff_jobs: ``diff-jobs`` -- diff an artifact between two jobs.
"""
