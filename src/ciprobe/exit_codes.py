"""Numeric process exit codes.

Every failure class maps to :data:`EXIT_FAILURE`; callers that need the
failure category read the message on stderr. Interrupts use the shell
convention of ``128 + SIGINT``.

Example::

    $ diff-jobs 100 101 report.xml
    Error: HTTP 404: 404 Not found
    $ echo $?
    1
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_FAILURE = 1
"""Configuration, usage, network, parse or external-program failure."""

EXIT_INTERRUPTED = 130
"""The run was cancelled with Ctrl-C."""
