"""Exception hierarchy for ciprobe.

All exceptions inherit from :class:`CiprobeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`ciprobe.exit_codes`.
The console entry points in :mod:`ciprobe.app` catch ``CiprobeError`` and
exit with the appropriate code, while unexpected exceptions produce a crash
log.

Every error is fatal for the run: nothing in the package catches one of these
to retry or continue.

Subclass hierarchy::

    CiprobeError (exit 1)
    +-- InvalidUsageError
    +-- ConfigError
    +-- NetworkError
    +-- ParseError
    +-- PreprocessError
    +-- DiffToolError
"""

from ciprobe.exit_codes import EXIT_FAILURE


class CiprobeError(Exception):
    """Base exception for all ciprobe errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CiprobeError):
    """Raised for invalid option values (bad regex, empty program string)."""


class ConfigError(CiprobeError):
    """Raised when the server, repository identifier, or token cannot be resolved."""


class NetworkError(CiprobeError):
    """Raised on a non-2xx response or a transport failure (DNS, refused, timeout)."""


class ParseError(CiprobeError):
    """Raised when a response body is not the JSON shape the API documents."""


class PreprocessError(CiprobeError):
    """Raised when the preprocessing filter cannot be launched or exits non-zero."""


class DiffToolError(CiprobeError):
    """Raised when the diff program cannot be launched."""
