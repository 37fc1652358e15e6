"""Percent-encoding for URL path segments.

The API addresses a project by its full path (``group/sub/project``) in a
single path segment, so the slashes have to be encoded too. Everything
outside the RFC 3986 unreserved set becomes ``%xx`` with lowercase hex.
"""

from __future__ import annotations

import string

_UNRESERVED = frozenset((string.ascii_letters + string.digits + "._~-").encode("ascii"))


def quote_segment(value: str) -> str:
    """Percent-encode *value* for use as one URL path segment.

    Example::

        >>> quote_segment("group/my proj")
        'group%2fmy%20proj'
    """
    return "".join(
        chr(byte) if byte in _UNRESERVED else f"%{byte:02x}"
        for byte in value.encode("utf-8")
    )


def quote_path(path: str) -> str:
    """Percent-encode each ``/``-separated segment of *path*, keeping the slashes."""
    return "/".join(quote_segment(segment) for segment in path.split("/"))
