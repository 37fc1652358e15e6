"""HTTP client module for ciprobe.

Provides :class:`ApiClient`, a blocking client backed by :mod:`httpx` that
injects the bearer token, fails fast on any non-2xx response, and can echo
each request as an equivalent ``curl`` command in debug mode.

Example::

    from ciprobe.client import ApiClient

    with ApiClient(config) as client:
        trace = client.get(client.api_url("jobs", "42", "trace")).text
"""

from ciprobe.client.encoding import quote_path, quote_segment
from ciprobe.client.sync_client import ApiClient

__all__ = ["ApiClient", "quote_path", "quote_segment"]
