"""Synchronous, authenticated HTTP client for the CI REST API.

This module provides :class:`ApiClient`, the only component that talks to
the network. It wraps :class:`httpx.Client` and layers on:

- **Auth injection** -- ``Authorization: Bearer <token>`` on every request.
- **Fail fast** -- any non-2xx status or transport failure raises
  :class:`~ciprobe.exceptions.NetworkError`. There is no retry; the first
  failure aborts the run.
- **Debug echo** -- with ``Config.debug`` set, the equivalent ``curl``
  command is written to stderr before each request.
- **Streaming downloads** -- :meth:`ApiClient.download` writes a response
  body straight into a cache file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import httpx

from ciprobe.client.encoding import quote_segment
from ciprobe.exceptions import NetworkError
from ciprobe.models import Config
from ciprobe.output import debug
from ciprobe.process import format_command

_MASKED_TOKEN = "****"


class ApiClient:
    """Synchronous HTTP client for read-only API calls.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        config: Resolved connection settings (server, repository, token).
        transport: Optional httpx transport, e.g. :class:`httpx.MockTransport`
            in tests. ``None`` uses the default network transport.

    Example::

        with ApiClient(config) as client:
            response = client.get(client.api_url("deployments"))
    """

    def __init__(
        self,
        config: Config,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @property
    def config(self) -> Config:
        """The connection settings this client was built with."""
        return self._config

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ApiClient:
        self._client = httpx.Client(
            headers={"Authorization": f"Bearer {self._config.token}"},
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public request methods
    # ------------------------------------------------------------------ #

    def api_url(self, *segments: str) -> str:
        """Build an absolute URL under the configured project.

        Segments are joined with ``/`` as given; callers encode any segment
        that may contain reserved characters.

        Example::

            client.api_url("jobs", "42", "trace")
            # https://gitlab.com/api/v4/projects/group%2fproj/jobs/42/trace
        """
        project = quote_segment(self._config.repo_slug)
        tail = "/".join(segments)
        return f"{self._config.api_base}/projects/{project}/{tail}"

    def get(self, url: str, params: Optional[dict[str, Any]] = None) -> httpx.Response:
        """Send a GET request and return the response if its status is 2xx.

        Args:
            url: Absolute request URL.
            params: Query parameters, sent in the given order.

        Raises:
            NetworkError: On a non-2xx status or a transport failure.
        """
        client = self._require_client()
        self._echo(url, params)
        try:
            response = client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc
        self._raise_for_status(response)
        return response

    def download(self, url: str, dest: Path) -> Path:
        """Stream the body of a GET request into *dest*.

        *dest* is only created once the server has answered with a 2xx
        status. A transport failure mid-body leaves a partial file behind.

        Returns:
            *dest*.

        Raises:
            NetworkError: On a non-2xx status or a transport failure.
        """
        client = self._require_client()
        self._echo(url, None)
        try:
            with client.stream("GET", url) as response:
                if not response.is_success:
                    response.read()
                    self._raise_for_status(response)
                with open(dest, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to {url} failed: {exc}") from exc
        return dest

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _require_client(self) -> httpx.Client:
        assert self._client is not None, "Client not initialised -- use as context manager"
        return self._client

    def _echo(self, url: str, params: Optional[dict[str, Any]]) -> None:
        """Write the equivalent curl invocation to stderr in debug mode."""
        if not self._config.debug:
            return
        full_url = str(httpx.URL(url, params=params)) if params else url
        debug(
            format_command(
                [
                    "curl",
                    "--fail",
                    "--location",
                    "--header",
                    f"Authorization: Bearer {_MASKED_TOKEN}",
                    full_url,
                ]
            )
        )

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        """Raise :class:`NetworkError` for any status outside 2xx."""
        if response.is_success:
            return

        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = str(detail.get("message") or detail.get("error") or "")
            else:
                msg = str(detail)
        except ValueError:
            msg = response.text[:200] if response.text else ""

        prefix = f"HTTP {response.status_code}"
        full_msg = f"{prefix}: {msg}" if msg else prefix
        raise NetworkError(f"{full_msg} ({response.request.url})")
