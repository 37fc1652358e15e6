"""Deployment listing.

:func:`iter_deployments` asks the deployments endpoint for one page of
records, newest first, and yields them as
:class:`~ciprobe.models.Deployment` objects in the order the service
returned them. Filtering by environment and status is done by the service;
the records are not filtered again here.

Only the first page is read. Deployments beyond :data:`PAGE_SIZE` are not
visible to the tools.
"""

from __future__ import annotations

import json
from typing import Any, Iterator, Optional

from ciprobe.client import ApiClient
from ciprobe.exceptions import ParseError
from ciprobe.models import Deployment

PAGE_SIZE = 100


def deployments_query(
    environment: Optional[str] = None,
    status: Optional[str] = None,
) -> dict[str, Any]:
    """Build the query parameters for the deployments request.

    ``environment`` is always sent (empty when unset); ``status`` only when
    given.
    """
    params: dict[str, Any] = {
        "sort": "desc",
        "environment": environment or "",
    }
    if status:
        params["status"] = status
    params["per_page"] = PAGE_SIZE
    return params


def iter_deployments(
    client: ApiClient,
    environment: Optional[str] = None,
    status: Optional[str] = None,
) -> Iterator[Deployment]:
    """Yield the most recent deployments of the configured project.

    The request is sent when iteration starts. The generator is not
    restartable: iterating again requires a new call.

    Raises:
        NetworkError: If the request fails.
        ParseError: If the body is not a JSON array, or when a malformed
            record is reached.
    """
    response = client.get(
        client.api_url("deployments"),
        params=deployments_query(environment, status),
    )
    try:
        records = json.loads(response.content)
    except ValueError as exc:
        raise ParseError(f"Deployments response is not valid JSON: {exc}") from exc
    if not isinstance(records, list):
        raise ParseError(
            f"Deployments response is a {type(records).__name__}, expected a list"
        )

    for record in records:
        yield Deployment.from_api(record)
