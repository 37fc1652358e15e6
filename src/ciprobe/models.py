"""Canonical Pydantic models shared across all ciprobe modules.

Every other module imports its data shapes from here. The models fall into
two groups:

**Run configuration** -- built once at startup and never mutated:
    :class:`Config`.

**Run records** -- produced while the tools work:
    :class:`Deployment` (one per deployment returned by the API),
    :class:`CacheEntry` (one per fetched trace or artifact file), and
    :class:`ArtifactPair` (the unit of work for a diff).
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ciprobe.exceptions import ParseError

API_PREFIX = "/api/v4"


class Config(BaseModel):
    """Resolved connection settings for one invocation.

    Built by :func:`~ciprobe.config.resolve_config` from CLI options,
    environment variables, and the local git remote. Frozen so that no
    component can alter it mid-run.
    """

    model_config = ConfigDict(frozen=True)

    server_url: str = Field(description="Base URL of the CI server, without trailing slash")
    repo_slug: str = Field(description="Repository identifier, e.g. 'group/project'")
    token: str = Field(description="Bearer token sent with every request")
    debug: bool = Field(default=False, description="Echo equivalent commands to stderr")

    @property
    def api_base(self) -> str:
        """Root of the REST API, e.g. ``https://gitlab.com/api/v4``."""
        return f"{self.server_url}{API_PREFIX}"


class Deployment(BaseModel):
    """A deployment event as listed by the deployments endpoint."""

    job_id: int
    user_name: str
    environment_slug: str
    created_at: datetime

    @classmethod
    def from_api(cls, record: Any) -> Deployment:
        """Build a :class:`Deployment` from one element of the API's JSON array.

        Only ``deployable.id``, ``user.name``, ``environment.slug`` and
        ``created_at`` are read; everything else in the record is ignored.

        Raises:
            ParseError: If *record* is not an object or a consumed field is
                missing or has the wrong type.
        """
        try:
            return cls(
                job_id=record["deployable"]["id"],
                user_name=record["user"]["name"],
                environment_slug=record["environment"]["slug"],
                created_at=record["created_at"],
            )
        except (KeyError, TypeError, ValidationError) as exc:
            raise ParseError(f"Malformed deployment record: {exc}") from exc


class CacheEntry(BaseModel):
    """A trace or artifact file written to the job cache."""

    job_id: int
    local_path: Path
    retained: bool


class ArtifactPair(BaseModel):
    """Two cached copies of the same artifact, one per job."""

    left_job_id: int
    right_job_id: int
    artifact_path: str
    left_file: Path
    right_file: Path
