"""Shared test fixtures for ciprobe.

Provides an isolated environment (no real git remote, no GITLAB_* variables,
a throwaway cache directory), a resolved config, and :class:`FakeGitLab`, an
in-memory stand-in for the CI REST API served through
:class:`httpx.MockTransport`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import httpx
import pytest

from ciprobe.cache import JobFileCache
from ciprobe.client import ApiClient
from ciprobe.models import Config
from ciprobe.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager keeps references to sys.stdout/sys.stderr from when it
    was created; CliRunner and capsys swap those streams per test.
    """
    yield
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a PLAIN, colourless OutputManager so captured text is exact."""
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration from the developer's machine.

    Clears the GITLAB_* variables, points CIPROBE_CACHE_DIR at tmp_path,
    and changes into an empty directory that is not a git clone.

    Returns:
        The tmp_path root.
    """
    for var in ["GITLAB_TOKEN", "GITLAB_SERVER", "GITLAB_REPO", "NO_COLOR"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("CIPROBE_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    workdir = tmp_path / "work"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    return tmp_path


@pytest.fixture
def config() -> Config:
    return Config(
        server_url="https://gitlab.example.com",
        repo_slug="group/proj",
        token="secret-token",
    )


@pytest.fixture
def cache(tmp_path: Path) -> JobFileCache:
    return JobFileCache(tmp_path / "jobs")


# ---------------------------------------------------------------------------
# Fake CI server
# ---------------------------------------------------------------------------


def deployment_record(
    job_id: int,
    user: str = "Alice",
    env: str = "production",
    created_at: str = "2024-05-01T12:00:00.000Z",
    status: str = "success",
) -> dict[str, Any]:
    """A deployment object shaped like the API's, with unused fields included."""
    return {
        "id": job_id + 1000,
        "iid": job_id,
        "ref": "main",
        "sha": "a91957a858320c0e17f3a0eca7cfacbff50ea29a",
        "created_at": created_at,
        "status": status,
        "user": {"id": 1, "name": user, "username": user.lower()},
        "environment": {"id": 9, "name": env.title(), "slug": env},
        "deployable": {"id": job_id, "status": status, "stage": "deploy"},
    }


class FakeGitLab:
    """Route table for :class:`httpx.MockTransport`.

    Routes are keyed by the decoded URL path. Unknown paths answer 404 with a
    GitLab-style JSON error. Every request is recorded in :attr:`requests`.
    """

    def __init__(self) -> None:
        self.routes: dict[str, httpx.Response] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        path: str,
        *,
        json_body: Any = None,
        content: Optional[bytes | str] = None,
        status: int = 200,
    ) -> None:
        if json_body is not None:
            content = json.dumps(json_body)
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.routes[path] = httpx.Response(status, content=content or b"")

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "404 Not found"})
        return httpx.Response(route.status_code, content=route.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


@pytest.fixture
def gitlab() -> FakeGitLab:
    return FakeGitLab()


@pytest.fixture
def client(config: Config, gitlab: FakeGitLab) -> ApiClient:
    with ApiClient(config, transport=gitlab.transport) as c:
        yield c


@pytest.fixture
def make_deployment():
    """Factory fixture for :func:`deployment_record`."""
    return deployment_record
