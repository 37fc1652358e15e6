"""Connection settings resolution and cache directory layout.

This module decides, once per invocation, which server, repository and token
the tools talk to:

* **Precedence resolution** -- :func:`resolve_config` merges CLI options,
  environment variables, the local git remote, and built-in defaults into a
  single frozen :class:`~ciprobe.models.Config`.
* **Remote detection** -- :func:`detect_remote` reads the first configured
  git remote and :func:`parse_remote_url` turns its URL into a server and
  repository identifier. Detection never raises; a missing or unrecognised
  remote just contributes nothing.
* **Cache layout** -- :func:`get_cache_dir` returns the per-tool cache
  directory, creating it on first use.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from ciprobe.exceptions import ConfigError
from ciprobe.models import Config

logger = logging.getLogger(__name__)

_APP_NAME = "ciprobe"

DEFAULT_SERVER = "https://gitlab.com"

ENV_TOKEN = "GITLAB_TOKEN"
ENV_SERVER = "GITLAB_SERVER"
ENV_REPO = "GITLAB_REPO"
ENV_CACHE_DIR = "CIPROBE_CACHE_DIR"

_HTTP_REMOTE = re.compile(r"^(https?)://(?:[^@/]+@)?([^/]+)/(.+)$")
_SCP_REMOTE = re.compile(r"^(?:[^@/]+@)?([^:/]+):(.+)$")


# --- Cache directory ---


def get_cache_dir(tool: str) -> Path:
    """Return the cache directory for *tool*, creating it if necessary.

    ``$CIPROBE_CACHE_DIR/<tool>`` when the variable is set, otherwise
    ``<system temp dir>/ciprobe-<tool>``. The name is deterministic so that
    repeated runs reuse the files left by earlier ones.

    Args:
        tool: Console script name, e.g. ``grep-deploys``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    override = os.environ.get(ENV_CACHE_DIR, "")
    if override:
        path = Path(override).expanduser() / tool
    else:
        path = Path(tempfile.gettempdir()) / f"{_APP_NAME}-{tool}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Git remote detection ---


def parse_remote_url(url: str) -> Optional[tuple[str, str]]:
    """Split a git remote URL into ``(server_url, repo_slug)``.

    Supported forms::

        https://gitlab.example.com/group/proj.git -> ("https://gitlab.example.com", "group/proj")
        git@gitlab.example.com:group/proj.git     -> ("https://gitlab.example.com", "group/proj")

    Credentials embedded in an HTTP URL are dropped, and a trailing ``.git``
    or ``/`` is removed from the repository identifier.

    Returns:
        The pair, or ``None`` when *url* matches neither form.
    """
    url = url.strip()
    http_match = _HTTP_REMOTE.match(url)
    scp_match = None if "://" in url else _SCP_REMOTE.match(url)
    if http_match:
        scheme, host, path = http_match.groups()
        server = f"{scheme}://{host}"
    elif scp_match:
        host, path = scp_match.groups()
        server = f"https://{host}"
    else:
        return None

    path = path.rstrip("/")
    if path.endswith(".git"):
        path = path[: -len(".git")]
    path = path.strip("/")
    if not path:
        return None
    return server, path


def _git(args: list[str], cwd: Optional[Path]) -> Optional[str]:
    """Run a read-only git command and return its stdout, or ``None`` on any failure."""
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=cwd,
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError as exc:
        logger.debug("git unavailable: %s", exc)
        return None
    if result.returncode != 0:
        logger.debug("git %s failed: %s", " ".join(args), result.stderr.strip())
        return None
    return result.stdout


def detect_remote(cwd: Optional[Path] = None) -> Optional[tuple[str, str]]:
    """Derive ``(server_url, repo_slug)`` from the first git remote of *cwd*.

    Returns ``None`` when git is missing, *cwd* is not inside a repository,
    no remote is configured, or the remote URL has an unrecognised form.
    """
    names = _git(["remote"], cwd)
    if not names or not names.split():
        return None
    first = names.split()[0]
    url = _git(["remote", "get-url", first], cwd)
    if not url:
        return None
    detected = parse_remote_url(url)
    if detected is None:
        logger.debug("Remote %r has an unrecognised URL: %s", first, url.strip())
    return detected


# --- Precedence resolution ---


def resolve_config(
    cli_token: Optional[str] = None,
    cli_server: Optional[str] = None,
    cli_repo: Optional[str] = None,
    debug: bool = False,
    cwd: Optional[Path] = None,
) -> Config:
    """Resolve connection settings with the full precedence chain.

    Precedence (high to low), applied per field:
        1. CLI options (``--token``, ``--server``, ``--repo``)
        2. Environment variables (``GITLAB_TOKEN``, ``GITLAB_SERVER``,
           ``GITLAB_REPO``)
        3. The first git remote of *cwd* (server and repository only)
        4. Defaults (server ``https://gitlab.com``)

    The git remote is only inspected when the server or repository is
    still unknown after steps 1 and 2.

    Returns:
        The frozen :class:`~ciprobe.models.Config` for this run.

    Raises:
        ConfigError: If the token or repository identifier is still empty,
            or the server is not an http(s) URL.
    """
    token = cli_token or os.environ.get(ENV_TOKEN, "")
    server = cli_server or os.environ.get(ENV_SERVER, "")
    repo = cli_repo or os.environ.get(ENV_REPO, "")

    if not server or not repo:
        detected = detect_remote(cwd)
        if detected is not None:
            detected_server, detected_repo = detected
            server = server or detected_server
            repo = repo or detected_repo

    server = (server or DEFAULT_SERVER).rstrip("/")
    repo = repo.strip("/")

    if not server.startswith(("http://", "https://")):
        raise ConfigError(f"Invalid server URL '{server}': expected http:// or https://")
    if not repo:
        raise ConfigError(
            f"No repository identifier: pass --repo, set {ENV_REPO}, "
            "or run inside a git clone with a remote"
        )
    if not token:
        raise ConfigError(f"No API token: pass --token or set {ENV_TOKEN}")

    return Config(server_url=server, repo_slug=repo, token=token, debug=debug)
