"""ciprobe -- search deployment logs and diff job artifacts on a GitLab-style CI.

The package provides two console scripts built on one shared layer:

    grep-deploys --env production --regex 'ERROR'   # search deployment traces
    diff-jobs 100 101 report.xml                    # diff an artifact between jobs

Both tools resolve their connection settings once, talk to the CI platform's
REST API with a bearer token, and keep fetched traces and artifacts in a
per-tool cache directory on local disk.

Modules:
    app: Console-script entry points and top-level error handling.
    models: Pydantic models shared across the package.
    config: Connection settings precedence and cache directory layout.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric process exit codes.
    output: stdout/stderr formatting with Rich support.
    deployments: Deployment listing.
    logsearch: Trace download, regex filtering and summaries.
    artifacts: Artifact download, preprocessing and diffing.
    process: External program parsing and invocation.
"""

__version__ = "0.1.0"
