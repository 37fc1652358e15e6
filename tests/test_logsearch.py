"""Tests for trace search, retention and summaries."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest

from ciprobe.cache import JobFileCache
from ciprobe.client import ApiClient
from ciprobe.exceptions import NetworkError
from ciprobe.logsearch import (
    format_summary,
    hdate,
    job_url,
    matching_lines,
    search_deployment_logs,
)
from ciprobe.models import Config, Deployment

NOW = datetime(2024, 5, 2, 12, 0, tzinfo=timezone.utc)
JOBS = "/api/v4/projects/group/proj/jobs"


def _deployment(job_id: int, seconds_ago: int = 60, user: str = "Alice", env: str = "production") -> Deployment:
    return Deployment(
        job_id=job_id,
        user_name=user,
        environment_slug=env,
        created_at=NOW - timedelta(seconds=seconds_ago),
    )


# ---------------------------------------------------------------------------
# Relative dates
# ---------------------------------------------------------------------------


class TestHdate:
    def test_now(self) -> None:
        assert hdate(NOW, NOW) == "0 seconds ago"

    def test_hours(self) -> None:
        assert hdate(NOW - timedelta(seconds=3661), NOW) == "1 hours ago"

    def test_days(self) -> None:
        assert hdate(NOW - timedelta(seconds=90000), NOW) == "1 days ago"

    @pytest.mark.parametrize(
        "seconds, expected",
        [
            (59, "59 seconds ago"),
            (60, "1 minutes ago"),
            (3599, "59 minutes ago"),
            (3600, "1 hours ago"),
            (86399, "23 hours ago"),
            (86400, "1 days ago"),
            (86400 * 45, "45 days ago"),
        ],
    )
    def test_unit_boundaries(self, seconds: int, expected: str) -> None:
        assert hdate(NOW - timedelta(seconds=seconds), NOW) == expected

    def test_future_clamps_to_zero(self) -> None:
        assert hdate(NOW + timedelta(minutes=5), NOW) == "0 seconds ago"

    def test_naive_timestamp_is_utc(self) -> None:
        naive = datetime(2024, 5, 2, 11, 0)
        assert hdate(naive, NOW) == "1 hours ago"

    def test_defaults_to_current_time(self) -> None:
        assert hdate(datetime.now(timezone.utc)) == "0 seconds ago"


# ---------------------------------------------------------------------------
# Summary and matching
# ---------------------------------------------------------------------------


class TestSummary:
    def test_job_url(self, config: Config) -> None:
        assert job_url(config, 42) == "https://gitlab.example.com/group/proj/-/jobs/42"

    def test_format_summary(self, config: Config) -> None:
        line = format_summary(config, _deployment(42, seconds_ago=7200, user="Bob", env="staging"), NOW)
        assert line == "#42 https://gitlab.example.com/group/proj/-/jobs/42 Bob staging 2 hours ago"


class TestMatchingLines:
    def test_pattern(self) -> None:
        text = "ok\nERROR: disk full\nfine\nERROR again\n"
        assert matching_lines(text, re.compile("ERROR")) == ["ERROR: disk full", "ERROR again"]

    def test_search_not_fullmatch(self) -> None:
        assert matching_lines("prefix needle suffix", re.compile("needle")) == ["prefix needle suffix"]

    def test_default_matches_everything(self) -> None:
        assert matching_lines("a\n\nb", None) == ["a", "", "b"]

    def test_crlf_lines(self) -> None:
        assert matching_lines("x\r\nERROR\r\n", re.compile("ERROR$")) == ["ERROR"]


# ---------------------------------------------------------------------------
# search_deployment_logs
# ---------------------------------------------------------------------------


class TestSearchDeploymentLogs:
    def test_match_and_no_match(
        self,
        client: ApiClient,
        gitlab,
        cache: JobFileCache,
        plain_output,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        gitlab.add(f"{JOBS}/42/trace", content="starting\nERROR: disk full\ndone\n")
        gitlab.add(f"{JOBS}/43/trace", content="all good\n")

        entries = search_deployment_logs(
            client, [_deployment(42), _deployment(43)], cache, re.compile("ERROR"), now=NOW
        )

        out = capsys.readouterr().out.splitlines()
        assert out == [
            "#42 https://gitlab.example.com/group/proj/-/jobs/42 Alice production 1 minutes ago",
            "ERROR: disk full",
        ]
        assert cache.path_for(42, "log").read_text() == "starting\nERROR: disk full\ndone\n"
        assert not cache.path_for(43, "log").exists()
        assert [(e.job_id, e.retained) for e in entries] == [(42, True), (43, False)]

    def test_default_pattern_retains_everything(
        self, client: ApiClient, gitlab, cache: JobFileCache, plain_output, capsys
    ) -> None:
        gitlab.add(f"{JOBS}/1/trace", content="line one\nline two\n")
        gitlab.add(f"{JOBS}/2/trace", content="")

        entries = search_deployment_logs(client, [_deployment(1), _deployment(2)], cache, now=NOW)

        assert all(e.retained for e in entries)
        assert cache.path_for(1, "log").exists()
        assert cache.path_for(2, "log").exists()
        out = capsys.readouterr().out.splitlines()
        assert out[1:3] == ["line one", "line two"]
        assert out[3].startswith("#2 ")

    def test_processes_whole_sequence(
        self, client: ApiClient, gitlab, cache: JobFileCache, plain_output, capsys
    ) -> None:
        for job_id in (3, 2, 1):
            gitlab.add(f"{JOBS}/{job_id}/trace", content="ERROR\n")
        search_deployment_logs(
            client, [_deployment(3), _deployment(2), _deployment(1)], cache, re.compile("ERROR"), now=NOW
        )
        assert gitlab.paths() == [f"{JOBS}/3/trace", f"{JOBS}/2/trace", f"{JOBS}/1/trace"]
        headings = [l for l in capsys.readouterr().out.splitlines() if l.startswith("#")]
        assert [h.split()[0] for h in headings] == ["#3", "#2", "#1"]

    def test_retained_iff_match(self, client: ApiClient, gitlab, cache: JobFileCache, plain_output) -> None:
        traces = {10: "a\nb\n", 11: "xyz\n", 12: "", 13: "no\nyes xyz\n"}
        for job_id, text in traces.items():
            gitlab.add(f"{JOBS}/{job_id}/trace", content=text)
        pattern = re.compile("xyz")

        entries = search_deployment_logs(
            client, [_deployment(j) for j in traces], cache, pattern, now=NOW
        )

        for entry in entries:
            expected = any(pattern.search(line) for line in traces[entry.job_id].splitlines())
            assert entry.retained is expected
            assert entry.local_path.exists() is expected

    def test_invalid_utf8_does_not_fail(
        self, client: ApiClient, gitlab, cache: JobFileCache, plain_output, capsys
    ) -> None:
        gitlab.add(f"{JOBS}/5/trace", content=b"\xffbinary ERROR\n")
        entries = search_deployment_logs(client, [_deployment(5)], cache, re.compile("ERROR"), now=NOW)
        assert entries[0].retained
        assert "binary ERROR" in capsys.readouterr().out

    def test_network_error_aborts_and_keeps_earlier_files(
        self, client: ApiClient, gitlab, cache: JobFileCache, plain_output
    ) -> None:
        gitlab.add(f"{JOBS}/1/trace", content="ERROR\n")
        with pytest.raises(NetworkError, match="HTTP 404"):
            search_deployment_logs(
                client, [_deployment(1), _deployment(2)], cache, re.compile("ERROR"), now=NOW
            )
        assert cache.path_for(1, "log").exists()

    def test_rich_output_does_not_interpret_markup(
        self, client: ApiClient, gitlab, cache: JobFileCache, capsys
    ) -> None:
        from ciprobe.output import OutputFormat, OutputManager, set_output

        set_output(OutputManager(format=OutputFormat.RICH, no_color=True))
        gitlab.add(f"{JOBS}/9/trace", content="[bold]ERROR[/bold]\n")
        search_deployment_logs(client, [_deployment(9, user="[red]x[/red]")], cache, re.compile("ERROR"), now=NOW)
        out = capsys.readouterr().out
        assert "[bold]ERROR[/bold]" in out
        assert "[red]x[/red]" in out
