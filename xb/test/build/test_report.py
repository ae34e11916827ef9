from __future__ import annotations

from xb.build.executor import BuildResult
from xb.build.report import format_duration, render_summary, summarize
from xb.core.errors import ErrorCode
from xb.output.console import MockConsole, Style

from ._helpers import toolchain_target


def _ok(target_id: str, ms: int = 1000) -> BuildResult:
    return BuildResult(toolchain_target(target_id), True, ms, output_path=f"target/{target_id}/release/")


def _failed(target_id: str, error: str = "error: boom") -> BuildResult:
    return BuildResult(toolchain_target(target_id), False, 500, error=error)


def test_format_duration() -> None:
    assert format_duration(0) == "0s"
    assert format_duration(59_999) == "59s"
    assert format_duration(60_000) == "1m 0s"
    assert format_duration(125_000) == "2m 5s"


class TestSummarize:
    def test_partitions_are_disjoint_and_complete(self) -> None:
        results = [_ok("a"), _failed("b"), _ok("c"), _failed("d")]
        summary = summarize(results, 1234)

        assert [r.target.id for r in summary.succeeded] == ["a", "c"]
        assert [r.target.id for r in summary.failed] == ["b", "d"]
        assert not set(summary.succeeded) & set(summary.failed)
        assert set(summary.succeeded) | set(summary.failed) == set(results)
        assert summary.attempted == 4
        assert summary.total_ms == 1234

    def test_exit_code_tracks_failures(self) -> None:
        assert summarize([_ok("a")], 1).exit_code == ErrorCode.OK
        assert summarize([], 0).exit_code == ErrorCode.OK
        assert summarize([_ok("a"), _failed("b")], 1).exit_code == ErrorCode.FAILURE


class TestRender:
    def test_lists_every_attempted_target(self) -> None:
        console = MockConsole()
        render_summary(summarize([_ok("a", 61_000), _failed("b", "\nerror[E0425]: x\nmore")], 62_000), console)

        text = console.text
        assert "Successful Builds" in text
        assert "OK A\n  Time: 1m 1s\n  Output: target/a/release/" in text
        assert "Failed Builds" in text
        assert "FAILED B" in text
        assert "Error: error[E0425]: x" in text
        assert "more" not in text

    def test_status_line_styles(self) -> None:
        console = MockConsole()
        render_summary(summarize([_ok("a")], 1000), console)
        assert console.outputs[-1].style == Style.SUCCESS
        assert console.outputs[-1].message == "Build complete: 1 succeeded, 0 failed (1s)"

        console.clear()
        render_summary(summarize([_failed("a")], 1000), console)
        assert console.outputs[-1].style == Style.ERROR

        console.clear()
        render_summary(summarize([_ok("a"), _failed("b")], 1000), console)
        assert console.outputs[-1].style == Style.WARNING
