"""Tests for xb.platform.process module."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import pytest

from xb.core.result import Err, Ok
from xb.platform.process import (
    AsyncProcessRunner,
    ProcessOutput,
    ScriptedProcessRunner,
    SpawnError,
    format_command,
)


class TestProcessOutput:
    def test_ok_only_for_zero_exit(self) -> None:
        assert ProcessOutput(command=("true",), exit_code=0).ok
        assert not ProcessOutput(command=("false",), exit_code=1).ok

    def test_frozen(self) -> None:
        out = ProcessOutput(command=("x",), exit_code=0)
        with pytest.raises(AttributeError):
            out.exit_code = 1  # type: ignore[misc]


def test_format_command() -> None:
    assert format_command(["cargo", "build", "--release"]) == "cargo build --release"


class TestAsyncProcessRunner:
    """Runs real children through the event loop."""

    @pytest.mark.asyncio
    async def test_captured_returns_output(self, tmp_path: Path) -> None:
        runner = AsyncProcessRunner()
        result = await runner.run_captured(
            [sys.executable, "-c", "import sys; print('hello'); print('oops', file=sys.stderr)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Ok)
        assert result.value.exit_code == 0
        assert result.value.stdout.strip() == "hello"
        assert result.value.stderr.strip() == "oops"

    @pytest.mark.asyncio
    async def test_nonzero_exit_is_ok_result(self, tmp_path: Path) -> None:
        runner = AsyncProcessRunner()
        result = await runner.run_captured([sys.executable, "-c", "raise SystemExit(3)"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.exit_code == 3
        assert not result.value.ok

    @pytest.mark.asyncio
    async def test_missing_binary_is_spawn_error(self, tmp_path: Path) -> None:
        runner = AsyncProcessRunner()
        result = await runner.run_captured(["xb-definitely-not-a-binary"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert isinstance(result.error, SpawnError)
        assert result.error.command == ("xb-definitely-not-a-binary",)

    @pytest.mark.asyncio
    async def test_streaming_reports_exit_code_only(self, tmp_path: Path) -> None:
        runner = AsyncProcessRunner()
        result = await runner.run_streaming([sys.executable, "-c", "raise SystemExit(0)"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.exit_code == 0
        assert result.value.stdout == ""

    @pytest.mark.asyncio
    async def test_runs_in_cwd(self, tmp_path: Path) -> None:
        runner = AsyncProcessRunner()
        result = await runner.run_captured(
            [sys.executable, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )

        assert isinstance(result, Ok)
        assert Path(result.value.stdout.strip()).resolve() == tmp_path.resolve()


class TestScriptedProcessRunner:
    @pytest.mark.asyncio
    async def test_unmatched_commands_succeed(self, tmp_path: Path) -> None:
        runner = ScriptedProcessRunner()
        result = await runner.run_captured(["git", "status"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.ok
        assert runner.lines == ["git status"]

    @pytest.mark.asyncio
    async def test_first_matching_rule_wins(self, tmp_path: Path) -> None:
        runner = ScriptedProcessRunner()
        runner.add("cargo build --release", exit_code=2, stderr="error[E0425]")
        runner.add("cargo", exit_code=0)

        result = await runner.run_captured(["cargo", "build", "--release"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.exit_code == 2
        assert result.value.stderr == "error[E0425]"

    @pytest.mark.asyncio
    async def test_streaming_hides_output(self, tmp_path: Path) -> None:
        runner = ScriptedProcessRunner().add("cargo", stdout="Compiling", exit_code=0)
        result = await runner.run_streaming(["cargo", "build"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert result.value.stdout == ""
        assert runner.calls[0].mode == "streaming"

    @pytest.mark.asyncio
    async def test_spawn_error(self, tmp_path: Path) -> None:
        runner = ScriptedProcessRunner().add("cross", spawn_error="No such file or directory")
        result = await runner.run_captured(["cross", "--version"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.message == "No such file or directory"
        assert runner.ran("cross --version")

    @pytest.mark.asyncio
    async def test_delays_overlap_when_gathered(self, tmp_path: Path) -> None:
        runner = ScriptedProcessRunner()
        runner.add("slow", delay=0.05)
        runner.add("fast", delay=0.01)

        await asyncio.gather(
            runner.run_captured(["slow"], cwd=tmp_path),
            runner.run_captured(["fast"], cwd=tmp_path),
        )

        assert runner.lines == ["fast", "slow"]
        slow = runner.find("slow")[0]
        fast = runner.find("fast")[0]
        assert fast.started_at < slow.finished_at
