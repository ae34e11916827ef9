"""Tests for xb.build.executor module."""

from __future__ import annotations

import pytest

from xb.build.executor import BuildResult, NonZeroExit, run_target
from xb.core.environment import Environment
from xb.output.console import MockConsole
from xb.platform.process import ProcessOutput, ScriptedProcessRunner

from ._helpers import catalog_target, options, toolchain_target


class TestNonZeroExit:
    def test_message_prefers_stderr_then_stdout(self) -> None:
        error = NonZeroExit(exit_code=101, stdout="warning: unused\n", stderr="error[E0308]: mismatched\n")
        assert error.message == "error[E0308]: mismatched\nwarning: unused"

    def test_message_fallback(self) -> None:
        assert NonZeroExit(exit_code=3).message == "Build failed with exit code 3"

    def test_from_output(self) -> None:
        out = ProcessOutput(command=("cargo",), exit_code=2, stderr="boom")
        assert NonZeroExit.from_output(out) == NonZeroExit(exit_code=2, stderr="boom")


class TestBuildResult:
    def test_first_error_line(self) -> None:
        result = BuildResult(toolchain_target("a"), success=False, duration_ms=1, error="\n  first\nsecond")
        assert result.first_error_line == "first"

    def test_first_error_line_default(self) -> None:
        result = BuildResult(toolchain_target("a"), success=False, duration_ms=1)
        assert result.first_error_line == "Unknown error"


class TestRunTarget:
    @pytest.mark.asyncio
    async def test_success_sets_output_path(self, env: Environment) -> None:
        runner = ScriptedProcessRunner()
        result = await run_target(
            catalog_target("linux-arm64"), options(), env=env, runner=runner, console=MockConsole()
        )

        assert result.success
        assert result.error is None
        assert result.output_path == "target/aarch64-unknown-linux-gnu/release/"
        assert runner.lines == ["cross build --release --target aarch64-unknown-linux-gnu --features ffi"]

    @pytest.mark.asyncio
    async def test_nonzero_exit_fails_with_captured_error(self, env: Environment) -> None:
        runner = ScriptedProcessRunner().add("build-a", exit_code=101, stderr="error: could not compile")
        result = await run_target(toolchain_target("a"), options(), env=env, runner=runner, console=MockConsole())

        assert not result.success
        assert result.error == "error: could not compile"
        assert result.output_path is None

    @pytest.mark.asyncio
    async def test_nonzero_exit_without_output(self, env: Environment) -> None:
        runner = ScriptedProcessRunner().add("build-a", exit_code=4)
        result = await run_target(toolchain_target("a"), options(), env=env, runner=runner, console=MockConsole())

        assert not result.success
        assert result.error == "Build failed with exit code 4"

    @pytest.mark.asyncio
    async def test_spawn_error_is_a_failed_result(self, env: Environment) -> None:
        runner = ScriptedProcessRunner().add("build-a", spawn_error="No such file or directory")
        result = await run_target(toolchain_target("a"), options(), env=env, runner=runner, console=MockConsole())

        assert not result.success
        assert result.error == "No such file or directory"

    @pytest.mark.asyncio
    async def test_verbose_streams_and_echoes(self, env: Environment) -> None:
        runner = ScriptedProcessRunner()
        console = MockConsole()
        await run_target(toolchain_target("a"), options(verbose=True), env=env, runner=runner, console=console)

        assert runner.calls[0].mode == "streaming"
        assert console.messages == ["$ build-a build --release --features ffi"]

    @pytest.mark.asyncio
    async def test_quiet_captures_without_echo(self, env: Environment) -> None:
        runner = ScriptedProcessRunner()
        console = MockConsole()
        await run_target(toolchain_target("a"), options(verbose=False), env=env, runner=runner, console=console)

        assert runner.calls[0].mode == "captured"
        assert console.messages == []

    @pytest.mark.asyncio
    async def test_duration_covers_the_child(self, env: Environment) -> None:
        runner = ScriptedProcessRunner().add("build-a", delay=0.05)
        result = await run_target(toolchain_target("a"), options(), env=env, runner=runner, console=MockConsole())

        assert result.duration_ms >= 45
