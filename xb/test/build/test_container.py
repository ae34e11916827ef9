from __future__ import annotations

from pathlib import Path

import pytest

from xb.build.container import container_name, extract_artifacts
from xb.build.executor import run_target
from xb.core.environment import Environment
from xb.core.result import Err, Ok
from xb.output.console import MockConsole
from xb.platform.process import ScriptedProcessRunner

from ._helpers import catalog_target, options


def test_container_name_is_unique_per_call() -> None:
    target = catalog_target("android-arm64")
    first = container_name(target)
    second = container_name(target)
    assert first.startswith("xb-extract-android-arm64-")
    assert first != second


@pytest.mark.asyncio
async def test_extract_creates_copies_and_removes(env: Environment) -> None:
    runner = ScriptedProcessRunner()
    target = catalog_target("android-arm64")
    dest = env.root / "target" / "aarch64-linux-android" / "release"

    result = await extract_artifacts(target, "release", dest, env=env, runner=runner, console=MockConsole())

    assert isinstance(result, Ok)
    assert dest.is_dir()
    assert [line.split()[1] for line in runner.lines] == ["create", "cp", "rm"]
    cp = runner.find("docker cp")[0]
    assert cp.command[2].endswith(":/nwep/target/aarch64-linux-android/release/.")
    assert cp.command[3] == str(dest)


@pytest.mark.asyncio
async def test_container_removed_when_copy_fails(env: Environment) -> None:
    runner = ScriptedProcessRunner().add("docker cp", exit_code=1, stderr="no such path")
    result = await extract_artifacts(
        catalog_target("android-x64"), "release", env.root / "out", env=env, runner=runner, console=MockConsole()
    )

    assert isinstance(result, Err)
    assert result.error.step == "copy"
    assert "no such path" in str(result.error)
    assert runner.ran("docker rm")


@pytest.mark.asyncio
async def test_nothing_to_remove_when_create_fails(env: Environment) -> None:
    runner = ScriptedProcessRunner().add("docker create", exit_code=1, stderr="no such image")
    result = await extract_artifacts(
        catalog_target("android-x64"), "release", env.root / "out", env=env, runner=runner, console=MockConsole()
    )

    assert isinstance(result, Err)
    assert result.error.step == "create"
    assert not runner.ran("docker rm")


@pytest.mark.asyncio
async def test_failed_cleanup_only_warns(env: Environment) -> None:
    runner = ScriptedProcessRunner().add("docker rm", exit_code=1, stderr="in use")
    console = MockConsole()
    result = await extract_artifacts(
        catalog_target("android-x64"), "release", env.root / "out", env=env, runner=runner, console=console
    )

    assert isinstance(result, Ok)
    assert console.has_warning()


@pytest.mark.asyncio
async def test_container_build_runs_extraction(tmp_path: Path) -> None:
    env = Environment(root=tmp_path)
    runner = ScriptedProcessRunner()
    result = await run_target(
        catalog_target("android-arm32"), options(), env=env, runner=runner, console=MockConsole()
    )

    assert result.success
    assert result.output_path == "target/armv7-linux-androideabi/release/"
    assert runner.lines[0].startswith("docker build -f Dockerfile.android")
    assert runner.ran("docker cp")


@pytest.mark.asyncio
async def test_container_build_fails_when_extraction_fails(env: Environment) -> None:
    runner = ScriptedProcessRunner().add("docker cp", exit_code=1, stderr="missing")
    result = await run_target(
        catalog_target("android-arm32"), options(), env=env, runner=runner, console=MockConsole()
    )

    assert not result.success
    assert result.error is not None
    assert "artifact extraction failed (copy)" in result.error
