"""Artifact extraction for container-backed targets.

After the image build succeeds, outputs are copied out of a throwaway
container:

    docker create --name <name> <image>
    docker cp <name>:<artifact_dir>/. <dest>
    docker rm <name>

The container is always removed once it has been created, whether the copy
succeeded or not.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from pathlib import Path

from xb.core.environment import Environment
from xb.core.result import Err, Ok, Result
from xb.output.console import ConsoleProtocol
from xb.platform.process import ProcessOutput, ProcessRunner, SpawnError

from .targets import Target

__all__ = ["ExtractionFailed", "container_name", "extract_artifacts"]


@dataclass(frozen=True, slots=True)
class ExtractionFailed:
    step: str
    message: str

    def __str__(self) -> str:
        return f"artifact extraction failed ({self.step}): {self.message}"


def container_name(target: Target) -> str:
    return f"xb-extract-{target.id}-{secrets.token_hex(4)}"


def _failure(result: Result[ProcessOutput, SpawnError]) -> str | None:
    if isinstance(result, Err):
        return result.error.message
    out = result.value
    if out.ok:
        return None
    return out.stderr.strip() or out.stdout.strip() or f"exit code {out.exit_code}"


async def extract_artifacts(
    target: Target,
    mode: str,
    dest: Path,
    *,
    env: Environment,
    runner: ProcessRunner,
    console: ConsoleProtocol,
) -> Result[Path, ExtractionFailed]:
    """Copy the target's build outputs from its image into dest."""
    program = target.program
    image = target.image or target.id
    name = container_name(target)
    proc_env = env.process_env()

    created = await runner.run_captured(
        [program, "create", "--name", name, image], cwd=env.root, env=proc_env
    )
    error = _failure(created)
    if error is not None:
        return Err(ExtractionFailed("create", error))

    try:
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return Err(ExtractionFailed("copy", str(e)))
        copied = await runner.run_captured(
            [program, "cp", f"{name}:{target.artifact_dir(mode)}/.", str(dest)],
            cwd=env.root,
            env=proc_env,
        )
        error = _failure(copied)
        if error is not None:
            return Err(ExtractionFailed("copy", error))
        return Ok(dest)
    finally:
        removed = await runner.run_captured([program, "rm", name], cwd=env.root, env=proc_env)
        error = _failure(removed)
        if error is not None:
            console.warning(f"could not remove container {name}: {error}")
