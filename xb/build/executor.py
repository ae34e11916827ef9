"""Run one target's build and turn the outcome into data.

`run_target` never raises for build-level problems: a backend that cannot be
spawned, a non-zero exit or a failed artifact extraction all come back as a
`BuildResult` with `success=False`, so sibling builds are unaffected.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from xb.core.environment import Environment
from xb.core.result import Err
from xb.output.console import ConsoleProtocol
from xb.platform.process import ProcessOutput, ProcessRunner

from .container import extract_artifacts
from .options import BuildOptions
from .targets import Target

__all__ = ["BuildResult", "NonZeroExit", "run_target"]


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Outcome of one target build.

    `error` is set exactly when `success` is False; `output_path` exactly
    when it is True. The output path is relative to the project root.
    """

    target: Target
    success: bool
    duration_ms: int
    error: str | None = None
    output_path: str | None = None

    @property
    def first_error_line(self) -> str:
        if not self.error:
            return "Unknown error"
        for line in self.error.splitlines():
            if line.strip():
                return line.strip()
        return "Unknown error"


@dataclass(frozen=True, slots=True)
class NonZeroExit:
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @classmethod
    def from_output(cls, output: ProcessOutput) -> NonZeroExit:
        return cls(exit_code=output.exit_code, stdout=output.stdout, stderr=output.stderr)

    @property
    def message(self) -> str:
        """Captured stderr then stdout, or a generic line when both are empty."""
        parts = [p.rstrip("\n") for p in (self.stderr, self.stdout) if p.strip()]
        if parts:
            return "\n".join(parts)
        return f"Build failed with exit code {self.exit_code}"


def _elapsed_ms(start: float) -> int:
    return max(0, int((time.monotonic() - start) * 1000))


def output_path(target: Target, options: BuildOptions, env: Environment) -> str:
    return f"{env.config.release.target_dir}/{target.output_dir(options.mode)}"


async def run_target(
    target: Target,
    options: BuildOptions,
    *,
    env: Environment,
    runner: ProcessRunner,
    console: ConsoleProtocol,
) -> BuildResult:
    cmd = target.command(options)
    proc_env = env.process_env()
    start = time.monotonic()

    if options.verbose:
        console.command(" ".join(cmd))
        result = await runner.run_streaming(cmd, cwd=env.root, env=proc_env)
    else:
        result = await runner.run_captured(cmd, cwd=env.root, env=proc_env)

    if isinstance(result, Err):
        return BuildResult(
            target=target,
            success=False,
            duration_ms=_elapsed_ms(start),
            error=result.error.message,
        )

    output = result.value
    if not output.ok:
        return BuildResult(
            target=target,
            success=False,
            duration_ms=_elapsed_ms(start),
            error=NonZeroExit.from_output(output).message,
        )

    path = output_path(target, options, env)
    if target.requires_container:
        extracted = await extract_artifacts(
            target,
            options.mode,
            env.root / path,
            env=env,
            runner=runner,
            console=console,
        )
        if isinstance(extracted, Err):
            return BuildResult(
                target=target,
                success=False,
                duration_ms=_elapsed_ms(start),
                error=str(extracted.error),
            )

    return BuildResult(
        target=target,
        success=True,
        duration_ms=_elapsed_ms(start),
        output_path=path,
    )
