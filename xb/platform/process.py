"""Child process execution behind a small capability interface.

Builds, availability checks, git and the release host CLI are all driven through a
`ProcessRunner`. Two operations exist:

- `run_captured`: stdout and stderr are buffered and returned.
- `run_streaming`: the child writes straight to the caller's terminal;
  the returned output fields are empty.

Both await the child on the event loop, so several children can overlap
while orchestration code stays on a single thread. A command that cannot
be spawned at all (binary missing, not executable) is reported as
`Err(SpawnError)`; any exit code, zero or not, is `Ok(ProcessOutput)`.

Usage:
    result = await runner.run_captured(["cross", "--version"], cwd=root)
    match result:
        case Ok(out) if out.ok:
            ...
        case Ok(out):
            print(f"exit {out.exit_code}: {out.stderr}")
        case Err(e):
            print(f"could not start: {e.message}")
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Protocol

from xb.core.result import Err, Ok, Result

__all__ = [
    "AsyncProcessRunner",
    "ProcessCall",
    "ProcessOutput",
    "ProcessRunner",
    "ScriptedProcess",
    "ScriptedProcessRunner",
    "SpawnError",
    "format_command",
]


def format_command(cmd: Sequence[str]) -> str:
    return " ".join(cmd)


@dataclass(frozen=True, slots=True)
class ProcessOutput:
    """Outcome of a child process that was started.

    Attributes:
        command: The argv that was executed.
        exit_code: The process exit status.
        stdout: Captured standard output (empty when streamed).
        stderr: Captured standard error (empty when streamed).
    """

    command: tuple[str, ...]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def __str__(self) -> str:
        cmd_str = " ".join(self.command[:3])
        if len(self.command) > 3:
            cmd_str += " ..."
        return f"{cmd_str} exited with {self.exit_code}"


@dataclass(frozen=True, slots=True)
class SpawnError:
    """The command could not be started."""

    command: tuple[str, ...]
    message: str

    def __str__(self) -> str:
        return f"{format_command(self.command)}: {self.message}"


class ProcessRunner(Protocol):
    async def run_captured(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[ProcessOutput, SpawnError]: ...

    async def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[ProcessOutput, SpawnError]: ...


class AsyncProcessRunner:
    """Production runner built on asyncio subprocesses.

    No timeout is applied and children are never killed: once spawned, a
    child runs to completion.
    """

    async def run_captured(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[ProcessOutput, SpawnError]:
        argv = tuple(cmd)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd),
                env=dict(env) if env is not None else None,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return Err(SpawnError(command=argv, message=str(e)))

        stdout, stderr = await proc.communicate()
        return Ok(
            ProcessOutput(
                command=argv,
                exit_code=proc.returncode if proc.returncode is not None else -1,
                stdout=stdout.decode("utf-8", errors="replace"),
                stderr=stderr.decode("utf-8", errors="replace"),
            )
        )

    async def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[ProcessOutput, SpawnError]:
        argv = tuple(cmd)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                cwd=str(cwd),
                env=dict(env) if env is not None else None,
            )
        except OSError as e:
            return Err(SpawnError(command=argv, message=str(e)))

        returncode = await proc.wait()
        return Ok(ProcessOutput(command=argv, exit_code=returncode))


# -----------------------------------------------------------------------------
# In-memory runner for tests
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScriptedProcess:
    """Canned behaviour for commands starting with `prefix`.

    Attributes:
        prefix: Matched against the space-joined command line.
        exit_code: Exit status to report.
        stdout: Output returned by run_captured.
        stderr: Error output returned by run_captured.
        delay: Seconds to sleep on the event loop before "exiting".
        spawn_error: When set, the command fails to start with this message.
    """

    prefix: str
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    delay: float = 0.0
    spawn_error: str | None = None


@dataclass(frozen=True, slots=True)
class ProcessCall:
    command: tuple[str, ...]
    cwd: Path
    mode: Literal["captured", "streaming"]
    started_at: float
    finished_at: float

    @property
    def line(self) -> str:
        return format_command(self.command)


def _empty_rules() -> list[ScriptedProcess]:
    return []


def _empty_calls() -> list[ProcessCall]:
    return []


@dataclass
class ScriptedProcessRunner:
    """ProcessRunner that never spawns anything.

    The first rule whose prefix matches the command line decides the outcome;
    unmatched commands exit 0 with no output. Every call is recorded with its
    start and finish timestamps so tests can assert on ordering and overlap.
    """

    rules: list[ScriptedProcess] = field(default_factory=_empty_rules)
    calls: list[ProcessCall] = field(default_factory=_empty_calls)

    def add(self, prefix: str, **kwargs: object) -> ScriptedProcessRunner:
        self.rules.append(ScriptedProcess(prefix, **kwargs))  # type: ignore[arg-type]
        return self

    async def run_captured(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[ProcessOutput, SpawnError]:
        return await self._run(tuple(cmd), cwd=cwd, mode="captured")

    async def run_streaming(
        self,
        cmd: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None = None,
    ) -> Result[ProcessOutput, SpawnError]:
        return await self._run(tuple(cmd), cwd=cwd, mode="streaming")

    async def _run(
        self,
        argv: tuple[str, ...],
        *,
        cwd: Path,
        mode: Literal["captured", "streaming"],
    ) -> Result[ProcessOutput, SpawnError]:
        rule = self._match(format_command(argv))
        started = time.monotonic()
        if rule is not None and rule.spawn_error is not None:
            self.calls.append(ProcessCall(argv, cwd, mode, started, started))
            return Err(SpawnError(command=argv, message=rule.spawn_error))

        if rule is not None and rule.delay > 0:
            await asyncio.sleep(rule.delay)
        else:
            await asyncio.sleep(0)

        self.calls.append(ProcessCall(argv, cwd, mode, started, time.monotonic()))
        if rule is None:
            return Ok(ProcessOutput(command=argv, exit_code=0))

        captured = mode == "captured"
        return Ok(
            ProcessOutput(
                command=argv,
                exit_code=rule.exit_code,
                stdout=rule.stdout if captured else "",
                stderr=rule.stderr if captured else "",
            )
        )

    def _match(self, line: str) -> ScriptedProcess | None:
        for rule in self.rules:
            if line.startswith(rule.prefix):
                return rule
        return None

    # Test helper methods

    @property
    def lines(self) -> list[str]:
        """All executed command lines, in completion order."""
        return [c.line for c in self.calls]

    def find(self, prefix: str) -> list[ProcessCall]:
        return [c for c in self.calls if c.line.startswith(prefix)]

    def ran(self, prefix: str) -> bool:
        return bool(self.find(prefix))
