"""Run the executor over a set of targets.

Sequential mode starts each build after the previous result is recorded.
Parallel mode starts every build at once and waits for all of them; there is
no concurrency limit. In both modes the returned results follow the input
order and a failed build never stops the others.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Protocol

from xb.core.environment import Environment
from xb.output.console import ConsoleProtocol
from xb.platform.process import ProcessRunner

from .executor import BuildResult, run_target
from .options import BuildOptions
from .report import BuildSummary, format_duration, render_summary, summarize
from .targets import Target

__all__ = ["ConsoleProgress", "ProgressReporter", "RunOutcome", "build_and_report", "run_all"]


class ProgressReporter(Protocol):
    def started(self, index: int, total: int, target: Target) -> None: ...

    def finished(self, index: int, total: int, result: BuildResult) -> None: ...


class ConsoleProgress:
    """Per-target progress lines."""

    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def started(self, index: int, total: int, target: Target) -> None:
        self._console.print(f"[{index + 1}/{total}] Building {target.label}...")

    def finished(self, index: int, total: int, result: BuildResult) -> None:
        label = result.target.label
        took = format_duration(result.duration_ms)
        if result.success:
            self._console.success(f"{label} built successfully in {took}")
        else:
            self._console.error(f"{label} failed after {took}")


@dataclass(frozen=True, slots=True)
class RunOutcome:
    results: tuple[BuildResult, ...]
    total_ms: int


async def run_all(
    targets: Sequence[Target],
    options: BuildOptions,
    *,
    env: Environment,
    runner: ProcessRunner,
    console: ConsoleProtocol,
    progress: ProgressReporter | None = None,
) -> RunOutcome:
    """Build every target and return results in input order.

    `total_ms` is the wall clock of the whole call, not the sum of the
    individual durations.
    """
    total = len(targets)
    start = time.monotonic()

    async def build(index: int, target: Target) -> BuildResult:
        if progress is not None:
            progress.started(index, total, target)
        result = await run_target(target, options, env=env, runner=runner, console=console)
        if progress is not None:
            progress.finished(index, total, result)
        return result

    results: list[BuildResult] = []
    if options.parallel:
        spinner = (
            nullcontext()
            if options.verbose
            else console.status(f"Building {total} target(s) in parallel...")
        )
        with spinner:
            results = list(await asyncio.gather(*(build(i, t) for i, t in enumerate(targets))))
    else:
        for index, target in enumerate(targets):
            spinner = nullcontext() if options.verbose else console.status(f"Building {target.label}...")
            with spinner:
                results.append(await build(index, target))

    total_ms = max(0, int((time.monotonic() - start) * 1000))
    return RunOutcome(results=tuple(results), total_ms=total_ms)


async def build_and_report(
    targets: Sequence[Target],
    options: BuildOptions,
    *,
    env: Environment,
    runner: ProcessRunner,
    console: ConsoleProtocol,
) -> BuildSummary:
    """Run every target with console progress, then print the summary."""
    outcome = await run_all(
        targets,
        options,
        env=env,
        runner=runner,
        console=console,
        progress=ConsoleProgress(console),
    )
    summary = summarize(outcome.results, outcome.total_ms)
    console.newline()
    render_summary(summary, console)
    return summary
