"""Build summary: partitions, exit status and rendering."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from xb.core.errors import ErrorCode
from xb.output.console import ConsoleProtocol, Style

if TYPE_CHECKING:
    from .executor import BuildResult

__all__ = ["BuildSummary", "format_duration", "render_summary", "summarize"]


def format_duration(ms: int) -> str:
    """Format milliseconds as "Ns" or "Mm Ss"."""
    seconds = ms // 1000
    minutes, remaining = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {remaining}s"
    return f"{seconds}s"


@dataclass(frozen=True, slots=True)
class BuildSummary:
    results: tuple[BuildResult, ...]
    succeeded: tuple[BuildResult, ...]
    failed: tuple[BuildResult, ...]
    total_ms: int

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def exit_code(self) -> ErrorCode:
        return ErrorCode.from_success(self.ok)


def summarize(results: Sequence[BuildResult], total_ms: int) -> BuildSummary:
    """Split results into succeeded and failed, keeping input order."""
    return BuildSummary(
        results=tuple(results),
        succeeded=tuple(r for r in results if r.success),
        failed=tuple(r for r in results if not r.success),
        total_ms=total_ms,
    )


def render_summary(summary: BuildSummary, console: ConsoleProtocol) -> None:
    if summary.succeeded:
        body = "\n\n".join(
            f"OK {r.target.label}\n"
            f"  Time: {format_duration(r.duration_ms)}\n"
            f"  Output: {r.output_path or 'N/A'}"
            for r in summary.succeeded
        )
        console.note("Successful Builds", body)

    if summary.failed:
        body = "\n\n".join(
            f"FAILED {r.target.label}\n"
            f"  Time: {format_duration(r.duration_ms)}\n"
            f"  Error: {r.first_error_line}"
            for r in summary.failed
        )
        console.note("Failed Builds", body)

    line = (
        f"Build complete: {len(summary.succeeded)} succeeded, "
        f"{len(summary.failed)} failed ({format_duration(summary.total_ms)})"
    )
    if not summary.failed:
        console.print(line, Style.SUCCESS)
    elif not summary.succeeded:
        console.print(line, Style.ERROR)
    else:
        console.print(line, Style.WARNING)
