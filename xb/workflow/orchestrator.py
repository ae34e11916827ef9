"""Drive the release workflow phases in order.

VERSION -> BUILD -> PACKAGE -> COMMIT -> RELEASE

The run ends in one of three terminal states:

- Completed: every phase ran or was skipped. Phases that failed while the
  operator chose to continue are listed and make the exit code 1.
- Aborted: a precondition failed, a phase failed and the operator declined
  to continue, or the operator cancelled after something was already
  changed on disk.
- WorkflowCancelled: the operator cancelled before anything was changed.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TypeAlias

from xb.core.errors import ErrorCode
from xb.core.result import Err
from xb.git.repository import StatusEntry
from xb.output.console import Style
from xb.release.version import current_version

from .decisions import Cancelled, confirm
from .phases import (
    HANDLERS,
    PHASE_ORDER,
    Phase,
    PhaseCancelled,
    PhaseDone,
    PhaseFailed,
    PhaseHandler,
    PhaseSkipped,
    WorkflowContext,
    WorkflowState,
)

__all__ = [
    "Aborted",
    "Completed",
    "DirtyWorkingTree",
    "WorkflowCancelled",
    "WorkflowOutcome",
    "render_outcome",
    "run_workflow",
]


@dataclass(frozen=True, slots=True)
class DirtyWorkingTree:
    entries: tuple[StatusEntry, ...]

    @property
    def message(self) -> str:
        return f"working tree has {len(self.entries)} uncommitted change(s)"


@dataclass(frozen=True, slots=True)
class Completed:
    state: WorkflowState

    @property
    def exit_code(self) -> ErrorCode:
        return ErrorCode.from_success(not self.state.failed_phases)


@dataclass(frozen=True, slots=True)
class Aborted:
    reason: str
    phase: Phase | None = None
    state: WorkflowState | None = None

    @property
    def exit_code(self) -> ErrorCode:
        return ErrorCode.FAILURE


@dataclass(frozen=True, slots=True)
class WorkflowCancelled:
    @property
    def exit_code(self) -> ErrorCode:
        return ErrorCode.OK


WorkflowOutcome: TypeAlias = Completed | Aborted | WorkflowCancelled


def _cancelled(state: WorkflowState | None, phase: Phase | None) -> WorkflowOutcome:
    if state is not None and state.side_effects:
        return Aborted("cancelled after changes were made", phase=phase, state=state)
    return WorkflowCancelled()


async def _check_working_tree(ctx: WorkflowContext) -> WorkflowOutcome | None:
    """None when the workflow may start."""
    status = await ctx.repo.status()
    if isinstance(status, Err):
        return Aborted(f"cannot read working tree status: {status.error.message}")
    if status.value.is_clean:
        ctx.console.success("Working tree is clean")
        return None

    dirty = DirtyWorkingTree(status.value.entries)
    ctx.console.warning(dirty.message)
    for entry in dirty.entries[:10]:
        ctx.console.print(f"  {entry.xy} {entry.path}", Style.DIM)
    if len(dirty.entries) > 10:
        ctx.console.print(f"  ... and {len(dirty.entries) - 10} more", Style.DIM)

    proceed = confirm(ctx.decider, "proceed_dirty", "Continue anyway?", default=False)
    if isinstance(proceed, Cancelled):
        return WorkflowCancelled()
    if not proceed:
        return Aborted(dirty.message)
    return None


async def run_workflow(
    ctx: WorkflowContext,
    *,
    phases: Sequence[Phase] = PHASE_ORDER,
    handlers: Mapping[Phase, PhaseHandler] = HANDLERS,
) -> WorkflowOutcome:
    """Run each phase in order, asking how to proceed after a failure."""
    ctx.console.header(f"{ctx.env.config.project.name} release workflow")

    blocked = await _check_working_tree(ctx)
    if blocked is not None:
        return blocked

    version = current_version(ctx.env)
    if isinstance(version, Err):
        return Aborted(version.error.message)

    state = WorkflowState(version=version.value)
    for phase in phases:
        ctx.console.newline()
        ctx.console.header(f"{phase.title} Phase")

        outcome = await handlers[phase](ctx, state)
        state = outcome.state
        match outcome:
            case PhaseDone():
                continue
            case PhaseSkipped(reason=reason):
                ctx.console.print(reason, Style.DIM)
                continue
            case PhaseCancelled():
                return _cancelled(state, phase)
            case PhaseFailed(message=message, hint=hint, recoverable=recoverable):
                ctx.console.error(f"{phase.title} phase failed: {message}")
                if hint:
                    ctx.console.print(f"  hint: {hint}", Style.DIM)
                state = replace(state, failed_phases=(*state.failed_phases, phase))
                if not recoverable:
                    return Aborted(message, phase=phase, state=state)

                proceed = confirm(
                    ctx.decider,
                    "continue_after_error",
                    "Continue with workflow despite error?",
                    default=False,
                )
                if isinstance(proceed, Cancelled):
                    return _cancelled(state, phase)
                if not proceed:
                    return Aborted(message, phase=phase, state=state)

    return Completed(state)


async def render_outcome(ctx: WorkflowContext, outcome: WorkflowOutcome) -> None:
    """Print the closing summary for a finished run."""
    console = ctx.console
    console.newline()
    match outcome:
        case WorkflowCancelled():
            console.warning("Workflow cancelled.")
        case Aborted(reason=reason, phase=phase):
            where = f" in {phase.title} phase" if phase is not None else ""
            console.error(f"Workflow aborted{where}: {reason}")
        case Completed(state=state):
            lines: list[str] = []
            if state.version_changed:
                lines.append(f"OK Version updated to {state.version}")
            if state.build_ran:
                ok = sum(1 for r in state.build_results if r.success)
                lines.append(f"OK Build ran ({ok}/{len(state.build_results)} succeeded)")
            if state.package_ran:
                lines.append(f"OK Packaged {len(state.staged)} target(s)")
            if state.commit_ran:
                lines.append("OK Changes committed")
            if state.release_ran:
                lines.append(f"OK Release {ctx.tag(state.version)} published")
            for phase in state.failed_phases:
                lines.append(f"FAILED {phase.title} phase")
            clean = await ctx.repo.is_clean()
            if not clean:
                lines.append("WARN Uncommitted changes remain")
            elif state.commit_ran:
                lines.append("OK All changes committed")
            if not lines:
                lines.append("Nothing changed")
            console.note("Workflow complete", "\n".join(lines))
