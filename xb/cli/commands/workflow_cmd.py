from __future__ import annotations

import asyncio

import typer

from xb.cli.context import build_context
from xb.cli.prompts import InteractiveDecider
from xb.workflow.decisions import Decider, ScriptedDecider
from xb.workflow.orchestrator import WorkflowOutcome, render_outcome, run_workflow
from xb.workflow.phases import WorkflowContext


async def _run(wf: WorkflowContext) -> WorkflowOutcome:
    outcome = await run_workflow(wf)
    await render_outcome(wf, outcome)
    return outcome


def workflow(
    yes: bool = typer.Option(False, "--yes", "-y", help="Accept the default answer at every prompt"),
) -> None:
    """Version, build, package, commit and release in one guided run."""
    ctx = build_context()
    decider: Decider = ScriptedDecider() if yes else InteractiveDecider(ctx.console)
    outcome = asyncio.run(_run(ctx.workflow(decider)))
    if not outcome.exit_code.is_success:
        raise typer.Exit(code=int(outcome.exit_code))
