"""Interactive release workflow: decisions, phases and the state machine."""

from .decisions import CANCELLED, Cancelled, Decider, ScriptedDecider
from .orchestrator import Aborted, Completed, WorkflowCancelled, WorkflowOutcome, render_outcome, run_workflow
from .phases import Phase, WorkflowContext, WorkflowState

__all__ = [
    "Aborted",
    "CANCELLED",
    "Cancelled",
    "Completed",
    "Decider",
    "Phase",
    "ScriptedDecider",
    "WorkflowCancelled",
    "WorkflowContext",
    "WorkflowOutcome",
    "WorkflowState",
    "render_outcome",
    "run_workflow",
]
