"""Build targets, options, execution and reporting."""

from .controller import build_and_report, run_all
from .executor import BuildResult, run_target
from .options import BuildOptions, InvalidBuildOptions
from .prereqs import available_targets, detect
from .report import BuildSummary, summarize
from .targets import Registry, Target, UnknownTarget, default_registry

__all__ = [
    "BuildOptions",
    "BuildResult",
    "BuildSummary",
    "InvalidBuildOptions",
    "Registry",
    "Target",
    "UnknownTarget",
    "available_targets",
    "build_and_report",
    "default_registry",
    "detect",
    "run_all",
    "run_target",
    "summarize",
]
