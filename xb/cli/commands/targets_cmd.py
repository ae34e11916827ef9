from __future__ import annotations

import asyncio

from xb.build.prereqs import available_targets, detect
from xb.cli.context import build_context
from xb.output.console import Style


def targets() -> None:
    """List build targets and whether each one can be built here."""
    ctx = build_context()
    detection = asyncio.run(detect(ctx.env, ctx.runner))
    available = {t.id for t in available_targets(ctx.registry, detection)}

    ctx.console.header("Targets")
    for target in ctx.registry:
        line = f"{target.id:<18} {target.label:<26} {target.backend:<10}"
        if target.id in available:
            ctx.console.print(f"{line} {target.description}")
        else:
            ctx.console.print(f"{line} unavailable ({target.backend} backend missing)", Style.DIM)
