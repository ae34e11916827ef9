from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass

import typer

from xb.build.prereqs import CONTAINER_INSTALL_HINT, CROSS_INSTALL_HINT
from xb.cli.context import CLIContext, build_context
from xb.core.errors import ErrorCode
from xb.core.result import Ok
from xb.output.console import Style
from xb.release.host import GH_INSTALL_HINT


@dataclass(frozen=True, slots=True)
class ToolCheck:
    name: str
    command: tuple[str, ...]
    required: bool
    hint: str


def _checks(ctx: CLIContext) -> list[ToolCheck]:
    build = ctx.env.config.build
    availability = ctx.env.config.availability
    return [
        ToolCheck(build.toolchain, (build.toolchain, "--version"), True, "Install Rust: https://rustup.rs/"),
        ToolCheck("git", ("git", "--version"), True, "Install git: https://git-scm.com/"),
        ToolCheck(build.cross, availability.cross, False, f"Install cross-rs: {CROSS_INSTALL_HINT}"),
        ToolCheck(build.container, availability.container, False, f"Install Docker: {CONTAINER_INSTALL_HINT}"),
        ToolCheck("gh", ("gh", "--version"), False, GH_INSTALL_HINT),
    ]


async def _check_all(ctx: CLIContext, checks: Sequence[ToolCheck]) -> list[bool]:
    async def run_check(check: ToolCheck) -> bool:
        result = await ctx.runner.run_captured(check.command, cwd=ctx.env.root, env=ctx.env.process_env())
        return isinstance(result, Ok) and result.value.ok

    return list(await asyncio.gather(*(run_check(c) for c in checks)))


def check() -> None:
    """Check build prerequisites and suggest fixes."""
    ctx = build_context()
    checks = _checks(ctx)
    results = asyncio.run(_check_all(ctx, checks))

    ctx.console.print(f"project: {ctx.env.root}", Style.DIM)
    ctx.console.header("Tools")

    missing_required = False
    for tool, ok in zip(checks, results, strict=True):
        if ok:
            ctx.console.success(tool.name)
            continue
        if tool.required:
            missing_required = True
            ctx.console.error(f"{tool.name}: missing")
        else:
            ctx.console.warning(f"{tool.name}: missing (optional)")
        ctx.console.print(f"  hint: {tool.hint}", Style.DIM)

    if missing_required:
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
