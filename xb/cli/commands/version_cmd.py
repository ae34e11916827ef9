"""Version commands - show or change the version of record."""

from __future__ import annotations

from enum import StrEnum
from typing import cast

import typer

from xb.cli.commands._helpers import exit_on_error
from xb.cli.context import build_context
from xb.core.errors import ErrorCode
from xb.output.console import Style
from xb.release.version import BumpKind, current_version, parse_version, project_manifests, write_all

version_app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Show or change the project version",
)


class Bump(StrEnum):
    patch = "patch"
    minor = "minor"
    major = "major"


@version_app.command("show")
def show() -> None:
    """Print the current version and where it is recorded."""
    ctx = build_context()
    version = exit_on_error(current_version(ctx.env), ctx, ErrorCode.ENV_ERROR)
    ctx.console.print(str(version))
    for manifest in project_manifests(ctx.env):
        ctx.console.print(f"  {manifest.describe()}", Style.DIM)


@version_app.command("bump")
def bump(
    kind: Bump | None = typer.Argument(None, help="patch, minor or major", show_default=False),
    set_version: str | None = typer.Option(
        None, "--set", help="Set an explicit version (x.y.z)", show_default=False
    ),
) -> None:
    """Bump the version in every manifest."""
    ctx = build_context()
    if (kind is None) == (set_version is None):
        ctx.console.error("give exactly one of <kind> or --set")
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    current = exit_on_error(current_version(ctx.env), ctx, ErrorCode.ENV_ERROR)
    if set_version is not None:
        new = exit_on_error(parse_version(set_version), ctx)
    else:
        new = current.bump(cast(BumpKind, kind.value))

    if new == current:
        ctx.console.info(f"Version is already {current}")
        return

    manifests = project_manifests(ctx.env)
    exit_on_error(write_all(manifests, new), ctx)
    ctx.console.success(f"{current} -> {new}")
    for manifest in manifests:
        ctx.console.print(f"  {manifest.describe()}", Style.DIM)
