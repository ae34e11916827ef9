"""Build command - build one or more targets."""

from __future__ import annotations

import asyncio

import typer

from xb.build.controller import build_and_report
from xb.build.options import BuildOptions
from xb.build.prereqs import available_targets, detect, missing_backends
from xb.cli.commands._helpers import exit_on_error, split_csv
from xb.cli.context import build_context
from xb.core.errors import ErrorCode
from xb.output.console import Style


def build(
    targets: str | None = typer.Option(
        None,
        "--targets",
        help="Comma-separated target ids (default: every available target)",
        show_default=False,
    ),
    mode: str = typer.Option("release", "--mode", help="Build mode: release or debug"),
    features: str | None = typer.Option(
        None,
        "--features",
        help="Comma-separated features (default: from xb.toml)",
        show_default=False,
    ),
    parallel: bool = typer.Option(False, "--parallel/--sequential", help="Build targets concurrently"),
    verbose: bool = typer.Option(True, "--verbose/--quiet", help="Stream toolchain output"),
) -> None:
    """Build the selected targets and print a summary."""
    ctx = build_context()
    build_cfg = ctx.env.config.build

    options = exit_on_error(
        BuildOptions.create(
            mode=mode,
            features=build_cfg.default_features if features is None else split_csv(features),
            allowed_features=build_cfg.features,
            parallel=parallel,
            verbose=verbose,
        ),
        ctx,
    )

    requested = split_csv(targets)
    selected = exit_on_error(ctx.registry.select(requested), ctx) if requested else None

    detection = asyncio.run(detect(ctx.env, ctx.runner))
    available = available_targets(ctx.registry, detection)
    for missing in missing_backends(detection):
        ctx.console.warning(f"{missing.backend} not available")
        ctx.console.print(f"  hint: {missing.hint}", Style.DIM)

    if selected is None:
        selected = available
    else:
        unavailable = [t for t in selected if t not in available]
        if unavailable:
            ctx.console.error(
                "cannot build here: "
                + ", ".join(f"{t.id} (needs {t.backend})" for t in unavailable)
            )
            raise typer.Exit(code=int(ErrorCode.FAILURE))

    if not selected:
        ctx.console.error("No build targets available")
        ctx.console.print("hint: Install cross-rs and/or Docker", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    summary = asyncio.run(
        build_and_report(
            selected,
            options,
            env=ctx.env,
            runner=ctx.runner,
            console=ctx.console,
        )
    )
    if not summary.ok:
        raise typer.Exit(code=int(summary.exit_code))
