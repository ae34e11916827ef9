from __future__ import annotations

import typer

from xb import __version__
from xb.cli.commands.build_cmd import build
from xb.cli.commands.check import check
from xb.cli.commands.targets_cmd import targets
from xb.cli.commands.version_cmd import version_app
from xb.cli.commands.workflow_cmd import workflow


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command()(targets)
app.command()(check)
app.command()(build)
app.command()(workflow)

# Sub-apps
app.add_typer(version_app, name="version")


def _show_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit(code=0)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_show_version,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Multi-target build orchestration and release workflow."""


def main() -> None:
    app()
