from __future__ import annotations

import typer

from tagcut import __version__
from tagcut.cli.commands.release_cmd import release

app = typer.Typer(
    help="Cut changelog-driven releases of a git repository.",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command()(release)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"tagcut {__version__}")
        raise typer.Exit(code=0)


@app.callback()
def _root(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    pass


def main() -> None:
    app()
