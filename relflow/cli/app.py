from __future__ import annotations

import os
from pathlib import Path

import typer

from relflow import __version__
from relflow.cli.commands.inspect import classify, env, tags, version
from relflow.cli.commands.promote import promote
from relflow.cli.commands.resolve import resolve
from relflow.cli.context import CONFIG_ENV_VAR
from relflow.core.errors import ErrorCode


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Git-Flow branch, version, environment and image tag decisions for CI.",
)


app.command()(classify)
app.command()(version)
app.command()(tags)
app.command()(env)
app.command()(resolve)
app.command()(promote)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    show_version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Path to relflow.toml (default: ./relflow.toml if present).",
    ),
) -> None:
    if show_version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if config is not None:
        try:
            path = config.expanduser().resolve()
        except OSError as e:
            typer.echo(f"error: invalid --config: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[CONFIG_ENV_VAR] = str(path)


def main() -> None:
    app()
