from __future__ import annotations

import os
from pathlib import Path

import typer

from relflow.cli.commands._helpers import (
    EVENT_OPTION,
    GIT_MESSAGE_OPTION,
    HEAD_REF_OPTION,
    MESSAGE_OPTION,
    PR_OPTION,
    REF_OPTION,
    SHA_OPTION,
    load_build_context,
    unwrap_or_exit,
)
from relflow.cli.context import build_context
from relflow.core.errors import ErrorCode
from relflow.release.engine import resolve_build
from relflow.release.environment import Environment, parse_environment
from relflow.release.outputs import format_kv, to_json, to_outputs, write_github_output


def resolve(
    ref: str | None = REF_OPTION,
    event: str | None = EVENT_OPTION,
    sha: str | None = SHA_OPTION,
    pr: int | None = PR_OPTION,
    message: str | None = MESSAGE_OPTION,
    head_ref: str | None = HEAD_REF_OPTION,
    git_message: bool = GIT_MESSAGE_OPTION,
    override: str | None = typer.Option(
        None, "--override", help="Deploy to this environment regardless of branch."
    ),
    output_format: str = typer.Option("kv", "--format", help="kv | json"),
    github_output: bool = typer.Option(
        False, "--github-output", help="Also append key=value outputs to $GITHUB_OUTPUT."
    ),
    output_file: Path | None = typer.Option(
        None, "--output-file", help="Append key=value outputs to this file."
    ),
) -> None:
    """Compute the full release decision for this build."""
    ctx = build_context()

    if output_format not in ("kv", "json"):
        ctx.console.error(f"unknown --format: {output_format}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    context = load_build_context(
        ctx,
        ref=ref,
        event=event,
        sha=sha,
        pr=pr,
        message=message,
        head_ref=head_ref,
        git_message=git_message,
    )

    target: Environment | None = None
    if override is not None:
        target = unwrap_or_exit(parse_environment(override, ctx.config.environments), ctx)

    decision = unwrap_or_exit(
        resolve_build(context, config=ctx.config, override=target),
        ctx,
    )

    names = ctx.config.environments
    outputs = to_outputs(decision, names)
    if output_format == "json":
        typer.echo(to_json(decision, names))
    else:
        typer.echo(format_kv(outputs), nl=False)

    destination = output_file
    if destination is None and github_output:
        raw = os.environ.get("GITHUB_OUTPUT")
        if not raw:
            ctx.console.error("--github-output given but $GITHUB_OUTPUT is not set")
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
        destination = Path(raw)

    if destination is not None:
        try:
            write_github_output(destination, outputs)
        except OSError as e:
            ctx.console.error(f"cannot write outputs to {destination}: {e}")
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
