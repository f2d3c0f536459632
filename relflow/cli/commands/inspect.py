"""Single-step commands: one engine component each."""

from __future__ import annotations

import typer

from relflow.cli.commands._helpers import (
    EVENT_OPTION,
    GIT_MESSAGE_OPTION,
    HEAD_REF_OPTION,
    MESSAGE_OPTION,
    PR_OPTION,
    REF_OPTION,
    SHA_OPTION,
    fail,
    load_build_context,
    unwrap_or_exit,
)
from relflow.cli.context import build_context
from relflow.release.classifier import classify as classify_ref
from relflow.release.engine import is_promotion
from relflow.release.environment import parse_environment, resolve_environment
from relflow.release.tags import plan_tags
from relflow.release.version import missing_version_error, resolve_version


def classify(ref: str = typer.Argument(..., help="Branch or ref to classify.")) -> None:
    """Print the branch kind of REF."""
    ctx = build_context()
    typer.echo(classify_ref(ref, ctx.config.branches).value)


def version(
    ref: str | None = REF_OPTION,
    event: str | None = EVENT_OPTION,
    sha: str | None = SHA_OPTION,
    pr: int | None = PR_OPTION,
    message: str | None = MESSAGE_OPTION,
    head_ref: str | None = HEAD_REF_OPTION,
    git_message: bool = GIT_MESSAGE_OPTION,
) -> None:
    """Print the semantic version for this build, if one applies."""
    ctx = build_context()
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
    kind = classify_ref(context.ref, ctx.config.branches)
    resolved = unwrap_or_exit(resolve_version(context, kind, ctx.config.branches), ctx)

    if resolved is None:
        if is_promotion(context, kind):
            fail(missing_version_error(context, ctx.config.branches), ctx)
        ctx.console.info(f"no version applies to {kind} builds")
        return
    typer.echo(str(resolved))


def tags(
    ref: str | None = REF_OPTION,
    event: str | None = EVENT_OPTION,
    sha: str | None = SHA_OPTION,
    pr: int | None = PR_OPTION,
    message: str | None = MESSAGE_OPTION,
    head_ref: str | None = HEAD_REF_OPTION,
    git_message: bool = GIT_MESSAGE_OPTION,
) -> None:
    """Print the image tags for this build, one per line."""
    ctx = build_context()
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
    kind = classify_ref(context.ref, ctx.config.branches)
    resolved = unwrap_or_exit(resolve_version(context, kind, ctx.config.branches), ctx)
    tag_set = unwrap_or_exit(
        plan_tags(
            kind,
            resolved,
            context.sha,
            context.event,
            context.pr_number,
            config=ctx.config.tags,
        ),
        ctx,
    )

    if not tag_set:
        ctx.console.info(f"no tags for {kind} on {context.event}: build only, no push")
        return
    for tag in tag_set:
        typer.echo(tag)


def env(
    ref: str = typer.Argument(..., help="Branch or ref."),
    override: str | None = typer.Option(
        None, "--override", help="Deploy to this environment regardless of branch."
    ),
) -> None:
    """Print the deployment environment for REF."""
    ctx = build_context()
    names = ctx.config.environments
    kind = classify_ref(ref, ctx.config.branches)

    target = None
    if override is not None:
        target = unwrap_or_exit(parse_environment(override, names), ctx)

    decision = resolve_environment(kind, target)
    if decision is None:
        ctx.console.info(f"no environment for {kind}: validation only")
        return
    if decision.overridden:
        ctx.console.warning(f"environment overridden to {decision.environment.display_name(names)}")

    typer.echo(f"environment={decision.environment.display_name(names)}")
    typer.echo(f"auto_deploy={'true' if decision.auto_deploy else 'false'}")
