from __future__ import annotations

from pathlib import Path

import typer

from relflow.cli.commands._helpers import (
    EVENT_OPTION,
    GIT_MESSAGE_OPTION,
    MESSAGE_OPTION,
    REF_OPTION,
    SHA_OPTION,
    fail,
    load_build_context,
    unwrap_or_exit,
)
from relflow.cli.context import CLIContext, build_context
from relflow.git.release import GitReleaseCollaborator
from relflow.git.repository import Repository
from relflow.output.console import Style
from relflow.release.classifier import classify as classify_ref
from relflow.release.engine import is_promotion, resolve_promotion
from relflow.release.errors import ReleaseError
from relflow.release.lock import acquire_branch_lock
from relflow.release.promotion import PromotionPlan
from relflow.release.version import resolve_version


def promote(
    ref: str | None = REF_OPTION,
    event: str | None = EVENT_OPTION,
    sha: str | None = SHA_OPTION,
    message: str | None = MESSAGE_OPTION,
    git_message: bool = GIT_MESSAGE_OPTION,
    execute: bool = typer.Option(
        False, "--execute", help="Create the git tag and merge back (default: plan only)."
    ),
    remote: str = typer.Option("origin", "--remote", help="Remote to push tag and merge-back to."),
    no_push: bool = typer.Option(False, "--no-push", help="Do not push to the remote."),
    lock_dir: Path | None = typer.Option(
        None,
        "--lock-dir",
        help=(
            "Directory for branch locks (default: locks.dir). Locks only exclude runs "
            "sharing this directory; on ephemeral CI runners use a concurrency group."
        ),
    ),
) -> None:
    """Plan (and optionally execute) the promotion of a merge to main.

    The branch lock is a file, so it serialises runs on one machine only. CI
    runners that start from a fresh checkout need a per-branch concurrency
    group instead (see README).
    """
    ctx = build_context()
    context = load_build_context(
        ctx,
        ref=ref,
        event=event,
        sha=sha,
        pr=None,
        message=message,
        head_ref=None,
        git_message=git_message,
    )

    kind = classify_ref(context.ref, ctx.config.branches)
    if not is_promotion(context, kind):
        fail(
            ReleaseError(
                kind="invalid_input",
                message=f"nothing to promote for {kind} on {context.event}",
                hint=f"promote runs for merge events on {ctx.config.branches.main}",
            ),
            ctx,
        )

    collaborator = GitReleaseCollaborator(
        Repository(ctx.repo_root),
        remote=None if no_push else remote,
    )

    locks = lock_dir or ctx.repo_root / ctx.config.locks.dir
    with unwrap_or_exit(acquire_branch_lock(locks, context.ref), ctx):
        version = unwrap_or_exit(resolve_version(context, kind, ctx.config.branches), ctx)
        plan = unwrap_or_exit(
            resolve_promotion(context, version, config=ctx.config, tag_lookup=collaborator),
            ctx,
        )
        _print_plan(ctx, plan)

        if not execute:
            ctx.console.info("plan only; pass --execute to tag and merge back")
            return

        unwrap_or_exit(collaborator.publish_tag(plan), ctx)
        ctx.console.success(f"tagged {plan.git_tag_name}")

        unwrap_or_exit(collaborator.merge_back(plan), ctx)
        if plan.merge_back_target is not None:
            ctx.console.success(f"merged {plan.merge_back_source} into {plan.merge_back_target}")


def _print_plan(ctx: CLIContext, plan: PromotionPlan) -> None:
    console = ctx.console
    console.header("Promotion")
    console.print(f"source: {plan.source_tag}")
    for tag in plan.target_tags:
        console.print(f"retag: {plan.source_tag} -> {tag}", Style.DIM)
    console.print(f"git tag: {plan.git_tag_name}")
    if plan.merge_back_target is not None:
        console.print(f"merge back: {plan.merge_back_source} -> {plan.merge_back_target}")

    typer.echo(f"source_tag={plan.source_tag}")
    typer.echo(f"target_tags={','.join(plan.target_tags)}")
    typer.echo(f"git_tag={plan.git_tag_name}")
    typer.echo(f"merge_back={plan.merge_back_target or ''}")
