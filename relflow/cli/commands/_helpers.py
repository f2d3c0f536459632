"""Shared helpers and options for CLI commands."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from relflow.core.result import Err, Ok, Result
from relflow.core.structured import as_str_dict, get_int, get_str, get_table
from relflow.git.repository import Repository
from relflow.output.errors import print_release_error, release_error_exit_code
from relflow.release.context import BuildContext, context_from_env
from relflow.release.errors import ReleaseError

if TYPE_CHECKING:
    from relflow.cli.context import CLIContext


REF_OPTION = typer.Option(None, "--ref", help="Git ref (default: $GITHUB_REF).")
EVENT_OPTION = typer.Option(
    None,
    "--event",
    help="push | pull_request | merge | workflow_dispatch (default: $GITHUB_EVENT_NAME).",
)
SHA_OPTION = typer.Option(None, "--sha", help="Commit sha (default: $GITHUB_SHA).")
PR_OPTION = typer.Option(None, "--pr", help="Pull request number.")
MESSAGE_OPTION = typer.Option(None, "--message", help="Merge commit message.")
HEAD_REF_OPTION = typer.Option(
    None, "--head-ref", help="Pull request head branch (default: $GITHUB_HEAD_REF)."
)
GIT_MESSAGE_OPTION = typer.Option(
    False, "--git-message", help="Read the merge commit message from HEAD in the current repo."
)


def fail(error: ReleaseError, ctx: CLIContext) -> NoReturn:
    """Render a release error and exit with its mapped code."""
    print_release_error(error, ctx.console)
    raise typer.Exit(code=release_error_exit_code(error))


T = TypeVar("T")


def unwrap_or_exit(result: Result[T, ReleaseError], ctx: CLIContext) -> T:
    if isinstance(result, Err):
        fail(result.error, ctx)
    return result.value


def _event_payload(env: Mapping[str, str]) -> dict[str, object]:
    """The GitHub event payload, or an empty dict when unavailable."""
    path = env.get("GITHUB_EVENT_PATH")
    if not path:
        return {}
    try:
        obj: object = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError):
        return {}
    return as_str_dict(obj) or {}


def payload_message(payload: Mapping[str, object]) -> str | None:
    head_commit = get_table(payload, "head_commit")
    if head_commit is None:
        return None
    return get_str(head_commit, "message")


def payload_pr_number(payload: Mapping[str, object]) -> int | None:
    pull_request = get_table(payload, "pull_request")
    if pull_request is not None:
        return get_int(pull_request, "number")
    return get_int(payload, "number")


def load_build_context(
    ctx: CLIContext,
    *,
    ref: str | None,
    event: str | None,
    sha: str | None,
    pr: int | None,
    message: str | None,
    head_ref: str | None,
    git_message: bool = False,
) -> BuildContext:
    """Assemble a BuildContext from options, falling back to the CI environment."""
    env = dict(os.environ)
    payload = _event_payload(env)

    if message is None and git_message:
        message = unwrap_or_exit(
            Repository(ctx.repo_root)
            .head_message()
            .map_err(lambda e: ReleaseError(kind="git_failed", message=e.message)),
            ctx,
        )
    if message is None:
        message = payload_message(payload)
    if pr is None:
        pr = payload_pr_number(payload)

    result = context_from_env(
        env,
        ref=ref,
        event=event,
        sha=sha,
        merge_message=message,
        pr_number=pr,
        head_ref=head_ref,
        config=ctx.config,
    )
    match result:
        case Ok(context):
            return context
        case Err(error):
            fail(error, ctx)
