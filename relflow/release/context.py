"""BuildContext assembly.

Inputs are gathered once per pipeline run, normalized, and frozen. Explicit
values win over the GitHub Actions environment.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass

from relflow.core.config import Config
from relflow.core.result import Err, Ok, Result
from relflow.release.classifier import normalize_ref, pull_number_from_ref
from relflow.release.errors import ReleaseError
from relflow.release.kinds import EventKind

__all__ = ["BuildContext", "assemble_context", "context_from_env", "looks_like_merge"]

_SHA_RE = re.compile(r"^[0-9a-f]{7,40}$")
_MERGE_MESSAGE_RE = re.compile(r"^Merge (?:pull request #\d+ from |branch ')")


@dataclass(frozen=True, slots=True)
class BuildContext:
    ref: str
    event: EventKind
    sha: str
    merge_message: str | None = None
    pr_number: int | None = None


def looks_like_merge(message: str | None) -> bool:
    """True for the merge commit subjects GitHub and ``git merge`` write."""
    if not message:
        return False
    return _MERGE_MESSAGE_RE.match(message.lstrip()) is not None


def _normalize_sha(sha: str, length: int) -> Result[str, ReleaseError]:
    value = sha.strip().lower()
    if _SHA_RE.match(value) is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"invalid commit sha: {sha!r}",
                hint="Expected at least 7 hexadecimal characters.",
            )
        )
    if len(value) < length:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"commit sha {value!r} is shorter than {length} characters",
                hint="Pass the full sha or lower tags.sha_length.",
            )
        )
    return Ok(value[:length])


def assemble_context(
    *,
    ref: str,
    event: str | EventKind,
    sha: str,
    merge_message: str | None = None,
    pr_number: int | None = None,
    head_ref: str | None = None,
    config: Config | None = None,
) -> Result[BuildContext, ReleaseError]:
    """Validate and normalize raw CI inputs into a BuildContext.

    - ``refs/heads/x`` becomes ``x``.
    - For pull requests the head branch, when known, is the ref that counts.
    - A push to the main branch carrying a merge commit message is a merge.
    - The sha is cut to ``tags.sha_length`` so every tag uses the same form.
    """
    cfg = config or Config()

    if isinstance(event, EventKind):
        event_kind: EventKind | None = event
    else:
        event_kind = EventKind.parse(event)
    if event_kind is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"unsupported event: {event!r}",
                hint="Expected one of: " + ", ".join(e.value for e in EventKind),
            )
        )

    if not ref.strip():
        return Err(ReleaseError(kind="invalid_input", message="ref is empty"))

    if pr_number is not None and pr_number < 1:
        return Err(
            ReleaseError(kind="invalid_input", message=f"invalid pull request number: {pr_number}")
        )

    sha_result = _normalize_sha(sha, cfg.tags.sha_length)
    if isinstance(sha_result, Err):
        return sha_result

    if pr_number is None:
        pr_number = pull_number_from_ref(ref)

    name = normalize_ref(ref)
    if event_kind is EventKind.PULL_REQUEST and head_ref and head_ref.strip():
        name = normalize_ref(head_ref)

    message = merge_message.strip() if merge_message and merge_message.strip() else None
    if (
        event_kind is EventKind.PUSH
        and name == cfg.branches.main
        and looks_like_merge(message)
    ):
        event_kind = EventKind.MERGE

    return Ok(
        BuildContext(
            ref=name,
            event=event_kind,
            sha=sha_result.value,
            # The message only matters for merges; drop it elsewhere.
            merge_message=message if event_kind is EventKind.MERGE else None,
            pr_number=pr_number,
        )
    )


def context_from_env(
    env: Mapping[str, str],
    *,
    ref: str | None = None,
    event: str | None = None,
    sha: str | None = None,
    merge_message: str | None = None,
    pr_number: int | None = None,
    head_ref: str | None = None,
    config: Config | None = None,
) -> Result[BuildContext, ReleaseError]:
    """Assemble a context from GitHub Actions variables plus explicit overrides."""
    raw_ref = ref or env.get("GITHUB_REF") or env.get("GITHUB_REF_NAME")
    raw_event = event or env.get("GITHUB_EVENT_NAME")
    raw_sha = sha or env.get("GITHUB_SHA")
    raw_head = head_ref or env.get("GITHUB_HEAD_REF")

    missing = [
        name
        for name, value in (("ref", raw_ref), ("event", raw_event), ("sha", raw_sha))
        if not value
    ]
    if missing:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"missing build inputs: {', '.join(missing)}",
                hint="Pass --ref/--event/--sha or run inside GitHub Actions.",
            )
        )
    assert raw_ref is not None and raw_event is not None and raw_sha is not None

    return assemble_context(
        ref=raw_ref,
        event=raw_event,
        sha=raw_sha,
        merge_message=merge_message,
        pr_number=pr_number,
        head_ref=raw_head,
        config=config,
    )
