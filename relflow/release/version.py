"""Version resolution.

Release and hotfix branches carry their version in the branch name. On main,
the version is recovered from the merge commit message. That recovery is a
heuristic over free text: a small ordered list of patterns, first match wins,
and no match means "not found" rather than a guess.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from relflow.core.config import BranchesConfig
from relflow.core.result import Ok, Result
from relflow.release.classifier import classify_ref
from relflow.release.context import BuildContext
from relflow.release.errors import ReleaseError
from relflow.release.kinds import VERSIONED_KINDS, BranchKind, EventKind
from relflow.release.semver import COMPONENT, SemVer, parse_version, parse_version_strict

__all__ = [
    "MESSAGE_PATTERNS",
    "MergeSource",
    "MessagePattern",
    "message_patterns",
    "missing_version_error",
    "resolve_version",
    "scan_merge_message",
]

_VERSION = rf"{COMPONENT}\.{COMPONENT}\.{COMPONENT}"


@dataclass(frozen=True, slots=True)
class MessagePattern:
    name: str
    regex: re.Pattern[str]


def message_patterns(branches: BranchesConfig | None = None) -> tuple[MessagePattern, ...]:
    """Merge message patterns for the configured release/hotfix prefixes.

    Priority order. Each pattern captures ``prefix`` and ``version``.
    """
    cfg = branches or BranchesConfig()
    prefixes = dict.fromkeys((cfg.release_prefix, cfg.hotfix_prefix))
    prefix = "|".join(re.escape(p) for p in prefixes)
    return (
        MessagePattern(
            "pull_request",
            re.compile(
                r"Merge pull request #\d+ from [^\s/]+/"
                rf"(?P<prefix>{prefix})(?P<version>{_VERSION})(?![\w.-])"
            ),
        ),
        MessagePattern(
            "merge_branch",
            re.compile(rf"Merge branch '(?P<prefix>{prefix})(?P<version>{_VERSION})'"),
        ),
    )


MESSAGE_PATTERNS = message_patterns()


@dataclass(frozen=True, slots=True)
class MergeSource:
    """The branch a merge commit on main came from."""

    kind: BranchKind
    version: SemVer
    branch: str
    pattern: str


def scan_merge_message(
    message: str | None,
    branches: BranchesConfig | None = None,
) -> MergeSource | None:
    """Find the release/hotfix branch a merge commit message refers to.

    When several references are present, the earliest one in the message wins;
    ties at the same position go to the higher-priority pattern.
    """
    if not message:
        return None

    cfg = branches or BranchesConfig()
    patterns = MESSAGE_PATTERNS if branches is None else message_patterns(cfg)

    best: tuple[int, int, re.Match[str], MessagePattern] | None = None
    for priority, pattern in enumerate(patterns):
        m = pattern.regex.search(message)
        if m is None:
            continue
        key = (m.start(), priority)
        if best is None or key < (best[0], best[1]):
            best = (m.start(), priority, m, pattern)

    if best is None:
        return None

    _, _, m, pattern = best
    version = parse_version(m.group("version"))
    if version is None:
        return None
    prefix = m.group("prefix")
    kind = BranchKind.RELEASE if prefix == cfg.release_prefix else BranchKind.HOTFIX
    return MergeSource(
        kind=kind,
        version=version,
        branch=f"{prefix}{m.group('version')}",
        pattern=pattern.name,
    )


def missing_version_error(
    context: BuildContext,
    branches: BranchesConfig | None = None,
) -> ReleaseError:
    """The diagnostic for a main-branch merge whose version cannot be found."""
    cfg = branches or BranchesConfig()
    return ReleaseError(
        kind="missing_version",
        message=f"could not detect version from merge commit on {context.ref}",
        hint=(
            f"expected '{cfg.release_prefix}X.Y.Z' or '{cfg.hotfix_prefix}X.Y.Z' "
            "in the merge commit message"
        ),
    )


def resolve_version(
    context: BuildContext,
    kind: BranchKind,
    branches: BranchesConfig | None = None,
) -> Result[SemVer | None, ReleaseError]:
    """Determine the version for this build.

    Returns:
        Ok(SemVer) when the version is known, Ok(None) when it is not applicable
        or could not be found in a merge message, Err(invalid_version_format)
        when a release/hotfix branch name carries a malformed version.
    """
    if kind in VERSIONED_KINDS:
        classification = classify_ref(context.ref, branches or BranchesConfig())
        return parse_version_strict(
            classification.version_text or "",
            source=f"branch {context.ref!r}",
        )

    if kind is BranchKind.MAIN and context.event is EventKind.MERGE:
        source = scan_merge_message(context.merge_message, branches)
        return Ok(source.version if source is not None else None)

    return Ok(None)
