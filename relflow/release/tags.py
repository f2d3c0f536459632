"""Image tag planning.

The tag rules are data: one row per (branch kind, event) pair, each row a list
of tag templates. Pairs without a row build without pushing.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from relflow.core.config import TagsConfig
from relflow.core.result import Err, Ok, Result
from relflow.release.errors import ReleaseError
from relflow.release.kinds import BranchKind, EventKind
from relflow.release.semver import SemVer

__all__ = [
    "TAG_RULES",
    "TagRule",
    "TagSet",
    "candidate_tag",
    "duplicate_tag_error",
    "first_duplicate",
    "plan_tags",
]


def first_duplicate(tags: tuple[str, ...]) -> str | None:
    seen: set[str] = set()
    for tag in tags:
        if tag in seen:
            return tag
        seen.add(tag)
    return None


def duplicate_tag_error(tag: str) -> ReleaseError:
    """Error for a rendered tag list that repeats a tag."""
    return ReleaseError(
        kind="invalid_input",
        message=f"tag {tag!r} would be produced twice",
        hint="Check tags.latest, tags.dev_prefix and tags.pr_prefix in relflow.toml.",
    )


@dataclass(frozen=True, slots=True)
class TagSet:
    """Ordered, duplicate-free image tags."""

    tags: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        duplicate = first_duplicate(self.tags)
        if duplicate is not None:
            raise ValueError(f"duplicate tag in tag set: {duplicate}")

    def __iter__(self) -> Iterator[str]:
        return iter(self.tags)

    def __len__(self) -> int:
        return len(self.tags)

    def __bool__(self) -> bool:
        return bool(self.tags)

    @property
    def primary(self) -> str | None:
        return self.tags[0] if self.tags else None


@dataclass(frozen=True, slots=True)
class TagRule:
    """Tag templates for one row of the table.

    Available fields: sha, version, major, minor, pr_number, dev, pr, latest.
    """

    templates: tuple[str, ...]
    needs_version: bool = False
    needs_pr_number: bool = False


_PR_RULE = TagRule(("{pr}-{pr_number}", "{sha}"), needs_pr_number=True)

TAG_RULES: dict[tuple[BranchKind, EventKind], TagRule] = {
    (BranchKind.DEVELOP, EventKind.PUSH): TagRule(("{dev}-latest", "{dev}-{sha}")),
    (BranchKind.RELEASE, EventKind.PUSH): TagRule(("{version}-rc", "{sha}"), needs_version=True),
    (BranchKind.RELEASE, EventKind.PULL_REQUEST): TagRule(
        ("{version}-rc", "{sha}"), needs_version=True
    ),
    (BranchKind.HOTFIX, EventKind.PUSH): TagRule(
        ("{version}-hotfix-rc", "{sha}"), needs_version=True
    ),
    (BranchKind.HOTFIX, EventKind.PULL_REQUEST): TagRule(
        ("{version}-hotfix-rc", "{sha}"), needs_version=True
    ),
    (BranchKind.MAIN, EventKind.MERGE): TagRule(
        ("{version}", "{major}.{minor}", "{major}", "{latest}"), needs_version=True
    ),
    (BranchKind.FEATURE, EventKind.PULL_REQUEST): _PR_RULE,
    (BranchKind.UNKNOWN, EventKind.PULL_REQUEST): _PR_RULE,
    (BranchKind.PULL_REQUEST, EventKind.PULL_REQUEST): _PR_RULE,
}


def candidate_tag(kind: BranchKind, version: SemVer) -> str | None:
    """The release-candidate tag a release/hotfix pipeline pushed for ``version``."""
    match kind:
        case BranchKind.RELEASE:
            return f"{version}-rc"
        case BranchKind.HOTFIX:
            return f"{version}-hotfix-rc"
        case _:
            return None


def plan_tags(
    kind: BranchKind,
    version: SemVer | None,
    sha: str,
    event: EventKind,
    pr_number: int | None = None,
    *,
    config: TagsConfig | None = None,
) -> Result[TagSet, ReleaseError]:
    """Compute the tags for one build.

    Fails with ``missing_version`` when the row needs a version and none was
    resolved; version-derived tags are never silently dropped.
    """
    cfg = config or TagsConfig()

    rule = TAG_RULES.get((kind, event))
    if rule is None:
        return Ok(TagSet())

    if len(sha) != cfg.sha_length:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message=f"sha {sha!r} is not {cfg.sha_length} characters",
                hint="Use the same short sha form for every tag.",
            )
        )

    if rule.needs_version and version is None:
        return Err(
            ReleaseError(
                kind="missing_version",
                message=f"tags for {kind} on {event} need a version, none was resolved",
                hint="Check the branch name or merge commit message carries X.Y.Z.",
            )
        )

    if rule.needs_pr_number and pr_number is None:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="pull request builds need a pull request number",
                hint="Pass --pr or run from a refs/pull/<n>/merge ref.",
            )
        )

    fields: dict[str, object] = {
        "sha": sha,
        "pr_number": pr_number,
        "dev": cfg.dev_prefix,
        "pr": cfg.pr_prefix,
        "latest": cfg.latest,
    }
    if version is not None:
        fields.update(version=version, major=version.major, minor=version.minor)

    rendered = tuple(t.format(**fields) for t in rule.templates)
    duplicate = first_duplicate(rendered)
    if duplicate is not None:
        return Err(duplicate_tag_error(duplicate))
    return Ok(TagSet(rendered))
