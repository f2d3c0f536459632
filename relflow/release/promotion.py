"""Promotion planning for merges to main.

A promotion is a fan-out retag of the already-built release candidate: every
target tag must resolve to the same digest as ``source_tag``. This module only
states the plan; the registry and git collaborators carry it out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from relflow.core.config import BranchesConfig, TagsConfig
from relflow.core.result import Err, Ok, Result
from relflow.release.errors import ReleaseError
from relflow.release.kinds import VERSIONED_KINDS, BranchKind
from relflow.release.semver import SemVer
from relflow.release.tags import duplicate_tag_error, first_duplicate

__all__ = ["PromotionPlan", "TagLookup", "plan_promotion"]


class TagLookup(Protocol):
    """Answers whether a git tag already exists (the git collaborator)."""

    def tag_exists(self, name: str) -> Result[bool, ReleaseError]: ...


@dataclass(frozen=True, slots=True)
class PromotionPlan:
    source_tag: str
    target_tags: tuple[str, ...]
    git_tag_name: str
    merge_back_target: str | None = None
    # Branch to merge back from (e.g. "release/1.2.0"), when known.
    merge_back_source: str | None = None


def plan_promotion(
    source_tag: str,
    version: SemVer | None,
    *,
    origin: BranchKind | None = None,
    origin_branch: str | None = None,
    tags: TagLookup | None = None,
    branches: BranchesConfig | None = None,
    tags_config: TagsConfig | None = None,
) -> Result[PromotionPlan, ReleaseError]:
    """Compute the retag plan and post-release actions.

    Args:
        source_tag: Existing image tag to promote (the RC tag).
        version: Resolved release version; None fails with ``missing_version``.
        origin: Kind of branch that was merged; release/hotfix merge back.
        origin_branch: Name of that branch, passed through to the plan.
        tags: Git collaborator used to reject an already existing git tag.
    """
    branch_cfg = branches or BranchesConfig()
    if version is None:
        return Err(
            ReleaseError(
                kind="missing_version",
                message=f"cannot promote {source_tag or '<unknown>'}: no release version",
                hint=(
                    f"expected '{branch_cfg.release_prefix}X.Y.Z' or "
                    f"'{branch_cfg.hotfix_prefix}X.Y.Z' in the merge commit message"
                ),
            )
        )

    if not source_tag:
        return Err(ReleaseError(kind="invalid_input", message="promotion needs a source tag"))

    latest = (tags_config or TagsConfig()).latest
    target_tags = (*version.fan_out(), latest)
    duplicate = first_duplicate(target_tags)
    if duplicate is not None:
        return Err(duplicate_tag_error(duplicate))
    git_tag_name = version.to_git_tag()

    if tags is not None:
        exists = tags.tag_exists(git_tag_name)
        if isinstance(exists, Err):
            return exists
        if exists.value:
            return Err(
                ReleaseError(
                    kind="duplicate_tag",
                    message=f"git tag already exists: {git_tag_name}",
                    hint="Release tags are immutable; bump the version on a new release branch.",
                )
            )

    merge_back_target: str | None = None
    if origin in VERSIONED_KINDS:
        merge_back_target = branch_cfg.develop

    return Ok(
        PromotionPlan(
            source_tag=source_tag,
            target_tags=target_tags,
            git_tag_name=git_tag_name,
            merge_back_target=merge_back_target,
            merge_back_source=origin_branch if merge_back_target else None,
        )
    )
