"""One-shot composition of the release decision.

classify -> resolve version -> plan tags -> map environment -> plan promotion.
Each step is a pure function of the context, so the same inputs always give the
same decision.
"""

from __future__ import annotations

from dataclasses import dataclass

from relflow.core.config import Config
from relflow.core.result import Err, Ok, Result
from relflow.release.classifier import classify
from relflow.release.context import BuildContext
from relflow.release.environment import Environment, EnvironmentDecision, resolve_environment
from relflow.release.errors import ReleaseError
from relflow.release.kinds import BranchKind, EventKind
from relflow.release.promotion import PromotionPlan, TagLookup, plan_promotion
from relflow.release.semver import SemVer
from relflow.release.tags import TagSet, candidate_tag, plan_tags
from relflow.release.version import missing_version_error, resolve_version, scan_merge_message

__all__ = ["BuildDecision", "is_promotion", "resolve_build", "resolve_promotion"]


@dataclass(frozen=True, slots=True)
class BuildDecision:
    context: BuildContext
    kind: BranchKind
    version: SemVer | None
    tags: TagSet
    environment: EnvironmentDecision | None
    promotion: PromotionPlan | None = None

    @property
    def push(self) -> bool:
        """Whether the build pushes images at all."""
        return bool(self.tags)


def is_promotion(context: BuildContext, kind: BranchKind) -> bool:
    return kind is BranchKind.MAIN and context.event is EventKind.MERGE


def resolve_promotion(
    context: BuildContext,
    version: SemVer | None,
    *,
    config: Config | None = None,
    tag_lookup: TagLookup | None = None,
) -> Result[PromotionPlan, ReleaseError]:
    """Plan the promotion for a merge to main."""
    cfg = config or Config()
    if version is None:
        return Err(missing_version_error(context, cfg.branches))

    source = scan_merge_message(context.merge_message, cfg.branches)
    if source is None:
        return Err(missing_version_error(context, cfg.branches))

    return plan_promotion(
        candidate_tag(source.kind, version) or "",
        version,
        origin=source.kind,
        origin_branch=source.branch,
        tags=tag_lookup,
        branches=cfg.branches,
        tags_config=cfg.tags,
    )


def resolve_build(
    context: BuildContext,
    *,
    config: Config | None = None,
    override: Environment | None = None,
    tag_lookup: TagLookup | None = None,
) -> Result[BuildDecision, ReleaseError]:
    """Compute the full decision for one pipeline run.

    ``tag_lookup`` is only consulted for main-branch merges, to refuse
    recreating an existing git release tag.
    """
    cfg = config or Config()
    kind = classify(context.ref, cfg.branches)

    version_result = resolve_version(context, kind, cfg.branches)
    if isinstance(version_result, Err):
        return version_result
    version = version_result.value

    promoting = is_promotion(context, kind)
    if promoting and version is None:
        return Err(missing_version_error(context, cfg.branches))

    tags_result = plan_tags(
        kind,
        version,
        context.sha,
        context.event,
        context.pr_number,
        config=cfg.tags,
    )
    if isinstance(tags_result, Err):
        return tags_result

    promotion: PromotionPlan | None = None
    if promoting:
        promotion_result = resolve_promotion(
            context, version, config=cfg, tag_lookup=tag_lookup
        )
        if isinstance(promotion_result, Err):
            return promotion_result
        promotion = promotion_result.value

    return Ok(
        BuildDecision(
            context=context,
            kind=kind,
            version=version,
            tags=tags_result.value,
            environment=resolve_environment(kind, override),
            promotion=promotion,
        )
    )
