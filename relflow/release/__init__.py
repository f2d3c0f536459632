"""Git-Flow release decision engine.

Pure decision logic, leaves first:
- classifier: ref -> BranchKind
- version: BranchKind + context -> SemVer or not found
- tags: BranchKind + version + sha + event -> TagSet
- environment: BranchKind (+ override) -> EnvironmentDecision
- promotion: version + source tag -> PromotionPlan
- engine: all of the above for one BuildContext
"""

from __future__ import annotations

from relflow.release.classifier import classify
from relflow.release.context import BuildContext, assemble_context, context_from_env
from relflow.release.engine import BuildDecision, resolve_build
from relflow.release.environment import Environment, EnvironmentDecision, map_environment
from relflow.release.errors import ReleaseError
from relflow.release.kinds import BranchKind, EventKind
from relflow.release.promotion import PromotionPlan, plan_promotion
from relflow.release.semver import SemVer, parse_version
from relflow.release.tags import TagSet, plan_tags
from relflow.release.version import resolve_version

__all__ = [
    "BranchKind",
    "BuildContext",
    "BuildDecision",
    "Environment",
    "EnvironmentDecision",
    "EventKind",
    "PromotionPlan",
    "ReleaseError",
    "SemVer",
    "TagSet",
    "assemble_context",
    "classify",
    "context_from_env",
    "map_environment",
    "parse_version",
    "plan_promotion",
    "plan_tags",
    "resolve_build",
    "resolve_version",
]
