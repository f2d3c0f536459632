"""Closed vocabularies the engine dispatches on."""

from __future__ import annotations

from enum import StrEnum

__all__ = ["BranchKind", "EventKind", "VERSIONED_KINDS"]


class BranchKind(StrEnum):
    """What kind of Git-Flow branch a ref is. Assigned once per build."""

    DEVELOP = "develop"
    RELEASE = "release"
    HOTFIX = "hotfix"
    MAIN = "main"
    FEATURE = "feature"
    PULL_REQUEST = "pull_request"
    UNKNOWN = "unknown"


class EventKind(StrEnum):
    """What triggered the pipeline."""

    PUSH = "push"
    PULL_REQUEST = "pull_request"
    MERGE = "merge"
    WORKFLOW_DISPATCH = "workflow_dispatch"

    @classmethod
    def parse(cls, raw: str) -> EventKind | None:
        """Map a CI event name onto an EventKind.

        GitHub's ``pull_request_target`` is treated like ``pull_request``.
        """
        name = raw.strip().lower().replace("-", "_")
        if name == "pull_request_target":
            return cls.PULL_REQUEST
        try:
            return cls(name)
        except ValueError:
            return None


# Branch kinds whose name embeds the version being released.
VERSIONED_KINDS = frozenset({BranchKind.RELEASE, BranchKind.HOTFIX})
