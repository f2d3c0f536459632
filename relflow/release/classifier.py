"""Ref classification.

Maps a ref string onto exactly one BranchKind. Classification never fails:
anything unrecognized is ``UNKNOWN``, which downstream means build-only.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from relflow.core.config import BranchesConfig
from relflow.release.kinds import BranchKind

__all__ = [
    "RefClassification",
    "classify",
    "classify_ref",
    "normalize_ref",
    "pull_number_from_ref",
]

_HEADS_PREFIX = "refs/heads/"
_PULL_REF_RE = re.compile(r"^refs/pull/([1-9]\d*)/(?:merge|head)$")

_DEFAULT_BRANCHES = BranchesConfig()


@dataclass(frozen=True, slots=True)
class RefClassification:
    """Branch kind plus the text after the prefix for versioned branches.

    ``version_text`` is the unvalidated candidate; VersionResolver parses it.
    """

    kind: BranchKind
    version_text: str | None = None


def normalize_ref(ref: str) -> str:
    """Strip ``refs/heads/`` so full and short branch refs classify the same."""
    ref = ref.strip()
    if ref.startswith(_HEADS_PREFIX):
        return ref[len(_HEADS_PREFIX) :]
    return ref


def pull_number_from_ref(ref: str) -> int | None:
    """PR number embedded in ``refs/pull/<n>/merge`` style refs."""
    m = _PULL_REF_RE.match(ref.strip())
    if m is None:
        return None
    return int(m.group(1))


def _prefix_table(branches: BranchesConfig) -> tuple[tuple[str, BranchKind, bool], ...]:
    # (prefix, kind, remainder is a version)
    return (
        (branches.release_prefix, BranchKind.RELEASE, True),
        (branches.hotfix_prefix, BranchKind.HOTFIX, True),
        (branches.feature_prefix, BranchKind.FEATURE, False),
    )


def classify_ref(ref: str, branches: BranchesConfig = _DEFAULT_BRANCHES) -> RefClassification:
    name = normalize_ref(ref)

    exact = {branches.main: BranchKind.MAIN, branches.develop: BranchKind.DEVELOP}
    if name in exact:
        return RefClassification(exact[name])

    for prefix, kind, versioned in _prefix_table(branches):
        if name.startswith(prefix):
            remainder = name[len(prefix) :]
            return RefClassification(kind, remainder if versioned else None)

    if pull_number_from_ref(name) is not None:
        return RefClassification(BranchKind.PULL_REQUEST)

    return RefClassification(BranchKind.UNKNOWN)


def classify(ref: str, branches: BranchesConfig = _DEFAULT_BRANCHES) -> BranchKind:
    return classify_ref(ref, branches).kind
