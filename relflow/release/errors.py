"""Error payload for the release engine and its collaborators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

ReleaseErrorKind = Literal[
    "invalid_version_format",
    "missing_version",
    "duplicate_tag",
    "sync_timeout",
    "merge_conflict",
    "invalid_input",
    "lock_held",
    "git_failed",
]


@dataclass(frozen=True, slots=True)
class ReleaseError:
    """Canonical release error.

    ``hint`` tells a human what to do next; CLI adapters render it on its own
    line.
    """

    kind: ReleaseErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
