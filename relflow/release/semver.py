from __future__ import annotations

import re
from dataclasses import dataclass

from relflow.core.result import Err, Ok, Result
from relflow.release.errors import ReleaseError

# One version component: no leading zeros, so "1.02.3" is rejected
# instead of producing a tag that differs from its numeric value.
COMPONENT = r"(?:0|[1-9]\d*)"

_VERSION_RE = re.compile(rf"^({COMPONENT})\.({COMPONENT})\.({COMPONENT})$")


@dataclass(frozen=True, slots=True, order=True)
class SemVer:
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def to_git_tag(self) -> str:
        return f"v{self}"

    def fan_out(self) -> tuple[str, str, str]:
        """``X.Y.Z``, ``X.Y`` and ``X``, most specific first."""
        return (str(self), f"{self.major}.{self.minor}", f"{self.major}")


def parse_version(text: str) -> SemVer | None:
    m = _VERSION_RE.match(text)
    if m is None:
        return None
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)))


def parse_version_strict(text: str, *, source: str) -> Result[SemVer, ReleaseError]:
    """Parse ``X.Y.Z`` or fail with ``invalid_version_format``.

    ``source`` names where the text came from (e.g. the branch) for the message.
    """
    version = parse_version(text)
    if version is None:
        return Err(
            ReleaseError(
                kind="invalid_version_format",
                message=f"invalid version {text!r} in {source}",
                hint="Expected: MAJOR.MINOR.PATCH, e.g. release/1.2.0",
            )
        )
    return Ok(version)
