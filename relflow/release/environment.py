"""Deployment environment mapping.

Each branch kind has a computed default. A caller-supplied override (a
manual dispatch) always wins and bypasses the auto-deploy/approval semantics:
a human already chose to deploy.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from relflow.core.config import EnvironmentsConfig
from relflow.core.result import Err, Ok, Result
from relflow.release.errors import ReleaseError
from relflow.release.kinds import BranchKind

__all__ = [
    "Environment",
    "EnvironmentDecision",
    "map_environment",
    "parse_environment",
    "resolve_environment",
]


class Environment(StrEnum):
    DEV = "dev"
    STG = "stg"
    PRD = "prd"

    def display_name(self, names: EnvironmentsConfig | None = None) -> str:
        """Configured name for this tier."""
        cfg = names or EnvironmentsConfig()
        return getattr(cfg, self.value)


@dataclass(frozen=True, slots=True)
class EnvironmentDecision:
    environment: Environment
    auto_deploy: bool
    overridden: bool = False


_DEFAULTS: dict[BranchKind, EnvironmentDecision] = {
    BranchKind.DEVELOP: EnvironmentDecision(Environment.DEV, auto_deploy=True),
    BranchKind.RELEASE: EnvironmentDecision(Environment.STG, auto_deploy=True),
    BranchKind.HOTFIX: EnvironmentDecision(Environment.STG, auto_deploy=True),
    # Production waits behind a manual approval gate.
    BranchKind.MAIN: EnvironmentDecision(Environment.PRD, auto_deploy=False),
}


def map_environment(kind: BranchKind) -> EnvironmentDecision | None:
    """Computed default; None means validation/build only."""
    return _DEFAULTS.get(kind)


def resolve_environment(
    kind: BranchKind,
    override: Environment | None = None,
) -> EnvironmentDecision | None:
    if override is not None:
        return EnvironmentDecision(override, auto_deploy=True, overridden=True)
    return map_environment(kind)


def parse_environment(
    raw: str,
    names: EnvironmentsConfig | None = None,
) -> Result[Environment, ReleaseError]:
    """Parse an override given either as a tier (dev/stg/prd) or its configured name."""
    value = raw.strip().lower()
    for env in Environment:
        if value in (env.value, env.display_name(names).lower()):
            return Ok(env)
    return Err(
        ReleaseError(
            kind="invalid_input",
            message=f"unknown environment: {raw!r}",
            hint="Expected one of: " + ", ".join(e.display_name(names) for e in Environment),
        )
    )
