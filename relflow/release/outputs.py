"""Render a BuildDecision as plain key/value outputs for CI collaborators."""

from __future__ import annotations

import json
from pathlib import Path

from relflow.core.config import EnvironmentsConfig
from relflow.release.engine import BuildDecision

__all__ = ["OUTPUT_KEYS", "format_kv", "to_json", "to_outputs", "write_github_output"]

OUTPUT_KEYS: tuple[str, ...] = (
    "branch_kind",
    "version",
    "tags",
    "primary_tag",
    "push",
    "environment",
    "auto_deploy",
    "source_tag",
    "target_tags",
    "git_tag",
    "merge_back",
)


def _flag(value: bool) -> str:
    return "true" if value else "false"


def to_outputs(
    decision: BuildDecision,
    names: EnvironmentsConfig | None = None,
) -> dict[str, str]:
    """Flatten a decision. Absent values are empty strings."""
    env = decision.environment
    promotion = decision.promotion
    return {
        "branch_kind": decision.kind.value,
        "version": str(decision.version) if decision.version is not None else "",
        "tags": ",".join(decision.tags),
        "primary_tag": decision.tags.primary or "",
        "push": _flag(decision.push),
        "environment": env.environment.display_name(names) if env is not None else "",
        "auto_deploy": _flag(env.auto_deploy) if env is not None else "false",
        "source_tag": promotion.source_tag if promotion is not None else "",
        "target_tags": ",".join(promotion.target_tags) if promotion is not None else "",
        "git_tag": promotion.git_tag_name if promotion is not None else "",
        "merge_back": (promotion.merge_back_target or "") if promotion is not None else "",
    }


def format_kv(outputs: dict[str, str]) -> str:
    return "".join(f"{key}={outputs[key]}\n" for key in OUTPUT_KEYS if key in outputs)


def write_github_output(path: Path, outputs: dict[str, str]) -> None:
    """Append outputs to a ``$GITHUB_OUTPUT`` style file."""
    with path.open("a", encoding="utf-8") as handle:
        handle.write(format_kv(outputs))


def to_json(decision: BuildDecision, names: EnvironmentsConfig | None = None) -> str:
    env = decision.environment
    promotion = decision.promotion
    payload: dict[str, object] = {
        "branch_kind": decision.kind.value,
        "event": decision.context.event.value,
        "ref": decision.context.ref,
        "sha": decision.context.sha,
        "version": str(decision.version) if decision.version is not None else None,
        "tags": list(decision.tags),
        "push": decision.push,
        "environment": (
            {
                "name": env.environment.display_name(names),
                "auto_deploy": env.auto_deploy,
                "overridden": env.overridden,
            }
            if env is not None
            else None
        ),
        "promotion": (
            {
                "source_tag": promotion.source_tag,
                "target_tags": list(promotion.target_tags),
                "git_tag_name": promotion.git_tag_name,
                "merge_back_target": promotion.merge_back_target,
                "merge_back_source": promotion.merge_back_source,
            }
            if promotion is not None
            else None
        ),
    }
    return json.dumps(payload, indent=2, sort_keys=True)
