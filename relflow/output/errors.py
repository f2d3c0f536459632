"""Release error presentation and exit code mapping."""

from __future__ import annotations

from typing import TYPE_CHECKING

from relflow.core.config import ConfigError
from relflow.core.errors import ErrorCode
from relflow.output.console import Style
from relflow.release.errors import ReleaseError

if TYPE_CHECKING:
    from relflow.output.console import ConsoleProtocol

__all__ = ["print_config_error", "print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def print_config_error(error: ConfigError, console: ConsoleProtocol) -> None:
    console.error(error.message)
    if error.path is not None:
        console.print(f"hint: fix or remove {error.path}, or pass --config", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    match error.kind:
        case "invalid_version_format" | "invalid_input":
            return int(ErrorCode.USER_ERROR)
        case "lock_held":
            return int(ErrorCode.ENV_ERROR)
        case "missing_version" | "duplicate_tag":
            return int(ErrorCode.RELEASE_ERROR)
        case "sync_timeout" | "merge_conflict" | "git_failed":
            return int(ErrorCode.COLLABORATOR_ERROR)
    return int(ErrorCode.RELEASE_ERROR)
