"""Typed configuration loading.

``relflow.toml`` is optional. Every table and key falls back to the Git-Flow
defaults below, so an empty file and a missing file behave the same.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_int, get_str, get_table

__all__ = [
    "BranchesConfig",
    "Config",
    "ConfigError",
    "DEFAULT_CONFIG_FILE",
    "EnvironmentsConfig",
    "LocksConfig",
    "TagsConfig",
    "load_config",
    "load_config_or_default",
]

DEFAULT_CONFIG_FILE = "relflow.toml"

# Short SHA bounds: git's default abbreviation up to a full object id.
MIN_SHA_LENGTH = 7
MAX_SHA_LENGTH = 40

# tags.latest must not look like a semver fan-out tag (X, X.Y, X.Y.Z).
_VERSION_LIKE = re.compile(r"^\d+(?:\.\d+){0,2}$")


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BranchesConfig:
    """Long-lived branch names and short-lived branch prefixes."""

    main: str = "main"
    develop: str = "develop"
    release_prefix: str = "release/"
    hotfix_prefix: str = "hotfix/"
    feature_prefix: str = "feature/"


@dataclass(frozen=True, slots=True)
class TagsConfig:
    """Image tag vocabulary."""

    sha_length: int = MIN_SHA_LENGTH
    dev_prefix: str = "dev"
    pr_prefix: str = "pr"
    latest: str = "latest"


@dataclass(frozen=True, slots=True)
class EnvironmentsConfig:
    """Names emitted for each deployment tier."""

    dev: str = "dev"
    stg: str = "stg"
    prd: str = "prd"


@dataclass(frozen=True, slots=True)
class LocksConfig:
    dir: str = ".relflow/locks"


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    branches: BranchesConfig = field(default_factory=BranchesConfig)
    tags: TagsConfig = field(default_factory=TagsConfig)
    environments: EnvironmentsConfig = field(default_factory=EnvironmentsConfig)
    locks: LocksConfig = field(default_factory=LocksConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: If a value is present but out of range.
        """
        branches: StrDict = get_table(data, "branches") or {}
        tags: StrDict = get_table(data, "tags") or {}
        environments: StrDict = get_table(data, "environments") or {}
        locks: StrDict = get_table(data, "locks") or {}

        sha_length = get_int(tags, "sha_length")
        if sha_length is None:
            sha_length = MIN_SHA_LENGTH
        if not MIN_SHA_LENGTH <= sha_length <= MAX_SHA_LENGTH:
            raise ValueError(
                f"tags.sha_length must be between {MIN_SHA_LENGTH} and {MAX_SHA_LENGTH}, "
                f"got {sha_length}"
            )

        latest = get_str(tags, "latest") or "latest"
        if _VERSION_LIKE.match(latest):
            raise ValueError(f"tags.latest must not look like a version, got {latest!r}")

        return cls(
            branches=BranchesConfig(
                main=get_str(branches, "main") or "main",
                develop=get_str(branches, "develop") or "develop",
                release_prefix=get_str(branches, "release_prefix") or "release/",
                hotfix_prefix=get_str(branches, "hotfix_prefix") or "hotfix/",
                feature_prefix=get_str(branches, "feature_prefix") or "feature/",
            ),
            tags=TagsConfig(
                sha_length=sha_length,
                dev_prefix=get_str(tags, "dev_prefix") or "dev",
                pr_prefix=get_str(tags, "pr_prefix") or "pr",
                latest=latest,
            ),
            environments=EnvironmentsConfig(
                dev=get_str(environments, "dev") or "dev",
                stg=get_str(environments, "stg") or "stg",
                prd=get_str(environments, "prd") or "prd",
            ),
            locks=LocksConfig(dir=get_str(locks, "dir") or ".relflow/locks"),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to relflow.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path | None) -> Result[Config, ConfigError]:
    """Load ``path`` if given, else ``./relflow.toml`` if present, else defaults.

    An explicitly requested file that is missing is still an error.
    """
    if path is None:
        implicit = Path.cwd() / DEFAULT_CONFIG_FILE
        if not implicit.is_file():
            return Ok(Config())
        path = implicit
    return load_config(path)
