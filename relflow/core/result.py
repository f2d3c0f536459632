"""Result type for explicit error handling.

Every fallible step of the release engine returns a Result instead of
raising. Callers decide whether a failure stops the pipeline.

Usage:
    def parse(text: str) -> Result[SemVer, ReleaseError]:
        version = parse_version(text)
        if version is None:
            return Err(ReleaseError(kind="invalid_version_format", message=text))
        return Ok(version)

    match parse("1.2.3"):
        case Ok(version):
            print(version)
        case Err(error):
            print(error.pretty())
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")
F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """A successful result carrying ``value``."""

    value: T

    def map_err(self, f: Callable[[object], F]) -> Ok[T]:
        return self

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """A failed result carrying ``error``."""

    error: E

    def map_err(self, f: Callable[[E], F]) -> Err[F]:
        """Transform the carried error, e.g. a GitError into a ReleaseError."""
        return Err(f(self.error))

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


Result = Ok[T] | Err[E]
