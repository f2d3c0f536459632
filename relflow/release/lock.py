"""Branch-keyed mutual exclusion for promotions.

Two pipelines promoting the same branch must not race to retag. The lock is
non-blocking: a held lock is reported as ``lock_held`` instead of waiting.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from types import TracebackType
from typing import IO

from relflow.core.result import Err, Ok, Result
from relflow.release.errors import ReleaseError

__all__ = ["BranchLock", "acquire_branch_lock", "lock_path_for"]

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def lock_path_for(lock_dir: Path, branch: str) -> Path:
    return lock_dir / f"{_UNSAFE_CHARS.sub('_', branch)}.lock"


class BranchLock:
    """An acquired lock; release it explicitly or use it as a context manager."""

    def __init__(self, path: Path, handle: IO[bytes]) -> None:
        self.path = path
        self._handle: IO[bytes] | None = handle

    @property
    def held(self) -> bool:
        return self._handle is not None

    def release(self) -> None:
        if self._handle is None:
            return
        try:
            _unlock(self._handle)
        finally:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> BranchLock:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()


def acquire_branch_lock(lock_dir: Path, branch: str) -> Result[BranchLock, ReleaseError]:
    path = lock_path_for(lock_dir, branch)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        handle = path.open("a+b")
    except OSError as e:
        return Err(
            ReleaseError(
                kind="lock_held",
                message=f"cannot open lock file {path}: {e}",
                hint="Check the lock directory is writable.",
            )
        )

    try:
        _try_lock(handle)
    except OSError:
        handle.close()
        return Err(
            ReleaseError(
                kind="lock_held",
                message=f"another promotion holds the lock for {branch}",
                hint="Wait for the other pipeline to finish, then re-run.",
            )
        )
    return Ok(BranchLock(path, handle))


def _try_lock(handle: IO[bytes]) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle, fcntl.LOCK_EX | fcntl.LOCK_NB)


def _unlock(handle: IO[bytes]) -> None:
    if os.name == "nt":
        import msvcrt

        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        import fcntl

        fcntl.flock(handle, fcntl.LOCK_UN)
