"""Git repository abstraction.

Thin wrapper over the ``git`` CLI for the release operations relflow needs.
All operations return Result types.

Usage:
    repo = Repository(Path("."))

    match repo.tag_exists("v1.2.0"):
        case Ok(True):
            print("already released")
        case Ok(False):
            repo.create_tag("v1.2.0", "Release 1.2.0")
        case Err(e):
            print(f"git failed: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from relflow.core.result import Err, Ok, Result
from relflow.platform.process import ProcessError
from relflow.platform.process import run as run_process

GIT_TIMEOUT_SECONDS = 30.0
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GIT_NETWORK_TIMEOUT_SECONDS",
    "GIT_TIMEOUT_SECONDS",
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git subcommand that failed
        message: git's own output, verbatim
        returncode: Process return code
        conflict: True when a merge stopped on conflicts
        timed_out: True when git did not finish within its time bound
    """

    command: str
    message: str
    returncode: int = 1
    conflict: bool = False
    timed_out: bool = False


def _git_error(command: str, e: ProcessError, fallback: str) -> GitError:
    return GitError(
        command=command,
        message=e.stderr.strip() or e.stdout.strip() or fallback,
        returncode=e.returncode,
        timed_out=e.timed_out,
    )


class Repository:
    """A local git checkout.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def current_branch(self) -> str | None:
        """Current branch name, or None on detached HEAD or error."""
        result = self._run(["rev-parse", "--abbrev-ref", "HEAD"])
        match result:
            case Ok(stdout):
                branch = stdout.strip()
                return None if branch == "HEAD" else branch
            case Err(_):
                return None

    def head_sha(self) -> Result[str, GitError]:
        result = self._run(["rev-parse", "--verify", "HEAD^{commit}"])
        match result:
            case Err(e):
                return Err(_git_error("rev-parse", e, "cannot resolve HEAD"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def head_message(self) -> Result[str, GitError]:
        """Full message of the HEAD commit (used as the merge message on main)."""
        result = self._run(["log", "-1", "--format=%B"])
        match result:
            case Err(e):
                return Err(_git_error("log", e, "cannot read HEAD commit"))
            case Ok(stdout):
                return Ok(stdout.strip())

    def tag_exists(self, name: str) -> Result[bool, GitError]:
        result = self._run(["tag", "--list", name])
        match result:
            case Err(e):
                return Err(_git_error("tag --list", e, "cannot list tags"))
            case Ok(stdout):
                return Ok(any(line.strip() == name for line in stdout.splitlines()))

    def create_tag(self, name: str, message: str) -> Result[None, GitError]:
        """Create an annotated tag on HEAD. git refuses to overwrite an existing tag."""
        result = self._run(["tag", "--annotate", name, "--message", message])
        match result:
            case Err(e):
                return Err(_git_error("tag", e, f"cannot create tag {name}"))
            case Ok(_):
                return Ok(None)

    def delete_tag(self, name: str) -> Result[None, GitError]:
        result = self._run(["tag", "--delete", name])
        match result:
            case Err(e):
                return Err(_git_error("tag --delete", e, f"cannot delete tag {name}"))
            case Ok(_):
                return Ok(None)

    def remote_tag_exists(self, remote: str, name: str) -> Result[bool, GitError]:
        """Whether ``remote`` has the tag, without fetching it."""
        result = self._run(["ls-remote", "--tags", remote, f"refs/tags/{name}"])
        match result:
            case Err(e):
                return Err(_git_error("ls-remote", e, f"cannot list tags on {remote}"))
            case Ok(stdout):
                return Ok(bool(stdout.strip()))

    def push(self, remote: str, refspec: str) -> Result[None, GitError]:
        result = self._run(["push", remote, refspec])
        match result:
            case Err(e):
                return Err(_git_error("push", e, f"push of {refspec} failed"))
            case Ok(_):
                return Ok(None)

    def fetch_branch(self, remote: str, branch: str) -> Result[str, GitError]:
        """Fetch ``branch`` from ``remote`` and return its remote-tracking ref."""
        tracking = f"refs/remotes/{remote}/{branch}"
        result = self._run(["fetch", remote, f"+refs/heads/{branch}:{tracking}"])
        match result:
            case Err(e):
                return Err(_git_error("fetch", e, f"cannot fetch {branch} from {remote}"))
            case Ok(_):
                return Ok(tracking)

    def checkout(self, branch: str) -> Result[None, GitError]:
        result = self._run(["checkout", branch])
        match result:
            case Err(e):
                return Err(_git_error("checkout", e, f"cannot check out {branch}"))
            case Ok(_):
                return Ok(None)

    def reset_branch(self, branch: str, start: str) -> Result[None, GitError]:
        """Check out ``branch``, (re)created at ``start``."""
        result = self._run(["checkout", "-B", branch, start])
        match result:
            case Err(e):
                return Err(_git_error("checkout", e, f"cannot check out {branch} at {start}"))
            case Ok(_):
                return Ok(None)

    def merge_no_ff(self, source: str, message: str) -> Result[None, GitError]:
        """Merge ``source`` into the current branch with a merge commit.

        On conflict the merge is aborted, leaving the tree as it was, and the
        error carries git's conflict report verbatim.
        """
        result = self._run(["merge", "--no-ff", "--message", message, source])
        match result:
            case Ok(_):
                return Ok(None)
            case Err(e):
                report = f"{e.stdout}\n{e.stderr}".strip()
                if "CONFLICT" in report or "Automatic merge failed" in report:
                    self._run(["merge", "--abort"])
                    return Err(
                        GitError(
                            command="merge",
                            message=report,
                            returncode=e.returncode,
                            conflict=True,
                        )
                    )
                return Err(_git_error("merge", e, f"merge of {source} failed"))

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        command = args[0] if args else ""
        timeout = (
            GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "ls-remote", "pull", "push"}
            else GIT_TIMEOUT_SECONDS
        )
        return run_process(["git", "-C", str(self.path), *args], cwd=self.path, timeout=timeout)
