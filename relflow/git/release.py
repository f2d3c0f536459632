"""Git side of a promotion: release tag and merge-back.

Executes a PromotionPlan computed by the engine. Network operations retry on
transient failures; a push that exceeds its time bound fails closed as
``sync_timeout``. Merge conflicts are never resolved automatically.
"""

from __future__ import annotations

from time import sleep

from relflow.core.result import Err, Ok, Result
from relflow.git.repository import GitError, Repository
from relflow.release.errors import ReleaseError
from relflow.release.promotion import PromotionPlan

__all__ = ["GitReleaseCollaborator"]

PUSH_RETRY_ATTEMPTS = 3
PUSH_RETRY_DELAY_SECONDS = 2.0

_TRANSIENT_MARKERS = (
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "could not resolve host",
    "remote end hung up unexpectedly",
    "http 502",
    "http 503",
    "http 504",
)


def _is_transient(error: GitError) -> bool:
    text = error.message.lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


def _duplicate_tag(name: str, where: str) -> ReleaseError:
    return ReleaseError(
        kind="duplicate_tag",
        message=f"git tag already exists{where}: {name}",
        hint="Release tags are immutable; bump the version on a new release branch.",
    )


def _release_error(error: GitError) -> ReleaseError:
    if error.conflict:
        return ReleaseError(
            kind="merge_conflict",
            message=error.message,
            hint="Resolve the merge-back by hand; nothing was merged.",
        )
    if error.timed_out:
        return ReleaseError(
            kind="sync_timeout",
            message=f"git {error.command} did not finish in time",
            hint="Check connectivity to the remote, then re-run.",
        )
    return ReleaseError(kind="git_failed", message=f"git {error.command}: {error.message}")


class GitReleaseCollaborator:
    """Carries out the git parts of a PromotionPlan.

    Also serves as the engine's TagLookup. With a remote configured, tags are
    looked up on the remote too, since CI checkouts usually fetch no tags.
    """

    def __init__(self, repo: Repository, *, remote: str | None = "origin") -> None:
        self.repo = repo
        self.remote = remote

    def tag_exists(self, name: str) -> Result[bool, ReleaseError]:
        local = self.repo.tag_exists(name)
        if isinstance(local, Err):
            return Err(_release_error(local.error))
        if local.value or self.remote is None:
            return local
        return self.repo.remote_tag_exists(self.remote, name).map_err(_release_error)

    def publish_tag(self, plan: PromotionPlan) -> Result[None, ReleaseError]:
        """Create the release tag on HEAD and push it.

        A tag whose push fails is deleted again, so a re-run starts clean.
        """
        name = plan.git_tag_name
        exists = self.tag_exists(name)
        if isinstance(exists, Err):
            return exists
        if exists.value:
            return Err(_duplicate_tag(name, ""))

        created = self.repo.create_tag(name, f"Release {name}")
        if isinstance(created, Err):
            return Err(_release_error(created.error))

        if self.remote is None:
            return Ok(None)

        pushed = self._push(f"refs/tags/{name}")
        if isinstance(pushed, Err):
            self.repo.delete_tag(name)
            if "already exists" in pushed.error.message:
                return Err(_duplicate_tag(name, f" on {self.remote}"))
            return Err(_release_error(pushed.error))
        return Ok(None)

    def merge_back(self, plan: PromotionPlan) -> Result[None, ReleaseError]:
        """Merge the promoted commit (HEAD) into the plan's merge-back target.

        The release branch itself is not needed: it is usually absent from a
        CI checkout and often deleted once merged. With a remote, the target
        is reset to the remote's copy first. A no-op when the plan has no
        target. The originally checked out branch (or commit) is restored.
        """
        target = plan.merge_back_target
        if target is None:
            return Ok(None)

        head = self.repo.head_sha()
        if isinstance(head, Err):
            return Err(_release_error(head.error))
        original = self.repo.current_branch() or head.value

        if self.remote is not None:
            tracking = self.repo.fetch_branch(self.remote, target)
            if isinstance(tracking, Err):
                return Err(_release_error(tracking.error))
            checked_out = self.repo.reset_branch(target, tracking.value)
        else:
            checked_out = self.repo.checkout(target)
        if isinstance(checked_out, Err):
            return Err(_release_error(checked_out.error))

        source = plan.merge_back_source or plan.git_tag_name
        merged = self.repo.merge_no_ff(
            head.value,
            f"Merge {source} into {target} after {plan.git_tag_name}",
        )
        result: Result[None, ReleaseError]
        if isinstance(merged, Err):
            result = Err(_release_error(merged.error))
        elif self.remote is not None:
            pushed = self._push(target)
            result = Err(_release_error(pushed.error)) if isinstance(pushed, Err) else Ok(None)
        else:
            result = Ok(None)

        if original != target:
            restored = self.repo.checkout(original)
            if isinstance(restored, Err) and isinstance(result, Ok):
                return Err(_release_error(restored.error))
        return result

    def _push(self, refspec: str) -> Result[None, GitError]:
        assert self.remote is not None
        for attempt in range(PUSH_RETRY_ATTEMPTS):
            pushed = self.repo.push(self.remote, refspec)
            if isinstance(pushed, Ok):
                return pushed
            if not _is_transient(pushed.error) or attempt + 1 >= PUSH_RETRY_ATTEMPTS:
                return pushed
            sleep(PUSH_RETRY_DELAY_SECONDS * (attempt + 1))
        return Err(GitError(command="push", message=f"push of {refspec} failed"))
