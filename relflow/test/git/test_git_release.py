"""Tests for relflow.git.release (promotion execution)."""

from __future__ import annotations

import pytest

from relflow.core.result import Err, Ok, Result
from relflow.git import release as release_mod
from relflow.git.release import GitReleaseCollaborator
from relflow.git.repository import GitError
from relflow.release.promotion import PromotionPlan

HEAD = "3f9c2a1e0b7d4c6a8f1e2d3c4b5a69788796a5b4"

PLAN = PromotionPlan(
    source_tag="2.0.1-rc",
    target_tags=("2.0.1", "2.0", "2", "latest"),
    git_tag_name="v2.0.1",
    merge_back_target="develop",
    merge_back_source="release/2.0.1",
)


class FakeRepo:
    def __init__(self) -> None:
        self.tags: set[str] = set()
        self.remote_tags: set[str] = set()
        self.branch: str | None = "main"
        self.calls: list[tuple[str, ...]] = []
        self.push_results: list[Result[None, GitError]] = []
        self.merge_result: Result[None, GitError] = Ok(None)

    def tag_exists(self, name: str) -> Result[bool, GitError]:
        return Ok(name in self.tags)

    def remote_tag_exists(self, remote: str, name: str) -> Result[bool, GitError]:
        self.calls.append(("ls-remote", remote, name))
        return Ok(name in self.remote_tags)

    def create_tag(self, name: str, message: str) -> Result[None, GitError]:
        self.calls.append(("tag", name))
        self.tags.add(name)
        return Ok(None)

    def delete_tag(self, name: str) -> Result[None, GitError]:
        self.calls.append(("tag --delete", name))
        self.tags.discard(name)
        return Ok(None)

    def push(self, remote: str, refspec: str) -> Result[None, GitError]:
        self.calls.append(("push", remote, refspec))
        if self.push_results:
            return self.push_results.pop(0)
        return Ok(None)

    def head_sha(self) -> Result[str, GitError]:
        return Ok(HEAD)

    def current_branch(self) -> str | None:
        return self.branch

    def fetch_branch(self, remote: str, branch: str) -> Result[str, GitError]:
        self.calls.append(("fetch", remote, branch))
        return Ok(f"refs/remotes/{remote}/{branch}")

    def reset_branch(self, branch: str, start: str) -> Result[None, GitError]:
        self.calls.append(("checkout -B", branch, start))
        self.branch = branch
        return Ok(None)

    def checkout(self, branch: str) -> Result[None, GitError]:
        self.calls.append(("checkout", branch))
        self.branch = branch
        return Ok(None)

    def merge_no_ff(self, source: str, message: str) -> Result[None, GitError]:
        self.calls.append(("merge", source))
        return self.merge_result


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(release_mod, "sleep", lambda seconds: None)


def _collaborator(repo: FakeRepo, remote: str | None = "origin") -> GitReleaseCollaborator:
    return GitReleaseCollaborator(repo, remote=remote)  # type: ignore[arg-type]


def test_publish_tag_creates_and_pushes() -> None:
    repo = FakeRepo()
    assert _collaborator(repo).publish_tag(PLAN) == Ok(None)
    assert repo.calls == [
        ("ls-remote", "origin", "v2.0.1"),
        ("tag", "v2.0.1"),
        ("push", "origin", "refs/tags/v2.0.1"),
    ]


def test_publish_tag_without_remote() -> None:
    repo = FakeRepo()
    assert _collaborator(repo, remote=None).publish_tag(PLAN) == Ok(None)
    assert repo.calls == [("tag", "v2.0.1")]


def test_publish_existing_tag_is_duplicate() -> None:
    repo = FakeRepo()
    repo.tags.add("v2.0.1")
    result = _collaborator(repo).publish_tag(PLAN)
    assert isinstance(result, Err)
    assert result.error.kind == "duplicate_tag"
    assert repo.calls == []


def test_tag_only_on_remote_is_duplicate() -> None:
    repo = FakeRepo()
    repo.remote_tags.add("v2.0.1")
    result = _collaborator(repo).publish_tag(PLAN)
    assert isinstance(result, Err)
    assert result.error.kind == "duplicate_tag"
    assert repo.calls == [("ls-remote", "origin", "v2.0.1")]
    assert repo.tags == set()


def test_tag_lookup_checks_remote() -> None:
    repo = FakeRepo()
    repo.remote_tags.add("v1.0.0")
    collaborator = _collaborator(repo)
    assert collaborator.tag_exists("v1.0.0") == Ok(True)
    assert collaborator.tag_exists("v1.0.1") == Ok(False)
    assert _collaborator(repo, remote=None).tag_exists("v1.0.0") == Ok(False)


def test_failed_push_removes_local_tag() -> None:
    repo = FakeRepo()
    repo.push_results = [Err(GitError(command="push", message="fatal: Authentication failed"))]
    result = _collaborator(repo).publish_tag(PLAN)
    assert isinstance(result, Err)
    assert result.error.kind == "git_failed"
    assert repo.calls[-1] == ("tag --delete", "v2.0.1")
    assert repo.tags == set()


def test_rejected_push_of_existing_tag_is_duplicate() -> None:
    repo = FakeRepo()
    rejected = " ! [rejected]        v2.0.1 -> v2.0.1 (already exists)"
    repo.push_results = [Err(GitError(command="push", message=rejected))]
    result = _collaborator(repo).publish_tag(PLAN)
    assert isinstance(result, Err)
    assert result.error.kind == "duplicate_tag"
    assert "origin" in result.error.message
    assert repo.tags == set()


def test_push_retries_transient_errors() -> None:
    repo = FakeRepo()
    repo.push_results = [Err(GitError(command="push", message="Connection reset by peer")), Ok(None)]
    assert _collaborator(repo).publish_tag(PLAN) == Ok(None)
    assert [c for c in repo.calls if c[0] == "push"] == [
        ("push", "origin", "refs/tags/v2.0.1"),
        ("push", "origin", "refs/tags/v2.0.1"),
    ]


def test_push_timeout_is_sync_timeout() -> None:
    repo = FakeRepo()
    repo.push_results = [Err(GitError(command="push", message="timed out", timed_out=True))]
    result = _collaborator(repo).publish_tag(PLAN)
    assert isinstance(result, Err)
    assert result.error.kind == "sync_timeout"


def test_merge_back_merges_promoted_commit() -> None:
    repo = FakeRepo()
    assert _collaborator(repo).merge_back(PLAN) == Ok(None)
    assert repo.calls == [
        ("fetch", "origin", "develop"),
        ("checkout -B", "develop", "refs/remotes/origin/develop"),
        ("merge", HEAD),
        ("push", "origin", "develop"),
        ("checkout", "main"),
    ]


def test_merge_back_without_remote_uses_local_branch() -> None:
    repo = FakeRepo()
    assert _collaborator(repo, remote=None).merge_back(PLAN) == Ok(None)
    assert repo.calls == [("checkout", "develop"), ("merge", HEAD), ("checkout", "main")]


def test_merge_back_from_detached_head_restores_commit() -> None:
    repo = FakeRepo()
    repo.branch = None
    assert _collaborator(repo).merge_back(PLAN) == Ok(None)
    assert repo.calls[-1] == ("checkout", HEAD)


def test_merge_back_conflict_is_surfaced_verbatim() -> None:
    repo = FakeRepo()
    report = "CONFLICT (content): Merge conflict in app.py"
    repo.merge_result = Err(GitError(command="merge", message=report, conflict=True))
    result = _collaborator(repo).merge_back(PLAN)
    assert isinstance(result, Err)
    assert result.error.kind == "merge_conflict"
    assert result.error.message == report
    assert ("push", "origin", "develop") not in repo.calls
    assert repo.calls[-1] == ("checkout", "main")


def test_merge_back_noop_without_target() -> None:
    repo = FakeRepo()
    plan = PromotionPlan(source_tag="1.0.0-rc", target_tags=(), git_tag_name="v1.0.0")
    assert _collaborator(repo).merge_back(plan) == Ok(None)
    assert repo.calls == []


def test_tag_lookup_maps_git_errors() -> None:
    class BrokenRepo(FakeRepo):
        def tag_exists(self, name: str) -> Result[bool, GitError]:
            return Err(GitError(command="tag --list", message="fatal: not a git repository"))

    result = _collaborator(BrokenRepo()).tag_exists("v1.0.0")
    assert isinstance(result, Err)
    assert result.error.kind == "git_failed"
    assert "not a git repository" in result.error.message
