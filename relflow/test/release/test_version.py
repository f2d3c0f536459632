"""Tests for relflow.release.version."""

from __future__ import annotations

import pytest

from relflow.core.config import BranchesConfig
from relflow.core.result import Err, Ok
from relflow.release.context import BuildContext
from relflow.release.kinds import BranchKind, EventKind
from relflow.release.semver import SemVer
from relflow.release.version import (
    MergeSource,
    missing_version_error,
    resolve_version,
    scan_merge_message,
)

SHA = "3f9c2a1"


def _ctx(ref: str, event: EventKind = EventKind.PUSH, message: str | None = None) -> BuildContext:
    return BuildContext(ref=ref, event=event, sha=SHA, merge_message=message)


class TestBranchVersions:
    @pytest.mark.parametrize("text", ["0.0.1", "1.2.0", "12.34.56"])
    def test_release_branch_version_round_trips(self, text: str) -> None:
        result = resolve_version(_ctx(f"release/{text}"), BranchKind.RELEASE)
        assert isinstance(result, Ok)
        assert str(result.value) == text

    def test_hotfix_branch_version(self) -> None:
        result = resolve_version(_ctx("hotfix/1.2.1"), BranchKind.HOTFIX)
        assert result == Ok(SemVer(1, 2, 1))

    @pytest.mark.parametrize("ref", ["release/1.2", "release/v1.2.0", "hotfix/urgent", "release/"])
    def test_malformed_branch_version_fails(self, ref: str) -> None:
        kind = BranchKind.HOTFIX if ref.startswith("hotfix/") else BranchKind.RELEASE
        result = resolve_version(_ctx(ref), kind)
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_version_format"


class TestMergeMessages:
    def test_pull_request_merge_message(self) -> None:
        ctx = _ctx("main", EventKind.MERGE, "Merge pull request #42 from org/release/2.0.1")
        assert resolve_version(ctx, BranchKind.MAIN) == Ok(SemVer(2, 0, 1))

    def test_merge_branch_message(self) -> None:
        ctx = _ctx("main", EventKind.MERGE, "Merge branch 'hotfix/1.0.3' into main")
        assert resolve_version(ctx, BranchKind.MAIN) == Ok(SemVer(1, 0, 3))

    def test_message_without_release_reference_is_not_found(self) -> None:
        ctx = _ctx("main", EventKind.MERGE, "Merge pull request #7 from org/feature/login")
        assert resolve_version(ctx, BranchKind.MAIN) == Ok(None)

    def test_missing_message_is_not_found(self) -> None:
        ctx = _ctx("main", EventKind.MERGE, None)
        assert resolve_version(ctx, BranchKind.MAIN) == Ok(None)

    def test_push_to_main_has_no_version(self) -> None:
        ctx = _ctx("main", EventKind.PUSH, "Merge pull request #42 from org/release/2.0.1")
        assert resolve_version(ctx, BranchKind.MAIN) == Ok(None)

    def test_first_reference_in_message_wins(self) -> None:
        message = (
            "Merge branch 'release/1.1.0' into main\n\n"
            "Merge pull request #9 from org/release/9.9.9"
        )
        source = scan_merge_message(message)
        assert source == MergeSource(
            kind=BranchKind.RELEASE,
            version=SemVer(1, 1, 0),
            branch="release/1.1.0",
            pattern="merge_branch",
        )

    def test_pull_request_source_details(self) -> None:
        source = scan_merge_message("Merge pull request #5 from acme/hotfix/3.2.1\n\nfix")
        assert source is not None
        assert source.kind is BranchKind.HOTFIX
        assert source.branch == "hotfix/3.2.1"
        assert source.pattern == "pull_request"

    def test_suffixed_versions_are_not_matched(self) -> None:
        assert scan_merge_message("Merge pull request #5 from acme/release/1.2.3-beta") is None
        assert scan_merge_message("Merge branch 'release/1.2' into main") is None


@pytest.mark.parametrize(
    "kind",
    [BranchKind.DEVELOP, BranchKind.FEATURE, BranchKind.PULL_REQUEST, BranchKind.UNKNOWN],
)
def test_version_not_applicable(kind: BranchKind) -> None:
    assert resolve_version(_ctx("whatever"), kind) == Ok(None)


def test_missing_version_error_is_actionable() -> None:
    error = missing_version_error(_ctx("main", EventKind.MERGE))
    assert error.kind == "missing_version"
    assert error.hint is not None
    assert "release/X.Y.Z" in error.hint


class TestConfiguredPrefixes:
    BRANCHES = BranchesConfig(release_prefix="rel/", hotfix_prefix="fix/")

    def test_merge_branch_with_custom_release_prefix(self) -> None:
        ctx = _ctx("main", EventKind.MERGE, "Merge branch 'rel/1.2.0' into main")
        assert resolve_version(ctx, BranchKind.MAIN, self.BRANCHES) == Ok(SemVer(1, 2, 0))

    def test_pull_request_with_custom_hotfix_prefix(self) -> None:
        source = scan_merge_message("Merge pull request #7 from acme/fix/2.0.1", self.BRANCHES)
        assert source == MergeSource(
            kind=BranchKind.HOTFIX,
            version=SemVer(2, 0, 1),
            branch="fix/2.0.1",
            pattern="pull_request",
        )

    def test_default_prefixes_no_longer_match(self) -> None:
        assert scan_merge_message("Merge branch 'release/1.2.0'", self.BRANCHES) is None

    def test_hint_names_configured_prefixes(self) -> None:
        error = missing_version_error(_ctx("main", EventKind.MERGE), self.BRANCHES)
        assert error.hint is not None
        assert "'rel/X.Y.Z'" in error.hint

