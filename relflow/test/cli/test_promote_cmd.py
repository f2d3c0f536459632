from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relflow.cli.context import CLIContext
from relflow.core.config import Config
from relflow.core.errors import ErrorCode
from relflow.core.result import Ok, Result
from relflow.output.console import MockConsole
from relflow.release.errors import ReleaseError
from relflow.release.lock import acquire_branch_lock
from relflow.release.promotion import PromotionPlan

SHA = "3f9c2a1e8b7d6c5f4a3b2c1d0e9f8a7b6c5d4e3f"
MERGE_MESSAGE = "Merge pull request #42 from org/release/2.0.1"


class FakeCollaborator:
    instances: list[FakeCollaborator] = []
    existing: set[str] = set()

    def __init__(self, repo: object, *, remote: str | None = "origin") -> None:
        self.remote = remote
        self.calls: list[str] = []
        FakeCollaborator.instances.append(self)

    def tag_exists(self, name: str) -> Result[bool, ReleaseError]:
        return Ok(name in self.existing)

    def publish_tag(self, plan: PromotionPlan) -> Result[None, ReleaseError]:
        self.calls.append(f"tag {plan.git_tag_name}")
        return Ok(None)

    def merge_back(self, plan: PromotionPlan) -> Result[None, ReleaseError]:
        self.calls.append(f"merge {plan.merge_back_source} -> {plan.merge_back_target}")
        return Ok(None)


@pytest.fixture(autouse=True)
def _setup(monkeypatch: pytest.MonkeyPatch) -> None:
    import relflow.cli.commands.promote as promote_cmd

    for name in ("GITHUB_REF", "GITHUB_EVENT_NAME", "GITHUB_SHA", "GITHUB_EVENT_PATH"):
        monkeypatch.delenv(name, raising=False)
    FakeCollaborator.instances = []
    FakeCollaborator.existing = set()
    monkeypatch.setattr(promote_cmd, "GitReleaseCollaborator", FakeCollaborator)


def _ctx(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> CLIContext:
    import relflow.cli.commands.promote as promote_cmd

    ctx = CLIContext(config=Config(), console=MockConsole(), repo_root=tmp_path)
    monkeypatch.setattr(promote_cmd, "build_context", lambda: ctx)
    return ctx


def _run(**overrides: object) -> None:
    import relflow.cli.commands.promote as promote_cmd

    args: dict[str, object] = {
        "ref": "main",
        "event": "push",
        "sha": SHA,
        "message": MERGE_MESSAGE,
        "git_message": False,
        "execute": False,
        "remote": "origin",
        "no_push": False,
        "lock_dir": None,
    }
    args.update(overrides)
    promote_cmd.promote(**args)  # type: ignore[arg-type]


def test_plan_only(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    ctx = _ctx(tmp_path, monkeypatch)
    _run()

    out = capsys.readouterr().out
    assert "source_tag=2.0.1-rc\n" in out
    assert "target_tags=2.0.1,2.0,2,latest\n" in out
    assert "git_tag=v2.0.1\n" in out
    assert "merge_back=develop\n" in out
    assert FakeCollaborator.instances[0].calls == []
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("plan only")


def test_execute_tags_then_merges_back(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _ctx(tmp_path, monkeypatch)
    _run(execute=True)

    assert FakeCollaborator.instances[0].calls == [
        "tag v2.0.1",
        "merge release/2.0.1 -> develop",
    ]
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.find("tagged v2.0.1")


def test_no_push_disables_remote(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _ctx(tmp_path, monkeypatch)
    _run(no_push=True)

    assert FakeCollaborator.instances[0].remote is None


def test_not_a_main_merge(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _ctx(tmp_path, monkeypatch)
    with pytest.raises(typer.Exit) as exc:
        _run(ref="develop", message=None)

    assert exc.value.exit_code == int(ErrorCode.USER_ERROR)


def test_existing_git_tag_is_refused(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    ctx = _ctx(tmp_path, monkeypatch)
    FakeCollaborator.existing = {"v2.0.1"}
    with pytest.raises(typer.Exit) as exc:
        _run(execute=True)

    assert exc.value.exit_code == int(ErrorCode.RELEASE_ERROR)
    assert FakeCollaborator.instances[0].calls == []
    assert isinstance(ctx.console, MockConsole)
    assert ctx.console.has_error()


def test_held_lock_fails_fast(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _ctx(tmp_path, monkeypatch)
    lock_dir = tmp_path / "locks"
    held = acquire_branch_lock(lock_dir, "main")
    assert isinstance(held, Ok)

    try:
        with pytest.raises(typer.Exit) as exc:
            _run(lock_dir=lock_dir)
        assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)
    finally:
        held.value.release()

    _run(lock_dir=lock_dir)


def test_lock_released_after_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _ctx(tmp_path, monkeypatch)
    FakeCollaborator.existing = {"v2.0.1"}
    with pytest.raises(typer.Exit):
        _run()

    relocked = acquire_branch_lock(tmp_path / ".relflow" / "locks", "main")
    assert isinstance(relocked, Ok)
    relocked.value.release()


def test_lock_help_points_to_ci_concurrency() -> None:
    import inspect

    from relflow.cli.commands.promote import promote

    lock_option = inspect.signature(promote).parameters["lock_dir"].default
    assert "concurrency group" in lock_option.help
    assert "one machine only" in (promote.__doc__ or "")
