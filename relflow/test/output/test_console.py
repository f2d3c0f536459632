"""Tests for relflow.output.console module."""

from __future__ import annotations

import pytest

from relflow.output.console import ConsoleProtocol, MockConsole, RichConsole, Style


class TestMockConsole:
    def test_records_styles(self) -> None:
        console = MockConsole()
        console.print("plain")
        console.success("tagged v1.0.0")
        console.error("boom")
        console.warning("careful")
        console.info("fyi")
        console.header("Promotion")

        assert [o.style for o in console.outputs] == [
            Style.DEFAULT,
            Style.SUCCESS,
            Style.ERROR,
            Style.WARNING,
            Style.INFO,
            Style.HEADER,
        ]
        assert console.messages[1] == "OK tagged v1.0.0"
        assert console.messages[2] == "error: boom"

    def test_has_error_and_find(self) -> None:
        console = MockConsole()
        console.info("resolving")
        assert not console.has_error()

        console.error("duplicate tag v1.0.0")
        assert console.has_error()
        assert len(console.find("v1.0.0")) == 1
        assert console.find("missing") == []

    def test_text_joins_messages(self) -> None:
        console = MockConsole()
        console.print("a")
        console.print("b")
        assert console.text == "a\nb"

    def test_satisfies_protocol(self) -> None:
        console: ConsoleProtocol = MockConsole()
        console.print("ok")


class TestRichConsole:
    def test_writes_to_stderr_only(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.info("resolving build")

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "resolving build" in captured.err

    def test_escapes_markup_in_messages(self, capsys: pytest.CaptureFixture[str]) -> None:
        console = RichConsole()
        console.error("bad ref [release/1.0]")
        console.print("[bold]literal[/bold]", Style.DIM)

        err = capsys.readouterr().err
        assert "[release/1.0]" in err
        assert "[bold]literal[/bold]" in err
