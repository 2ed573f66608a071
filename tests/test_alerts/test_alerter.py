"""Tests for the Severity Facade — enrichment rules and end-to-end routing."""

from __future__ import annotations

import io
import re
from datetime import datetime
from pathlib import Path

import pytest

from pgbackup.alerts.alerter import Alerter
from pgbackup.alerts.router import SinkRouter
from pgbackup.alerts.sinks import ConsoleSink, LogFileSink, LogTarget
from pgbackup.alerts.types import RuntimeFlags

_CHAIN_RE = re.compile(r"\( \S+:\S+:\d+( < \S+:\S+:\d+)* \)")


# ── Helpers ─────────────────────────────────────────────────────


class _Setup:
    def __init__(self, tmp_path: Path, color: bool = False, stdin: str = "", **flags: bool) -> None:
        self.out = io.StringIO()
        self.log = tmp_path / "logs" / "backup.log"
        router = SinkRouter(
            flags=RuntimeFlags(**flags),
            console=ConsoleSink(self.out, color=color),
            logfile=LogFileSink(LogTarget(self.log)),
        )
        self.alerter = Alerter(
            router,
            clock=lambda: datetime(2026, 10, 19, 2, 0, 0),
            stdin=io.StringIO(stdin),
        )

    @property
    def lines(self) -> list[str]:
        return self.out.getvalue().splitlines()

    @property
    def log_lines(self) -> list[str]:
        return self.log.read_text().splitlines() if self.log.exists() else []


def _rotate_backups(alerter: Alerter) -> None:
    alerter.error("disk full")


# ── Scenario ────────────────────────────────────────────────────


class TestErrorScenario:
    def test_error_reaches_console_and_log_with_chain(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path, color=True, print_log=True, log_errors=True, quiet=False)
        _rotate_backups(s.alerter)

        console = s.lines[0]
        assert "[  error]" in console
        assert "disk full" in console
        assert _CHAIN_RE.search(console)
        assert "_rotate_backups:test_alerter.py:" in console

        assert len(s.log_lines) == 1
        logged = s.log_lines[0]
        assert "\x1b" not in logged
        assert "disk full" in logged
        assert "_rotate_backups:test_alerter.py:" in logged

    def test_error_line_defaults_to_call_site(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path)
        _rotate_backups(s.alerter)
        expected = _rotate_backups.__code__.co_firstlineno + 1
        assert f"disk full (line: {expected})" in s.lines[0]

    def test_facade_frames_not_in_chain(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path)
        s.alerter.fatal("boom")
        assert ":alerter.py:" not in s.lines[0]
        assert "test_facade_frames_not_in_chain:test_alerter.py" in s.lines[0]


# ── Enrichment rules ────────────────────────────────────────────


class TestEnrichment:
    @pytest.mark.parametrize("flags", [{"quiet": True}, {"verbose": True}, {}])
    def test_error_and_fatal_always_carry_chain(
        self, tmp_path: Path, flags: dict[str, bool],
    ) -> None:
        s = _Setup(tmp_path, **flags)
        s.alerter.error("e")
        s.alerter.fatal("f")
        assert len(s.lines) == 2
        for line in s.lines:
            assert _CHAIN_RE.search(line)

    def test_explicit_line_used(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path)
        s.alerter.error("bad", line=99)
        assert "bad (line: 99) (" in s.lines[0]

    def test_info_line_only_if_given(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path)
        s.alerter.info("plain")
        s.alerter.info("numbered", line=7)
        assert s.lines[0].endswith("[   info] plain")
        assert s.lines[1].endswith("numbered (line: 7)")

    def test_warning_chain_only_on_request(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path)
        s.alerter.warning("slow")
        s.alerter.warning("slower", chain=True)
        assert not _CHAIN_RE.search(s.lines[0])
        assert _CHAIN_RE.search(s.lines[1])

    def test_header_wrapped_without_context(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path)
        s.alerter.header("Nightly", line=3)
        assert s.lines[0].endswith("[ header] == Nightly ==")

    def test_debug_carries_chain_when_verbose(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path, verbose=True)
        s.alerter.debug("state")
        s.alerter.verbose("detail")
        assert _CHAIN_RE.search(s.lines[0])
        assert s.lines[1].endswith("[verbose] detail")

    def test_debug_silent_without_verbose(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path, print_log=True)
        s.alerter.debug("state")
        s.alerter.verbose("detail")
        assert s.lines == []
        assert s.log_lines == []

    def test_fatal_without_context(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path)
        s.alerter.fatal("already described", context=False)
        assert s.lines[0].endswith("[  fatal] already described")


# ── Prompting ───────────────────────────────────────────────────


class TestInput:
    def test_prompt_has_no_newline(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path, print_log=True)
        s.alerter.input("Continue? ")
        assert not s.out.getvalue().endswith("\n")
        assert s.log_lines == []

    @pytest.mark.parametrize(("answer", "expected"), [("y\n", True), ("YES\n", True), ("n\n", False)])
    def test_confirm(self, tmp_path: Path, answer: str, expected: bool) -> None:
        s = _Setup(tmp_path, stdin=answer)
        assert s.alerter.confirm("Save?") is expected
        assert "Save? (y/n) " in s.out.getvalue()

    def test_confirm_eof_is_no(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path, stdin="")
        assert s.alerter.confirm("Save?") is False


class TestQuietSequence:
    def test_console_overwrites_log_grows(self, tmp_path: Path) -> None:
        s = _Setup(tmp_path, quiet=True, print_log=True)
        for i in range(4):
            s.alerter.info(f"copying chunk {i}")
        assert s.out.getvalue().count("\n") == 0
        assert len(s.log_lines) == 4


def test_flags_exposed(tmp_path: Path) -> None:
    s = _Setup(tmp_path, force=True)
    assert s.alerter.flags.force is True
