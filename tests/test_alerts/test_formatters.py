"""Tests for alert formatters — enrichment, tags, color and ANSI stripping."""

from __future__ import annotations

from datetime import datetime

from pgbackup.alerts.formatters import (
    BOLD,
    RED,
    RESET,
    render_console,
    render_logfile,
    render_message,
    strip_ansi,
    tag,
)
from pgbackup.alerts.types import AlertRecord, CallChain, Frame, Severity

_STAMP = datetime(2026, 10, 19, 2, 30, 5)

_CHAIN = CallChain(
    frames=(
        Frame(function_name="main", source_unit="pg_backup.py", line_number=0),
        Frame(function_name="do_backup", source_unit="pg_backup.py", line_number=40),
    ),
)


# ── Helpers ─────────────────────────────────────────────────────


def _record(**kw: object) -> AlertRecord:
    defaults: dict[str, object] = {
        "severity": Severity.INFO,
        "text": "starting",
        "timestamp": _STAMP,
    }
    defaults.update(kw)
    return AlertRecord(**defaults)  # type: ignore[arg-type]


# ── strip_ansi ──────────────────────────────────────────────────


class TestStripAnsi:
    def test_color_codes_removed(self) -> None:
        assert strip_ansi(f"{BOLD}{RED}disk full{RESET}") == "disk full"

    def test_erase_sequences_removed(self) -> None:
        assert strip_ansi("\x1b[2Kdone\x1b[0G") == "done"

    def test_plain_text_untouched(self) -> None:
        assert strip_ansi("nothing [here] to strip") == "nothing [here] to strip"


# ── Message enrichment ──────────────────────────────────────────


class TestRenderMessage:
    def test_plain(self) -> None:
        assert render_message(_record()) == "starting"

    def test_line_appended(self) -> None:
        assert render_message(_record(line=12)) == "starting (line: 12)"

    def test_chain_appended(self) -> None:
        msg = render_message(_record(severity=Severity.ERROR, text="disk full", chain=_CHAIN))
        assert msg == "disk full ( do_backup:pg_backup.py:40 < main:pg_backup.py:0 )"

    def test_line_before_chain(self) -> None:
        msg = render_message(_record(severity=Severity.ERROR, line=7, chain=_CHAIN))
        assert msg.startswith("starting (line: 7) ( do_backup")

    def test_header_wrapped(self) -> None:
        assert render_message(_record(severity=Severity.HEADER, text="Backup")) == "== Backup =="


# ── Console / log lines ─────────────────────────────────────────


class TestTag:
    def test_padded_to_seven(self) -> None:
        assert tag(Severity.ERROR) == "[  error]"
        assert tag(Severity.VERBOSE) == "[verbose]"


class TestRenderConsole:
    def test_plain_when_no_color(self) -> None:
        line = render_console(_record(severity=Severity.ERROR, text="disk full"), color=False)
        assert line == "Oct 19 02:30:05 [  error] disk full"

    def test_colorized(self) -> None:
        line = render_console(_record(severity=Severity.ERROR, text="disk full"), color=True)
        assert line.startswith("Oct 19 02:30:05 " + BOLD + RED)
        assert line.endswith(RESET)

    def test_no_color_strips_embedded_codes(self) -> None:
        line = render_console(_record(text=f"{RED}red{RESET}"), color=False)
        assert "\x1b" not in line


class TestRenderLogfile:
    def test_ansi_free(self) -> None:
        line = render_logfile(_record(severity=Severity.WARNING, text=f"{RED}careful{RESET}"))
        assert line == "Oct 19 02:30:05 [warning] careful"

    def test_chain_kept(self) -> None:
        line = render_logfile(_record(severity=Severity.FATAL, text="boom", chain=_CHAIN))
        assert "do_backup:pg_backup.py:40" in line
