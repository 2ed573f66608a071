"""Tests for the CallStackRecorder — lineage, call-site lines, hidden frames."""

from __future__ import annotations

import sys

from pgbackup.alerts.callstack import (
    caller_line,
    capture,
    chain_from_entries,
    hidden,
    is_hidden,
)
from pgbackup.alerts.types import CallChain, Frame


# ── Helpers ─────────────────────────────────────────────────────


def _inner() -> CallChain:
    return capture()


def _outer() -> CallChain:
    return _inner()


@hidden
def _machinery() -> CallChain:
    return capture()


def _reporting_user() -> CallChain:
    return _machinery()


@hidden
def _hidden_line() -> int | None:
    return caller_line()


# ── Capture ─────────────────────────────────────────────────────


class TestCapture:
    def test_lineage_outermost_first(self) -> None:
        chain = _outer()
        names = [f.function_name for f in chain.frames]
        assert names[-3:] == ["test_lineage_outermost_first", "_outer", "_inner"]

    def test_lines_are_call_sites(self) -> None:
        chain, line = _outer(), sys._getframe().f_lineno
        inner, outer = chain.frames[-1], chain.frames[-2]
        assert inner.line_number == _outer.__code__.co_firstlineno + 1
        assert outer.line_number == line

    def test_source_unit_is_basename(self) -> None:
        chain = _outer()
        assert chain.frames[-1].source_unit == "test_callstack.py"

    def test_hidden_frames_excluded(self) -> None:
        chain = _reporting_user()
        names = [f.function_name for f in chain.frames]
        assert "_machinery" not in names
        assert names[-1] == "_reporting_user"

    def test_built_fresh_each_call(self) -> None:
        first = _outer()
        second = _inner()
        assert first != second
        assert first.frames[-1].line_number != second.frames[-1].line_number

    def test_empty_when_no_frames_remain(self) -> None:
        chain = capture(skip=10_000)
        assert len(chain) == 0
        assert not chain
        assert chain.render() == "( )"

    def test_is_hidden(self) -> None:
        assert is_hidden(_machinery.__code__)
        assert not is_hidden(_outer.__code__)


class TestCallerLine:
    def test_skips_hidden_frames(self) -> None:
        line, expected = _hidden_line(), sys._getframe().f_lineno
        assert line == expected


# ── Chain building and rendering ────────────────────────────────


class TestChainFromEntries:
    def test_call_site_shift(self) -> None:
        chain = chain_from_entries([(_outer.__code__, 24), (_inner.__code__, 20)])
        assert [f.line_number for f in chain.frames] == [0, 24]

    def test_hidden_entry_keeps_lineage(self) -> None:
        chain = chain_from_entries(
            [
                (_reporting_user.__code__, 33),
                (_machinery.__code__, 29),
                (_inner.__code__, 20),
            ],
        )
        assert [f.function_name for f in chain.frames] == ["_reporting_user", "_inner"]
        assert chain.frames[-1].line_number == 29


class TestRender:
    def test_innermost_first(self) -> None:
        chain = CallChain(
            frames=(
                Frame(function_name="main", source_unit="pg_backup.py", line_number=0),
                Frame(function_name="do_backup", source_unit="pg_backup.py", line_number=12),
            ),
        )
        assert chain.render() == "( do_backup:pg_backup.py:12 < main:pg_backup.py:0 )"

    def test_function_names_innermost_first(self) -> None:
        chain = CallChain(
            frames=(
                Frame(function_name="a", source_unit="x.py"),
                Frame(function_name="b", source_unit="x.py"),
            ),
        )
        assert chain.function_names() == ["b", "a"]
        assert chain.innermost == chain.frames[-1]
