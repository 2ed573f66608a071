"""CallStackRecorder — reconstructs the active call chain from live frames.

Frames belonging to the alerting machinery are registered with
:func:`hidden` and never appear in a captured chain, so every report
shows the caller's lineage rather than the facade's own plumbing.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Callable, Iterable
from types import CodeType, FrameType
from typing import TypeVar

from pgbackup.alerts.types import CallChain, Frame

F = TypeVar("F", bound=Callable[..., object])

_HIDDEN_CODE: set[CodeType] = set()


def hidden(func: F) -> F:
    """Exclude *func* from every captured call chain."""
    _HIDDEN_CODE.add(func.__code__)
    return func


def is_hidden(code: CodeType) -> bool:
    return code in _HIDDEN_CODE


def walk(frame: FrameType | None) -> list[tuple[CodeType, int]]:
    """Return ``(code, current_line)`` pairs, outermost first."""
    entries: list[tuple[CodeType, int]] = []
    while frame is not None:
        entries.append((frame.f_code, frame.f_lineno or 0))
        frame = frame.f_back
    entries.reverse()
    return entries


def chain_from_entries(entries: Iterable[tuple[CodeType, int]]) -> CallChain:
    """Build a chain from ``(code, current_line)`` pairs, outermost first.

    Each frame gets the line its caller was executing when it made the
    call, i.e. the call site. Hidden frames are dropped after the call
    sites have been resolved so visible frames keep their true lineage.
    """
    frames: list[Frame] = []
    caller_line = 0
    for code, current_line in entries:
        if not is_hidden(code):
            frames.append(
                Frame(
                    function_name=code.co_name,
                    source_unit=os.path.basename(code.co_filename),
                    line_number=caller_line,
                ),
            )
        caller_line = current_line
    return CallChain(frames=tuple(frames))


def caller_line() -> int | None:
    """Current line of the nearest frame outside the alerting machinery."""
    frame: FrameType | None = sys._getframe(1)
    while frame is not None and is_hidden(frame.f_code):
        frame = frame.f_back
    return frame.f_lineno if frame is not None else None


def capture(skip: int = 0) -> CallChain:
    """Capture the chain of the calling frame, skipping *skip* extra levels."""
    try:
        frame: FrameType | None = sys._getframe(1 + skip)
    except ValueError:
        return CallChain()
    return chain_from_entries(walk(frame))
