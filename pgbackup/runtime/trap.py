"""FaultTrap — turns uncaught failures and termination signals into reports.

The trap is bound for the lifetime of the entry point (``with trap:``) and
to SIGINT, SIGTERM and SIGQUIT. Whatever ends the scope, the ExitGuard
runs its cleanup exactly once; faults are reported at ``fatal`` severity
with the failing command, its line and the call chain, then the process
exits with status 1.
"""

from __future__ import annotations

import atexit
import linecache
import os
import shlex
import signal
import subprocess
import sysconfig
from collections.abc import Sequence
from dataclasses import dataclass
from types import CodeType, FrameType, TracebackType
from typing import Any, NoReturn

import structlog

from pgbackup.alerts import callstack
from pgbackup.alerts.alerter import Alerter
from pgbackup.alerts.sinks import default_program
from pgbackup.alerts.types import CallChain
from pgbackup.runtime.exit_guard import ExitGuard

logger = structlog.get_logger(__name__)

TRAPPED_SIGNALS: tuple[signal.Signals, ...] = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM", "SIGQUIT")
    if hasattr(signal, name)
)

_STDLIB_DIRS = tuple(
    {os.path.abspath(sysconfig.get_paths()[key]) for key in ("stdlib", "platstdlib")},
)

Entry = tuple[CodeType, int]


def _is_stdlib(code: CodeType) -> bool:
    filename = code.co_filename
    if filename.startswith("<"):
        return True
    path = os.path.abspath(filename)
    if "site-packages" in path or "dist-packages" in path:
        return False
    return path.startswith(_STDLIB_DIRS)


def _exit_code(code: Any) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def _visible(entries: Sequence[Entry]) -> list[Entry]:
    """Drop hidden frames and the standard-library frames at either end.

    The interesting line is the user's call into the library, not the
    library's own raise.
    """
    visible = [e for e in entries if not callstack.is_hidden(e[0])]
    while len(visible) > 1 and _is_stdlib(visible[-1][0]):
        visible.pop()
    while len(visible) > 1 and _is_stdlib(visible[0][0]):
        visible.pop(0)
    return visible


def _describe_command(exc: BaseException, entry: Entry | None) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        cmd = exc.cmd
        if isinstance(cmd, (list, tuple)):
            return shlex.join(str(part) for part in cmd)
        return str(cmd)
    if entry is None:
        return "<unknown>"
    code, line = entry
    return linecache.getline(code.co_filename, line).strip() or "<unknown>"


@dataclass(frozen=True)
class FaultContext:
    """Where a fault happened, reconstructed from a traceback or frame."""

    command: str
    line: int
    caller_line: int
    caller_unit: str
    functions: tuple[str, ...]  # innermost first
    program: str
    source_unit: str
    chain: CallChain
    reason: str = ""

    @classmethod
    def from_entries(
        cls,
        entries: Sequence[Entry],
        command: str,
        program: str,
        reason: str = "",
    ) -> FaultContext:
        visible = _visible(entries)
        if not visible:
            return cls(
                command=command,
                line=0,
                caller_line=0,
                caller_unit="",
                functions=(),
                program=program,
                source_unit="",
                chain=CallChain(),
                reason=reason,
            )

        inner_code, inner_line = visible[-1]
        if len(visible) > 1:
            caller_code, caller_line = visible[-2]
            caller_unit = os.path.basename(caller_code.co_filename)
        else:
            caller_line, caller_unit = 0, ""

        return cls(
            command=command,
            line=inner_line,
            caller_line=caller_line,
            caller_unit=caller_unit,
            functions=tuple(code.co_name for code, _ in reversed(visible)),
            program=program,
            source_unit=os.path.basename(inner_code.co_filename),
            chain=callstack.chain_from_entries(visible),
            reason=reason,
        )

    @classmethod
    def from_exception(cls, exc: BaseException, program: str) -> FaultContext:
        tb = exc.__traceback__
        entries: list[Entry] = []
        if tb is not None:
            entries = callstack.walk(tb.tb_frame.f_back)
            while tb is not None:
                entries.append((tb.tb_frame.f_code, tb.tb_lineno))
                tb = tb.tb_next

        visible = _visible(entries)
        command = _describe_command(exc, visible[-1] if visible else None)
        reason = f"{type(exc).__name__}: {exc}" if str(exc) else type(exc).__name__
        return cls.from_entries(entries, command=command, program=program, reason=reason)

    @classmethod
    def from_frame(
        cls,
        frame: FrameType | None,
        command: str,
        program: str,
        reason: str = "",
    ) -> FaultContext:
        return cls.from_entries(callstack.walk(frame), command=command, program=program, reason=reason)

    @property
    def in_program(self) -> bool:
        return os.path.basename(self.program) == self.source_unit

    def report(self) -> str:
        prefix = f"{self.reason} " if self.reason else ""
        if self.in_program or not self.functions:
            return (
                f"{prefix}command: '{self.command}' (line: {self.line}) "
                f"[func: {self.chain.render()}]"
            )
        return (
            f"{prefix}command: '{self.command}' "
            f"(func: '{' < '.join(self.functions)}' called at line {self.caller_line} "
            f"of '{self.caller_unit or os.path.basename(self.program)}') "
            f"(line: {self.line} of '{self.source_unit}')"
        )


class FaultTrap:
    """Process-wide handler for signals and uncaught exceptions.

    Usage::

        with FaultTrap(alerter, guard):
            run_backup()
        guard.exit(0)
    """

    def __init__(self, alerter: Alerter, guard: ExitGuard, program: str | None = None) -> None:
        self._alerter = alerter
        self._guard = guard
        self.program = program or default_program()
        self._previous: dict[signal.Signals, Any] = {}
        self._armed = False
        guard.on_finalize(self.disarm)

    @property
    def armed(self) -> bool:
        return self._armed

    # ── Binding ─────────────────────────────────────────────────

    def arm(self) -> None:
        if self._armed:
            return
        for sig in TRAPPED_SIGNALS:
            self._previous[sig] = signal.getsignal(sig)
            signal.signal(sig, self._on_signal)
        atexit.register(self._at_exit)
        self._armed = True
        logger.info("fault_trap_armed", signals=[s.name for s in TRAPPED_SIGNALS])

    def disarm(self) -> None:
        if not self._armed:
            return
        for sig, previous in self._previous.items():
            signal.signal(sig, previous if previous is not None else signal.SIG_DFL)
        self._previous.clear()
        atexit.unregister(self._at_exit)
        self._armed = False
        logger.debug("fault_trap_disarmed")

    def __enter__(self) -> FaultTrap:
        self.arm()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> bool:
        if exc is None:
            self._guard.cleanup(0)
            return False
        if isinstance(exc, SystemExit):
            self._guard.cleanup(_exit_code(exc.code))
            return False
        self.handle_exception(exc)

    # ── Handlers ────────────────────────────────────────────────

    @callstack.hidden
    def handle_exception(self, exc: BaseException) -> NoReturn:
        try:
            context = FaultContext.from_exception(exc, self.program)
            logger.debug("fault_trapped", reason=context.reason, line=context.line)
            self._alerter.fatal(context.report(), context=False)
        finally:
            self._guard.exit(1)

    @callstack.hidden
    def _on_signal(self, signum: int, frame: FrameType | None) -> None:
        name = signal.Signals(signum).name
        try:
            context = FaultContext.from_frame(
                frame,
                command=name,
                program=self.program,
                reason=f"Received {name}",
            )
            logger.debug("signal_trapped", signal=name, line=context.line)
            self._alerter.fatal(context.report(), context=False)
        finally:
            self._guard.exit(1)

    def _at_exit(self) -> None:
        if self._guard.finalized:
            return
        logger.warning("exit_without_safe_exit", program=self.program)
        self._guard.cleanup(0)

