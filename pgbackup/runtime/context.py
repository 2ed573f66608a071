"""Convenience factory for wiring the alerting runtime."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import NoReturn, TextIO

from pgbackup.alerts import callstack
from pgbackup.alerts.alerter import Alerter, Clock
from pgbackup.alerts.router import SinkRouter
from pgbackup.alerts.sinks import ConsoleSink, LogFileSink, LogTarget, default_program
from pgbackup.alerts.types import RuntimeFlags
from pgbackup.runtime.exit_guard import ExitGuard
from pgbackup.runtime.trap import FaultTrap


@dataclass
class Runtime:
    """Everything a caller needs to report and terminate, built once."""

    flags: RuntimeFlags
    program: str
    log_target: LogTarget
    alerter: Alerter
    guard: ExitGuard
    trap: FaultTrap

    def exit(self, code: int = 0) -> NoReturn:
        self.guard.exit(code)

    @callstack.hidden
    def die(self, message: str) -> NoReturn:
        """Report *message* as fatal and exit with status 1."""
        self.alerter.fatal(message)
        self.guard.exit(1)


def create_runtime(
    flags: RuntimeFlags | None = None,
    program: str | None = None,
    log_file: str | Path | None = None,
    stream: TextIO | None = None,
    stdin: TextIO | None = None,
    color: bool | None = None,
    clock: Clock = datetime.now,
) -> Runtime:
    """Build alerter, exit guard and fault trap sharing one set of flags."""
    flags = flags or RuntimeFlags()
    program = program or default_program()

    log_target = LogTarget(log_file, program=program)
    router = SinkRouter(
        flags=flags,
        console=ConsoleSink(stream, color=color),
        logfile=LogFileSink(log_target),
    )
    alerter = Alerter(router, clock=clock, stdin=stdin)
    guard = ExitGuard(alerter)
    trap = FaultTrap(alerter, guard, program=program)

    return Runtime(
        flags=flags,
        program=program,
        log_target=log_target,
        alerter=alerter,
        guard=guard,
        trap=trap,
    )
