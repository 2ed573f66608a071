"""Severity Facade — one entry point per alert severity."""

from __future__ import annotations

import sys
from collections.abc import Callable
from datetime import datetime
from typing import TextIO

from pgbackup.alerts import callstack
from pgbackup.alerts.router import ROUTES, Chain, Line, SinkRouter
from pgbackup.alerts.types import AlertRecord, RuntimeFlags, Severity

Clock = Callable[[], datetime]


class Alerter:
    """Enriches messages with line and call-chain context and routes them.

    Usage::

        alerter = Alerter(router)
        alerter.info("Rotating old backup")
        alerter.error("disk full")          # call chain appended
        alerter.warning("slow", chain=True)  # chain only on request
    """

    def __init__(
        self,
        router: SinkRouter,
        clock: Clock = datetime.now,
        stdin: TextIO | None = None,
    ) -> None:
        self._router = router
        self._clock = clock
        self._stdin = stdin

    @property
    def flags(self) -> RuntimeFlags:
        return self._router.flags

    # ── Facade ──────────────────────────────────────────────────

    @callstack.hidden
    def success(self, message: str, line: int | None = None) -> None:
        self._dispatch(Severity.SUCCESS, message, line)

    @callstack.hidden
    def header(self, message: str, line: int | None = None) -> None:
        self._dispatch(Severity.HEADER, message, line)

    @callstack.hidden
    def notice(self, message: str, line: int | None = None) -> None:
        self._dispatch(Severity.NOTICE, message, line)

    @callstack.hidden
    def info(self, message: str, line: int | None = None) -> None:
        self._dispatch(Severity.INFO, message, line)

    @callstack.hidden
    def dryrun(self, message: str, line: int | None = None) -> None:
        self._dispatch(Severity.DRYRUN, message, line)

    @callstack.hidden
    def warning(self, message: str, line: int | None = None, chain: bool = False) -> None:
        self._dispatch(Severity.WARNING, message, line, with_chain=chain)

    @callstack.hidden
    def error(self, message: str, line: int | None = None) -> None:
        self._dispatch(Severity.ERROR, message, line)

    @callstack.hidden
    def fatal(self, message: str, line: int | None = None, context: bool = True) -> None:
        """Emit a fatal alert.

        ``context=False`` is for callers whose message already carries its
        own provenance (the fault trap report).
        """
        self._dispatch(Severity.FATAL, message, line, enrich=context)

    @callstack.hidden
    def debug(self, message: str, line: int | None = None) -> None:
        self._dispatch(Severity.DEBUG, message, line)

    @callstack.hidden
    def verbose(self, message: str, line: int | None = None) -> None:
        self._dispatch(Severity.VERBOSE, message, line)

    @callstack.hidden
    def input(self, message: str) -> None:
        self._dispatch(Severity.INPUT, message, None)

    def confirm(self, question: str) -> bool:
        """Prompt for a yes/no answer. End of input counts as no."""
        self.input(f"{question} (y/n) ")
        stream = self._stdin if self._stdin is not None else sys.stdin
        answer = stream.readline()
        if not answer:
            return False
        return answer.strip().lower() in ("y", "yes")

    # ── Dispatch ────────────────────────────────────────────────

    @callstack.hidden
    def _dispatch(
        self,
        severity: Severity,
        message: str,
        line: int | None,
        with_chain: bool = False,
        enrich: bool = True,
    ) -> None:
        if not self._router.wants(severity):
            return

        route = ROUTES[severity]
        chain = None
        if enrich and (
            route.chain == Chain.ALWAYS or (route.chain == Chain.ON_REQUEST and with_chain)
        ):
            chain = callstack.capture()

        if not enrich or route.line == Line.NEVER:
            line = None
        elif route.line == Line.ALWAYS and line is None:
            line = callstack.caller_line()

        record = AlertRecord(
            severity=severity,
            text=message,
            line=line,
            chain=chain,
            timestamp=self._clock(),
        )
        self._router.route(record)
