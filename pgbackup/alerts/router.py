"""Sink Router — decides which sinks receive an alert."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import structlog

from pgbackup.alerts.exceptions import LogTargetError
from pgbackup.alerts.formatters import render_console, render_logfile
from pgbackup.alerts.sinks import ConsoleSink, LogFileSink
from pgbackup.alerts.types import AlertRecord, RuntimeFlags, Severity

logger = structlog.get_logger(__name__)


class Console(Enum):
    ALWAYS = "always"
    UNLESS_QUIET = "unless_quiet"
    VERBOSE_ONLY = "verbose_only"


class LogFile(Enum):
    NEVER = "never"
    PRINT_LOG = "print_log"
    PRINT_LOG_OR_ERRORS = "print_log_or_errors"


class Chain(Enum):
    NEVER = "never"
    ON_REQUEST = "on_request"
    ALWAYS = "always"


class Line(Enum):
    NEVER = "never"
    IF_GIVEN = "if_given"
    ALWAYS = "always"


@dataclass(frozen=True)
class Route:
    """Fixed routing rule for one severity."""

    console: Console
    logfile: LogFile
    chain: Chain
    line: Line
    newline: bool = True


# ── Routing table ───────────────────────────────────────────────

_INFORMATIONAL = Route(Console.UNLESS_QUIET, LogFile.PRINT_LOG, Chain.NEVER, Line.IF_GIVEN)

ROUTES: dict[Severity, Route] = {
    Severity.SUCCESS: _INFORMATIONAL,
    Severity.NOTICE: _INFORMATIONAL,
    Severity.INFO: _INFORMATIONAL,
    Severity.DRYRUN: _INFORMATIONAL,
    Severity.HEADER: Route(Console.UNLESS_QUIET, LogFile.PRINT_LOG, Chain.NEVER, Line.NEVER),
    Severity.WARNING: Route(
        Console.ALWAYS, LogFile.PRINT_LOG_OR_ERRORS, Chain.ON_REQUEST, Line.IF_GIVEN,
    ),
    Severity.ERROR: Route(Console.ALWAYS, LogFile.PRINT_LOG_OR_ERRORS, Chain.ALWAYS, Line.ALWAYS),
    Severity.FATAL: Route(Console.ALWAYS, LogFile.PRINT_LOG_OR_ERRORS, Chain.ALWAYS, Line.ALWAYS),
    Severity.DEBUG: Route(Console.VERBOSE_ONLY, LogFile.NEVER, Chain.ALWAYS, Line.IF_GIVEN),
    Severity.VERBOSE: Route(Console.VERBOSE_ONLY, LogFile.NEVER, Chain.NEVER, Line.IF_GIVEN),
    Severity.INPUT: Route(Console.ALWAYS, LogFile.NEVER, Chain.NEVER, Line.NEVER, newline=False),
}


class SinkRouter:
    """Routes AlertRecords to the console and log file sinks.

    - Informational tiers are suppressed in quiet mode; instead one line of
      prior console output is retracted so progress-style callers overwrite
      in place.
    - Warnings, errors, fatals and prompts always reach the console.
    - The log file only sees entries its flags allow, ANSI-stripped, and
      never ``debug``, ``verbose`` or ``input``.
    - A log file that cannot be written is reported once on the console
      and then ignored; callers never see the failure.
    """

    def __init__(
        self,
        flags: RuntimeFlags,
        console: ConsoleSink,
        logfile: LogFileSink,
    ) -> None:
        self.flags = flags
        self.console = console
        self.logfile = logfile

    def wants(self, severity: Severity) -> bool:
        """Whether an alert of this severity would reach any sink."""
        route = ROUTES[severity]
        return route.console != Console.VERBOSE_ONLY or self.flags.verbose

    # ── Decisions (pure) ────────────────────────────────────────

    def should_print(self, severity: Severity) -> bool:
        rule = ROUTES[severity].console
        if rule == Console.VERBOSE_ONLY:
            return self.flags.verbose and not self.flags.quiet
        if rule == Console.UNLESS_QUIET:
            return not self.flags.quiet
        return True

    def should_log(self, severity: Severity) -> bool:
        rule = ROUTES[severity].logfile
        if rule == LogFile.PRINT_LOG:
            return self.flags.print_log
        if rule == LogFile.PRINT_LOG_OR_ERRORS:
            return self.flags.print_log or self.flags.log_errors
        return False

    # ── Emission ────────────────────────────────────────────────

    def route(self, record: AlertRecord) -> None:
        printed = self.should_print(record.severity)
        logged = self.should_log(record.severity)

        if printed:
            self.console.write(
                render_console(record, self.console.color),
                newline=ROUTES[record.severity].newline,
            )
        elif self.flags.quiet and self.wants(record.severity):
            self.console.retract()

        logger.debug(
            "alert_routed",
            severity=record.severity.value,
            console=printed,
            logfile=logged,
        )

        if logged:
            try:
                self.logfile.write(render_logfile(record))
            except LogTargetError as exc:
                self._report_log_failure(record, exc)

    def _report_log_failure(self, record: AlertRecord, exc: LogTargetError) -> None:
        # The target disables itself after one failure, so this runs once.
        logger.error("log_target_failed", error=str(exc))
        notice = AlertRecord(
            severity=Severity.WARNING,
            text=f"Log file disabled: {exc}",
            timestamp=record.timestamp,
        )
        self.console.write(render_console(notice, self.console.color))
