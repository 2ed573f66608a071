"""Alerting runtime — severity facade, sink routing, call-chain capture."""

from pgbackup.alerts.alerter import Alerter
from pgbackup.alerts.callstack import capture, hidden
from pgbackup.alerts.exceptions import AlertError, LogTargetError
from pgbackup.alerts.formatters import render_console, render_logfile, strip_ansi
from pgbackup.alerts.router import ROUTES, SinkRouter
from pgbackup.alerts.sinks import ConsoleSink, LogFileSink, LogTarget, supports_color
from pgbackup.alerts.types import AlertRecord, CallChain, Frame, RuntimeFlags, Severity

__all__ = [
    "ROUTES",
    "AlertError",
    "AlertRecord",
    "Alerter",
    "CallChain",
    "ConsoleSink",
    "Frame",
    "LogFileSink",
    "LogTarget",
    "LogTargetError",
    "RuntimeFlags",
    "Severity",
    "SinkRouter",
    "capture",
    "hidden",
    "render_console",
    "render_logfile",
    "strip_ansi",
    "supports_color",
]
