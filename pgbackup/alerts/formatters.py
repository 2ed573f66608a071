"""Pure functions that render AlertRecords for the console and log file."""

from __future__ import annotations

import re

from pgbackup.alerts.types import AlertRecord, Severity

# ── Palette ─────────────────────────────────────────────────────

RESET = "\033[0m"
BOLD = "\033[1m"
RED = "\033[0;31m"
GREEN = "\033[1;32m"
TAN = "\033[0;33m"
BLUE = "\033[0;34m"
PURPLE = "\033[0;35m"

_COLORS: dict[Severity, str] = {
    Severity.ERROR: BOLD + RED,
    Severity.FATAL: BOLD + RED,
    Severity.WARNING: RED,
    Severity.SUCCESS: GREEN,
    Severity.DEBUG: PURPLE,
    Severity.VERBOSE: PURPLE,
    Severity.HEADER: BOLD + TAN,
    Severity.INPUT: BOLD,
    Severity.NOTICE: BOLD,
    Severity.DRYRUN: BLUE,
}

# Color and erase sequences, with or without the leading ESC.
_ANSI_RE = re.compile(r"(\x1b)?\[(([0-9]{1,2})(;[0-9]{1,3}){0,2})?[mGK]")

TIMESTAMP_FORMAT = "%b %d %H:%M:%S"


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def tag(severity: Severity) -> str:
    return f"[{severity.value:>7}]"


def render_message(record: AlertRecord) -> str:
    """Message text with its line and call-chain context appended."""
    if record.severity == Severity.HEADER:
        return f"== {record.text} =="

    parts = [record.text]
    if record.line is not None:
        parts.append(f"(line: {record.line})")
    if record.chain is not None:
        parts.append(record.chain.render())
    return " ".join(parts)


def render_console(record: AlertRecord, color: bool) -> str:
    stamp = record.timestamp.strftime(TIMESTAMP_FORMAT)
    message = render_message(record)
    if not color:
        return f"{stamp} {tag(record.severity)} {strip_ansi(message)}"
    start = _COLORS.get(record.severity, "")
    return f"{stamp} {start}{tag(record.severity)} {message}{RESET}"


def render_logfile(record: AlertRecord) -> str:
    stamp = record.timestamp.strftime(TIMESTAMP_FORMAT)
    return f"{stamp} {tag(record.severity)} {strip_ansi(render_message(record))}"
