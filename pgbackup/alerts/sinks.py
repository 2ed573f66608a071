"""Alert sinks — the operator console and the plain-text log file."""

from __future__ import annotations

import abc
import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

import structlog

from pgbackup.alerts.exceptions import LogTargetError

logger = structlog.get_logger(__name__)

CURSOR_UP = "\033[1A"


def supports_color(stream: TextIO, environ: Mapping[str, str] | None = None) -> bool:
    """Colors only on an interactive terminal of a recognized type."""
    env = os.environ if environ is None else environ
    isatty = getattr(stream, "isatty", None)
    if isatty is None or not isatty():
        return False
    return env.get("TERM", "").startswith("xterm")


def default_program() -> str:
    return Path(sys.argv[0]).name if sys.argv and sys.argv[0] else "pgbackup"


class Sink(abc.ABC):
    """Base class for alert destinations."""

    @abc.abstractmethod
    def write(self, line: str, newline: bool = True) -> None:
        """Emit one rendered line."""


class ConsoleSink(Sink):
    """Writes to a terminal stream, flushing after every line."""

    def __init__(self, stream: TextIO | None = None, color: bool | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout
        self.color = supports_color(self._stream) if color is None else color

    def write(self, line: str, newline: bool = True) -> None:
        self._stream.write(line + ("\n" if newline else ""))
        self._stream.flush()

    def retract(self) -> None:
        """Move the cursor up one line so the next write overwrites it."""
        self._stream.write(CURSOR_UP)
        self._stream.flush()


class LogTarget:
    """Lazily resolved location of the log file.

    The first resolution wins for the rest of the process; a path
    configured after that is ignored. A failed resolution raises once and
    turns the target off so later alerts are not retried against it.
    """

    def __init__(self, path: str | Path | None = None, program: str | None = None) -> None:
        self._configured = Path(path).expanduser() if path else None
        self._program = program or default_program()
        self._path: Path | None = None
        self._failed = False
        self.created = False

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def failed(self) -> bool:
        return self._failed

    def disable(self) -> None:
        self._failed = True
        self._path = None

    def default_path(self) -> Path:
        return Path.home() / "logs" / f"{Path(self._program).stem}.log"

    def resolve(self) -> Path | None:
        if self._path is not None or self._failed:
            return self._path

        path = self._configured or self.default_path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._failed = True
            raise LogTargetError(f"cannot create log directory {path.parent}: {exc}") from exc

        self._path = path
        logger.info("log_target_resolved", path=str(path))
        return path


class LogFileSink(Sink):
    """Appends one line per entry to the resolved log target."""

    def __init__(self, target: LogTarget) -> None:
        self.target = target

    def write(self, line: str, newline: bool = True) -> None:
        path = self.target.resolve()
        if path is None:
            return
        existed = path.exists()
        try:
            with open(path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as exc:
            self.target.disable()
            raise LogTargetError(f"cannot write log file {path}: {exc}") from exc
        if not existed:
            self.target.created = True
            logger.debug("log_file_created", path=str(path))
