"""Domain types for the alerting runtime."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Severity(StrEnum):
    """Alert category. There is no ordering; each has its own routing rule."""

    SUCCESS = "success"
    HEADER = "header"
    NOTICE = "notice"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"
    DEBUG = "debug"
    VERBOSE = "verbose"
    DRYRUN = "dryrun"
    INPUT = "input"


class Frame(BaseModel):
    """One entry of the active call chain.

    ``line_number`` is the line in the caller where the function was
    invoked, 0 for the entry frame.
    """

    model_config = ConfigDict(frozen=True)

    function_name: str
    source_unit: str
    line_number: int = 0

    def render(self) -> str:
        return f"{self.function_name}:{self.source_unit}:{self.line_number}"


class CallChain(BaseModel):
    """Ordered call lineage, outermost caller first."""

    model_config = ConfigDict(frozen=True)

    frames: tuple[Frame, ...] = ()

    def __len__(self) -> int:
        return len(self.frames)

    def __bool__(self) -> bool:
        return bool(self.frames)

    @property
    def innermost(self) -> Frame | None:
        return self.frames[-1] if self.frames else None

    def function_names(self) -> list[str]:
        """Function names, innermost first."""
        return [f.function_name for f in reversed(self.frames)]

    def render(self) -> str:
        """Render innermost first, ``<`` read as "called from"."""
        if not self.frames:
            return "( )"
        return "( " + " < ".join(f.render() for f in reversed(self.frames)) + " )"


class RuntimeFlags(BaseModel):
    """Process-wide switches set once by the option parser."""

    model_config = ConfigDict(frozen=True)

    quiet: bool = False
    print_log: bool = False
    log_errors: bool = True
    verbose: bool = False
    force: bool = False
    dryrun: bool = False


class AlertRecord(BaseModel):
    """A single alert on its way to the sinks."""

    severity: Severity
    text: str
    line: int | None = None
    chain: CallChain | None = None
    timestamp: datetime = Field(default_factory=datetime.now)
