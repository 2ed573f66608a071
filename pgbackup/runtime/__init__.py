"""Process runtime — fault trap, safe exit, resource ownership."""

from pgbackup.runtime.context import Runtime, create_runtime
from pgbackup.runtime.exceptions import LockHeldError, OperatorError, RuntimeGuardError
from pgbackup.runtime.exit_guard import ExitGuard
from pgbackup.runtime.trap import FaultContext, FaultTrap

__all__ = [
    "ExitGuard",
    "FaultContext",
    "FaultTrap",
    "LockHeldError",
    "OperatorError",
    "Runtime",
    "RuntimeGuardError",
    "create_runtime",
]
