"""Runtime exceptions."""

from __future__ import annotations


class RuntimeGuardError(Exception):
    """Base exception for process runtime errors."""


class OperatorError(RuntimeGuardError):
    """Invalid command-line usage."""


class LockHeldError(RuntimeGuardError):
    """Another instance holds the script lock."""
