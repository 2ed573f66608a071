"""Backup task exceptions."""

from __future__ import annotations


class BackupError(Exception):
    """Base exception for backup task errors."""


class DumpToolMissingError(BackupError):
    """The dump or compression utility is not on PATH."""
