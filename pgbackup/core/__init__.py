"""Core module — config and logging."""

from pgbackup.core.config import (
    AlertsConfig,
    BackupConfig,
    LoggingConfig,
    Settings,
    get_settings,
    load_settings,
    reset_settings,
)
from pgbackup.core.logging import setup_logging

__all__ = [
    "AlertsConfig",
    "BackupConfig",
    "LoggingConfig",
    "Settings",
    "get_settings",
    "load_settings",
    "reset_settings",
    "setup_logging",
]
