"""Nightly dump and weekday rotation."""

from pgbackup.backup.dump import compress_command, dump_command, run_dump
from pgbackup.backup.exceptions import BackupError, DumpToolMissingError
from pgbackup.backup.rotation import WEEKDAYS, rotate_old, weekday_dir
from pgbackup.backup.task import BackupTask, artifact_name

__all__ = [
    "WEEKDAYS",
    "BackupError",
    "BackupTask",
    "DumpToolMissingError",
    "artifact_name",
    "compress_command",
    "dump_command",
    "rotate_old",
    "run_dump",
    "weekday_dir",
]
