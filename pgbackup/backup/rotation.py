"""Weekday-keyed backup directories and their rotation."""

from __future__ import annotations

import shutil
from datetime import date, timedelta
from pathlib import Path

from pgbackup.alerts.alerter import Alerter

# Fixed names so directory keys do not depend on the process locale.
WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def weekday_dir(parent: Path, day: date) -> Path:
    return parent / WEEKDAYS[day.weekday()]


def rotate_old(
    parent: Path,
    days_of_backups: int,
    today: date,
    alerter: Alerter,
    dryrun: bool = False,
) -> Path | None:
    """Remove the directory that falls out of the rotation window.

    Returns the path that was (or in dry-run mode would be) removed.
    """
    stale = weekday_dir(parent, today - timedelta(days=days_of_backups))
    if not stale.is_dir():
        alerter.verbose(f"Nothing to rotate: '{stale}' does not exist")
        return None

    if dryrun:
        alerter.dryrun(f"Would rotate old backup: '{stale}'")
        return stale

    alerter.notice(f"Rotating old backup: '{stale}'")
    shutil.rmtree(stale)
    return stale
