"""ExitGuard — owns the lock and temp directories and the one-shot exit path."""

from __future__ import annotations

import os
import shutil
import sys
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import NoReturn

import structlog

from pgbackup.alerts.alerter import Alerter
from pgbackup.runtime.exceptions import LockHeldError

logger = structlog.get_logger(__name__)


class ExitGuard:
    """Tracks process-owned resources and releases them exactly once.

    Usage::

        guard = ExitGuard(alerter)
        guard.acquire_lock(Path("/tmp/pgbackup.lock"))
        tmp = guard.make_temp_dir("pgbackup")
        ...
        guard.exit(0)  # never returns
    """

    def __init__(self, alerter: Alerter) -> None:
        self._alerter = alerter
        self.lock_dir: Path | None = None
        self.temp_dir: Path | None = None
        self._finalize_hooks: list[Callable[[], None]] = []
        self._finalized = False

    @property
    def finalized(self) -> bool:
        return self._finalized

    # ── Acquisition ─────────────────────────────────────────────

    def acquire_lock(self, path: Path) -> Path:
        """Create *path* as a lock directory; fail if another instance has it."""
        try:
            os.mkdir(path)
        except FileExistsError as exc:
            raise LockHeldError(f"lock directory {path} already exists") from exc
        self.lock_dir = path
        self._alerter.verbose(f"Acquired script lock: {path}")
        return path

    def make_temp_dir(self, program: str) -> Path:
        path = Path(tempfile.mkdtemp(prefix=f"{Path(program).stem}."))
        self.temp_dir = path
        self._alerter.verbose(f"Created temp directory: {path}")
        return path

    def on_finalize(self, callback: Callable[[], None]) -> None:
        """Run *callback* before any cleanup step, once."""
        self._finalize_hooks.append(callback)

    # ── Release ─────────────────────────────────────────────────

    def cleanup(self, code: int = 0) -> None:
        """Release owned resources. Later calls are no-ops."""
        if self._finalized:
            return
        self._finalized = True

        hooks, self._finalize_hooks = self._finalize_hooks, []
        try:
            for hook in hooks:
                hook()
        finally:
            try:
                self._release_lock()
            finally:
                self._dispose_temp_dir(code)
        logger.info("exit_guard_finalized", code=code)

    def exit(self, code: int = 0) -> NoReturn:
        self.cleanup(code)
        sys.exit(code)

    def _release_lock(self) -> None:
        lock = self.lock_dir
        if lock is None or not lock.is_dir():
            return
        try:
            shutil.rmtree(lock)
        except OSError as exc:
            logger.warning("lock_release_failed", path=str(lock), error=str(exc))
            self._alerter.warning(
                f"Script lock could not be removed. Try manually deleting '{lock}'",
            )
            return
        self.lock_dir = None
        self._alerter.verbose("Removing script lock")

    def _dispose_temp_dir(self, code: int) -> None:
        tmp = self.temp_dir
        if tmp is None or not tmp.is_dir():
            return

        if code != 0 and any(tmp.iterdir()):
            if self._alerter.flags.force or not self._alerter.confirm(
                "Save the temp directory for debugging?",
            ):
                self._alerter.notice(f"Temp directory left in place: '{tmp}'")
                return
            saved = tmp.with_name(tmp.name + ".save")
            try:
                shutil.copytree(tmp, saved)
            except OSError as exc:
                self._alerter.warning(f"Could not save temp directory to '{saved}': {exc}")
                return
            self._alerter.notice(f"'{saved}' created")

        try:
            shutil.rmtree(tmp)
        except OSError as exc:
            logger.warning("temp_dir_removal_failed", path=str(tmp), error=str(exc))
            self._alerter.warning(f"Temp directory could not be removed: '{tmp}'")
            return
        self.temp_dir = None
        self._alerter.verbose("Removing temp directory")
