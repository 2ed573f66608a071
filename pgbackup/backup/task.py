"""BackupTask — nightly dump into a weekday directory with rotation."""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
from datetime import date, datetime
from pathlib import Path

import structlog

from pgbackup.alerts.alerter import Clock
from pgbackup.backup.dump import compress_command, dump_command, run_dump
from pgbackup.backup.exceptions import DumpToolMissingError
from pgbackup.backup.rotation import rotate_old, weekday_dir
from pgbackup.core.config import BackupConfig
from pgbackup.runtime.context import Runtime
from pgbackup.runtime.exceptions import LockHeldError

logger = structlog.get_logger(__name__)


def artifact_name(started: datetime, database: str) -> str:
    return f"{started:%Y-%m-%d_%H_%M_%S}-{database}.sql.gz"


class BackupTask:
    """Runs one nightly backup through the alerting runtime.

    All operator-facing output goes through ``runtime.alerter``; every
    abnormal termination goes through ``runtime.exit``.
    """

    def __init__(
        self,
        config: BackupConfig,
        runtime: Runtime,
        clock: Clock = datetime.now,
    ) -> None:
        self._config = config
        self._runtime = runtime
        self._alerter = runtime.alerter
        self._clock = clock

    @property
    def dryrun(self) -> bool:
        return self._runtime.flags.dryrun

    # ── Steps ───────────────────────────────────────────────────

    def check_tools(self) -> None:
        for tool in (self._config.dump_tool, self._config.compressor):
            if shutil.which(tool) is None:
                raise DumpToolMissingError(f"Can not run without '{tool}' utility")

    def prepare(self) -> None:
        """Acquire the script lock and the temp directory when configured.

        A dry run only reports them.
        """
        guard = self._runtime.guard
        if self._config.lock_dir is not None:
            if self.dryrun:
                self._alerter.dryrun(f"Would acquire script lock: '{self._config.lock_dir}'")
            else:
                try:
                    guard.acquire_lock(self._config.lock_dir)
                except LockHeldError:
                    self._runtime.die(
                        f"Unable to acquire script lock: '{self._config.lock_dir}'. "
                        "Is another backup running?",
                    )
        if self._config.use_temp_dir:
            if self.dryrun:
                self._alerter.dryrun("Would create temp directory")
            else:
                guard.make_temp_dir(self._runtime.program)

    def rotate(self, today: date) -> Path | None:
        return rotate_old(
            self._config.parent_dir,
            self._config.days_of_backups,
            today,
            self._alerter,
            dryrun=self.dryrun,
        )

    def do_backup(self, started: datetime) -> Path | None:
        todays_dir = weekday_dir(self._config.parent_dir, started.date())
        name = artifact_name(started, self._config.database)
        artifact = todays_dir / name
        dump_cmd = dump_command(self._config)
        compress_cmd = compress_command(self._config)

        if self.dryrun:
            self._alerter.dryrun(
                f"Would run: {shlex.join(dump_cmd)} | {shlex.join(compress_cmd)} > {artifact}",
            )
            return None

        self._alerter.verbose(f"Creating today's directory: {todays_dir}")
        todays_dir.mkdir(parents=True, exist_ok=True)

        # Dump into the temp directory when there is one, so a failed run
        # leaves its partial output there for inspection.
        temp_dir = self._runtime.guard.temp_dir
        staging = temp_dir / name if temp_dir is not None else artifact

        try:
            run_dump(dump_cmd, compress_cmd, staging, env=self._environment())
        except subprocess.CalledProcessError as exc:
            logger.debug("dump_failed", returncode=exc.returncode, cmd=exc.cmd)
            if staging == artifact:
                artifact.unlink(missing_ok=True)
            self._alerter.error(
                f"Failed to create backup: '{shlex.join(exc.cmd)}' "
                f"exited with status {exc.returncode}",
            )
            self._runtime.exit(1)

        if staging != artifact:
            shutil.move(staging, artifact)
        self._alerter.success(f"{artifact} created")
        return artifact

    def run(self) -> Path | None:
        started = self._clock()
        self._alerter.header(f"Backing up '{self._config.database}'")

        try:
            self.check_tools()
        except DumpToolMissingError as exc:
            self._alerter.error(str(exc))
            self._runtime.exit(1)

        self.prepare()
        self.rotate(started.date())
        return self.do_backup(started)

    def _environment(self) -> dict[str, str]:
        env = dict(os.environ)
        password = self._config.password.get_secret_value()
        if password:
            env["PGPASSWORD"] = password
        return env
