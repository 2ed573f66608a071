"""Dump-and-compress pipeline with pipefail semantics."""

from __future__ import annotations

import subprocess
from collections.abc import Mapping
from pathlib import Path

from pgbackup.core.config import BackupConfig


def dump_command(config: BackupConfig) -> list[str]:
    # -w: never prompt; credentials come from PGPASSWORD or ~/.pgpass.
    return [config.dump_tool, "-U", config.user, "-d", config.database, "-w"]


def compress_command(config: BackupConfig) -> list[str]:
    return [config.compressor, f"-{config.compression_level}"]


def run_dump(
    dump_cmd: list[str],
    compress_cmd: list[str],
    target: Path,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Run ``dump_cmd | compress_cmd > target``.

    Raises:
        subprocess.CalledProcessError: naming the first stage that failed,
            even when a later stage succeeded.
    """
    with open(target, "wb") as out:
        dump = subprocess.Popen(dump_cmd, stdout=subprocess.PIPE, env=env)
        try:
            compress = subprocess.Popen(compress_cmd, stdin=dump.stdout, stdout=out, env=env)
        except OSError:
            dump.kill()
            dump.wait()
            raise
        # Let the dump see SIGPIPE if the compressor exits early.
        if dump.stdout is not None:
            dump.stdout.close()
        compress_rc = compress.wait()
        dump_rc = dump.wait()

    if dump_rc != 0:
        raise subprocess.CalledProcessError(dump_rc, dump_cmd)
    if compress_rc != 0:
        raise subprocess.CalledProcessError(compress_rc, compress_cmd)
    return target
