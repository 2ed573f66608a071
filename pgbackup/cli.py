"""Command-line entry point — parses options and runs the nightly backup.

Usage::

    # Nightly run, errors logged to ~/logs/pg-backup.log
    pg-backup

    # Log everything, verbose console, no prompts
    pg-backup --log --verbose --force

    # Show what would happen
    pg-backup --dryrun --config config/settings.yaml
"""

from __future__ import annotations

import argparse
from typing import NoReturn

import structlog
import yaml
from pydantic import ValidationError

from pgbackup.alerts.sinks import default_program
from pgbackup.alerts.types import RuntimeFlags
from pgbackup.backup.task import BackupTask
from pgbackup.core.config import AlertsConfig, Settings, load_settings
from pgbackup.core.logging import setup_logging
from pgbackup.runtime.context import create_runtime
from pgbackup.runtime.exceptions import OperatorError

logger = structlog.get_logger(__name__)

DESCRIPTION = (
    "Create a compressed dump of the configured PostgreSQL database in a "
    "weekday directory, rotating out the oldest day."
)


class _ArgumentParser(argparse.ArgumentParser):
    """Raises OperatorError instead of printing usage and exiting 2."""

    def error(self, message: str) -> NoReturn:
        raise OperatorError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(prog=default_program(), description=DESCRIPTION)
    parser.add_argument(
        "-l", "--log",
        dest="print_log",
        action="store_true",
        default=None,
        help="Print log to file with all log levels",
    )
    parser.add_argument(
        "-L", "--noErrorLog",
        dest="log_errors",
        action="store_false",
        default=None,
        help="Default behavior is to log warnings, errors and fatals. "
        "Use this flag to generate no log file at all.",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        default=None,
        help="Quiet (no informational output)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=None,
        help="Output more information (items sent to 'verbose' and 'debug')",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        default=None,
        help="Skip all user interaction",
    )
    parser.add_argument(
        "-n", "--dryrun",
        action="store_true",
        default=None,
        help="Report what would be done without doing it",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to settings YAML (default: config/settings.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Diagnostic log level override: DEBUG, INFO, WARNING, ERROR",
    )
    return parser


def flags_from(defaults: AlertsConfig, args: argparse.Namespace) -> RuntimeFlags:
    """Merge command-line switches over the configured defaults."""
    values = defaults.model_dump(exclude={"log_file"})
    for name in values:
        override = getattr(args, name, None)
        if override is not None:
            values[name] = override
    return RuntimeFlags(**values)


def _describe_config_error(exc: Exception) -> str:
    if isinstance(exc, ValidationError):
        return "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
    return " ".join(str(exc).split())


def _load_settings(args: argparse.Namespace) -> Settings:
    """Load settings, turning any configuration error into a fatal exit.

    The full runtime depends on the settings, so failures here are reported
    through a bootstrap runtime built from the command-line switches alone.
    """
    try:
        return load_settings(args.config)
    except (ValidationError, yaml.YAMLError, OSError) as exc:
        bootstrap = create_runtime(flags_from(AlertsConfig(), args))
        bootstrap.die(f"invalid configuration: {_describe_config_error(exc)}")


def main(argv: list[str] | None = None) -> NoReturn:
    try:
        args = build_parser().parse_args(argv)
    except OperatorError as exc:
        create_runtime().die(f"invalid option: {exc}")

    settings = _load_settings(args)
    flags = flags_from(settings.alerts, args)
    setup_logging(level=args.log_level, verbose=flags.verbose, program=default_program())

    runtime = create_runtime(flags, log_file=settings.alerts.log_file)
    logger.debug("runtime_created", flags=flags.model_dump())

    with runtime.trap:
        BackupTask(settings.backup, runtime).run()
    runtime.exit(0)


if __name__ == "__main__":
    main()
