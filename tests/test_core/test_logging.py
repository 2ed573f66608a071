"""Tests for pgbackup/core/logging.py — structlog wiring for the package logger."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from pgbackup.core.config import load_settings, reset_settings
from pgbackup.core.logging import PACKAGE_LOGGER, resolve_level, setup_logging


@pytest.fixture(autouse=True)
def _restore_logging(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    monkeypatch.chdir(tmp_path)
    package = logging.getLogger(PACKAGE_LOGGER)
    handlers, level, propagate = package.handlers[:], package.level, package.propagate
    reset_settings()
    yield
    reset_settings()
    package.handlers[:] = handlers
    package.setLevel(level)
    package.propagate = propagate
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


# ── Level resolution ────────────────────────────────────────────


class TestResolveLevel:
    def test_explicit_level_wins(self) -> None:
        assert resolve_level("debug", verbose=False) == logging.DEBUG
        assert resolve_level("ERROR", verbose=True) == logging.ERROR

    def test_default_from_settings(self) -> None:
        assert resolve_level(None) == logging.WARNING

    def test_verbose_lowers_to_info(self) -> None:
        assert resolve_level(None, verbose=True) == logging.INFO

    def test_verbose_keeps_lower_configured_level(self, tmp_path: Path) -> None:
        config = tmp_path / "settings.yaml"
        config.write_text("logging:\n  level: DEBUG\n")
        load_settings(config)
        assert resolve_level(None, verbose=True) == logging.DEBUG

    def test_unknown_level_falls_back(self) -> None:
        assert resolve_level("chatty") == logging.WARNING


# ── Handler wiring ──────────────────────────────────────────────


class TestSetupLogging:
    def test_configures_package_logger_only(self) -> None:
        root = logging.getLogger()
        root_handlers = root.handlers[:]

        logger = setup_logging(level="DEBUG")

        assert logger.name == PACKAGE_LOGGER
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert root.handlers == root_handlers

    def test_single_stderr_handler(self) -> None:
        setup_logging(fmt="json")
        setup_logging(fmt="json")
        handlers = logging.getLogger(PACKAGE_LOGGER).handlers
        assert len(handlers) == 1
        assert isinstance(handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_program_bound_to_events(self, capsys: pytest.CaptureFixture[str]) -> None:
        setup_logging(level="INFO", fmt="json", program="pg_backup.py")
        structlog.get_logger("pgbackup.runtime.trap").info("fault_trap_armed")
        err = capsys.readouterr().err
        assert '"program": "pg_backup.py"' in err
        assert '"event": "fault_trap_armed"' in err
