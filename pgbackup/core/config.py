"""Pydantic settings loaded from YAML configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, SecretStr, field_validator

_settings: Settings | None = None

_DEFAULT_CONFIG_PATH = Path("config/settings.yaml")


def _env(name: str, default: str = "") -> Any:
    return Field(default_factory=lambda: os.environ.get(name, default))


class AlertsConfig(BaseModel):
    """Defaults for the runtime flags; command-line options override them."""

    quiet: bool = False
    print_log: bool = False
    log_errors: bool = True
    verbose: bool = False
    force: bool = False
    dryrun: bool = False
    log_file: Path | None = None


class BackupConfig(BaseModel):
    """Nightly dump and rotation configuration."""

    user: str = _env("POSTGRES_USER")
    database: str = _env("POSTGRES_DB")
    password: SecretStr = Field(
        default_factory=lambda: SecretStr(os.environ.get("POSTGRES_PASSWORD", "")),
    )
    days_of_backups: int = 3
    parent_dir: Path = Path("/backups")
    dump_tool: str = "pg_dump"
    compressor: str = "gzip"
    compression_level: int = 9
    lock_dir: Path | None = None
    use_temp_dir: bool = False

    @field_validator("days_of_backups")
    @classmethod
    def _days_within_week(cls, v: int) -> int:
        # Directories are keyed by weekday name, so a full week would
        # rotate away the directory being written today.
        if not 1 <= v < 7:
            raise ValueError("days_of_backups must be between 1 and 6")
        return v

    @field_validator("compression_level")
    @classmethod
    def _valid_level(cls, v: int) -> int:
        if not 1 <= v <= 9:
            raise ValueError("compression_level must be between 1 and 9")
        return v


class LoggingConfig(BaseModel):
    """Diagnostic logging configuration (structlog, stderr)."""

    level: str = "WARNING"
    format: str = "console"


class Settings(BaseModel):
    """Root settings container."""

    alerts: AlertsConfig = AlertsConfig()
    backup: BackupConfig = Field(default_factory=BackupConfig)
    logging: LoggingConfig = LoggingConfig()


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file and cache globally.

    Args:
        path: Path to YAML config. Defaults to config/settings.yaml.

    Returns:
        Parsed Settings instance.
    """
    global _settings  # noqa: PLW0603

    config_path = Path(path) if path else _DEFAULT_CONFIG_PATH

    data: dict[str, Any] = {}
    if config_path.exists():
        with open(config_path) as f:
            raw = yaml.safe_load(f)
            if isinstance(raw, dict):
                data = raw

    _settings = Settings(**data)
    return _settings


def get_settings() -> Settings:
    """Return the cached settings, loading defaults if not yet loaded."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset the cached settings (useful for testing)."""
    global _settings  # noqa: PLW0603
    _settings = None
