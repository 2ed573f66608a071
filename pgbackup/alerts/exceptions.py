"""Alerting exceptions."""

from __future__ import annotations


class AlertError(Exception):
    """Base exception for alerting runtime errors."""


class LogTargetError(AlertError):
    """The log file location could not be resolved or created."""
