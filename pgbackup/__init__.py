"""Nightly PostgreSQL backup with an alerting and fault-trapping runtime."""

__version__ = "0.3.0"
