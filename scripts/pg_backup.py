#!/usr/bin/env python3
"""Nightly backup entrypoint.

Usage::

    # Run with default config
    python scripts/pg_backup.py

    # Custom config file, log every level
    python scripts/pg_backup.py --config config/settings.yaml --log
"""

from __future__ import annotations

from pgbackup.cli import main

if __name__ == "__main__":
    main()
