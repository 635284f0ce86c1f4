# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon - Database backup and restore for PostgreSQL, MySQL and SQLite.

Loads a JSON configuration (with ${VAR} substitution and credential source
resolution), then runs backups into atomically published, optionally
compressed artifacts and restores from them. Package name: hegemon.
"""

__version__ = "0.1.0"

# Configuration
from hegemon.config import HegemonConfig
from hegemon.loader import load_config

# Lifecycles
from hegemon.backup import (
    BackupLifecycle,
    BackupResult,
    RestoreLifecycle,
    RestoreResult,
)

# Errors
from hegemon.exceptions import (
    HegemonError,
    ConfigurationError,
    ValidationError,
    DatabaseConnectionError,
    BackupError,
    RestoreError,
    CompressionError,
    StorageError,
)

__all__ = [
    # Version
    "__version__",
    # Configuration
    "HegemonConfig",
    "load_config",
    # Lifecycles
    "BackupLifecycle",
    "BackupResult",
    "RestoreLifecycle",
    "RestoreResult",
    # Errors
    "HegemonError",
    "ConfigurationError",
    "ValidationError",
    "DatabaseConnectionError",
    "BackupError",
    "RestoreError",
    "CompressionError",
    "StorageError",
]
