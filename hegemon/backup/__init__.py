# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Engine - Backup lifecycle, artifact management and restore.
"""

from hegemon.backup.manager import (
    BackupArtifact,
    BackupLifecycle,
    BackupResult,
    list_backups,
    prune_old_backups,
    verify_backup,
)

from hegemon.backup.restore import (
    RestoreLifecycle,
    RestoreResult,
)

__all__ = [
    # Manager
    "BackupArtifact",
    "BackupLifecycle",
    "BackupResult",
    "list_backups",
    "prune_old_backups",
    "verify_backup",
    # Restore
    "RestoreLifecycle",
    "RestoreResult",
]
