# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Exceptions - Error taxonomy for the backup/restore engine.
"""


class HegemonError(Exception):
    """Base exception for all hegemon errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(HegemonError):
    """Raised when configuration or its environment is malformed or incomplete."""

    pass


class ValidationError(HegemonError):
    """Raised when a caller-supplied argument is invalid."""

    pass


class DatabaseConnectionError(HegemonError):
    """Raised when the database cannot be reached or authenticated against."""

    pass


class BackupError(HegemonError):
    """Raised when the engine-level dump fails."""

    pass


class RestoreError(HegemonError):
    """Raised when the engine-level restore fails."""

    pass


class CompressionError(HegemonError):
    """Raised when compressing or decompressing an artifact fails."""

    pass


class StorageError(HegemonError):
    """Raised when a filesystem precondition or postcondition is violated."""

    pass
