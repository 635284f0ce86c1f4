# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Restore Manager - Restore a database from a backup artifact.

Compressed artifacts are decompressed next to the original (extension
stripped), restored from, and the decompressed copy is removed again.
There is no rollback: a failed restore may leave the database partially
modified, exactly as the engine's own restore tool would.
"""

import time
from dataclasses import dataclass
from pathlib import Path

import structlog

from hegemon.compressor import Compressor
from hegemon.config import HegemonConfig
from hegemon.credentials import CredentialResolver
from hegemon.engines import ConnectionFactory, DatabaseConnection
from hegemon.exceptions import (
    CompressionError,
    HegemonError,
    RestoreError,
    ValidationError,
)
from hegemon.notifications import NotificationSender, WebhookNotifier


@dataclass
class RestoreResult:
    """Result of a restore run. Truthy only on success."""

    success: bool
    backup_path: str
    restored_from: Path | None = None
    decompressed: bool = False
    error: HegemonError | None = None
    duration_seconds: float = 0.0

    def __bool__(self) -> bool:
        return self.success


class RestoreLifecycle:
    """
    Orchestrate one restore run.

    Args:
        config: Loaded configuration
        connection_factory: Source of connected database handles
        compressor: Codec used when compression is enabled
        notifier: Receives the success message
        logger: structlog logger (default: one bound to component=restore)
    """

    def __init__(
        self,
        config: HegemonConfig,
        *,
        connection_factory: ConnectionFactory | None = None,
        compressor: Compressor | None = None,
        notifier: NotificationSender | None = None,
        logger=None,
    ):
        self._database = config.database
        self._logging = config.logging

        self._factory = connection_factory or ConnectionFactory(CredentialResolver(config.security))
        self._compressor = None
        if config.backup.compression.enabled:
            self._compressor = compressor or Compressor(config.backup.compression)
        self._notifier = notifier or WebhookNotifier()
        self._logger = logger or structlog.get_logger().bind(component="restore")

    def run(self, backup_path: str | Path) -> RestoreResult:
        """
        Restore the configured database from backup_path.

        Every failure is logged and reported in the result; nothing
        raises out of this method.

        Args:
            backup_path: Published artifact (compressed or not)

        Returns:
            RestoreResult describing what was restored
        """
        start = time.monotonic()
        path_text = str(backup_path) if backup_path else ""
        connection: DatabaseConnection | None = None
        decompressed_path: Path | None = None

        try:
            source = self._validate_source(path_text)
            self._logger.info("restore_started", backup_path=str(source))

            connection = self._factory.open(self._database)

            restore_path = source
            extension = self._compressor.get_file_extension() if self._compressor else ""
            if extension and source.name.endswith(extension):
                target = source.with_name(source.name[: -len(extension)])
                if not self._compressor.decompress_file(source, target):
                    raise CompressionError(
                        "Failed to decompress backup file",
                        details={"backup_path": str(source)},
                    )
                decompressed_path = target
                restore_path = target

            if not connection.restore_backup(restore_path):
                raise RestoreError(
                    f"Failed to restore from backup: {restore_path}",
                    details={"restore_path": str(restore_path)},
                )

        except HegemonError as e:
            return self._failed(path_text, e, start)
        except Exception as e:
            self._logger.exception("restore_unexpected_error", backup_path=path_text)
            return self._failed(path_text, RestoreError(f"Restore failed: {e}"), start)
        finally:
            if decompressed_path is not None:
                self._remove_decompressed(decompressed_path)
            if connection is not None:
                self._disconnect(connection)

        duration = time.monotonic() - start
        self._logger.info(
            "restore_completed",
            backup_path=str(source),
            decompressed=decompressed_path is not None,
            duration=round(duration, 3),
        )
        # Not gated on enable_notifications here, unlike backup; the
        # notifier applies its own check.
        self._notifier.send_if_needed(self._logging, f"Restore succeeded from: {source}")

        return RestoreResult(
            success=True,
            backup_path=path_text,
            restored_from=restore_path,
            decompressed=decompressed_path is not None,
            duration_seconds=duration,
        )

    def _validate_source(self, path_text: str) -> Path:
        if not path_text:
            raise ValidationError("Backup path cannot be empty")
        source = Path(path_text).expanduser()
        if not source.is_file():
            raise ValidationError(
                f"Backup file not found: {path_text}",
                details={"backup_path": path_text},
            )
        return source

    def _remove_decompressed(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            self._logger.warning(
                "decompressed_file_cleanup_failed",
                path=str(path),
                error=str(e),
            )

    def _disconnect(self, connection: DatabaseConnection) -> None:
        try:
            disconnected = connection.disconnect()
        except Exception as e:
            self._logger.warning("disconnect_failed", error=str(e))
            return
        if not disconnected:
            self._logger.warning("disconnect_failed")

    def _failed(self, backup_path: str, error: HegemonError, start: float) -> RestoreResult:
        self._logger.error(
            "restore_failed",
            backup_path=backup_path,
            error_type=type(error).__name__,
            error=error.message,
            details=error.details,
        )
        return RestoreResult(
            success=False,
            backup_path=backup_path,
            error=error,
            duration_seconds=time.monotonic() - start,
        )
