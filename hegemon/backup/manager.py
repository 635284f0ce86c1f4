# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Backup Manager - Backup lifecycle and artifact management.

This module runs one backup from connection to published artifact, and
provides the helpers that list, verify and prune published artifacts.

A run dumps into a staging file (``.tmp_<name>.dump``) and only then
publishes it under its final name by rename. A compressed archive is
written to its own staging name first. An existing artifact is never
overwritten, so the final path either holds a complete artifact or does
not exist.
"""

import re
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from pathlib import Path
from typing import Callable, List, Tuple

import structlog

from hegemon.compressor import Compressor, FILE_EXTENSIONS, compressor_for_extension
from hegemon.config import (
    BackupType,
    CompressionConfig,
    HegemonConfig,
    RetentionConfig,
    StorageConfig,
)
from hegemon.credentials import CredentialResolver
from hegemon.engines import ConnectionFactory, DatabaseConnection
from hegemon.exceptions import (
    BackupError,
    CompressionError,
    HegemonError,
    StorageError,
    ValidationError,
)
from hegemon.notifications import NotificationSender, WebhookNotifier

STAGING_PREFIX = ".tmp_"
DUMP_EXTENSION = ".dump"
TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"

ARTIFACT_PATTERN = re.compile(
    r"^backup_(?P<timestamp>\d{8}_\d{6})_(?P<type>full|incremental|differential)"
    r"\.dump(?P<compression>\.[A-Za-z0-9]+)?$"
)


@dataclass
class BackupResult:
    """Result of a backup run. Truthy only on success."""

    success: bool
    backup_type: str
    path: Path | None = None
    error: HegemonError | None = None
    duration_seconds: float = 0.0

    def __bool__(self) -> bool:
        return self.success


@dataclass
class BackupArtifact:
    """A published backup file."""

    path: Path
    backup_type: str
    created_at: datetime
    size: int
    compression_extension: str | None = None

    @property
    def compressed(self) -> bool:
        return self.compression_extension is not None


def artifact_name(backup_type: str, now: datetime) -> str:
    """Deterministic artifact base name: ``backup_<UTC timestamp>_<type>``."""
    return f"backup_{now.astimezone(UTC).strftime(TIMESTAMP_FORMAT)}_{backup_type}"


def _utc_now() -> datetime:
    return datetime.now(UTC)


class BackupLifecycle:
    """
    Orchestrate one backup run.

    Collaborators are injected; defaults are built from the config.
    Storage and backup policy are read as separate sections.

    Args:
        config: Loaded configuration
        connection_factory: Source of connected database handles
        compressor: Codec used when compression is enabled
        notifier: Receives the success message when notifications are on
        logger: structlog logger (default: one bound to component=backup)
        clock: Returns the current time; used for artifact names
    """

    def __init__(
        self,
        config: HegemonConfig,
        *,
        connection_factory: ConnectionFactory | None = None,
        compressor: Compressor | None = None,
        notifier: NotificationSender | None = None,
        logger=None,
        clock: Callable[[], datetime] | None = None,
    ):
        self._database = config.database
        self._storage = config.storage
        self._policy = config.backup
        self._logging = config.logging

        self._factory = connection_factory or ConnectionFactory(CredentialResolver(config.security))
        self._compressor = None
        if config.backup.compression.enabled:
            self._compressor = compressor or Compressor(config.backup.compression)
        self._notifier = notifier or WebhookNotifier()
        self._logger = logger or structlog.get_logger().bind(component="backup")
        self._clock = clock or _utc_now

    def run(self, backup_type: str) -> BackupResult:
        """
        Execute a backup.

        Every failure is logged and reported in the result; nothing
        raises out of this method.

        Args:
            backup_type: 'full', 'incremental' or 'differential'

        Returns:
            BackupResult with the published path on success
        """
        start = time.monotonic()
        connection: DatabaseConnection | None = None
        staging_path: Path | None = None

        try:
            kind = self._validate_backup_type(backup_type)
            self._logger.info("backup_started", backup_type=kind.value)

            connection = self._factory.open(self._database)
            backup_dir = self._ensure_backup_directory()

            name = artifact_name(kind.value, self._clock())
            staging_path = backup_dir / f"{STAGING_PREFIX}{name}{DUMP_EXTENSION}"
            final_path = backup_dir / f"{name}{DUMP_EXTENSION}"
            if self._compressor is not None:
                final_path = final_path.with_name(final_path.name + self._compressor.get_file_extension())

            if final_path.exists():
                raise StorageError(
                    f"Backup file already exists: {final_path}",
                    details={"path": str(final_path)},
                )

            # Leftover from a crashed run; never resumed
            if staging_path.exists():
                self._logger.warning("stale_staging_file_removed", path=str(staging_path))
                self._remove_staging(staging_path)

            if not connection.create_backup(staging_path):
                raise BackupError(
                    f"Failed to create backup at: {staging_path}",
                    details={"staging_path": str(staging_path)},
                )

            self._publish(staging_path, final_path)
            self._remove_staging(staging_path)

            if not final_path.exists():
                raise StorageError(
                    f"Backup file not found after creation: {final_path}",
                    details={"path": str(final_path)},
                )

        except HegemonError as e:
            return self._failed(backup_type, e, start)
        except Exception as e:
            self._logger.exception("backup_unexpected_error", backup_type=backup_type)
            return self._failed(backup_type, BackupError(f"Backup failed: {e}"), start)
        finally:
            if staging_path is not None:
                self._discard_staging(staging_path)
            if connection is not None:
                self._disconnect(connection)

        duration = time.monotonic() - start
        self._logger.info(
            "backup_completed",
            backup_type=kind.value,
            path=str(final_path),
            size=final_path.stat().st_size,
            compressed=self._compressor is not None,
            duration=round(duration, 3),
        )
        if self._logging.enable_notifications:
            self._notifier.send_if_needed(self._logging, f"Backup succeeded: {final_path}")

        return BackupResult(
            success=True,
            backup_type=kind.value,
            path=final_path,
            duration_seconds=duration,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _validate_backup_type(self, backup_type: str) -> BackupType:
        if not backup_type:
            raise ValidationError("Backup type cannot be empty")
        try:
            return BackupType(backup_type)
        except ValueError:
            raise ValidationError(
                f"Invalid backup type: {backup_type}",
                details={"allowed": [t.value for t in BackupType]},
            ) from None

    def _ensure_backup_directory(self) -> Path:
        backup_dir = Path(self._storage.local_path).expanduser()
        if backup_dir.is_dir():
            return backup_dir
        try:
            backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to create backup directory: {backup_dir}",
                details={"path": str(backup_dir), "error": str(e)},
            ) from e
        self._logger.debug("backup_directory_created", path=str(backup_dir))
        return backup_dir

    def _publish(self, staging_path: Path, final_path: Path) -> None:
        """
        Move the staging file to its final name.

        With compression on, the archive is written to its own staging name
        (``.tmp_<name>.dump.gz``) and renamed once complete.
        """
        source = staging_path
        if self._compressor is not None:
            source = final_path.with_name(STAGING_PREFIX + final_path.name)
            if not self._compressor.compress_file(staging_path, source):
                self._discard_staging(staging_path)
                self._discard_partial(source)
                raise CompressionError(
                    "Failed to compress backup file",
                    details={"staging_path": str(staging_path), "final_path": str(final_path)},
                )

        try:
            source.replace(final_path)
        except OSError as e:
            self._discard_partial(source)
            raise StorageError(
                f"Failed to publish backup file: {final_path}",
                details={"staging_path": str(source), "error": str(e)},
            ) from e

    def _remove_staging(self, staging_path: Path) -> None:
        try:
            staging_path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to remove staging file: {staging_path}",
                details={"error": str(e)},
            ) from e

    def _discard_staging(self, staging_path: Path) -> None:
        """Best-effort staging cleanup used on failure paths."""
        try:
            staging_path.unlink(missing_ok=True)
        except OSError as e:
            self._logger.warning("staging_cleanup_failed", path=str(staging_path), error=str(e))

    def _discard_partial(self, final_path: Path) -> None:
        try:
            final_path.unlink(missing_ok=True)
        except OSError as e:
            self._logger.warning("partial_artifact_cleanup_failed", path=str(final_path), error=str(e))

    def _disconnect(self, connection: DatabaseConnection) -> None:
        try:
            disconnected = connection.disconnect()
        except Exception as e:
            self._logger.warning("disconnect_failed", error=str(e))
            return
        if not disconnected:
            self._logger.warning("disconnect_failed")

    def _failed(self, backup_type: str, error: HegemonError, start: float) -> BackupResult:
        self._logger.error(
            "backup_failed",
            backup_type=backup_type,
            error_type=type(error).__name__,
            error=error.message,
            details=error.details,
        )
        return BackupResult(
            success=False,
            backup_type=backup_type,
            error=error,
            duration_seconds=time.monotonic() - start,
        )


# ============================================================================
# Published artifacts
# ============================================================================

def parse_artifact_name(name: str) -> Tuple[datetime, str, str | None] | None:
    """
    Parse a published artifact file name.

    Returns:
        (created_at, backup_type, compression_extension) or None if the
        name is not a published artifact (staging files included)
    """
    match = ARTIFACT_PATTERN.match(name)
    if match is None:
        return None
    try:
        created_at = datetime.strptime(match.group("timestamp"), TIMESTAMP_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        return None
    return created_at, match.group("type"), match.group("compression")


def list_backups(local_path: Path) -> List[BackupArtifact]:
    """
    List published artifacts in a backup directory, newest first.

    Args:
        local_path: The storage.localPath directory

    Returns:
        List of BackupArtifact; empty if the directory does not exist
    """
    backup_dir = Path(local_path).expanduser()
    if not backup_dir.is_dir():
        return []

    artifacts: List[BackupArtifact] = []
    for entry in backup_dir.iterdir():
        if not entry.is_file():
            continue
        parsed = parse_artifact_name(entry.name)
        if parsed is None:
            continue
        created_at, backup_type, extension = parsed
        artifacts.append(
            BackupArtifact(
                path=entry,
                backup_type=backup_type,
                created_at=created_at,
                size=entry.stat().st_size,
                compression_extension=extension,
            )
        )

    artifacts.sort(key=lambda a: (a.created_at, a.path.name), reverse=True)
    return artifacts


def verify_backup(path: Path, compression: CompressionConfig | None = None) -> Tuple[bool, str]:
    """
    Verify that a backup artifact is usable.

    Checks that the file exists and is non-empty and, for compressed
    artifacts, that it decompresses cleanly.

    Args:
        path: Artifact path
        compression: Compression policy; supplies the level for the codec

    Returns:
        Tuple of (is_valid, reason)
    """
    backup_path = Path(path).expanduser()
    if not backup_path.is_file():
        return (False, "not_found")
    if backup_path.stat().st_size == 0:
        return (False, "empty")

    suffix = backup_path.suffix
    if suffix in FILE_EXTENSIONS.values():
        level = compression.level if compression and compression.enabled else "medium"
        compressor = compressor_for_extension(suffix, level)
        if compressor is not None and not compressor.test_file(backup_path):
            return (False, "corrupt_archive")

    return (True, "ok")


def prune_old_backups(
    storage: StorageConfig,
    retention: RetentionConfig,
    dry_run: bool = False,
    now: datetime | None = None,
) -> Tuple[int, int]:
    """
    Delete published artifacts outside the retention policy.

    Artifacts older than ``retention.days`` go first; of the rest, only the
    newest ``retention.max_backups`` are kept. A zero value disables the
    corresponding rule. Staging and unrelated files are never touched.

    Args:
        storage: Storage section (directory to prune)
        retention: Retention policy
        dry_run: If True, only report what would be deleted
        now: Reference time (default: current UTC time)

    Returns:
        Tuple of (files_deleted, bytes_freed)
    """
    logger = structlog.get_logger().bind(component="retention")
    reference = now or _utc_now()
    artifacts = list_backups(storage.local_path)

    expired: List[BackupArtifact] = []
    kept: List[BackupArtifact] = []
    cutoff = reference - timedelta(days=retention.days)
    for artifact in artifacts:
        if retention.days > 0 and artifact.created_at < cutoff:
            expired.append(artifact)
        else:
            kept.append(artifact)

    if retention.max_backups > 0:
        expired.extend(kept[retention.max_backups:])

    files_deleted = 0
    bytes_freed = 0

    for artifact in expired:
        try:
            if not dry_run:
                artifact.path.unlink()
        except OSError as e:
            logger.warning("prune_file_error", path=str(artifact.path), error=str(e))
            continue

        files_deleted += 1
        bytes_freed += artifact.size
        logger.debug(
            "backup_file_pruned" if not dry_run else "backup_file_would_prune",
            path=str(artifact.path),
            age_days=(reference - artifact.created_at).days,
        )

    logger.info(
        "backup_pruning_complete",
        files_deleted=files_deleted,
        bytes_freed=bytes_freed,
        dry_run=dry_run,
    )

    return (files_deleted, bytes_freed)
