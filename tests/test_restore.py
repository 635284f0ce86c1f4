# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Restore lifecycle tests.
"""

import gzip
import sqlite3
from contextlib import closing
from pathlib import Path

import pytest

from hegemon.backup import BackupLifecycle, RestoreLifecycle
from hegemon.config import CompressionConfig
from hegemon.exceptions import (
    CompressionError,
    DatabaseConnectionError,
    RestoreError,
    ValidationError,
)

GZIP = CompressionConfig(enabled=True, format="gzip")


@pytest.fixture
def restore_for(fake_factory, notifier):
    def _build(config, **overrides):
        kwargs = dict(connection_factory=fake_factory, notifier=notifier)
        kwargs.update(overrides)
        return RestoreLifecycle(config, **kwargs)

    return _build


@pytest.fixture
def backup_dir(temp_dir: Path) -> Path:
    path = temp_dir / "backups"
    path.mkdir()
    return path


@pytest.fixture
def plain_artifact(backup_dir: Path) -> Path:
    path = backup_dir / "backup_20260115_030405_full.dump"
    path.write_bytes(b"-- plain dump --\n")
    return path


@pytest.fixture
def gzip_artifact(backup_dir: Path) -> Path:
    path = backup_dir / "backup_20260115_030405_full.dump.gz"
    path.write_bytes(gzip.compress(b"-- compressed dump --\n"))
    return path


# ============================================================================
# Successful restores
# ============================================================================

def test_restore_uncompressed_artifact(make_config, restore_for, fake_connection, plain_artifact):
    result = restore_for(make_config()).run(plain_artifact)

    assert result
    assert result.restored_from == plain_artifact
    assert result.decompressed is False
    assert fake_connection.restored_payload == b"-- plain dump --\n"
    assert fake_connection.calls == ["connect", "restore_backup", "disconnect"]


def test_restore_decompresses_matching_extension(make_config, restore_for, fake_connection, gzip_artifact, backup_dir):
    result = restore_for(make_config(compression=GZIP)).run(str(gzip_artifact))

    assert result
    assert result.decompressed is True
    assert fake_connection.restored_from == backup_dir / "backup_20260115_030405_full.dump"
    assert fake_connection.restored_payload == b"-- compressed dump --\n"
    # Decompressed copy is removed, the artifact itself is kept
    assert sorted(p.name for p in backup_dir.iterdir()) == [gzip_artifact.name]


def test_restore_without_matching_extension_uses_file_directly(make_config, restore_for, fake_connection, plain_artifact):
    result = restore_for(make_config(compression=GZIP)).run(plain_artifact)

    assert result
    assert result.decompressed is False
    assert fake_connection.restored_from == plain_artifact


def test_restore_with_compression_disabled_passes_archive_through(make_config, restore_for, fake_connection, gzip_artifact):
    result = restore_for(make_config()).run(gzip_artifact)

    assert result
    assert result.decompressed is False
    assert fake_connection.restored_from == gzip_artifact
    assert fake_connection.restored_payload == gzip_artifact.read_bytes()


def test_restore_notifies_regardless_of_flag(make_config, restore_for, notifier, plain_artifact):
    """Backup gates on enableNotifications; restore leaves it to the notifier."""
    result = restore_for(make_config(notifications=False)).run(plain_artifact)

    assert result
    assert len(notifier.messages) == 1
    assert str(plain_artifact) in notifier.messages[0]


def test_backup_does_not_notify_when_flag_off(make_config, fake_factory, notifier, clock):
    result = BackupLifecycle(
        make_config(notifications=False),
        connection_factory=fake_factory,
        notifier=notifier,
        clock=clock,
    ).run("full")

    assert result
    assert notifier.messages == []


# ============================================================================
# Failed restores
# ============================================================================

def test_missing_backup_file(make_config, restore_for, fake_connection, backup_dir):
    result = restore_for(make_config()).run(backup_dir / "backup_20260101_000000_full.dump")

    assert not result
    assert isinstance(result.error, ValidationError)
    assert fake_connection.calls == []


@pytest.mark.parametrize("path", ["", None])
def test_empty_backup_path(make_config, restore_for, fake_connection, path):
    result = restore_for(make_config()).run(path)

    assert not result
    assert isinstance(result.error, ValidationError)
    assert fake_connection.calls == []


def test_directory_is_not_a_backup(make_config, restore_for, backup_dir):
    result = restore_for(make_config()).run(backup_dir)

    assert not result
    assert isinstance(result.error, ValidationError)


def test_connection_failure(make_config, restore_for, fake_connection, plain_artifact):
    fake_connection.connect_ok = False

    result = restore_for(make_config()).run(plain_artifact)

    assert not result
    assert isinstance(result.error, DatabaseConnectionError)


def test_engine_failure_cleans_up_decompressed_copy(make_config, restore_for, fake_connection, gzip_artifact, backup_dir):
    fake_connection.restore_ok = False

    result = restore_for(make_config(compression=GZIP)).run(gzip_artifact)

    assert not result
    assert isinstance(result.error, RestoreError)
    assert sorted(p.name for p in backup_dir.iterdir()) == [gzip_artifact.name]
    assert fake_connection.calls[-1] == "disconnect"


def test_corrupt_archive_is_a_compression_error(make_config, restore_for, fake_connection, backup_dir):
    corrupt = backup_dir / "backup_20260115_030405_full.dump.gz"
    corrupt.write_bytes(b"this is not gzip data")

    result = restore_for(make_config(compression=GZIP)).run(corrupt)

    assert not result
    assert isinstance(result.error, CompressionError)
    assert "restore_backup" not in fake_connection.calls
    assert fake_connection.calls[-1] == "disconnect"
    assert sorted(p.name for p in backup_dir.iterdir()) == [corrupt.name]


def test_no_notification_on_failure(make_config, restore_for, fake_connection, notifier, plain_artifact):
    fake_connection.restore_ok = False

    restore_for(make_config()).run(plain_artifact)

    assert notifier.messages == []


# ============================================================================
# End to end
# ============================================================================

def test_sqlite_backup_then_restore(make_config, notifier, sqlite_db, item_names):
    config = make_config(compression=GZIP)
    backup = BackupLifecycle(config, notifier=notifier).run("full")
    assert backup

    with closing(sqlite3.connect(sqlite_db)) as conn:
        conn.execute("DELETE FROM items WHERE name != 'alpha'")
        conn.execute("INSERT INTO items (name) VALUES ('delta')")
        conn.commit()

    result = RestoreLifecycle(config, notifier=notifier).run(backup.path)

    assert result
    assert result.decompressed is True
    assert item_names(sqlite_db) == ["alpha", "beta", "gamma"]
    assert not backup.path.with_suffix("").exists()
