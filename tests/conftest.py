# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for hegemon tests.

Provides a real SQLite database, config builders, and in-memory fakes for
the connection, compressor and notifier collaborators.
"""

import json
import sqlite3
import tempfile
from contextlib import closing
from datetime import datetime, UTC
from pathlib import Path
from typing import Generator, List

import pytest
import structlog

from hegemon.compressor import Compressor
from hegemon.config import (
    BackupPolicy,
    CompressionConfig,
    DatabaseConfig,
    HegemonConfig,
    LoggingConfig,
    RetentionConfig,
    StorageConfig,
)
from hegemon.exceptions import DatabaseConnectionError


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None, None, None]:
    """Every test starts and ends with structlog's default configuration."""
    structlog.reset_defaults()
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 1, 15, 3, 4, 5, tzinfo=UTC)


@pytest.fixture
def clock(fixed_now: datetime):
    return lambda: fixed_now


# ============================================================================
# Databases
# ============================================================================

@pytest.fixture
def sqlite_db(temp_dir: Path) -> Path:
    """Create a small SQLite database with three rows."""
    db_path = temp_dir / "app.db"
    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")
        conn.executemany(
            "INSERT INTO items (name) VALUES (?)",
            [("alpha",), ("beta",), ("gamma",)],
        )
        conn.commit()
    return db_path


@pytest.fixture
def item_names():
    """Read the item names from a SQLite database file."""

    def _read(db_path: Path) -> List[str]:
        with closing(sqlite3.connect(db_path)) as conn:
            return [row[0] for row in conn.execute("SELECT name FROM items ORDER BY id")]

    return _read


# ============================================================================
# Configuration
# ============================================================================

@pytest.fixture
def make_config(temp_dir: Path, sqlite_db: Path):
    """Build a HegemonConfig for the test SQLite database."""

    def _make(
        *,
        compression: CompressionConfig | None = None,
        retention: RetentionConfig | None = None,
        notifications: bool = False,
        endpoint: str | None = None,
        local_path: Path | None = None,
        database: DatabaseConfig | None = None,
    ) -> HegemonConfig:
        return HegemonConfig(
            database=database or DatabaseConfig(type="sqlite", database=str(sqlite_db)),
            storage=StorageConfig(local_path=local_path or temp_dir / "backups"),
            logging=LoggingConfig(
                log_path=temp_dir / "logs" / "hegemon.log",
                log_level="debug",
                enable_notifications=notifications,
                notification_endpoint=endpoint,
            ),
            backup=BackupPolicy(
                compression=compression or CompressionConfig(),
                retention=retention or RetentionConfig(),
            ),
        )

    return _make


@pytest.fixture
def config_document(temp_dir: Path, sqlite_db: Path) -> dict:
    """A complete JSON config document for the test SQLite database."""
    return {
        "database": {"type": "sqlite", "database": str(sqlite_db)},
        "storage": {"localPath": str(temp_dir / "backups")},
        "logging": {
            "logPath": str(temp_dir / "logs" / "hegemon.log"),
            "logLevel": "info",
            "enableNotifications": False,
        },
        "backup": {
            "compression": {"enabled": False, "format": "gzip", "level": "medium"},
            "retention": {"days": 30, "maxBackups": 10},
            "schedule": {"enabled": False, "cron": "0 0 * * *"},
        },
    }


@pytest.fixture
def write_config(temp_dir: Path):
    """Write a config document to disk and return its path."""

    def _write(document: dict, name: str = "config.json") -> Path:
        path = temp_dir / name
        path.write_text(json.dumps(document, indent=2), encoding="utf-8")
        return path

    return _write


# ============================================================================
# Collaborator fakes
# ============================================================================

class FakeConnection:
    """DatabaseConnection that writes a fixed payload and records calls."""

    def __init__(self, payload: bytes = b"-- fake dump --\n"):
        self.payload = payload
        self.calls: List[str] = []
        self.connect_ok = True
        self.backup_ok = True
        self.restore_ok = True
        self.disconnect_ok = True
        self.backup_exception: Exception | None = None
        self.disconnect_exception: Exception | None = None
        self.write_partial_on_failure = False
        self.database: DatabaseConfig | None = None
        self.restored_from: Path | None = None
        self.restored_payload: bytes | None = None

    def connect(self, database: DatabaseConfig) -> bool:
        self.calls.append("connect")
        self.database = database
        return self.connect_ok

    def disconnect(self) -> bool:
        self.calls.append("disconnect")
        if self.disconnect_exception is not None:
            raise self.disconnect_exception
        return self.disconnect_ok

    def create_backup(self, destination: Path) -> bool:
        self.calls.append("create_backup")
        if self.backup_exception is not None:
            raise self.backup_exception
        if self.backup_ok:
            Path(destination).write_bytes(self.payload)
        elif self.write_partial_on_failure:
            Path(destination).write_bytes(self.payload[:3])
        return self.backup_ok

    def restore_backup(self, source: Path) -> bool:
        self.calls.append("restore_backup")
        self.restored_from = Path(source)
        self.restored_payload = Path(source).read_bytes()
        return self.restore_ok


class FakeConnectionFactory:
    """Hands out one FakeConnection, mirroring ConnectionFactory.open."""

    def __init__(self, connection: FakeConnection):
        self.connection = connection
        self.opened: List[DatabaseConfig] = []

    def open(self, database: DatabaseConfig) -> FakeConnection:
        self.opened.append(database)
        if not self.connection.connect(database):
            raise DatabaseConnectionError("Failed to connect to database")
        return self.connection


class RecordingNotifier:
    def __init__(self):
        self.messages: List[str] = []

    def send_if_needed(self, logging_config: LoggingConfig, message: str) -> None:
        self.messages.append(message)


class FailingCompressor(Compressor):
    """gzip compressor whose compress step leaves a partial file and fails."""

    def __init__(self):
        super().__init__(CompressionConfig(enabled=True, format="gzip", level="medium"))

    def compress_file(self, src, dst) -> bool:
        Path(dst).write_bytes(b"\x1f\x8b partial")
        return False


@pytest.fixture
def fake_connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def fake_factory(fake_connection: FakeConnection) -> FakeConnectionFactory:
    return FakeConnectionFactory(fake_connection)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def failing_compressor() -> FailingCompressor:
    return FailingCompressor()
