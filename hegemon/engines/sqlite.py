# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
SQLite engine - Online backup/restore through the sqlite3 backup API.

The backup API copies pages from a live connection, so a dump taken while
other processes write to the database is still consistent.
"""

import sqlite3
from contextlib import closing
from pathlib import Path

import structlog

from hegemon.config import DatabaseConfig

logger = structlog.get_logger()


class SQLiteConnection:
    """DatabaseConnection for a local SQLite file."""

    def __init__(self) -> None:
        self._conn: sqlite3.Connection | None = None
        self._path: Path | None = None

    def connect(self, database: DatabaseConfig) -> bool:
        path = Path(database.database).expanduser()
        if not path.is_file():
            # sqlite3.connect would silently create an empty database
            logger.error("sqlite_database_missing", path=str(path))
            return False
        try:
            conn = sqlite3.connect(path)
            conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            logger.error("sqlite_connect_failed", path=str(path), error=str(e))
            return False

        self._conn = conn
        self._path = path
        logger.debug("sqlite_connected", path=str(path))
        return True

    def disconnect(self) -> bool:
        if self._conn is None:
            return True
        try:
            self._conn.close()
        except sqlite3.Error as e:
            logger.warning("sqlite_disconnect_failed", path=str(self._path), error=str(e))
            return False
        finally:
            self._conn = None
        return True

    def create_backup(self, destination: Path) -> bool:
        if self._conn is None:
            logger.error("sqlite_not_connected", operation="backup")
            return False
        try:
            with closing(sqlite3.connect(destination)) as target:
                self._conn.backup(target)
        except sqlite3.Error as e:
            logger.error(
                "sqlite_backup_failed",
                source=str(self._path),
                destination=str(destination),
                error=str(e),
            )
            return False
        return True

    def restore_backup(self, source: Path) -> bool:
        if self._conn is None:
            logger.error("sqlite_not_connected", operation="restore")
            return False
        source_path = Path(source)
        if not source_path.is_file():
            logger.error("sqlite_restore_source_missing", source=str(source_path))
            return False
        try:
            uri = f"{source_path.resolve().as_uri()}?mode=ro"
            with closing(sqlite3.connect(uri, uri=True)) as backup:
                backup.backup(self._conn)
        except sqlite3.Error as e:
            logger.error(
                "sqlite_restore_failed",
                source=str(source_path),
                destination=str(self._path),
                error=str(e),
            )
            return False
        return True
