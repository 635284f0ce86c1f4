# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Example: back up a SQLite database, damage it, and restore it.

Builds the configuration in code instead of loading a JSON file, so it
runs without any setup.

Run with:
    python examples/sqlite_roundtrip.py
"""

import sqlite3
import tempfile
from contextlib import closing
from pathlib import Path

from hegemon import BackupLifecycle, HegemonConfig, RestoreLifecycle
from hegemon.backup import list_backups, verify_backup
from hegemon.config import (
    BackupPolicy,
    CompressionConfig,
    DatabaseConfig,
    LoggingConfig,
    StorageConfig,
)
from hegemon.log import configure_logging


def count_rows(db_path: Path) -> int:
    with closing(sqlite3.connect(db_path)) as conn:
        return conn.execute("SELECT COUNT(*) FROM orders").fetchone()[0]


def main() -> None:
    workdir = Path(tempfile.mkdtemp(prefix="hegemon-example-"))
    db_path = workdir / "shop.db"

    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("CREATE TABLE orders (id INTEGER PRIMARY KEY, total REAL)")
        conn.executemany("INSERT INTO orders (total) VALUES (?)", [(9.99,), (24.50,), (3.75,)])
        conn.commit()

    config = HegemonConfig(
        database=DatabaseConfig(type="sqlite", database=str(db_path)),
        storage=StorageConfig(local_path=workdir / "backups"),
        logging=LoggingConfig(log_path=workdir / "hegemon.log", log_level="info"),
        backup=BackupPolicy(compression=CompressionConfig(enabled=True, format="xz", level="high")),
    )
    log_file = configure_logging(config.logging)

    backup = BackupLifecycle(config).run("full")
    if not backup:
        raise SystemExit(f"Backup failed: {backup.error}")
    print(f"Backup written to {backup.path}")
    print(f"Verification: {verify_backup(backup.path, config.backup.compression)}")

    with closing(sqlite3.connect(db_path)) as conn:
        conn.execute("DELETE FROM orders")
        conn.commit()
    print(f"Rows after accidental delete: {count_rows(db_path)}")

    restore = RestoreLifecycle(config).run(backup.path)
    if not restore:
        raise SystemExit(f"Restore failed: {restore.error}")
    print(f"Rows after restore: {count_rows(db_path)}")

    for artifact in list_backups(config.storage.local_path):
        print(f"  {artifact.path.name}  {artifact.size} bytes")

    log_file.close()
    print(f"Log written to {workdir / 'hegemon.log'}")


if __name__ == "__main__":
    main()
