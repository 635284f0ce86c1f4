# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
PostgreSQL engine - pg_dump/pg_restore in custom archive format.

Requires the PostgreSQL client tools on PATH. The password is passed via
PGPASSWORD in the child environment.
"""

from pathlib import Path
from typing import List

import structlog

from hegemon.config import DatabaseConfig
from hegemon.engines.base import SubprocessEngine

logger = structlog.get_logger()


class PostgresConnection(SubprocessEngine):
    """DatabaseConnection for a PostgreSQL server."""

    name = "postgres"
    required_tools = ("pg_isready", "pg_dump", "pg_restore")
    password_env_var = "PGPASSWORD"

    def connect(self, database: DatabaseConfig) -> bool:
        if not self._prepare(database):
            return False
        if not self._run(["pg_isready", *self._connection_args(), f"--dbname={database.database}"], "connect"):
            self._database = None
            return False
        logger.debug("postgres_connected", host=database.host, port=database.port)
        return True

    def create_backup(self, destination: Path) -> bool:
        if self._database is None:
            logger.error("postgres_not_connected", operation="backup")
            return False
        command = [
            "pg_dump",
            *self._connection_args(),
            "--format=custom",
            f"--file={destination}",
            self._database.database,
        ]
        return self._run(command, "backup")

    def restore_backup(self, source: Path) -> bool:
        if self._database is None:
            logger.error("postgres_not_connected", operation="restore")
            return False
        command = [
            "pg_restore",
            *self._connection_args(),
            "--clean",
            "--if-exists",
            "--no-owner",
            f"--dbname={self._database.database}",
            str(source),
        ]
        return self._run(command, "restore")

    def _connection_args(self) -> List[str]:
        database = self._database
        args = [f"--host={database.host}", f"--port={database.port}"]
        if database.effective_username:
            args.append(f"--username={database.effective_username}")
        return args
