# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
MySQL engine - mysqldump for backups, the mysql client for restores.

Requires the MySQL client tools on PATH. The password is passed via
MYSQL_PWD in the child environment.
"""

from pathlib import Path
from typing import List

import structlog

from hegemon.config import DatabaseConfig
from hegemon.engines.base import SubprocessEngine

logger = structlog.get_logger()


class MySQLConnection(SubprocessEngine):
    """DatabaseConnection for a MySQL/MariaDB server."""

    name = "mysql"
    required_tools = ("mysqladmin", "mysqldump", "mysql")
    password_env_var = "MYSQL_PWD"

    def connect(self, database: DatabaseConfig) -> bool:
        if not self._prepare(database):
            return False
        if not self._run(["mysqladmin", *self._connection_args(), "ping"], "connect"):
            self._database = None
            return False
        logger.debug("mysql_connected", host=database.host, port=database.port)
        return True

    def create_backup(self, destination: Path) -> bool:
        if self._database is None:
            logger.error("mysql_not_connected", operation="backup")
            return False
        command = [
            "mysqldump",
            *self._connection_args(),
            "--single-transaction",
            "--routines",
            "--triggers",
            f"--result-file={destination}",
            self._database.database,
        ]
        return self._run(command, "backup")

    def restore_backup(self, source: Path) -> bool:
        if self._database is None:
            logger.error("mysql_not_connected", operation="restore")
            return False
        command = ["mysql", *self._connection_args(), self._database.database]
        return self._run(command, "restore", stdin_path=Path(source))

    def _connection_args(self) -> List[str]:
        database = self._database
        args = [f"--host={database.host}", f"--port={database.port}"]
        if database.effective_username:
            args.append(f"--user={database.effective_username}")
        return args
