# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Database Engines - Per-engine dump/restore behind one connection contract.
"""

from dataclasses import replace
from pathlib import Path
from typing import Callable, Dict, List, Protocol

import structlog

from hegemon.config import DatabaseConfig
from hegemon.credentials import CredentialResolver
from hegemon.errors import explain_unknown_database_type
from hegemon.exceptions import ConfigurationError, DatabaseConnectionError


class DatabaseConnection(Protocol):
    """Connection capability used by the backup and restore lifecycles."""

    def connect(self, database: DatabaseConfig) -> bool:
        """Open the connection; False if the database is unreachable."""
        ...

    def disconnect(self) -> bool:
        """Close the connection; False if closing failed."""
        ...

    def create_backup(self, destination: Path) -> bool:
        """Dump the database into a new file at destination."""
        ...

    def restore_backup(self, source: Path) -> bool:
        """Load the dump at source into the database."""
        ...


EngineFactory = Callable[[], DatabaseConnection]

_ENGINES: Dict[str, EngineFactory] = {}


def register_engine(db_type: str, factory: EngineFactory) -> None:
    """
    Register a connection factory for a database type.

    Args:
        db_type: Value of ``database.type`` handled by the factory
        factory: Zero-argument callable returning an unconnected connection
    """
    _ENGINES[db_type] = factory


def registered_engines() -> List[str]:
    return sorted(_ENGINES)


class ConnectionFactory:
    """
    Validate a database section and hand out connected handles.

    Sections built in code or through CLI overrides are re-validated
    before use.
    """

    def __init__(self, resolver: CredentialResolver | None = None, logger=None):
        self._resolver = resolver or CredentialResolver()
        self._logger = logger or structlog.get_logger().bind(component="connection_factory")

    def create(self, database: DatabaseConfig) -> DatabaseConnection:
        """Build an unconnected handle for database.type."""
        database.validate()

        factory = _ENGINES.get(database.type)
        if factory is None:
            raise ConfigurationError(
                explain_unknown_database_type(database.type),
                details={"field": "database.type", "registered": registered_engines()},
            )
        return factory()

    def open(self, database: DatabaseConfig) -> DatabaseConnection:
        """
        Create a handle and connect it.

        The engine receives a copy of the database section with the
        resolved password filled in; the caller's section is untouched.

        Raises:
            ConfigurationError: If the section is incomplete
            DatabaseConnectionError: If the engine cannot connect
        """
        connection = self.create(database)

        resolved = database
        if not database.is_file_based:
            password = self._resolver.resolve_for(database)
            if password and password != database.password:
                resolved = replace(database, password=password)
            elif not password:
                self._logger.debug(
                    "no_password_resolved",
                    database_type=database.type,
                    username=database.effective_username,
                )

        if not connection.connect(resolved):
            raise DatabaseConnectionError(
                "Failed to connect to database",
                details={
                    "type": database.type,
                    "target": database.database if database.is_file_based else f"{database.host}:{database.port}",
                },
            )

        self._logger.debug("database_connected", database_type=database.type)
        return connection


def _register_builtin_engines() -> None:
    from hegemon.engines.mysql import MySQLConnection
    from hegemon.engines.postgres import PostgresConnection
    from hegemon.engines.sqlite import SQLiteConnection

    register_engine("postgres", PostgresConnection)
    register_engine("mysql", MySQLConnection)
    register_engine("sqlite", SQLiteConnection)


_register_builtin_engines()


__all__ = [
    "ConnectionFactory",
    "DatabaseConnection",
    "register_engine",
    "registered_engines",
]
