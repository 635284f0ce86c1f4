# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Command line interface: ``hegemon backup|restore|list|verify|prune``.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from typing import Iterable, Optional

import structlog

from hegemon.backup import (
    BackupLifecycle,
    RestoreLifecycle,
    list_backups,
    prune_old_backups,
    verify_backup,
)
from hegemon.config import (
    COMPRESSION_FORMATS,
    BackupType,
    CompressionConfig,
    HegemonConfig,
    synthesize_password_key,
)
from hegemon.exceptions import ConfigurationError
from hegemon.loader import DEFAULT_CONFIG_PATH, load_config
from hegemon.log import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hegemon",
        description="Back up and restore PostgreSQL, MySQL and SQLite databases.",
    )
    parser.add_argument(
        "-c", "--config", default=str(DEFAULT_CONFIG_PATH), help="Path to the JSON config file."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at debug level.")

    overrides = parser.add_argument_group("database overrides")
    overrides.add_argument("--db-type", help="Database type: postgres, mysql or sqlite.")
    overrides.add_argument("--db-host", help="Database host.")
    overrides.add_argument("--db-port", type=int, help="Database port.")
    overrides.add_argument("--db-name", help="Database name.")
    overrides.add_argument("--db-user", help="Database username.")
    overrides.add_argument("--db-pass", help="Database password.")
    overrides.add_argument("--db-file", help="SQLite database file path.")

    subparsers = parser.add_subparsers(dest="command")

    parser_backup = subparsers.add_parser("backup", help="Create a backup.")
    parser_backup.add_argument(
        "-t",
        "--type",
        default=BackupType.FULL.value,
        choices=[t.value for t in BackupType],
        help="Backup type (default: full).",
    )
    parser_backup.add_argument(
        "--compression",
        choices=["none", *COMPRESSION_FORMATS],
        help="Override the configured compression format.",
    )

    parser_restore = subparsers.add_parser("restore", help="Restore from a backup file.")
    parser_restore.add_argument("path", help="Backup file to restore from.")

    subparsers.add_parser("list", help="List published backups.")

    parser_verify = subparsers.add_parser("verify", help="Check that a backup file is usable.")
    parser_verify.add_argument("path", help="Backup file to verify.")

    parser_prune = subparsers.add_parser("prune", help="Delete backups outside the retention policy.")
    parser_prune.add_argument("--dry-run", action="store_true", help="Only report what would be deleted.")

    return parser


def apply_overrides(config: HegemonConfig, args: argparse.Namespace) -> HegemonConfig:
    """Return a new config with command-line overrides applied."""
    database = config.database
    changes = {}
    if args.db_type:
        changes["type"] = args.db_type
    if args.db_host:
        changes["host"] = args.db_host
    if args.db_port is not None:
        changes["port"] = args.db_port
    if args.db_name:
        changes["database"] = args.db_name
    if args.db_file:
        changes["database"] = args.db_file
    if args.db_pass:
        changes["password"] = args.db_pass
    if args.db_user:
        changes["username"] = args.db_user
        credentials = database.credentials
        password_key = credentials.password_key
        if password_key == synthesize_password_key(database.type, database.effective_username):
            password_key = synthesize_password_key(changes.get("type", database.type), args.db_user)
        changes["credentials"] = replace(credentials, username=args.db_user, password_key=password_key)

    updates = {}
    if changes:
        updates["database"] = replace(database, **changes)

    compression_choice = getattr(args, "compression", None)
    if compression_choice:
        current = config.backup.compression
        if compression_choice == "none":
            compression = CompressionConfig(enabled=False, format=current.format, level=current.level)
        else:
            compression = CompressionConfig(enabled=True, format=compression_choice, level=current.level)
        updates["backup"] = replace(config.backup, compression=compression)

    return config.with_updates(**updates) if updates else config


def handle_backup(args: argparse.Namespace, config: HegemonConfig) -> int:
    result = BackupLifecycle(config).run(args.type)
    if not result:
        print(f"Backup failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Backup created: {result.path}")
    return 0


def handle_restore(args: argparse.Namespace, config: HegemonConfig) -> int:
    result = RestoreLifecycle(config).run(args.path)
    if not result:
        print(f"Restore failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Restored from: {args.path}")
    return 0


def handle_list(args: argparse.Namespace, config: HegemonConfig) -> int:
    artifacts = list_backups(config.storage.local_path)
    if not artifacts:
        print(f"No backups found in {config.storage.local_path}")
        return 0
    for artifact in artifacts:
        print(
            f"{artifact.created_at:%Y-%m-%d %H:%M:%S}  {artifact.backup_type:<12} "
            f"{artifact.size:>12}  {artifact.path.name}"
        )
    return 0


def handle_verify(args: argparse.Namespace, config: HegemonConfig) -> int:
    is_valid, reason = verify_backup(args.path, config.backup.compression)
    if not is_valid:
        print(f"Backup is not usable ({reason}): {args.path}", file=sys.stderr)
        return 1
    print(f"Backup OK: {args.path}")
    return 0


def handle_prune(args: argparse.Namespace, config: HegemonConfig) -> int:
    files_deleted, bytes_freed = prune_old_backups(
        config.storage, config.backup.retention, dry_run=args.dry_run
    )
    verb = "Would delete" if args.dry_run else "Deleted"
    print(f"{verb} {files_deleted} backup(s), {bytes_freed} bytes.")
    return 0


HANDLERS = {
    "backup": handle_backup,
    "restore": handle_restore,
    "list": handle_list,
    "verify": handle_verify,
    "prune": handle_prune,
}


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 2

    try:
        config = apply_overrides(load_config(args.config), args)
        log_file = configure_logging(config.logging, verbose=args.verbose)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Cannot open log file: {exc}", file=sys.stderr)
        return 1

    try:
        structlog.get_logger().debug(
            "config_loaded",
            path=args.config,
            database_type=config.database.type,
            local_path=str(config.storage.local_path),
            compression=config.backup.compression.enabled,
        )
        return HANDLERS[args.command](args, config)
    finally:
        structlog.reset_defaults()
        log_file.close()


if __name__ == "__main__":
    sys.exit(main())
