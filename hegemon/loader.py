# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Config Loader - Build a HegemonConfig from a JSON file.

Loading is fail-fast: the first missing or invalid field aborts with a
ConfigurationError naming it. ``${VAR}`` placeholders are resolved while
reading, with required/optional semantics chosen per field.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping

from hegemon.config import (
    BackupPolicy,
    CompressionConfig,
    CredentialSource,
    CredentialStoreConfig,
    CredentialsConfig,
    DatabaseConfig,
    EncryptionConfig,
    HegemonConfig,
    LoggingConfig,
    RetentionConfig,
    ScheduleConfig,
    SecurityConfig,
    StorageConfig,
    DEFAULT_KEY_PREFIX,
    FILE_BASED_ENGINES,
    synthesize_password_key,
)
from hegemon.env import substitute_env_vars
from hegemon.errors import explain_missing_field, explain_missing_section, explain_wrong_type
from hegemon.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path("~/.config/hegemon/config.json")

Section = Dict[str, Any]


def load_config(
    path: str | os.PathLike,
    environ: Mapping[str, str] | None = None,
) -> HegemonConfig:
    """
    Load, resolve and validate a configuration file.

    Args:
        path: Path to the JSON configuration file
        environ: Environment snapshot used for ``${VAR}`` substitution
            (default: os.environ)

    Returns:
        Validated, immutable HegemonConfig

    Raises:
        ConfigurationError: If the file cannot be read or parsed, or any
            field is missing or invalid
    """
    config_path = Path(path).expanduser()
    return parse_config(_read_document(config_path), environ)


def parse_config(
    document: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> HegemonConfig:
    """Build a config from an already-parsed document (no file access)."""
    env = os.environ if environ is None else environ
    if not isinstance(document, Mapping):
        raise ConfigurationError(explain_wrong_type("<root>", "an object", document))

    config = HegemonConfig(
        database=_parse_database(_require_section(document, "database"), env),
        storage=_parse_storage(_require_section(document, "storage")),
        logging=_parse_logging(_require_section(document, "logging"), env),
        backup=_parse_backup(_optional_section(document, "backup")),
        security=_parse_security(_optional_section(document, "security"), env),
    )

    # Sections validated themselves on construction; re-check the whole
    # model so no partially checked config escapes.
    config.validate()
    return config


# ============================================================================
# Document access
# ============================================================================

def _read_document(path: Path) -> Section:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Config file not found: {path}",
            details={"path": str(path)},
        ) from exc
    except OSError as exc:
        raise ConfigurationError(
            f"Cannot read config file: {exc}",
            details={"path": str(path)},
        ) from exc

    try:
        document = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigurationError(
            f"Failed to parse config file: {exc.msg}",
            details={"path": str(path), "line": exc.lineno, "column": exc.colno},
        ) from exc

    if not isinstance(document, dict):
        raise ConfigurationError(
            explain_wrong_type("<root>", "an object", document),
            details={"path": str(path)},
        )
    return document


def _require_section(document: Mapping[str, Any], name: str, parent: str = "") -> Section:
    field_path = f"{parent}.{name}" if parent else name
    if name not in document:
        raise ConfigurationError(
            explain_missing_section(field_path),
            details={"field": field_path},
        )
    section = document[name]
    if not isinstance(section, dict):
        raise ConfigurationError(
            explain_wrong_type(field_path, "an object", section),
            details={"field": field_path},
        )
    return section


def _optional_section(document: Mapping[str, Any], name: str, parent: str = "") -> Section | None:
    if name not in document or document[name] is None:
        return None
    return _require_section(document, name, parent)


def _get_str(section: Section, key: str, field_path: str, *, required: bool = False, default: str = "") -> str:
    if key not in section or section[key] is None:
        if required:
            raise ConfigurationError(
                explain_missing_field(field_path),
                details={"field": field_path},
            )
        return default
    value = section[key]
    if not isinstance(value, str):
        raise ConfigurationError(
            explain_wrong_type(field_path, "a string", value),
            details={"field": field_path},
        )
    return value


def _get_int(section: Section, key: str, field_path: str, *, required: bool = False, default: int = 0) -> int:
    if key not in section or section[key] is None:
        if required:
            raise ConfigurationError(
                explain_missing_field(field_path),
                details={"field": field_path},
            )
        return default
    value = section[key]
    # bool is an int subclass; "port": true is a mistake, not 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(
            explain_wrong_type(field_path, "an integer", value),
            details={"field": field_path},
        )
    return value


def _get_bool(section: Section, key: str, field_path: str, default: bool = False) -> bool:
    if key not in section or section[key] is None:
        return default
    value = section[key]
    if not isinstance(value, bool):
        raise ConfigurationError(
            explain_wrong_type(field_path, "a boolean", value),
            details={"field": field_path},
        )
    return value


# ============================================================================
# Sections
# ============================================================================

def _parse_database(section: Section, env: Mapping[str, str]) -> DatabaseConfig:
    db_type = _get_str(section, "type", "database.type", required=True)
    if not db_type:
        raise ConfigurationError(
            explain_missing_field("database.type"),
            details={"field": "database.type"},
        )

    host = ""
    port = 0
    username = ""
    password = ""

    if db_type in FILE_BASED_ENGINES:
        database = substitute_env_vars(
            _get_str(section, "database", "database.database", required=True),
            required=True,
            environ=env,
        )
    else:
        host = _get_str(section, "host", "database.host", required=True)
        port = _get_int(section, "port", "database.port", required=True)
        username = _root_username(section, env)
        if "password" in section:
            password = substitute_env_vars(
                _get_str(section, "password", "database.password"), required=True, environ=env
            )
        database = _get_str(section, "database", "database.database")

    credentials = _parse_credentials(section, db_type, env)

    return DatabaseConfig(
        type=db_type,
        database=database,
        host=host,
        port=port,
        username=username,
        password=password,
        credentials=credentials,
    )


def _root_username(section: Section, env: Mapping[str, str]) -> str:
    if "username" not in section:
        return ""
    return substitute_env_vars(
        _get_str(section, "username", "database.username"), required=True, environ=env
    )


def _parse_credentials(section: Section, db_type: str, env: Mapping[str, str]) -> CredentialsConfig:
    cred_section = _optional_section(section, "credentials", "database")

    if cred_section is None:
        # No credentials block: fall back to the root-level username
        username = _root_username(section, env)
        return CredentialsConfig(
            username=username,
            password_key=synthesize_password_key(db_type, username),
        )

    # Optional inside the block; the root-level username still names the key
    username = ""
    if "username" in cred_section:
        username = substitute_env_vars(
            _get_str(cred_section, "username", "database.credentials.username"),
            required=True,
            environ=env,
        )
    password_key = _get_str(cred_section, "passwordKey", "database.credentials.passwordKey")
    if not password_key:
        password_key = synthesize_password_key(db_type, username or _root_username(section, env))

    raw_sources = cred_section.get("preferredSources") or []
    if not isinstance(raw_sources, list):
        raise ConfigurationError(
            explain_wrong_type("database.credentials.preferredSources", "a list", raw_sources),
            details={"field": "database.credentials.preferredSources"},
        )
    sources: List[CredentialSource] = []
    for token in raw_sources:
        source = CredentialSource.parse(token)
        if source not in sources:
            sources.append(source)

    return CredentialsConfig(
        username=username,
        password_key=password_key,
        preferred_sources=tuple(sources),
    )


def _parse_storage(section: Section) -> StorageConfig:
    local_path = _get_str(section, "localPath", "storage.localPath", required=True)
    if not local_path:
        raise ConfigurationError(
            explain_missing_field("storage.localPath"),
            details={"field": "storage.localPath"},
        )
    return StorageConfig(
        local_path=Path(local_path).expanduser(),
        cloud_provider=_get_str(section, "cloudProvider", "storage.cloudProvider") or None,
        cloud_path=_get_str(section, "cloudPath", "storage.cloudPath") or None,
    )


def _parse_logging(section: Section, env: Mapping[str, str]) -> LoggingConfig:
    log_path = _get_str(section, "logPath", "logging.logPath", required=True)
    log_level = _get_str(section, "logLevel", "logging.logLevel", required=True)
    for value, field_path in ((log_path, "logging.logPath"), (log_level, "logging.logLevel")):
        if not value:
            raise ConfigurationError(
                explain_missing_field(field_path),
                details={"field": field_path},
            )
    enable_notifications = _get_bool(section, "enableNotifications", "logging.enableNotifications")

    endpoint = None
    raw_endpoint = _get_str(section, "notificationEndpoint", "logging.notificationEndpoint")
    if raw_endpoint:
        endpoint = substitute_env_vars(raw_endpoint, required=enable_notifications, environ=env) or None

    return LoggingConfig(
        log_path=Path(log_path).expanduser(),
        log_level=log_level,
        enable_notifications=enable_notifications,
        notification_endpoint=endpoint,
    )


def _parse_backup(section: Section | None) -> BackupPolicy:
    if section is None:
        return BackupPolicy()

    compression = CompressionConfig()
    compression_section = _optional_section(section, "compression", "backup")
    if compression_section is not None:
        compression = CompressionConfig(
            enabled=_get_bool(compression_section, "enabled", "backup.compression.enabled"),
            format=_get_str(compression_section, "format", "backup.compression.format", default="gzip"),
            level=_get_str(compression_section, "level", "backup.compression.level", default="medium"),
        )

    retention = RetentionConfig()
    retention_section = _optional_section(section, "retention", "backup")
    if retention_section is not None:
        retention = RetentionConfig(
            days=_get_int(retention_section, "days", "backup.retention.days", default=30),
            max_backups=_get_int(
                retention_section, "maxBackups", "backup.retention.maxBackups", default=10
            ),
        )

    schedule = ScheduleConfig()
    schedule_section = _optional_section(section, "schedule", "backup")
    if schedule_section is not None:
        schedule = ScheduleConfig(
            enabled=_get_bool(schedule_section, "enabled", "backup.schedule.enabled"),
            cron=_get_str(schedule_section, "cron", "backup.schedule.cron", default="0 0 * * *"),
        )

    return BackupPolicy(compression=compression, retention=retention, schedule=schedule)


def _parse_security(section: Section | None, env: Mapping[str, str]) -> SecurityConfig:
    if section is None:
        return SecurityConfig()

    encryption = EncryptionConfig()
    encryption_section = _optional_section(section, "encryption", "security")
    if encryption_section is not None and _get_bool(
        encryption_section, "enabled", "security.encryption.enabled"
    ):
        key_path = _get_str(
            encryption_section, "keyPath", "security.encryption.keyPath", required=True
        )
        encryption = EncryptionConfig(
            enabled=True,
            algorithm=_get_str(
                encryption_section, "algorithm", "security.encryption.algorithm", default="AES-256-GCM"
            ),
            key_path=substitute_env_vars(key_path, required=True, environ=env),
        )

    credential_store = CredentialStoreConfig()
    store_section = _optional_section(section, "credentialStore", "security")
    if store_section is not None and _get_bool(
        store_section, "enabled", "security.credentialStore.enabled"
    ):
        store_type = _get_str(store_section, "type", "security.credentialStore.type", required=True)

        options: Dict[str, str] = {}
        raw_options = _optional_section(store_section, "options", "security.credentialStore")
        for key, value in (raw_options or {}).items():
            option_path = f"security.credentialStore.options.{key}"
            if not isinstance(value, str):
                raise ConfigurationError(
                    explain_wrong_type(option_path, "a string", value),
                    details={"field": option_path},
                )
            options[key] = substitute_env_vars(value, required=False, environ=env)

        credential_store = CredentialStoreConfig(
            enabled=True,
            type=store_type,
            path=substitute_env_vars(
                _get_str(store_section, "path", "security.credentialStore.path"),
                required=False,
                environ=env,
            ),
            key_prefix=_get_str(
                store_section,
                "keyPrefix",
                "security.credentialStore.keyPrefix",
                default=DEFAULT_KEY_PREFIX,
            ),
            options=tuple(options.items()),
        )

    return SecurityConfig(encryption=encryption, credential_store=credential_store)
