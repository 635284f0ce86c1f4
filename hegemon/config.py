# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Configuration - Immutable configuration data structures.

All configuration is frozen (immutable) after creation. Every section
validates its own invariants on construction, so a model built by the
loader, by CLI overrides or directly in code is checked the same way.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Tuple
import re

from hegemon.errors import (
    explain_invalid_compression_format,
    explain_invalid_compression_level,
    explain_invalid_credential_source,
    explain_invalid_cron,
    explain_invalid_port,
    explain_missing_field,
)
from hegemon.exceptions import ConfigurationError

# Namespace used when synthesizing password keys
DEFAULT_KEY_PREFIX = "hegemon"

# Engines that back up a local file instead of a network server
FILE_BASED_ENGINES = frozenset({"sqlite"})

COMPRESSION_FORMATS = ("gzip", "bzip2", "xz")
COMPRESSION_LEVELS = ("low", "medium", "high")

_CRON_FIELD = r"(\*|[0-9,\-\*/]+)"
CRON_PATTERN = re.compile(r"^" + r"\s+".join([_CRON_FIELD] * 5) + r"$")


class CredentialSource(str, Enum):
    """Backend that may supply a database secret."""

    ENVIRONMENT = "environment"
    FILE = "file"
    KEYSTORE = "keystore"
    CONFIG_FILE = "config"
    SSM = "ssm"
    VAULT = "vault"

    @classmethod
    def parse(cls, token: object) -> "CredentialSource":
        """Map a config token onto a source; unknown tokens are an error."""
        if isinstance(token, str):
            try:
                return cls(token.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError(
            explain_invalid_credential_source(token),
            details={"token": token},
        )


class BackupType(str, Enum):
    """Kind of backup run requested by the caller."""

    FULL = "full"
    INCREMENTAL = "incremental"
    DIFFERENTIAL = "differential"


def is_valid_cron(expression: str) -> bool:
    """Validate a 5-field cron expression."""
    if not isinstance(expression, str):
        return False
    return CRON_PATTERN.match(expression.strip()) is not None


def synthesize_password_key(db_type: str, username: str) -> str:
    """Build the default password key ``hegemon.<type>.<username>.password``."""
    return f"{DEFAULT_KEY_PREFIX}.{db_type}.{username}.password"


def _require(value: object, field_path: str) -> None:
    if not value:
        raise ConfigurationError(
            explain_missing_field(field_path),
            details={"field": field_path},
        )


@dataclass(frozen=True)
class CredentialsConfig:
    """Which user to authenticate as and where its secret comes from."""

    username: str = ""

    # Lookup key handed to every credential source
    password_key: str = ""

    # Priority list; the first source that yields a secret wins
    preferred_sources: Tuple[CredentialSource, ...] = ()


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Connection target.

    File-based engines (sqlite) only use ``database`` as the file path;
    networked engines need host, a positive port and a database name.
    """

    type: str
    database: str = ""
    host: str = ""
    port: int = 0
    username: str = ""
    password: str = field(default="", repr=False)
    credentials: CredentialsConfig = field(default_factory=CredentialsConfig)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _require(self.type, "database.type")
        if self.is_file_based:
            _require(self.database, "database.database")
            return
        _require(self.host, "database.host")
        if isinstance(self.port, bool) or not isinstance(self.port, int) or self.port <= 0:
            raise ConfigurationError(
                explain_invalid_port(self.port),
                details={"field": "database.port"},
            )
        _require(self.database, "database.database")

    @property
    def is_file_based(self) -> bool:
        return self.type in FILE_BASED_ENGINES

    @property
    def effective_username(self) -> str:
        """Credentials username, falling back to the root-level one."""
        return self.credentials.username or self.username


@dataclass(frozen=True)
class StorageConfig:
    """Where backup artifacts are published."""

    local_path: Path
    cloud_provider: str | None = None
    cloud_path: str | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _require(str(self.local_path) if self.local_path else "", "storage.localPath")


@dataclass(frozen=True)
class LoggingConfig:
    """Log sink and notification settings."""

    log_path: Path
    log_level: str
    enable_notifications: bool = False
    notification_endpoint: str | None = None

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        _require(str(self.log_path) if self.log_path else "", "logging.logPath")
        _require(self.log_level, "logging.logLevel")


@dataclass(frozen=True)
class CompressionConfig:
    """Codec applied to published artifacts."""

    enabled: bool = False
    format: str = "gzip"
    level: str = "medium"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if not self.enabled:
            return
        if self.format not in COMPRESSION_FORMATS:
            raise ConfigurationError(
                explain_invalid_compression_format(self.format),
                details={"field": "backup.compression.format"},
            )
        if self.level not in COMPRESSION_LEVELS:
            raise ConfigurationError(
                explain_invalid_compression_level(self.level),
                details={"field": "backup.compression.level"},
            )


@dataclass(frozen=True)
class RetentionConfig:
    """How long and how many artifacts are kept."""

    days: int = 30
    max_backups: int = 10

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.days < 0:
            raise ConfigurationError(
                f"backup.retention.days must be >= 0, got {self.days}",
                details={"field": "backup.retention.days"},
            )
        if self.max_backups < 0:
            raise ConfigurationError(
                f"backup.retention.maxBackups must be >= 0, got {self.max_backups}",
                details={"field": "backup.retention.maxBackups"},
            )


@dataclass(frozen=True)
class ScheduleConfig:
    """Cron schedule. Stored only; hegemon never executes it."""

    enabled: bool = False
    cron: str = "0 0 * * *"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.enabled and not is_valid_cron(self.cron):
            raise ConfigurationError(
                explain_invalid_cron(self.cron),
                details={"field": "backup.schedule.cron"},
            )


@dataclass(frozen=True)
class BackupPolicy:
    """Compression, retention and schedule policy."""

    compression: CompressionConfig = field(default_factory=CompressionConfig)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)

    def validate(self) -> None:
        self.compression.validate()
        self.retention.validate()
        self.schedule.validate()


@dataclass(frozen=True)
class EncryptionConfig:
    enabled: bool = False
    algorithm: str = "AES-256-GCM"
    key_path: str = ""

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.enabled:
            _require(self.algorithm, "security.encryption.algorithm")
            _require(self.key_path, "security.encryption.keyPath")


@dataclass(frozen=True)
class CredentialStoreConfig:
    enabled: bool = False
    type: str = ""
    path: str = ""
    key_prefix: str = DEFAULT_KEY_PREFIX
    # (key, value) pairs in document order
    options: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        if self.enabled:
            _require(self.type, "security.credentialStore.type")

    def get_option(self, key: str, default: str = "") -> str:
        return dict(self.options).get(key, default)


@dataclass(frozen=True)
class SecurityConfig:
    encryption: EncryptionConfig = field(default_factory=EncryptionConfig)
    credential_store: CredentialStoreConfig = field(default_factory=CredentialStoreConfig)

    def validate(self) -> None:
        self.encryption.validate()
        self.credential_store.validate()


@dataclass(frozen=True)
class HegemonConfig:
    """
    Complete, immutable configuration for one process.

    Storage and backup policy are independent sections; lifecycle
    components read both explicitly.
    """

    database: DatabaseConfig
    storage: StorageConfig
    logging: LoggingConfig
    backup: BackupPolicy = field(default_factory=BackupPolicy)
    security: SecurityConfig = field(default_factory=SecurityConfig)

    def validate(self) -> None:
        """Re-check every section invariant."""
        self.database.validate()
        self.storage.validate()
        self.logging.validate()
        self.backup.validate()
        self.security.validate()

    def with_updates(self, **kwargs) -> "HegemonConfig":
        """
        Create a new config with updated sections.

        Since the config is frozen, this creates a new instance; every
        replaced section has already validated itself.
        """
        return replace(self, **kwargs)
