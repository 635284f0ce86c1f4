# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Credentials - Decide which source supplies a database secret.

Sources are tried in the configured priority order and the first one that
yields a non-empty secret wins. hegemon ships lookups for the environment,
a JSON credentials file and the config file itself; key-store, SSM and
Vault backends are supplied by the caller as plain callables.
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Callable, Dict, Iterable, Mapping

import structlog

from hegemon.config import (
    CredentialSource,
    DatabaseConfig,
    SecurityConfig,
    synthesize_password_key,
)
from hegemon.exceptions import ConfigurationError

logger = structlog.get_logger()

# Looks up a secret by password key; returns None when it has none
SecretLookup = Callable[[str], "str | None"]

DEFAULT_SOURCES = (
    CredentialSource.CONFIG_FILE,
    CredentialSource.ENVIRONMENT,
    CredentialSource.FILE,
)

DEFAULT_CREDENTIALS_FILE = Path("~/.config/hegemon/credentials.json")


def env_var_for_key(password_key: str) -> str:
    """
    Derive the environment variable name for a password key.

    ``hegemon.postgres.admin.password`` -> ``HEGEMON_POSTGRES_ADMIN_PASSWORD``
    """
    return re.sub(r"[^A-Za-z0-9]", "_", password_key).upper()


def environment_lookup(environ: Mapping[str, str] | None = None) -> SecretLookup:
    env = os.environ if environ is None else environ

    def _lookup(password_key: str) -> str | None:
        return env.get(env_var_for_key(password_key)) or None

    return _lookup


def file_lookup(path: Path) -> SecretLookup:
    """
    Look secrets up in a JSON object file of ``{password_key: secret}``.

    A missing file holds no secrets; an unreadable or malformed one is a
    configuration problem.
    """

    def _lookup(password_key: str) -> str | None:
        file_path = path.expanduser()
        if not file_path.exists():
            return None
        try:
            secrets = json.loads(file_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise ConfigurationError(
                f"Cannot read credentials file: {exc}",
                details={"path": str(file_path)},
            ) from exc
        if not isinstance(secrets, dict):
            raise ConfigurationError(
                "Credentials file must contain a JSON object",
                details={"path": str(file_path)},
            )
        value = secrets.get(password_key)
        return value if isinstance(value, str) and value else None

    return _lookup


class CredentialResolver:
    """
    Resolve a database password from an ordered list of sources.

    Args:
        security: Security section; an enabled ``file`` credential store
            redirects the File source to its path
        sources: Extra or overriding lookups keyed by source
        environ: Environment used by the Environment source
    """

    def __init__(
        self,
        security: SecurityConfig | None = None,
        sources: Mapping[CredentialSource, SecretLookup] | None = None,
        environ: Mapping[str, str] | None = None,
    ):
        store = security.credential_store if security else None
        credentials_file = DEFAULT_CREDENTIALS_FILE
        if store and store.enabled and store.type == "file" and store.path:
            credentials_file = Path(store.path)

        self._lookups: Dict[CredentialSource, SecretLookup] = {
            CredentialSource.ENVIRONMENT: environment_lookup(environ),
            CredentialSource.FILE: file_lookup(credentials_file),
        }
        if sources:
            self._lookups.update(sources)

    def resolve(
        self,
        db_type: str,
        username: str,
        preferred_sources: Iterable[CredentialSource] = (),
        password_key: str | None = None,
        config_password: str = "",
    ) -> str | None:
        """
        Return the first secret found, or None.

        Args:
            db_type: Database engine type
            username: Database user
            preferred_sources: Priority list (default: config, env, file)
            password_key: Lookup key (default: synthesized from type/user)
            config_password: Password written in the config file
        """
        key = password_key or synthesize_password_key(db_type, username)
        order = tuple(preferred_sources) or DEFAULT_SOURCES

        for source in order:
            if source is CredentialSource.CONFIG_FILE:
                secret = config_password or None
            else:
                lookup = self._lookups.get(source)
                if lookup is None:
                    logger.debug("credential_source_unavailable", source=source.value, key=key)
                    continue
                secret = lookup(key)

            if secret:
                logger.debug("credential_resolved", source=source.value, key=key)
                return secret

        logger.debug("credential_not_found", key=key, sources=[s.value for s in order])
        return None

    def resolve_for(self, database: DatabaseConfig) -> str | None:
        """Resolve the password for a database section."""
        return self.resolve(
            database.type,
            database.effective_username,
            database.credentials.preferred_sources,
            database.credentials.password_key,
            database.password,
        )
