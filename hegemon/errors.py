# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for hegemon.

These helpers centralize wording for common configuration errors so that
the loader, the model validators and the CLI present consistent,
actionable messages.
"""


def explain_missing_section(section: str) -> str:
    """
    Explain that a top-level configuration section is absent.
    """

    return f"Missing '{section}' section in config."


def explain_missing_field(field_path: str) -> str:
    """
    Explain that a required field is absent or empty.
    """

    return f"Missing required config field '{field_path}'."


def explain_wrong_type(field_path: str, expected: str, value: object) -> str:
    """
    Explain that a field holds a value of the wrong JSON type.
    """

    return (
        f"Config field '{field_path}' must be {expected}, "
        f"got {type(value).__name__}: {value!r}."
    )


def explain_missing_env_var(name: str) -> str:
    """
    Explain that a ${VAR} placeholder refers to an unset variable.
    """

    return (
        f"Environment variable not set: {name}. "
        "Export it or remove the ${...} placeholder from the config file."
    )


def explain_invalid_credential_source(token: object) -> str:
    """
    Explain that preferredSources contains an unknown token.
    """

    return (
        f"Invalid credential source: {token!r}. "
        "Expected one of: 'environment', 'file', 'keystore', 'config', 'ssm', 'vault'."
    )


def explain_invalid_compression_format(value: str) -> str:
    """
    Explain that compression.format is not a supported codec.
    """

    return (
        f"Invalid compression format: {value!r}. "
        "Expected one of: 'gzip', 'bzip2', 'xz'."
    )


def explain_invalid_compression_level(value: str) -> str:
    """
    Explain that compression.level is not a supported level name.
    """

    return (
        f"Invalid compression level: {value!r}. "
        "Expected one of: 'low', 'medium', 'high'."
    )


def explain_invalid_cron(value: str) -> str:
    """
    Explain that schedule.cron is not a 5-field cron expression.
    """

    return (
        f"Invalid cron expression: {value!r}. "
        "Expected five space-separated fields, e.g. '0 0 * * *'."
    )


def explain_invalid_port(value: object) -> str:
    """
    Explain that database.port is not a positive integer.
    """

    return f"Invalid database port: {value!r}. It must be a positive integer."


def explain_invalid_log_level(value: str) -> str:
    """
    Explain that logging.logLevel is not a known level.
    """

    return (
        f"Invalid log level: {value!r}. "
        "Expected one of: 'trace', 'debug', 'info', 'warn', 'error', 'critical'."
    )


def explain_unknown_database_type(value: str) -> str:
    """
    Explain that no engine is registered for database.type.
    """

    return (
        f"Unsupported database type: {value!r}. "
        "Expected 'postgres', 'mysql' or 'sqlite'."
    )
