# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Hegemon Logging - structlog setup driven by the ``logging`` config section.
"""

import logging
from typing import IO

import structlog

from hegemon.config import LoggingConfig
from hegemon.errors import explain_invalid_log_level
from hegemon.exceptions import ConfigurationError

LOG_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def resolve_log_level(name: str) -> int:
    """
    Map a config level name onto a numeric logging level.

    Args:
        name: Level name, case-insensitive

    Returns:
        Numeric level understood by structlog's filtering logger

    Raises:
        ConfigurationError: If the level name is unknown
    """
    try:
        return LOG_LEVELS[name.strip().lower()]
    except KeyError as exc:
        raise ConfigurationError(
            explain_invalid_log_level(name),
            details={"field": "logging.logLevel"},
        ) from exc


def configure_logging(logging_config: LoggingConfig, verbose: bool = False) -> IO[str]:
    """
    Route structlog output to the configured log file.

    Events are appended as key=value lines with an ISO UTC timestamp and
    level. Call once per process, before any lifecycle runs.

    Args:
        logging_config: Logging section of the loaded config
        verbose: Force debug level regardless of logLevel

    Returns:
        The open log file; the caller owns it for the process lifetime
    """
    level = logging.DEBUG if verbose else resolve_log_level(logging_config.log_level)

    log_path = logging_config.log_path.expanduser()
    log_path.parent.mkdir(parents=True, exist_ok=True)
    log_file = log_path.open("a", encoding="utf-8")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "event"],
                drop_missing=True,
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(file=log_file),
        cache_logger_on_first_use=False,
    )

    return log_file
