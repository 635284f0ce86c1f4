# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tests for structlog configuration.
"""

import logging
from pathlib import Path

import pytest
import structlog

from hegemon.config import LoggingConfig
from hegemon.exceptions import ConfigurationError
from hegemon.log import configure_logging, resolve_log_level


@pytest.mark.parametrize(
    "name, level",
    [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        ("warn", logging.WARNING),
        (" Error ", logging.ERROR),
    ],
)
def test_resolve_log_level(name, level):
    assert resolve_log_level(name) == level


def test_unknown_log_level_is_rejected():
    with pytest.raises(ConfigurationError) as exc_info:
        resolve_log_level("chatty")

    assert exc_info.value.details["field"] == "logging.logLevel"


def test_events_are_appended_to_log_file(temp_dir: Path):
    log_path = temp_dir / "logs" / "nested" / "hegemon.log"
    log_file = configure_logging(LoggingConfig(log_path=log_path, log_level="info"))

    structlog.get_logger().info("backup_completed", backup_type="full")
    log_file.close()

    text = log_path.read_text(encoding="utf-8")
    assert "event='backup_completed'" in text
    assert "level='info'" in text
    assert "backup_type='full'" in text
    assert "timestamp=" in text


def test_events_below_level_are_dropped(temp_dir: Path):
    log_path = temp_dir / "hegemon.log"
    log_file = configure_logging(LoggingConfig(log_path=log_path, log_level="error"))

    logger = structlog.get_logger()
    logger.info("routine_event")
    logger.error("backup_failed")
    log_file.close()

    text = log_path.read_text(encoding="utf-8")
    assert "routine_event" not in text
    assert "backup_failed" in text


def test_verbose_forces_debug(temp_dir: Path):
    log_path = temp_dir / "hegemon.log"
    log_file = configure_logging(LoggingConfig(log_path=log_path, log_level="error"), verbose=True)

    structlog.get_logger().debug("config_loaded")
    log_file.close()

    assert "config_loaded" in log_path.read_text(encoding="utf-8")
