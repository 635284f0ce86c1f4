# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Shared plumbing for engines that shell out to client tools.
"""

import os
import shutil
import subprocess
from pathlib import Path
from typing import Dict, List, Sequence, Tuple

import structlog

from hegemon.config import DatabaseConfig

logger = structlog.get_logger()


class SubprocessEngine:
    """
    Base for engines driven by command-line client tools.

    Subclasses declare the tools they need and the environment variable
    that carries the password, so secrets never appear in argv.
    """

    name = ""
    required_tools: Tuple[str, ...] = ()
    password_env_var = ""

    def __init__(self) -> None:
        self._database: DatabaseConfig | None = None

    @property
    def database(self) -> DatabaseConfig | None:
        return self._database

    def missing_tools(self) -> List[str]:
        return [tool for tool in self.required_tools if shutil.which(tool) is None]

    def disconnect(self) -> bool:
        # Client tools open their own sessions per call; nothing to close
        self._database = None
        return True

    def _env(self) -> Dict[str, str]:
        env = os.environ.copy()
        if self._database is not None and self._database.password and self.password_env_var:
            env[self.password_env_var] = self._database.password
        return env

    def _run(self, command: Sequence[str], operation: str, stdin_path: Path | None = None) -> bool:
        """
        Run a client tool and report whether it succeeded.

        Args:
            command: argv of the tool
            operation: Short name used in log events
            stdin_path: File fed to the tool's standard input
        """
        logger.debug(f"{self.name}_command", operation=operation, command=list(command))
        try:
            if stdin_path is not None:
                with open(stdin_path, "rb") as stdin:
                    result = subprocess.run(command, stdin=stdin, capture_output=True, env=self._env())
            else:
                result = subprocess.run(command, capture_output=True, env=self._env())
        except OSError as e:
            logger.error(f"{self.name}_command_failed", operation=operation, error=str(e))
            return False

        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            logger.error(
                f"{self.name}_command_failed",
                operation=operation,
                returncode=result.returncode,
                stderr=stderr,
            )
            return False
        return True

    def _prepare(self, database: DatabaseConfig) -> bool:
        missing = self.missing_tools()
        if missing:
            logger.error(f"{self.name}_tools_missing", tools=missing)
            return False
        self._database = database
        return True
