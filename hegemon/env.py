# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment placeholder substitution for configuration values.

Configuration strings may embed ``${NAME}`` placeholders which are replaced
with values from the process environment at load time.
"""

from __future__ import annotations

import os
import re
from typing import Mapping

from hegemon.errors import explain_missing_env_var
from hegemon.exceptions import ConfigurationError

ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def substitute_env_vars(
    value: str,
    required: bool,
    environ: Mapping[str, str] | None = None,
) -> str:
    """
    Replace every ``${NAME}`` placeholder in value.

    Placeholders are resolved left to right and never overlap; substituted
    text is not scanned again, so a variable whose value itself contains
    ``${...}`` is inserted literally.

    Args:
        value: Raw configuration string
        required: If True, an unset variable is an error; otherwise it is
            replaced with the empty string
        environ: Environment snapshot (default: os.environ)

    Returns:
        The string with all placeholders resolved

    Raises:
        ConfigurationError: If a required variable is unset
    """
    env = os.environ if environ is None else environ

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        resolved = env.get(name)
        if resolved is None:
            if required:
                raise ConfigurationError(
                    explain_missing_env_var(name),
                    details={"variable": name},
                )
            return ""
        return resolved

    return ENV_VAR_PATTERN.sub(_replace, value)
