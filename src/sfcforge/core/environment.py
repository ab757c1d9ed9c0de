"""
Build mode selection for sfcforge.

The build mode decides how component templates are turned into render code:

    - debug (default): the template text is embedded as a string and
      compiled by the runtime in the browser
    - release: templates are precompiled by the external template compiler

The SFCFORGE_MODE environment variable overrides the mode configured in
sfcforge.toml, so a server process can switch builds without editing files.

Usage:
    from sfcforge.core.environment import resolve_build_mode

    mode = resolve_build_mode(config.build.mode)
"""

from __future__ import annotations

import logging
import os
from enum import StrEnum

logger = logging.getLogger(__name__)


class BuildMode(StrEnum):
    """Component build modes."""

    DEBUG = "debug"
    RELEASE = "release"


# Environment variable name
SFCFORGE_MODE_VAR = "SFCFORGE_MODE"

_ALIASES = {
    "debug": BuildMode.DEBUG,
    "dev": BuildMode.DEBUG,
    "development": BuildMode.DEBUG,
    "release": BuildMode.RELEASE,
    "prod": BuildMode.RELEASE,
    "production": BuildMode.RELEASE,
}


def parse_build_mode(value: str) -> BuildMode | None:
    """Map a user-supplied mode string to a BuildMode, or None if unknown.

    Examples:
        >>> parse_build_mode("prod")
        <BuildMode.RELEASE: 'release'>
        >>> parse_build_mode("fast") is None
        True
    """
    return _ALIASES.get(value.lower().strip())


def get_env_build_mode() -> BuildMode | None:
    """Get the build mode requested through SFCFORGE_MODE.

    Returns:
        The requested BuildMode, or None when the variable is unset, empty
        or holds an unknown value (a warning is logged for the latter).
    """
    env_value = os.environ.get(SFCFORGE_MODE_VAR, "").strip()
    if not env_value:
        return None

    mode = parse_build_mode(env_value)
    if mode is None:
        logger.warning(
            "Unknown %s value '%s'. Valid values: debug, release. Ignoring.",
            SFCFORGE_MODE_VAR,
            env_value,
        )
    return mode


def resolve_build_mode(
    configured: BuildMode,
    override: BuildMode | None = None,
) -> BuildMode:
    """Determine the effective build mode.

    Resolution order:
    1. Explicit override (command line flag)
    2. SFCFORGE_MODE environment variable
    3. Mode from sfcforge.toml (``configured``)
    """
    if override is not None:
        return override

    env_mode = get_env_build_mode()
    if env_mode is not None:
        return env_mode

    return configured
