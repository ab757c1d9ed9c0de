"""
sfcforge - build-time compiler for single-file UI components.

Turns ``.vue``-style component sources into self-registering modules and
exports their localization sections as language files.
"""

from __future__ import annotations

import re
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _metadata_version
from pathlib import Path as _Path

from .core.errors import (
    ComponentIOError,
    ConfigError,
    ExternalCompilerError,
    LocalizationParseError,
    SectionCountError,
    SfcError,
    StructuralParseError,
)


def _get_version() -> str:
    """Get version from pyproject.toml (editable) or importlib.metadata (installed)."""
    pyproject = _Path(__file__).parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        content = pyproject.read_text()
        if match := re.search(r'^version\s*=\s*["\']([^"\']+)["\']', content, re.MULTILINE):
            return match.group(1)

    try:
        return _metadata_version("sfcforge")
    except PackageNotFoundError:
        return "0.0.0"


__version__ = _get_version()

__all__ = [
    "__version__",
    "SfcError",
    "StructuralParseError",
    "SectionCountError",
    "LocalizationParseError",
    "ExternalCompilerError",
    "ComponentIOError",
    "ConfigError",
]
