"""
Change-aware output writing.

Generated files are only touched when their content changes, so file
watchers and HTTP caches downstream do not see a rebuild that produced the
same bytes. New content goes to a temporary sibling first and is renamed
into place, so a failed write never leaves a truncated artifact behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
from enum import StrEnum
from pathlib import Path

from .errors import ComponentIOError

logger = logging.getLogger(__name__)


class WriteOutcome(StrEnum):
    """What ``write_if_changed`` did with a file."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"

    @property
    def written(self) -> bool:
        return self is not WriteOutcome.UNCHANGED


def _read_existing(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ComponentIOError(f"cannot read existing output: {e}", path) from e


def _replace(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        mode = path.stat().st_mode & 0o777
    except FileNotFoundError:
        mode = 0o644
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_if_changed(path: Path, content: str) -> WriteOutcome:
    """
    Write ``content`` to ``path`` unless the file already holds it.

    Args:
        path: Output file
        content: Complete, fully assembled text (UTF-8 encoded on disk)

    Returns:
        WriteOutcome telling whether the file was created, updated or left alone

    Raises:
        ComponentIOError: If the existing file cannot be read or the new
            content cannot be written
    """
    data = content.encode("utf-8")
    existing = _read_existing(path)
    if existing == data:
        logger.debug("Unchanged: %s", path)
        return WriteOutcome.UNCHANGED

    try:
        _replace(path, data)
    except OSError as e:
        raise ComponentIOError(f"cannot write output: {e}", path) from e

    outcome = WriteOutcome.CREATED if existing is None else WriteOutcome.UPDATED
    logger.debug("%s: %s", outcome.value.capitalize(), path)
    return outcome


def remove_stale(path: Path) -> bool:
    """
    Delete an output whose source section no longer exists.

    Returns:
        True if a file was removed, False if there was none

    Raises:
        ComponentIOError: If the file exists but cannot be deleted
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    except OSError as e:
        raise ComponentIOError(f"cannot remove stale output: {e}", path) from e
    logger.info("Removed stale output %s", path)
    return True
