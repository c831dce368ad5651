"""
Atomic file writing utilities.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


def atomic_write_text(path: Path, content: str, encoding: str = "utf-8") -> None:
    """
    Write *content* to *path* atomically.

    The content goes to a temporary file in the target directory which then
    replaces *path*, so readers never observe a half-written file. Parent
    directories are created as needed.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".atomic_{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(temp_fd, "w", encoding=encoding, newline="") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_name, path)
    except BaseException:
        try:
            os.unlink(temp_name)
        except OSError:
            logger.debug("Failed to remove temporary file", path=temp_name)
        raise
