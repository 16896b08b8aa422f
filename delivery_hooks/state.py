"""Whole-document state files shared between hook processes.

Hooks run as separate processes, so the only shared state is on disk. Every
file here is read in full and replaced in full. There is no cross-process
lock: two hooks writing the same file concurrently resolve as
last-write-wins, and a reader racing a writer may see the previous version.
Replacement goes through a temp file and ``os.replace`` so a reader never
sees a half-written document.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


def atomic_write(path: Union[Path, str], content: str) -> None:
    """Atomically write content to file using write-temp-rename pattern.

    Writes to temporary file, then atomically renames to target.
    Prevents partial reads during concurrent access.

    Raises:
        OSError: If the directory cannot be created or the file written.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    # Temp file in same directory (same filesystem, so the rename is atomic)
    tmp_path = path.parent / f".{path.name}.tmp.{os.getpid()}"
    try:
        tmp_path.write_text(content, encoding="utf-8")
        os.replace(str(tmp_path), str(path))
    except OSError:
        tmp_path.unlink(missing_ok=True)
        raise


def read_document(path: Union[Path, str]) -> str | None:
    """Return the file's text, or None if it is missing or unreadable."""
    path = Path(path)
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", path, e)
        return None


# -- Plan pointer -------------------------------------------------------------


def read_pointer(pointer_path: Union[Path, str]) -> str | None:
    """Return the persisted plan path, or None if unset."""
    content = read_document(pointer_path)
    if content is None:
        return None
    value = content.strip()
    return value or None


def write_pointer(pointer_path: Union[Path, str], plan_path: str) -> bool:
    """Overwrite the plan pointer. Returns False (and logs) on failure."""
    try:
        atomic_write(pointer_path, plan_path)
    except OSError as e:
        logger.warning("Failed to store delivery plan path in %s: %s", pointer_path, e)
        return False
    return True
