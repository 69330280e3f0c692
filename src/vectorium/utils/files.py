"""Utility helpers for working with files."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Collection, Iterator, Tuple

from vectorium.errors import FilesystemError

logger = logging.getLogger(__name__)


def is_within(path: Path, root: Path) -> bool:
    """True if ``path`` resolves to a location inside ``root`` (already resolved)."""
    try:
        return path.resolve().is_relative_to(root)
    except OSError:
        return False


def iter_text_paths(root: Path, extensions: Collection[str]) -> Iterator[Path]:
    """Yield candidate text files under ``root`` without following directory links.

    Hidden directories are pruned. Files are yielded in no particular order.
    """
    suffixes = {ext.lower() for ext in extensions}

    def _on_error(exc: OSError) -> None:
        logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error, followlinks=False):
        dirnames[:] = [name for name in dirnames if not name.startswith(".")]
        for name in filenames:
            path = Path(dirpath) / name
            if path.suffix.lower() in suffixes:
                yield path


def regular_file_stat(path: Path) -> os.stat_result | None:
    """Stat ``path`` following links; None if it vanished or is not a regular file."""
    try:
        info = path.stat()
    except FileNotFoundError:
        return None
    except OSError as exc:
        logger.warning("Cannot stat %s: %s", path, exc)
        return None
    if not stat.S_ISREG(info.st_mode):
        return None
    return info


def read_text_file(path: Path) -> Tuple[str, os.stat_result]:
    """Read a UTF-8 file and return its text with the stat taken around the read.

    Raises `FilesystemError` when the file cannot be read, is not valid UTF-8 or
    was modified while being read.
    """
    try:
        before = path.stat()
        raw = path.read_bytes()
        after = path.stat()
    except OSError as exc:
        raise FilesystemError(f"Cannot read {path}: {exc.strerror or exc}") from exc

    if (before.st_size, before.st_mtime) != (after.st_size, after.st_mtime):
        raise FilesystemError(f"{path} was modified while being read")

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise FilesystemError(f"{path} is not valid UTF-8 text") from exc
    return text, after
