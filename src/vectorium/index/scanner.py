"""Directory snapshots for change detection."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Collection, Dict

from vectorium.errors import FilesystemError
from vectorium.models import FileState, IndexSnapshot
from vectorium.utils.files import is_within, iter_text_paths, regular_file_stat

LOGGER = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".txt", ".md")


class FileScanner:
    """Walks a document root and records size and mtime of every eligible file."""

    def __init__(self, extensions: Collection[str] = DEFAULT_EXTENSIONS) -> None:
        self.extensions = tuple(extensions)

    def scan(self, root: Path) -> IndexSnapshot:
        real_root = self._check_root(Path(root))
        snapshot: Dict[str, FileState] = {}

        for path in iter_text_paths(real_root, self.extensions):
            if path.is_symlink() and not is_within(path, real_root):
                LOGGER.debug("Skipping %s: link target outside %s", path, real_root)
                continue
            info = regular_file_stat(path)
            if info is None or info.st_size == 0:
                continue
            relative = path.relative_to(real_root).as_posix()
            snapshot[relative] = FileState(size=info.st_size, last_modified=info.st_mtime)

        LOGGER.debug("Scanned %s: %d eligible files", real_root, len(snapshot))
        return snapshot

    @staticmethod
    def _check_root(root: Path) -> Path:
        try:
            real_root = root.expanduser().resolve(strict=True)
        except OSError as exc:
            raise FilesystemError(f"Document root not found: {root}") from exc
        if not real_root.is_dir():
            raise FilesystemError(f"Document root is not a directory: {root}")
        try:
            with os.scandir(real_root) as entries:
                next(entries, None)
        except OSError as exc:
            raise FilesystemError(f"Document root is unreadable: {root} ({exc.strerror})") from exc
        return real_root
