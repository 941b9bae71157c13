from __future__ import annotations

import fnmatch
from collections.abc import Iterable, Iterator
from pathlib import Path

from .config import LibrarySettings


class AudioFileScanner:
    """Expands the paths given by the caller into audio files to import.

    Directories are walked recursively and filtered by extension; explicit
    file paths are passed through (missing ones included, so the importer can
    report them) unless an exclude pattern matches.
    """

    def __init__(self, settings: LibrarySettings) -> None:
        self.settings = settings
        self._exts = {ext.lower() for ext in self.settings.include_extensions}

    def iter_files(self, paths: Iterable[Path]) -> Iterator[Path]:
        for path in paths:
            if path.is_dir():
                for file_path in sorted(path.rglob("*")):
                    if file_path.is_file() and self._should_include(file_path):
                        yield file_path
            elif not self._is_excluded(path):
                yield path

    def _should_include(self, path: Path) -> bool:
        if path.suffix.lower() not in self._exts:
            return False
        return not self._is_excluded(path)

    def _is_excluded(self, path: Path) -> bool:
        rel = str(path)
        for pattern in self.settings.exclude_patterns:
            if fnmatch.fnmatch(rel, pattern):
                return True
        return False
