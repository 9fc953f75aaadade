"""Filesystem capabilities consumed by the scanner and the snapshot builder.

The core never touches the filesystem directly: it goes through a directory
lister, a stat provider and a text reader. `LocalFileSystem` implements all
three on top of the local disk; tests and embedders can substitute their own.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import NamedTuple, Protocol

from repo_snapshot.logging import logger


class DirEntry(NamedTuple):
    """An immediate entry of a directory."""

    name: str
    is_directory: bool


class DirectoryLister(Protocol):
    def list_entries(self, path: str) -> list[DirEntry]: ...


class StatProvider(Protocol):
    def file_size(self, path: str) -> int: ...


class TextReader(Protocol):
    def read_text(self, path: str) -> str | None: ...


class ScanFileSystem(DirectoryLister, StatProvider, Protocol):
    """What the tree scanner needs: listing and stat."""


class LocalFileSystem:
    """Directory lister, stat provider and text reader backed by the local disk."""

    def list_entries(self, path: str) -> list[DirEntry]:
        """List the immediate entries of `path`, sorted case-insensitively by name.

        Symbolic links to directories are reported as directories.

        Raises:
            OSError: if the directory cannot be listed.
        """
        entries: list[DirEntry] = []
        with os.scandir(path) as it:
            for entry in it:
                try:
                    is_dir = entry.is_dir()
                except OSError:
                    is_dir = False
                entries.append(DirEntry(entry.name, is_dir))
        return sorted(entries, key=lambda e: (e.name.lower(), e.name))

    def file_size(self, path: str) -> int:
        """Size in bytes of the file at `path`.

        Raises:
            OSError: if the file cannot be stat-ed.
        """
        return Path(path).stat().st_size

    def real_path(self, path: str) -> str:
        """Canonical path with symbolic links resolved."""
        return os.path.realpath(path)

    def read_text(self, path: str) -> str | None:
        """Read a UTF-8 text file.

        Args:
            path (str): the file path to read

        Returns:
            str | None: the file content, or None if the file cannot be read or
                is not valid UTF-8.
        """
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.info("unreadable_file", path=path, error=str(e))
            return None


DEFAULT_FS = LocalFileSystem()
