from __future__ import annotations

import os
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from repo_snapshot.config import (
    BINARY_EXTENSIONS,
    GITIGNORE_FILE,
    MAX_FILE_SIZE,
    META_BINARY,
    META_LARGE,
    NodeType,
    ProjectNode,
)
from repo_snapshot.fs import DEFAULT_FS
from repo_snapshot.logging import logger
from repo_snapshot.paths import base_name, normalize_path

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from repo_snapshot.fs import ScanFileSystem
    from repo_snapshot.visibility import VisibilityPolicy


def file_meta(name: str, size: int) -> str | None:
    """Annotation for a file whose content must stay out of snapshots.

    Args:
        name (str): the file base name
        size (int): the file size in bytes

    Returns:
        str | None: "Large (>1MB)" for files above `MAX_FILE_SIZE`, "Binary" for
            known binary extensions, None otherwise
    """
    if size > MAX_FILE_SIZE:
        return META_LARGE
    if PurePosixPath(name).suffix.lower() in BINARY_EXTENSIONS:
        return META_BINARY
    return None


def scan(
    root: str | Path,
    policy: VisibilityPolicy,
    fs: ScanFileSystem | None = None,
) -> ProjectNode | None:
    """Build the project tree rooted at `root`.

    Hidden entries are skipped (except the `.gitignore` file itself, which is
    always shown), directories without any visible descendant are pruned and
    every node starts checked. Files are stat-ed but never read: oversized and
    binary files are annotated through `meta`.

    A failing stat skips the entry, a failing listing counts as an empty
    directory, so the scan always completes.

    Args:
        root (str | Path): the directory to scan
        policy (VisibilityPolicy): decides which paths are hidden
        fs (ScanFileSystem | None): directory lister and stat provider.
            Defaults to the local filesystem.

    Returns:
        ProjectNode | None: the root node, or None when nothing is visible
    """
    fs = fs or DEFAULT_FS
    root_path = normalize_path(os.path.abspath(root))
    return _scan_directory(root_path, policy, fs, frozenset())


def _real_path(fs: ScanFileSystem, path: str) -> str:
    resolver = getattr(fs, "real_path", None)
    return resolver(path) if resolver is not None else path


def _scan_directory(
    dir_path: str,
    policy: VisibilityPolicy,
    fs: ScanFileSystem,
    ancestors: frozenset[str],
) -> ProjectNode | None:
    real = _real_path(fs, dir_path)
    if real in ancestors:
        logger.warning("symlink_cycle_skipped", path=dir_path)
        return None
    ancestors |= {real}

    try:
        entries = fs.list_entries(dir_path)
    except OSError as e:
        logger.info("unlistable_directory", path=dir_path, error=str(e))
        entries = []

    children: list[ProjectNode] = []
    for entry in entries:
        full_path = f"{dir_path.rstrip('/')}/{entry.name}"
        if entry.name != GITIGNORE_FILE and policy.should_ignore(full_path):
            continue

        if entry.is_directory:
            child = _scan_directory(full_path, policy, fs, ancestors)
            if child is not None and child.children:
                children.append(child)
            continue

        try:
            size = fs.file_size(full_path)
        except OSError as e:
            logger.debug("unstatable_file", path=full_path, error=str(e))
            continue
        children.append(
            ProjectNode(
                path=full_path,
                name=entry.name,
                type=NodeType.FILE,
                meta=file_meta(entry.name, size),
            ),
        )

    if not children:
        return None
    return ProjectNode(
        path=dir_path,
        name=base_name(dir_path) or dir_path,
        type=NodeType.DIRECTORY,
        children=children,
    )


def iter_files(node: ProjectNode) -> Iterator[ProjectNode]:
    """Yield the file nodes of a tree in pre-order."""
    if not node.is_dir:
        yield node
        return
    for child in node.children:
        yield from iter_files(child)


def count_files(node: ProjectNode) -> int:
    return sum(1 for _ in iter_files(node))


def large_files(node: ProjectNode) -> list[ProjectNode]:
    """Files annotated as too large to embed, in pre-order."""
    return [f for f in iter_files(node) if f.meta == META_LARGE]
