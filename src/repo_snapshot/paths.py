from __future__ import annotations

from pathlib import Path, PurePosixPath


def normalize_path(path: str | Path) -> str:
    """Return `path` as a string using forward slashes as separators."""
    return str(path).replace("\\", "/")


def relpath(path: str | Path, root: str | Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (str | Path): the path to "relativise"
        root (str | Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original (normalized) path.
    """
    p = PurePosixPath(normalize_path(path))
    r = PurePosixPath(normalize_path(root))
    try:
        return str(p.relative_to(r))
    except ValueError:
        return str(p)


def base_name(path: str | Path) -> str:
    """Last segment of a normalized path."""
    return PurePosixPath(normalize_path(path)).name
