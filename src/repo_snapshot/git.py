from __future__ import annotations

import subprocess  # noqa: S404
from pathlib import Path

from repo_snapshot.exceptions import GitCommandError, NotAGitRepositoryError
from repo_snapshot.logging import logger
from repo_snapshot.paths import normalize_path

GIT_TIMEOUT_SECONDS = 10.0


def run_git(repo: Path, args: list[str]) -> str:
    """Run a git command in `repo` and return its standard output.

    Args:
        repo (Path): the working directory of the command
        args (list[str]): the git arguments (without the leading "git")

    Raises:
        GitCommandError: if git exits with a non-zero status.
        OSError: if git cannot be started.

    Returns:
        str: the standard output
    """
    out = subprocess.run(  # noqa: S603
        ["git", *args],  # noqa: S607
        cwd=str(repo),
        text=True,
        encoding="utf-8",
        errors="replace",
        capture_output=True,
        check=False,
        timeout=GIT_TIMEOUT_SECONDS,
    )
    if out.returncode != 0:
        raise GitCommandError(
            command=" ".join(["git", *args]),
            returncode=out.returncode,
            stdout=out.stdout,
            stderr=out.stderr,
        )
    return out.stdout


def repository_root(path: Path) -> Path:
    """Top-level directory of the git repository containing `path`.

    Raises:
        NotAGitRepositoryError: if `path` is not inside a git work tree.
    """
    try:
        top = run_git(path, ["rev-parse", "--show-toplevel"]).strip()
    except GitCommandError as e:
        raise NotAGitRepositoryError(folder=path) from e
    if not top:
        raise NotAGitRepositoryError(folder=path)
    return Path(top).resolve()


def parse_porcelain(output: str) -> list[tuple[str, str]]:
    """Parse `git status --porcelain=v1 -z` output into (status, path) pairs.

    For renames and copies only the destination path is kept.

    Args:
        output (str): the NUL-separated porcelain output

    Returns:
        list[tuple[str, str]]: two-letter status code and repository-relative path
    """
    records: list[tuple[str, str]] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if len(token) < 4 or token[2] != " ":  # noqa: PLR2004
            continue

        status = token[:2]
        records.append((status, token[3:]))

        # -z puts the source path of a rename/copy in the next token
        if "R" in status or "C" in status:
            index += 1
    return records


def git_changed_files(root: Path) -> set[str]:
    """Modified, staged and untracked files of the repository containing `root`.

    Raises:
        NotAGitRepositoryError: if `root` is not inside a git work tree.
        GitCommandError: if `git status` fails.

    Returns:
        set[str]: normalized absolute paths
    """
    top = repository_root(root)
    output = run_git(top, ["status", "--porcelain=v1", "-z", "--untracked-files=all"])
    return {
        normalize_path(top / rel)
        for status, rel in parse_porcelain(output)
        if rel and status != "!!"
    }


def changed_paths(root: Path) -> set[str]:
    """Change set used by the git-filter selection mode.

    Never raises: when git is missing or `root` is not a repository, a warning
    is logged and an empty set is returned.

    Args:
        root (Path): the scanned project root

    Returns:
        set[str]: normalized absolute paths of changed files
    """
    try:
        return git_changed_files(root)
    except (NotAGitRepositoryError, GitCommandError, OSError, subprocess.TimeoutExpired) as e:
        logger.warning("git_changes_unavailable", root=normalize_path(root), error=repr(e))
        return set()
