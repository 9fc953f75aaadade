from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RepoSnapshotError(Exception):
    """Base exception for errors in the repo_snapshot module."""


@dataclass(frozen=True)
class GitCommandError(RepoSnapshotError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class NotAGitRepositoryError(RepoSnapshotError):
    """Raised when the specified directory is not inside a Git repository."""

    folder: Path
    message: str = "The specified directory is not a Git repository."


@dataclass(frozen=True)
class EmptyScanError(RepoSnapshotError):
    """Raised when a scan yields no visible file."""

    root: Path
    message: str = "No files to show: the directory is empty or fully ignored."


@dataclass(frozen=True)
class UnknownFrameworkError(RepoSnapshotError):
    """Raised when a framework id is not part of the catalog."""

    framework_id: str


@dataclass(frozen=True)
class StateFileError(RepoSnapshotError):
    """Raised when the persisted state file cannot be decoded."""

    path: Path
    reason: str
