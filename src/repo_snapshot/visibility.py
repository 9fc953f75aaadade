from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING

from gitignore_parser import parse_gitignore

from repo_snapshot.config import ALWAYS_VISIBLE_FILES, GITIGNORE_FILE, HIDDEN_DIRS, SENSITIVE_PATTERNS
from repo_snapshot.logging import logger
from repo_snapshot.paths import base_name, normalize_path

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    IgnoreRules = Callable[[str], bool]


def is_sensitive(name: str) -> bool:
    """Check whether a base name looks like a secret or credential file.

    Args:
        name (str): the base name to check (e.g. ".env.local", "id_rsa")

    Returns:
        bool: True if any sensitive pattern matches the name
    """
    return any(re.search(pattern, name) for pattern in SENSITIVE_PATTERNS)


def load_ignore_rules(root: str | Path) -> IgnoreRules | None:
    """Load the `.gitignore` found at `root`, if any.

    Args:
        root (str | Path): the project root

    Returns:
        IgnoreRules | None: a matcher taking an absolute path, or None when the
            root carries no `.gitignore`.
    """
    gitignore = os.path.join(root, GITIGNORE_FILE)
    if not os.path.isfile(gitignore):
        return None
    logger.debug("gitignore_loaded", path=normalize_path(gitignore))
    return parse_gitignore(gitignore, base_dir=str(root))


class VisibilityPolicy:
    """Decide whether a path is shown in the project tree.

    Rules are evaluated top to bottom, the first match wins:

    1. base name in `HIDDEN_DIRS`: hidden, whatever the other flags say;
    2. base name in `ALWAYS_VISIBLE_FILES`: shown;
    3. sensitive-file exclusion enabled and the base name looks like a secret: hidden;
    4. `.gitignore` rules enabled and loaded, and the root-relative path matches: hidden;
    5. shown.

    The `.gitignore` rules are read once, at construction.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        use_gitignore: bool = True,
        exclude_sensitive: bool = True,
    ) -> None:
        self.root = normalize_path(os.path.abspath(root))
        self.use_gitignore = use_gitignore
        self.exclude_sensitive = exclude_sensitive
        self._rules: IgnoreRules | None = load_ignore_rules(self.root) if use_gitignore else None

    @property
    def has_ignore_rules(self) -> bool:
        return self._rules is not None

    def should_ignore(self, path: str | Path) -> bool:
        """Check whether `path` must be left out of the tree.

        Args:
            path (str | Path): absolute path of a file or directory under the root

        Returns:
            bool: True if the path is hidden
        """
        normalized = normalize_path(path)
        name = base_name(normalized)

        if name in HIDDEN_DIRS:
            return True
        if name in ALWAYS_VISIBLE_FILES:
            return False
        if self.exclude_sensitive and is_sensitive(name):
            return True
        if self._rules is not None:
            return self._matches_rules(normalized)
        return False

    def _matches_rules(self, normalized: str) -> bool:
        if normalized != self.root and not normalized.startswith(self.root.rstrip("/") + "/"):
            return False
        try:
            return bool(self._rules(normalized))  # type: ignore[misc]
        except ValueError:
            # raised by the matcher for paths it cannot relativise
            return False
