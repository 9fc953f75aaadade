"""One project root and the actions run against it.

A `SnapshotWorkspace` ties the scanner, the selection algorithms and the
snapshot builder to the persisted state of a project root. Every action
starts from a fresh scan onto which the saved selection is restored, and
saves the resulting selection afterwards.
"""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from repo_snapshot.config import DEFAULT_TOKEN_LIMIT, OutputFormat, OverflowPolicy, StructureStyle
from repo_snapshot.exceptions import EmptyScanError, UnknownFrameworkError
from repo_snapshot.frameworks import detect_framework, get_framework
from repo_snapshot.fs import DEFAULT_FS
from repo_snapshot.git import changed_paths
from repo_snapshot.logging import logger
from repo_snapshot.paths import normalize_path, relpath
from repo_snapshot.selection import (
    apply_git_filter,
    apply_preset,
    collect_selection,
    restore_selection,
    set_subtree,
    toggle_and_reconcile,
)
from repo_snapshot.snapshot import build_snapshot
from repo_snapshot.state import UIState
from repo_snapshot.splitter import Chunk, format_parts, split_snapshot
from repo_snapshot.templates import apply_template
from repo_snapshot.tokens import TokenEstimate, estimate_tokens
from repo_snapshot.tree import count_files, large_files, scan
from repo_snapshot.visibility import VisibilityPolicy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_snapshot.config import ProjectNode
    from repo_snapshot.frameworks import FrameworkDefinition
    from repo_snapshot.fs import LocalFileSystem
    from repo_snapshot.state import StateStore
    from repo_snapshot.templates import Template

LARGE_FILES_PREVIEW = 3


class ScanMode(StrEnum):
    ALL = "all"
    GIT = "git"


class ExportResult(BaseModel):
    """Outcome of an export."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Text to hand over; empty when cancelled")
    estimate: TokenEstimate = Field(..., description="Estimate of the unsplit prompt")
    parts: list[Chunk] = Field(default_factory=list, description="Parts when the prompt was split")
    cancelled: bool = Field(default=False, description="Oversized prompt dropped by the cancel policy")

    @property
    def split(self) -> bool:
        return bool(self.parts)


class SnapshotWorkspace:
    """Scan, select and export one project root."""

    def __init__(
        self,
        root: str | Path,
        store: StateStore,
        custom_templates: Sequence[Template] = (),
        fs: LocalFileSystem | None = None,
    ) -> None:
        self.root = Path(root).resolve()
        self.store = store
        self.custom_templates = list(custom_templates)
        self.fs = fs or DEFAULT_FS
        self.state = store.load(self.root)
        self.tree: ProjectNode | None = None

    @property
    def ui_state(self) -> UIState:
        return self.state.ui_state

    def save(self) -> None:
        if self.tree is not None:
            self.state.selection = collect_selection(self.tree)
        self.store.save(self.root, self.state)

    def update_ui_state(self, **changes: object) -> UIState:
        """Persist the preferences given in `changes`, ignoring the None values."""
        updates = {k: v for k, v in changes.items() if v is not None}
        if updates:
            merged = self.state.ui_state.model_dump() | updates
            self.state.ui_state = UIState.model_validate(merged)
            self.store.save(self.root, self.state)
            logger.info("ui_state_updated", root=normalize_path(self.root), **{k: str(v) for k, v in updates.items()})
        return self.state.ui_state

    def policy(self) -> VisibilityPolicy:
        return VisibilityPolicy(
            self.root,
            use_gitignore=self.ui_state.use_gitignore,
            exclude_sensitive=self.ui_state.exclude_sensitive,
        )

    def scan(self, mode: ScanMode | str = ScanMode.ALL) -> ProjectNode | None:
        """Rebuild the project tree and select files according to `mode`.

        In "all" mode the saved selection is restored, new files being
        checked. In "git" mode exactly the files changed in git are checked.

        Args:
            mode (ScanMode | str): "all" or "git"

        Returns:
            ProjectNode | None: the tree, or None when no file is visible
        """
        mode = ScanMode(mode)
        tree = scan(self.root, self.policy(), self.fs)
        self.tree = tree
        if tree is None:
            logger.warning("no_files_to_show", root=normalize_path(self.root))
            return None

        large = large_files(tree)
        if large:
            logger.warning(
                "large_files_excluded",
                count=len(large),
                files=[relpath(f.path, tree.path) for f in large[:LARGE_FILES_PREVIEW]],
            )

        if mode is ScanMode.GIT:
            changes = changed_paths(self.root)
            if not apply_git_filter(tree, changes):
                # deleted or hidden files can make up the whole change set
                event = "git_changes_not_in_tree" if changes else "no_git_changes"
                logger.warning(event, root=normalize_path(self.root), changed=len(changes))
        else:
            restore_selection(tree, self.state.selection)

        self.save()
        logger.info("scan_done", root=normalize_path(self.root), mode=str(mode), files=count_files(tree))
        return tree

    def require_tree(self) -> ProjectNode:
        """The current tree, scanning first when needed.

        Raises:
            EmptyScanError: if the project has no visible file.
        """
        if self.tree is None:
            self.scan()
        if self.tree is None:
            raise EmptyScanError(root=self.root)
        return self.tree

    def toggle(self, paths: Sequence[str | Path], value: bool) -> list[str]:  # noqa: FBT001
        """Check or uncheck nodes given by absolute or root-relative paths.

        Returns:
            list[str]: the paths that matched no node
        """
        tree = self.require_tree()
        missing: list[str] = []
        for p in paths:
            target = Path(p) if Path(p).is_absolute() else self.root / p
            if not toggle_and_reconcile(tree, normalize_path(target).rstrip("/"), value):
                logger.warning("path_not_in_tree", path=str(p))
                missing.append(str(p))
        self.save()
        return missing

    def select_all(self, value: bool) -> None:  # noqa: FBT001
        tree = self.require_tree()
        set_subtree(tree, value)
        self.save()

    def apply_preset(self, framework_id: str | None = None) -> FrameworkDefinition | None:
        """Apply a framework preset, detecting the framework when no id is given.

        Args:
            framework_id (str | None): catalog id, or None to detect it

        Raises:
            UnknownFrameworkError: if `framework_id` is not in the catalog.

        Returns:
            FrameworkDefinition | None: the applied framework, None when
                nothing was detected (the selection is left untouched)
        """
        tree = self.require_tree()
        if framework_id:
            framework = get_framework(framework_id)
            if framework is None:
                raise UnknownFrameworkError(framework_id=framework_id)
        else:
            framework = detect_framework(self.root, self.fs)
            if framework is None:
                logger.warning("framework_not_detected", root=normalize_path(self.root))
                return None

        apply_preset(tree, framework)
        self.save()
        logger.info("preset_applied", framework=framework.id)
        return framework

    def export(
        self,
        fmt: OutputFormat | str | None = None,
        template_id: str | None = None,
        structure: StructureStyle | str = StructureStyle.LIST,
        token_limit: int = DEFAULT_TOKEN_LIMIT,
        on_overflow: OverflowPolicy | str = OverflowPolicy.SPLIT,
    ) -> ExportResult:
        """Build the prompt from the checked files.

        The template wraps the snapshot before the token estimate, so the
        estimate covers the whole prompt. An oversized prompt is split,
        kept as is or dropped according to `on_overflow`.

        Args:
            fmt (OutputFormat | str | None): snapshot format, None for the saved one
            template_id (str | None): template id, None for the saved one
            structure (StructureStyle | str): structure summary style
            token_limit (int): token budget of the prompt
            on_overflow (OverflowPolicy | str): what to do when over budget

        Returns:
            ExportResult: the text to hand over and its token estimate
        """
        tree = self.require_tree()
        fmt = OutputFormat(fmt or self.ui_state.selected_format)
        template_id = template_id or self.ui_state.selected_template
        on_overflow = OverflowPolicy(on_overflow)
        snapshot = build_snapshot(tree, fmt, self.fs, structure)
        prompt = apply_template(snapshot, template_id, self.custom_templates)
        estimate = estimate_tokens(prompt, token_limit)
        if estimate.within_limit:
            return ExportResult(text=prompt, estimate=estimate)

        logger.warning(
            "snapshot_over_limit",
            tokens=estimate.tokens,
            limit=estimate.limit,
            policy=str(on_overflow),
        )
        if on_overflow is OverflowPolicy.FORCE:
            return ExportResult(text=prompt, estimate=estimate)
        if on_overflow is OverflowPolicy.CANCEL:
            return ExportResult(text="", estimate=estimate, cancelled=True)

        parts = split_snapshot(prompt, token_limit)
        logger.info("snapshot_split", parts=len(parts))
        return ExportResult(text=format_parts(parts), estimate=estimate, parts=parts)
