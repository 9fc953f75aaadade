"""Persistence of the selection and of the UI preferences.

State survives between invocations in a single JSON file holding one entry
per project root. The selection is a flat `path -> checked` mapping, applied
by path lookup onto each freshly scanned tree.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from repo_snapshot.config import OutputFormat
from repo_snapshot.exceptions import StateFileError
from repo_snapshot.logging import logger
from repo_snapshot.paths import normalize_path
from repo_snapshot.templates import DEFAULT_TEMPLATE_ID


class UIState(BaseModel):
    """User preferences remembered across sessions."""

    model_config = ConfigDict(extra="ignore")

    use_gitignore: bool = Field(default=True, description="Honour the root .gitignore.")
    exclude_sensitive: bool = Field(default=True, description="Hide secret-looking files.")
    selected_format: OutputFormat = Field(default=OutputFormat.MARKDOWN, description="Snapshot format.")
    selected_template: str = Field(default=DEFAULT_TEMPLATE_ID, description="Prompt template id.")


class WorkspaceState(BaseModel):
    """Everything persisted for one project root."""

    selection: dict[str, bool] = Field(default_factory=dict)
    ui_state: UIState = Field(default_factory=UIState)


class StateFile(BaseModel):
    workspaces: dict[str, WorkspaceState] = Field(default_factory=dict)


class StateStore:
    """Key-value storage of `WorkspaceState`, keyed by project root."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> StateFile:
        if not self.path.is_file():
            return StateFile()
        try:
            return StateFile.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (ValidationError, ValueError) as e:
            raise StateFileError(path=self.path, reason=str(e)) from e

    def _read_or_reset(self) -> StateFile:
        try:
            return self._read()
        except StateFileError as e:
            logger.warning("state_file_reset", path=str(e.path), reason=e.reason)
            return StateFile()

    def load(self, root: str | Path) -> WorkspaceState:
        """Saved state of `root`, or defaults when nothing was saved."""
        return self._read_or_reset().workspaces.get(normalize_path(root), WorkspaceState())

    def save(self, root: str | Path, state: WorkspaceState) -> None:
        data = self._read_or_reset()
        data.workspaces[normalize_path(root)] = state
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(data.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("state_saved", path=str(self.path), root=normalize_path(root))
