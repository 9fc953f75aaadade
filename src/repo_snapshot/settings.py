from __future__ import annotations

import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

from repo_snapshot.config import DEFAULT_TOKEN_LIMIT, OutputFormat, OverflowPolicy, StructureStyle

ENV_FILE = find_dotenv(usecwd=True)
if ENV_FILE:
    load_dotenv(ENV_FILE)

ENV_PREFIX = "REPO_SNAPSHOT_"


def default_state_file() -> Path:
    """State file from `REPO_SNAPSHOT_STATE_FILE`, else under the user cache directory."""
    if env := os.environ.get(f"{ENV_PREFIX}STATE_FILE"):
        return Path(env)
    cache = os.environ.get("XDG_CACHE_HOME") or str(Path.home() / ".cache")
    return Path(cache) / "repo_snapshot" / "state.json"


def default_token_limit() -> int:
    return int(os.environ.get(f"{ENV_PREFIX}TOKEN_LIMIT", DEFAULT_TOKEN_LIMIT))


def default_templates_file() -> Path | None:
    env = os.environ.get(f"{ENV_PREFIX}TEMPLATES_FILE")
    return Path(env) if env else None


class Settings(BaseModel):
    """Configuration settings for the repo_snapshot command line."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    command: str = Field(default="scan", description="Sub-command to run.")
    repo: Path = Field(default_factory=Path.cwd, description="Project root.")
    state_file: Path = Field(default_factory=default_state_file, description="Persisted state file.")
    templates_file: Path | None = Field(
        default_factory=default_templates_file,
        description="YAML file of custom templates.",
    )
    log_file: str = Field(default="", description="Log file path.")
    log_level: str = Field(default="", description="Log level (empty: environment or info).")

    use_gitignore: bool | None = Field(default=None, description="Honour .gitignore (None: keep saved).")
    exclude_sensitive: bool | None = Field(
        default=None,
        description="Hide sensitive files (None: keep saved).",
    )

    git: bool = Field(default=False, description="Select only files changed in git.")
    paths: list[str] = Field(default_factory=list, description="Paths to toggle.")
    off: bool = Field(default=False, description="Uncheck instead of check.")
    framework: str = Field(default="", description="Framework preset id (empty: detect).")

    output: Path | None = Field(default=None, description="Output file (stdout if unset).")
    format: OutputFormat | None = Field(default=None, description="Snapshot format (None: keep saved).")
    template: str | None = Field(default=None, description="Template id (None: keep saved).")
    structure: StructureStyle = Field(default=StructureStyle.LIST, description="Structure summary style.")
    model: str = Field(default="", description="AI model whose context size is the token limit.")
    token_limit: int = Field(default_factory=default_token_limit, description="Token budget.")
    on_overflow: OverflowPolicy = Field(default=OverflowPolicy.SPLIT, description="Oversized snapshot policy.")
