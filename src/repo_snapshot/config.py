from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path, PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, computed_field

from repo_snapshot.paths import normalize_path


class NodeType(StrEnum):
    """Variant tag of a project tree node."""

    FILE = auto()
    DIRECTORY = auto()


class OutputFormat(StrEnum):
    """Serialization formats of a snapshot."""

    MARKDOWN = auto()
    XML = auto()


class StructureStyle(StrEnum):
    """Rendering of the structure summary at the top of a snapshot."""

    LIST = auto()
    TREE = auto()


class OverflowPolicy(StrEnum):
    """What to do when a snapshot exceeds the token limit."""

    SPLIT = auto()
    FORCE = auto()
    CANCEL = auto()


class FileType(StrEnum):
    """Categorization of file types used to pick a code fence language.

    This is a heuristic classification based on file extensions only.
    """

    TEXT = auto()
    PYTHON = auto()
    TOML = auto()
    JSON = auto()
    MARKDOWN = auto()
    YAML = auto()
    HTML = auto()
    CSS = auto()
    JAVASCRIPT = auto()
    JSX = auto()
    TYPESCRIPT = auto()
    TSX = auto()
    BASH = auto()
    RUST = auto()
    GO = auto()
    PHP = auto()
    SQL = auto()
    JAVA = auto()
    KOTLIN = auto()
    CSHARP = auto()
    C = auto()
    CPP = auto()
    RUBY = auto()
    LUA = auto()
    DART = auto()
    ELIXIR = auto()
    VUE = auto()
    SVELTE = auto()
    XML = auto()
    INI = auto()
    ENV = auto()
    OTHER = auto()


EXT2LANG: dict[str, FileType] = {
    ".bash": FileType.BASH,
    ".c": FileType.C,
    ".cc": FileType.CPP,
    ".cfg": FileType.INI,
    ".conf": FileType.INI,
    ".cpp": FileType.CPP,
    ".cs": FileType.CSHARP,
    ".css": FileType.CSS,
    ".cxx": FileType.CPP,
    ".dart": FileType.DART,
    ".env": FileType.ENV,
    ".ex": FileType.ELIXIR,
    ".exs": FileType.ELIXIR,
    ".go": FileType.GO,
    ".h": FileType.C,
    ".hpp": FileType.CPP,
    ".htm": FileType.HTML,
    ".html": FileType.HTML,
    ".ini": FileType.INI,
    ".java": FileType.JAVA,
    ".js": FileType.JAVASCRIPT,
    ".json": FileType.JSON,
    ".jsx": FileType.JSX,
    ".kt": FileType.KOTLIN,
    ".lua": FileType.LUA,
    ".markdown": FileType.MARKDOWN,
    ".md": FileType.MARKDOWN,
    ".mjs": FileType.JAVASCRIPT,
    ".php": FileType.PHP,
    ".properties": FileType.INI,
    ".py": FileType.PYTHON,
    ".rb": FileType.RUBY,
    ".rs": FileType.RUST,
    ".sh": FileType.BASH,
    ".sql": FileType.SQL,
    ".svelte": FileType.SVELTE,
    ".toml": FileType.TOML,
    ".ts": FileType.TYPESCRIPT,
    ".tsx": FileType.TSX,
    ".txt": FileType.TEXT,
    ".vue": FileType.VUE,
    ".xml": FileType.XML,
    ".yaml": FileType.YAML,
    ".yml": FileType.YAML,
    ".zsh": FileType.BASH,
}

_FENCE_LANGUAGE: dict[FileType, str] = {
    FileType.PYTHON: "python",
    FileType.TOML: "toml",
    FileType.JSON: "json",
    FileType.MARKDOWN: "markdown",
    FileType.YAML: "yaml",
    FileType.HTML: "html",
    FileType.CSS: "css",
    FileType.JAVASCRIPT: "javascript",
    FileType.JSX: "jsx",
    FileType.TYPESCRIPT: "typescript",
    FileType.TSX: "tsx",
    FileType.BASH: "bash",
    FileType.RUST: "rust",
    FileType.GO: "go",
    FileType.PHP: "php",
    FileType.SQL: "sql",
    FileType.JAVA: "java",
    FileType.KOTLIN: "kotlin",
    FileType.CSHARP: "csharp",
    FileType.C: "c",
    FileType.CPP: "cpp",
    FileType.RUBY: "ruby",
    FileType.LUA: "lua",
    FileType.DART: "dart",
    FileType.ELIXIR: "elixir",
    FileType.VUE: "vue",
    FileType.SVELTE: "svelte",
    FileType.XML: "xml",
    FileType.INI: "ini",
    FileType.ENV: "env",
    FileType.TEXT: "",
    FileType.OTHER: "",
}

HIDDEN_DIRS = frozenset({
    ".git",
    "node_modules",
    "dist",
    "build",
    "out",
    ".next",
    ".nuxt",
    ".svelte-kit",
    "coverage",
    "logs",
    "tmp",
    ".cache",
    ".idea",
    ".vscode",
    "__pycache__",
    ".venv",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
})

ALWAYS_VISIBLE_FILES = frozenset({
    ".gitignore",
    "package.json",
    "tsconfig.json",
    "jsconfig.json",
    "README.md",
    "pyproject.toml",
})

SENSITIVE_PATTERNS: tuple[str, ...] = (
    r"^\.env($|\.)",
    r"\.pem$",
    r"\.key$",
    r"id_rsa",
    r"id_ed25519",
)

BINARY_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".ico", ".svg", ".webp",
    ".zip", ".tar", ".gz", ".7z", ".rar",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx",
    ".exe", ".dll", ".so", ".dylib", ".bin", ".iso",
})  # fmt: skip

GITIGNORE_FILE = ".gitignore"

MAX_FILE_SIZE = 1024 * 1024
META_LARGE = "Large (>1MB)"
META_BINARY = "Binary"
META_UNREADABLE = "Unreadable"

CHARS_PER_TOKEN = 4
DEFAULT_TOKEN_LIMIT = 400_000

AI_MODELS: dict[str, tuple[str, int]] = {
    "gpt-5.2": ("GPT-5.2", 400_000),
    "gemini-3-flash": ("Gemini 3 Flash", 1_000_000),
    "gemini-3-pro": ("Gemini 3 Pro", 65_536),
    "claude-opus-4.5": ("Claude Opus 4.5", 200_000),
    "grok-4": ("Grok 4.x", 200_000),
    "llama-4": ("LLaMA 4 (128k)", 128_000),
    "qwen-max": ("Qwen Max", 1_000_000),
    "qwen-standard": ("Qwen Standard", 128_000),
}


def guess_file_type(path: str | Path) -> FileType:
    """Heuristic guess of file type based on extension.

    Args:
        path (str | Path): The file path to guess the type for.

    Returns:
        FileType: The guessed file type, or FileType.OTHER if unknown.
    """
    suffix = PurePosixPath(normalize_path(path)).suffix.lower()
    return EXT2LANG.get(suffix, FileType.OTHER)


def guess_language(path: str | Path) -> str:
    """Get the code fence language for a file, or an empty string if unknown."""
    return _FENCE_LANGUAGE.get(guess_file_type(path), "")


class ProjectNode(BaseModel):
    """A file or directory of the scanned project tree.

    Attributes:
        path: Absolute, slash-normalized path. Unique key within a tree.
        name: Base name, for display.
        type: File or directory.
        checked: Selection flag. For directories it is derived from the children.
        children: Ordered children, only populated for directories.
        meta: Reason why the content of a file is left out of snapshots
            (e.g. "Binary"). The node stays visible and selectable.
    """

    model_config = ConfigDict(validate_assignment=False)

    path: str = Field(..., description="Absolute slash-normalized path")
    name: str = Field(..., description="Base name")
    type: NodeType = Field(..., description="File or directory")
    checked: bool = Field(default=True, description="Selection flag")
    children: list[ProjectNode] = Field(default_factory=list, description="Children of a directory")
    meta: str | None = Field(default=None, description="Content exclusion annotation")

    @computed_field
    @property
    def is_dir(self) -> bool:
        """Whether the node is a directory."""
        return self.type is NodeType.DIRECTORY

    @computed_field
    @property
    def language(self) -> str:
        """Code fence language guessed from the file name."""
        return "" if self.is_dir else guess_language(self.name)
