from pathlib import Path

import pytest

from repo_snapshot.config import META_BINARY, META_LARGE, MAX_FILE_SIZE, NodeType
from repo_snapshot.fs import DirEntry
from repo_snapshot.tree import count_files, file_meta, iter_files, large_files, scan
from repo_snapshot.visibility import VisibilityPolicy


class MemoryFileSystem:
    """Directory lister and stat provider over a dict of path -> size (None for directories)."""

    def __init__(self, entries: dict[str, int | None], broken: set[str] | None = None) -> None:
        self.entries = entries
        self.broken = broken or set()

    def list_entries(self, path: str) -> list[DirEntry]:
        if path in self.broken:
            raise PermissionError(path)
        prefix = path.rstrip("/") + "/"
        names = [p[len(prefix):] for p in self.entries if p.startswith(prefix) and "/" not in p[len(prefix):]]
        return [DirEntry(n, self.entries[prefix + n] is None) for n in sorted(names, key=str.lower)]

    def file_size(self, path: str) -> int:
        if path in self.broken:
            raise FileNotFoundError(path)
        size = self.entries[path]
        assert size is not None
        return size


def _policy(root: Path | str) -> VisibilityPolicy:
    return VisibilityPolicy(root, use_gitignore=False)


@pytest.mark.unit
def test_file_meta() -> None:
    assert file_meta("a.ts", 10) is None
    assert file_meta("logo.PNG", 10) == META_BINARY
    assert file_meta("a.ts", MAX_FILE_SIZE + 1) == META_LARGE
    assert file_meta("a.ts", MAX_FILE_SIZE) is None


@pytest.mark.unit
def test_scan_skips_hidden_directories(tmp_path: Path) -> None:
    (tmp_path / "node_modules" / "lib").mkdir(parents=True)
    (tmp_path / "node_modules" / "lib" / "index.js").write_text("x", encoding="utf-8")
    (tmp_path / "a.txt").write_text("a", encoding="utf-8")

    root = scan(tmp_path, _policy(tmp_path))

    assert root is not None
    assert [c.name for c in root.children] == ["a.txt"]


@pytest.mark.unit
def test_scan_prunes_empty_directories(tmp_path: Path) -> None:
    (tmp_path / "empty").mkdir()
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")

    root = scan(tmp_path, _policy(tmp_path))

    assert root is not None
    assert [c.name for c in root.children] == ["b.txt"]


@pytest.mark.unit
def test_scan_applies_gitignore_and_keeps_it_visible(tmp_path: Path) -> None:
    (tmp_path / ".gitignore").write_text("*.log\n.gitignore\n", encoding="utf-8")
    (tmp_path / "app.log").write_text("log", encoding="utf-8")
    (tmp_path / "app.txt").write_text("txt", encoding="utf-8")

    root = scan(tmp_path, VisibilityPolicy(tmp_path))

    assert root is not None
    assert [c.name for c in root.children] == [".gitignore", "app.txt"]


@pytest.mark.unit
def test_scan_returns_none_when_nothing_visible(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("ref", encoding="utf-8")

    assert scan(tmp_path, _policy(tmp_path)) is None


@pytest.mark.unit
def test_scan_builds_nodes_in_lister_order() -> None:
    fs = MemoryFileSystem({
        "/proj/src": None,
        "/proj/src/b.ts": 3,
        "/proj/src/A.ts": 3,
        "/proj/logo.png": 100,
        "/proj/big.sql": MAX_FILE_SIZE + 1,
    })

    root = scan("/proj", _policy("/proj"), fs)

    assert root is not None
    assert root.type is NodeType.DIRECTORY
    assert root.path == "/proj"
    assert [f.path for f in iter_files(root)] == ["/proj/big.sql", "/proj/logo.png", "/proj/src/A.ts", "/proj/src/b.ts"]
    assert all(n.checked for n in iter_files(root))
    assert count_files(root) == 4
    assert [f.name for f in large_files(root)] == ["big.sql"]
    assert next(f for f in iter_files(root) if f.name == "logo.png").meta == META_BINARY


@pytest.mark.unit
def test_scan_survives_io_errors() -> None:
    fs = MemoryFileSystem(
        {
            "/proj/locked": None,
            "/proj/locked/a.ts": 1,
            "/proj/gone.ts": 1,
            "/proj/ok.ts": 1,
        },
        broken={"/proj/locked", "/proj/gone.ts"},
    )

    root = scan("/proj", _policy("/proj"), fs)

    assert root is not None
    assert [c.name for c in root.children] == ["ok.ts"]


@pytest.mark.unit
def test_scan_skips_symlink_cycles(tmp_path: Path) -> None:
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "a.ts").write_text("a", encoding="utf-8")
    (tmp_path / "src" / "loop").symlink_to(tmp_path / "src", target_is_directory=True)

    root = scan(tmp_path, _policy(tmp_path))

    assert root is not None
    assert [f.name for f in iter_files(root)] == ["a.ts"]
