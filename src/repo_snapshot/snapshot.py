from __future__ import annotations

import io
from typing import TYPE_CHECKING

from repo_snapshot.config import META_UNREADABLE, OutputFormat, StructureStyle
from repo_snapshot.fs import DEFAULT_FS
from repo_snapshot.paths import relpath
from repo_snapshot.tree import iter_files

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_snapshot.config import ProjectNode
    from repo_snapshot.fs import TextReader

STRUCTURE_SOURCE = "project_structure"


def collect_checked_files(root: ProjectNode) -> list[ProjectNode]:
    """Checked file nodes of the tree, in pre-order."""
    return [f for f in iter_files(root) if f.checked]


def skip_annotation(reason: str) -> str:
    return f"[Skipped: {reason}]"


def build_path_list(root: ProjectNode, files: Sequence[ProjectNode]) -> str:
    """Newline-separated relative paths, annotated files suffixed with their meta.

    Args:
        root (ProjectNode): the tree root the paths are relative to
        files (Sequence[ProjectNode]): the file nodes to list

    Returns:
        str: one relative path per line, e.g. "assets/logo.png (Binary)"
    """
    lines: list[str] = []
    for f in files:
        rel = relpath(f.path, root.path)
        lines.append(f"{rel} ({f.meta})" if f.meta else rel)
    return "\n".join(lines)


def _has_checked_file(node: ProjectNode) -> bool:
    if not node.is_dir:
        return node.checked
    return any(_has_checked_file(child) for child in node.children)


def build_tree_lines(root: ProjectNode) -> list[str]:
    """Build a visual tree of the checked files and their ancestor directories.

    Directories without any checked file are pruned. Directories carry a
    trailing slash. Children keep the order of the project tree.

    Args:
        root (ProjectNode): the tree root

    Returns:
        list[str]: the lines of the tree, the first one being the root name
    """
    lines: list[str] = [f"{root.name}/"]

    def walk(node: ProjectNode, prefix: str) -> None:
        entries = [c for c in node.children if _has_checked_file(c)]
        for idx, child in enumerate(entries):
            last = idx == len(entries) - 1
            branch = "└── " if last else "├── "
            lines.append(prefix + branch + child.name + ("/" if child.is_dir else ""))
            if child.is_dir:
                ext = "    " if last else "│   "
                walk(child, prefix + ext)

    walk(root, "")
    return lines


def build_ascii_tree(root: ProjectNode) -> str:
    return "\n".join(build_tree_lines(root))


def file_body(node: ProjectNode, reader: TextReader) -> tuple[str, bool]:
    """Content of a file for the snapshot.

    Args:
        node (ProjectNode): the file node
        reader (TextReader): reads the file content

    Returns:
        tuple[str, bool]: the content or a skip annotation, and whether the
            first element is actual content
    """
    if node.meta:
        return skip_annotation(node.meta), False
    content = reader.read_text(node.path)
    if content is None:
        return skip_annotation(META_UNREADABLE), False
    return content, True


def build_markdown(
    root: ProjectNode,
    files: Sequence[ProjectNode],
    summary: str,
    reader: TextReader,
    *,
    fenced_summary: bool = False,
) -> str:
    """Render a Markdown snapshot.

    The document starts with a "Project Structure" section, followed by one
    section per file holding a fenced code block, or a skip annotation for
    files whose content is left out.

    Args:
        root (ProjectNode): the tree root, for relative paths
        files (Sequence[ProjectNode]): the files to embed, in output order
        summary (str): the structure summary
        reader (TextReader): reads file contents
        fenced_summary (bool): wrap the summary in a `text` code fence

    Returns:
        str: the Markdown snapshot
    """
    out = io.StringIO()
    out.write("# Project Structure\n")
    if fenced_summary:
        out.write(f"```text\n{summary}\n```\n")
    else:
        out.write(f"{summary}\n")
    out.write("\n---\n")

    for f in files:
        out.write(f"\n## {relpath(f.path, root.path)}\n")
        body, is_content = file_body(f, reader)
        if is_content:
            out.write(f"```{f.language}\n{body}\n```\n")
        else:
            out.write(f"{body}\n")
    return out.getvalue()


def build_xml(
    root: ProjectNode,
    files: Sequence[ProjectNode],
    summary: str,
    reader: TextReader,
) -> str:
    """Render an XML snapshot.

    Document 1 is the structure summary, files follow from index 2. Contents
    are inserted verbatim, without escaping.
    """
    out = io.StringIO()
    out.write("<documents>\n")
    out.write(_xml_document(1, STRUCTURE_SOURCE, summary))
    for index, f in enumerate(files, start=2):
        body, _is_content = file_body(f, reader)
        out.write(_xml_document(index, relpath(f.path, root.path), body))
    out.write("</documents>\n")
    return out.getvalue()


def _xml_document(index: int, source: str, content: str) -> str:
    return (
        f'<document index="{index}">\n'
        f"<source>{source}</source>\n"
        f"<document_content>\n{content}\n</document_content>\n"
        "</document>\n"
    )


def build_snapshot(
    root: ProjectNode,
    fmt: OutputFormat = OutputFormat.MARKDOWN,
    reader: TextReader | None = None,
    structure: StructureStyle = StructureStyle.LIST,
) -> str:
    """Build the snapshot of the checked files of a tree.

    Files are read one after the other, in pre-order.

    Args:
        root (ProjectNode): the tree root
        fmt (OutputFormat): Markdown or XML
        reader (TextReader | None): reads file contents, defaults to the local filesystem
        structure (StructureStyle): flat path list or ASCII tree summary

    Returns:
        str: the snapshot text
    """
    reader = reader or DEFAULT_FS
    fmt = OutputFormat(fmt)
    structure = StructureStyle(structure)
    files = collect_checked_files(root)
    summary = build_path_list(root, files) if structure is StructureStyle.LIST else build_ascii_tree(root)

    if fmt is OutputFormat.XML:
        return build_xml(root, files, summary, reader)
    return build_markdown(
        root,
        files,
        summary,
        reader,
        fenced_summary=structure is StructureStyle.TREE,
    )
