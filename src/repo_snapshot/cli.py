"""
repo_snapshot: pick files of a project and hand them to an LLM.

Overview
--------
The project is scanned into a tree of checkable files. Hidden build folders,
secrets and git-ignored paths are left out, binary and large files are listed
without their content. The selection is remembered per project between runs.

Selections are changed one path at a time (`toggle`), all at once
(`select-all`, `deselect-all`), from the files changed in git (`scan --git`)
or from a framework preset (`preset`). `export` renders the checked files
as Markdown or XML, optionally wrapped in a prompt template, and splits the
result into parts when it exceeds the token budget.

Usage
-----
    - Scan the current project and show the selection:
        repo-snapshot scan

    - Keep only what changed since the last commit:
        repo-snapshot scan --git

    - Apply the preset of the detected framework and export as XML:
        repo-snapshot preset
        repo-snapshot export --format xml --output context.xml

    - Ask for a review, within the context window of a given model:
        repo-snapshot export --template review --model claude-opus-4.5
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import TYPE_CHECKING

from repo_snapshot import __version__
from repo_snapshot.config import AI_MODELS, OutputFormat, OverflowPolicy, StructureStyle
from repo_snapshot.frameworks import FRAMEWORKS
from repo_snapshot.logging import setup_logging
from repo_snapshot.settings import Settings
from repo_snapshot.snapshot import collect_checked_files
from repo_snapshot.state import StateStore
from repo_snapshot.templates import get_templates, load_custom_templates
from repo_snapshot.tokens import resolve_token_limit
from repo_snapshot.tree import count_files
from repo_snapshot.workspace import ScanMode, SnapshotWorkspace

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_snapshot.config import ProjectNode


def _common_options() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(add_help=False)
    p.add_argument("--repo", type=Path, default=argparse.SUPPRESS, help="Project root (default: cwd).")
    p.add_argument("--state-file", type=Path, default=argparse.SUPPRESS, help="Persisted state file.")
    p.add_argument("--templates-file", type=Path, default=argparse.SUPPRESS, help="YAML file of custom templates.")
    p.add_argument("--log-file", type=str, default=argparse.SUPPRESS, help="Log file path.")
    p.add_argument(
        "--log-level",
        type=str,
        choices=["debug", "info", "warning", "error"],
        default=argparse.SUPPRESS,
        help="Minimum log level (default: REPO_SNAPSHOT_LOG_LEVEL or info).",
    )
    p.add_argument(
        "--gitignore",
        dest="use_gitignore",
        action=argparse.BooleanOptionalAction,
        default=argparse.SUPPRESS,
        help="Hide files ignored by the root .gitignore (remembered).",
    )
    p.add_argument(
        "--exclude-sensitive",
        dest="exclude_sensitive",
        action="store_true",
        default=argparse.SUPPRESS,
        help="Hide .env files, keys and certificates (remembered).",
    )
    p.add_argument(
        "--include-sensitive",
        dest="exclude_sensitive",
        action="store_false",
        default=argparse.SUPPRESS,
        help="Show .env files, keys and certificates (remembered).",
    )
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    common = _common_options()
    p = argparse.ArgumentParser(
        prog="repo-snapshot",
        description="Select project files and export them as an LLM prompt.",
        parents=[common],
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = p.add_subparsers(dest="command")

    scan = sub.add_parser("scan", parents=[common], help="Scan the project and show the selection.")
    scan.add_argument("--git", action="store_true", help="Select only the files changed in git.")

    toggle = sub.add_parser("toggle", parents=[common], help="Check paths and their subtrees.")
    toggle.add_argument("paths", nargs="+", help="Paths, absolute or relative to the project root.")
    toggle.add_argument("--off", action="store_true", help="Uncheck instead of check.")

    sub.add_parser("select-all", parents=[common], help="Check every file.")
    sub.add_parser("deselect-all", parents=[common], help="Uncheck every file.")

    preset = sub.add_parser("preset", parents=[common], help="Apply a framework preset.")
    preset.add_argument(
        "--framework",
        type=str,
        choices=[f.id for f in FRAMEWORKS],
        default="",
        help="Framework id (default: detect).",
    )

    export = sub.add_parser("export", parents=[common], help="Render the checked files.")
    export.add_argument("--output", type=Path, default=None, help="Output file (default: stdout).")
    export.add_argument(
        "--format",
        type=str,
        choices=[f.value for f in OutputFormat],
        default=None,
        help="Snapshot format (remembered).",
    )
    export.add_argument("--template", type=str, default=None, help="Prompt template id (remembered).")
    export.add_argument(
        "--structure",
        type=str,
        choices=[s.value for s in StructureStyle],
        default=StructureStyle.LIST.value,
        help="Structure summary: flat path list or ASCII tree.",
    )
    budget = export.add_mutually_exclusive_group()
    budget.add_argument("--token-limit", type=int, default=argparse.SUPPRESS, help="Token budget.")
    budget.add_argument(
        "--model",
        type=str,
        choices=sorted(AI_MODELS),
        default="",
        help="Use the context size of this model as token budget.",
    )
    export.add_argument(
        "--on-overflow",
        type=str,
        choices=[o.value for o in OverflowPolicy],
        default=OverflowPolicy.SPLIT.value,
        help="What to do when the prompt exceeds the budget.",
    )

    sub.add_parser("frameworks", parents=[common], help="List the known frameworks.")
    sub.add_parser("templates", parents=[common], help="List the prompt templates.")

    args = p.parse_args(argv)
    values = {k: v for k, v in vars(args).items() if v is not None}
    if values.get("model") and "token_limit" not in values:
        values["token_limit"] = resolve_token_limit(values["model"])
    return Settings(**values)


def selection_lines(root: ProjectNode) -> list[str]:
    """Render the tree with a checkbox per node, e.g. "[x] src/"."""
    lines: list[str] = []

    def walk(node: ProjectNode, depth: int) -> None:
        mark = "x" if node.checked else " "
        suffix = "/" if node.is_dir else ""
        meta = f" ({node.meta})" if node.meta else ""
        lines.append(f"{'  ' * depth}[{mark}] {node.name}{suffix}{meta}")
        for child in node.children:
            walk(child, depth + 1)

    walk(root, 0)
    return lines


def print_selection(root: ProjectNode) -> None:
    print("\n".join(selection_lines(root)))
    checked = len(collect_checked_files(root))
    print(f"files={count_files(root)} selected={checked}")


def run_export(workspace: SnapshotWorkspace, settings: Settings) -> int:
    result = workspace.export(
        fmt=settings.format,
        template_id=settings.template,
        structure=settings.structure,
        token_limit=settings.token_limit,
        on_overflow=settings.on_overflow,
    )
    if result.cancelled:
        print(f"Cancelled: ~{result.estimate.tokens} tokens exceed the limit of {result.estimate.limit}")
        return 0

    if settings.output is None:
        print(result.text)
        return 0

    settings.output.write_text(result.text, encoding="utf-8")
    print(
        f"Wrote {settings.output} format={workspace.ui_state.selected_format} "
        f"tokens~{result.estimate.tokens} parts={len(result.parts) or 1}",
    )
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file or settings.log_level:
        setup_logging(settings.log_file or None, level=settings.log_level or None, force=True)

    if settings.command == "frameworks":
        for f in sorted(FRAMEWORKS, key=lambda f: -f.priority):
            print(f"{f.id}\t{f.name}\tpriority={f.priority}")
        return 0

    custom = load_custom_templates(settings.templates_file)
    if settings.command == "templates":
        for t in get_templates(custom):
            print(f"{t.id}\t{t.label}\t{t.description}")
        return 0

    workspace = SnapshotWorkspace(settings.repo, StateStore(settings.state_file), custom)
    workspace.update_ui_state(
        use_gitignore=settings.use_gitignore,
        exclude_sensitive=settings.exclude_sensitive,
        selected_format=settings.format,
        selected_template=settings.template,
    )

    mode = ScanMode.GIT if settings.command == "scan" and settings.git else ScanMode.ALL
    tree = workspace.scan(mode)
    if tree is None:
        print(f"No files to show in {workspace.root}")
        return 1

    if settings.command == "toggle":
        missing = workspace.toggle(settings.paths, not settings.off)
        for p in missing:
            print(f"Not found: {p}")
    elif settings.command == "select-all":
        workspace.select_all(True)
    elif settings.command == "deselect-all":
        workspace.select_all(False)
    elif settings.command == "preset":
        framework = workspace.apply_preset(settings.framework or None)
        if framework is None:
            print("No known framework detected; selection unchanged.")
            return 0
        print(f"Applied preset: {framework.name}")
    elif settings.command == "export":
        return run_export(workspace, settings)

    print_selection(tree)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
