"""Checkbox algorithms over the project tree.

All functions mutate the `checked` flags of an existing tree in place. A
directory's flag is a display signal derived from its children: after a
toggle it is the AND of the children, after a git filter it is their OR.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from repo_snapshot.paths import normalize_path, relpath

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from repo_snapshot.config import ProjectNode
    from repo_snapshot.frameworks import FrameworkDefinition, PresetRule


def iter_nodes(node: ProjectNode) -> Iterator[ProjectNode]:
    """Yield every node of the tree in pre-order."""
    yield node
    for child in node.children:
        yield from iter_nodes(child)


def set_subtree(node: ProjectNode, value: bool) -> None:  # noqa: FBT001
    """Set `checked` to `value` on node and all its descendants."""
    for n in iter_nodes(node):
        n.checked = value


def find_node(root: ProjectNode, path: str) -> ProjectNode | None:
    """Depth-first search of the node whose path equals `path`."""
    target = normalize_path(path)
    return next((n for n in iter_nodes(root) if n.path == target), None)


def reconcile(node: ProjectNode) -> bool:
    """Recompute every directory's `checked` as the AND of its children.

    Every subtree is visited, even once a sibling is known to be unchecked.

    Returns:
        bool: the resulting `checked` of `node`
    """
    if not node.is_dir:
        return node.checked
    states = [reconcile(child) for child in node.children]
    node.checked = all(states)
    return node.checked


def toggle_and_reconcile(root: ProjectNode, target_path: str, value: bool) -> bool:  # noqa: FBT001
    """Check or uncheck the node at `target_path` and its subtree, then fix the ancestors.

    Args:
        root (ProjectNode): the tree root
        target_path (str): absolute path of the toggled node
        value (bool): the new checked state

    Returns:
        bool: False if no node has this path (the tree is left untouched)
    """
    node = find_node(root, target_path)
    if node is None:
        return False
    set_subtree(node, value)
    reconcile(root)
    return True


def apply_git_filter(node: ProjectNode, changed_paths: set[str]) -> bool:
    """Select exactly the files listed in `changed_paths`.

    Directories are checked when any descendant changed.

    Args:
        node (ProjectNode): the subtree to filter
        changed_paths (set[str]): normalized absolute paths of changed files

    Returns:
        bool: whether the subtree contains a checked node
    """
    if not node.is_dir:
        node.checked = node.path in changed_paths
        return node.checked
    states = [apply_git_filter(child, changed_paths) for child in node.children]
    node.checked = any(states)
    return node.checked


def apply_preset(root: ProjectNode, framework: FrameworkDefinition) -> bool:
    """Apply the default selection of `framework` to the tree.

    Exclude patterns win over everything: a matching node is unchecked with
    its whole subtree. Directories listed in `include_dirs` select all their
    descendants. Other files are selected when an include pattern matches
    their path. Patterns are searched in the path relative to the root, with a
    leading slash ("/src/build/x.ts"), so the folders above the project
    never take part. Applying the same preset twice gives the same result.

    Returns:
        bool: whether anything ended up checked
    """
    return _apply_rule(root, framework.preset, root.path, force_include=False)


def _is_include_dir(node: ProjectNode, rule: PresetRule, root_path: str) -> bool:
    rel = relpath(node.path, root_path)
    return any(d == node.name or ("/" in d and d.strip("/") == rel) for d in rule.include_dirs)


def _rule_path(node: ProjectNode, root_path: str) -> str:
    if normalize_path(node.path) == normalize_path(root_path):
        return ""
    return "/" + relpath(node.path, root_path)


def _apply_rule(node: ProjectNode, rule: PresetRule, root_path: str, *, force_include: bool) -> bool:
    path = _rule_path(node, root_path)

    if any(re.search(p, path) for p in rule.exclude):
        set_subtree(node, False)
        return False

    if node.is_dir:
        is_include_root = _is_include_dir(node, rule, root_path)
        forced = force_include or is_include_root
        states = [_apply_rule(child, rule, root_path, force_include=forced) for child in node.children]
        node.checked = forced or any(states)
        return node.checked

    node.checked = force_include or any(re.search(p, path) for p in rule.include_files)
    return node.checked


def collect_selection(root: ProjectNode) -> dict[str, bool]:
    """Flatten the tree's selection into a path -> checked mapping."""
    return {n.path: n.checked for n in iter_nodes(root)}


def restore_selection(root: ProjectNode, selection: Mapping[str, bool]) -> int:
    """Restore a saved selection onto a freshly scanned tree.

    Nodes absent from `selection` keep their current state. Directory flags
    are reconciled afterwards.

    Returns:
        int: number of nodes found in the saved selection
    """
    restored = 0
    for n in iter_nodes(root):
        saved = selection.get(n.path)
        if saved is not None:
            n.checked = bool(saved)
            restored += 1
    reconcile(root)
    return restored
