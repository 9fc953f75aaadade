import pytest

from repo_snapshot.config import NodeType, ProjectNode
from repo_snapshot.frameworks import FrameworkDefinition, PresetRule, get_framework
from repo_snapshot.selection import (
    apply_git_filter,
    apply_preset,
    collect_selection,
    find_node,
    iter_nodes,
    reconcile,
    restore_selection,
    set_subtree,
    toggle_and_reconcile,
)


def _file(path: str, *, checked: bool = True) -> ProjectNode:
    return ProjectNode(path=path, name=path.rsplit("/", 1)[-1], type=NodeType.FILE, checked=checked)


def _dir(path: str, *children: ProjectNode, checked: bool = True) -> ProjectNode:
    return ProjectNode(
        path=path,
        name=path.rsplit("/", 1)[-1],
        type=NodeType.DIRECTORY,
        checked=checked,
        children=list(children),
    )


def _project() -> ProjectNode:
    return _dir(
        "/proj",
        _dir(
            "/proj/src",
            _dir("/proj/src/components", _file("/proj/src/components/Button.tsx"), _file("/proj/src/components/Card.tsx")),
            _file("/proj/src/index.ts"),
        ),
        _file("/proj/package.json"),
        _file("/proj/README.md"),
    )


def _checked(root: ProjectNode) -> set[str]:
    return {n.path for n in iter_nodes(root) if n.checked and not n.is_dir}


def _assert_and_invariant(node: ProjectNode) -> None:
    if node.is_dir:
        assert node.checked == all(c.checked for c in node.children), node.path
        for child in node.children:
            _assert_and_invariant(child)


@pytest.mark.unit
def test_set_subtree_is_uniform() -> None:
    root = _project()

    set_subtree(root.children[0], False)

    assert all(not n.checked for n in iter_nodes(root.children[0]))
    assert root.children[1].checked


@pytest.mark.unit
def test_find_node() -> None:
    root = _project()

    assert find_node(root, "/proj/src/index.ts") is root.children[0].children[1]
    assert find_node(root, "/proj/missing.ts") is None


@pytest.mark.unit
def test_toggle_leaf_propagates_to_root() -> None:
    root = _project()

    found = toggle_and_reconcile(root, "/proj/src/components/Card.tsx", False)

    assert found
    components = find_node(root, "/proj/src/components")
    src = find_node(root, "/proj/src")
    assert components is not None and not components.checked
    assert src is not None and not src.checked
    assert not root.checked
    assert find_node(root, "/proj/src/components/Button.tsx").checked  # type: ignore[union-attr]
    _assert_and_invariant(root)


@pytest.mark.unit
def test_toggle_directory_back_on_restores_ancestors() -> None:
    root = _project()
    toggle_and_reconcile(root, "/proj/src", False)

    toggle_and_reconcile(root, "/proj/src", True)

    assert all(n.checked for n in iter_nodes(root))


@pytest.mark.unit
def test_toggle_unknown_path_leaves_tree_untouched() -> None:
    root = _project()
    before = collect_selection(root)

    assert not toggle_and_reconcile(root, "/proj/nope.ts", False)
    assert collect_selection(root) == before


@pytest.mark.unit
def test_reconcile_recomputes_every_directory() -> None:
    root = _dir(
        "/proj",
        _dir("/proj/a", _file("/proj/a/x.ts", checked=False)),
        _dir("/proj/b", _file("/proj/b/y.ts", checked=False), checked=True),
    )

    assert not reconcile(root)
    assert not root.children[1].checked


@pytest.mark.unit
def test_apply_git_filter_selects_changed_files_and_ancestors() -> None:
    root = _project()

    any_checked = apply_git_filter(root, {"/proj/src/components/Card.tsx"})

    assert any_checked
    assert _checked(root) == {"/proj/src/components/Card.tsx"}
    assert find_node(root, "/proj/src/components").checked  # type: ignore[union-attr]
    assert find_node(root, "/proj/src").checked  # type: ignore[union-attr]
    assert root.checked


@pytest.mark.unit
def test_apply_git_filter_with_no_change() -> None:
    root = _project()

    assert not apply_git_filter(root, set())
    assert not any(n.checked for n in iter_nodes(root))


@pytest.mark.unit
def test_preset_exclude_beats_forced_include() -> None:
    framework = FrameworkDefinition(
        id="custom",
        name="Custom",
        priority=1,
        triggers=(),
        preset=PresetRule(include_dirs=("src",), exclude=(r"build/",)),
    )
    root = _dir("/proj", _dir("/proj/src", _dir("/proj/src/build", _file("/proj/src/build/x.ts")), _file("/proj/src/a.ts")))

    apply_preset(root, framework)

    assert _checked(root) == {"/proj/src/a.ts"}


@pytest.mark.unit
def test_preset_exclude_unchecks_whole_subtree() -> None:
    framework = FrameworkDefinition(
        id="custom",
        name="Custom",
        priority=1,
        triggers=(),
        preset=PresetRule(include_files=(r"\.ts$",), exclude=(r"/generated$",)),
    )
    root = _dir("/proj", _dir("/proj/generated", _file("/proj/generated/api.ts")), _file("/proj/main.ts"))

    apply_preset(root, framework)

    generated = find_node(root, "/proj/generated")
    assert generated is not None and not generated.checked
    assert _checked(root) == {"/proj/main.ts"}


@pytest.mark.unit
def test_next_preset_selects_sources_and_config() -> None:
    framework = get_framework("next")
    assert framework is not None
    root = _dir(
        "/proj",
        _dir("/proj/app", _file("/proj/app/page.tsx")),
        _dir("/proj/docs", _file("/proj/docs/guide.md")),
        _file("/proj/next.config.js"),
        _file("/proj/package.json"),
        _file("/proj/README.md"),
    )

    apply_preset(root, framework)

    assert _checked(root) == {"/proj/app/page.tsx", "/proj/next.config.js", "/proj/package.json"}
    assert not find_node(root, "/proj/docs").checked  # type: ignore[union-attr]


@pytest.mark.unit
def test_multi_segment_include_dir() -> None:
    framework = get_framework("wordpress")
    assert framework is not None
    root = _dir(
        "/proj",
        _dir(
            "/proj/wp-content",
            _dir("/proj/wp-content/themes", _dir("/proj/wp-content/themes/site", _file("/proj/wp-content/themes/site/style.css"))),
            _dir("/proj/wp-content/uploads", _file("/proj/wp-content/uploads/photo.txt")),
        ),
    )

    apply_preset(root, framework)

    assert _checked(root) == {"/proj/wp-content/themes/site/style.css"}


@pytest.mark.unit
def test_apply_preset_is_idempotent() -> None:
    framework = get_framework("vite")
    assert framework is not None
    root = _dir(
        "/proj",
        _dir("/proj/src", _file("/proj/src/main.ts")),
        _dir("/proj/scripts", _file("/proj/scripts/release.sh")),
        _file("/proj/vite.config.ts"),
        _file("/proj/index.html"),
    )

    apply_preset(root, framework)
    first = collect_selection(root)
    apply_preset(root, framework)

    assert collect_selection(root) == first


@pytest.mark.unit
def test_restore_selection_then_reconcile() -> None:
    root = _project()
    saved = {"/proj/README.md": False, "/proj/src": True, "/proj/gone.ts": False}

    restored = restore_selection(root, saved)

    assert restored == 2
    assert not find_node(root, "/proj/README.md").checked  # type: ignore[union-attr]
    assert find_node(root, "/proj/package.json").checked  # type: ignore[union-attr]
    assert not root.checked
    _assert_and_invariant(root)


@pytest.mark.unit
def test_android_preset_by_id() -> None:
    framework = get_framework("android_native")
    assert framework is not None
    root = _dir(
        "/proj",
        _dir(
            "/proj/app",
            _dir(
                "/proj/app/src",
                _dir(
                    "/proj/app/src/main",
                    _dir("/proj/app/src/main/java", _file("/proj/app/src/main/java/com/demo/MainActivity.kt")),
                    _dir("/proj/app/src/main/res", _file("/proj/app/src/main/res/values/strings.xml")),
                ),
                _dir("/proj/app/src/test", _file("/proj/app/src/test/ExampleTest.kt")),
            ),
            _dir("/proj/app/build", _file("/proj/app/build/outputs/app.apk")),
        ),
        _file("/proj/gradle.properties"),
    )

    apply_preset(root, framework)

    assert _checked(root) == {
        "/proj/app/src/main/java/com/demo/MainActivity.kt",
        "/proj/app/src/main/res/values/strings.xml",
        "/proj/gradle.properties",
    }
    assert not find_node(root, "/proj/app/build").checked  # type: ignore[union-attr]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("framework_id", "root_path", "expected"),
    [
        ("node", "/work/build-tools/app", {"src/index.ts", "app/models/user.rb", "package.json"}),
        ("rails", "/tmp/proj", {"app/models/user.rb", "Gemfile"}),
    ],
)
def test_preset_ignores_the_root_location(framework_id: str, root_path: str, expected: set[str]) -> None:
    framework = get_framework(framework_id)
    assert framework is not None
    root = _dir(
        root_path,
        _dir(f"{root_path}/src", _file(f"{root_path}/src/index.ts")),
        _dir(f"{root_path}/app", _dir(f"{root_path}/app/models", _file(f"{root_path}/app/models/user.rb"))),
        _dir(f"{root_path}/dist", _file(f"{root_path}/dist/bundle.js")),
        _dir(f"{root_path}/tmp", _file(f"{root_path}/tmp/cache.db")),
        _file(f"{root_path}/package.json"),
        _file(f"{root_path}/Gemfile"),
    )

    apply_preset(root, framework)

    assert _checked(root) == {f"{root_path}/{p}" for p in expected}
