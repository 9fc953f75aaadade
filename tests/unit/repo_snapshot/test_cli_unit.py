from pathlib import Path

import pytest

from repo_snapshot import cli
from repo_snapshot.config import AI_MODELS, NodeType, OutputFormat, OverflowPolicy, ProjectNode


@pytest.mark.unit
def test_parse_args_defaults_to_scan() -> None:
    settings = cli.parse_args([])

    assert settings.command == "scan"
    assert settings.use_gitignore is None
    assert settings.exclude_sensitive is None


@pytest.mark.unit
def test_parse_args_global_options_before_or_after_command(tmp_path: Path) -> None:
    before = cli.parse_args(["--repo", str(tmp_path), "--no-gitignore", "scan", "--git"])
    after = cli.parse_args(["scan", "--git", "--repo", str(tmp_path), "--include-sensitive"])

    assert before.repo == tmp_path
    assert before.use_gitignore is False
    assert before.git
    assert after.repo == tmp_path
    assert after.exclude_sensitive is False


@pytest.mark.unit
def test_parse_args_toggle() -> None:
    settings = cli.parse_args(["toggle", "src", "README.md", "--off"])

    assert settings.command == "toggle"
    assert settings.paths == ["src", "README.md"]
    assert settings.off


@pytest.mark.unit
def test_parse_args_export_model_sets_token_limit() -> None:
    settings = cli.parse_args(["export", "--model", "llama-4", "--format", "xml", "--on-overflow", "cancel"])

    assert settings.token_limit == AI_MODELS["llama-4"][1]
    assert settings.format is OutputFormat.XML
    assert settings.on_overflow is OverflowPolicy.CANCEL
    assert settings.template is None


@pytest.mark.unit
def test_parse_args_export_token_limit() -> None:
    assert cli.parse_args(["export", "--token-limit", "50"]).token_limit == 50


@pytest.mark.unit
def test_parse_args_rejects_unknown_framework() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["preset", "--framework", "cobol"])


@pytest.mark.unit
def test_parse_args_framework_without_trigger() -> None:
    assert cli.parse_args(["preset", "--framework", "android_native"]).framework == "android_native"


@pytest.mark.unit
def test_parse_args_log_level() -> None:
    assert cli.parse_args(["--log-level", "debug", "scan"]).log_level == "debug"
    assert cli.parse_args([]).log_level == ""


@pytest.mark.unit
def test_selection_lines() -> None:
    root = ProjectNode(
        path="/proj",
        name="proj",
        type=NodeType.DIRECTORY,
        checked=False,
        children=[
            ProjectNode(path="/proj/a.ts", name="a.ts", type=NodeType.FILE),
            ProjectNode(path="/proj/b.png", name="b.png", type=NodeType.FILE, checked=False, meta="Binary"),
        ],
    )

    assert cli.selection_lines(root) == ["[ ] proj/", "  [x] a.ts", "  [ ] b.png (Binary)"]
