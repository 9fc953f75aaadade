import json
import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

from repo_snapshot.logging import LOG_LEVEL_ENV, resolve_level, setup_logging


@pytest.fixture
def restore_logging() -> Iterator[None]:
    yield
    setup_logging(force=True)


@pytest.mark.unit
@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("debug", logging.DEBUG),
        (" Warning ", logging.WARNING),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level(level: int | str, expected: int) -> None:
    assert resolve_level(level) == expected


@pytest.mark.unit
def test_resolve_level_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_LEVEL_ENV, "error")
    assert resolve_level() == logging.ERROR

    monkeypatch.delenv(LOG_LEVEL_ENV)
    assert resolve_level() == logging.INFO


@pytest.mark.unit
@pytest.mark.usefixtures("restore_logging")
def test_setup_logging_writes_json_lines_above_level(tmp_path: Path) -> None:
    log_file = tmp_path / "run.log"

    log = setup_logging(log_file, level="WARNING", force=True)
    log.info("skipped_event")
    log.warning("kept_event", key=1)
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 1
    record = json.loads(lines[0])
    assert record["event"] == "kept_event"
    assert record["key"] == 1
    assert record["logger"] == "repo_snapshot"
    assert record["level"] == "warning"
    assert "timestamp" in record


@pytest.mark.unit
@pytest.mark.usefixtures("restore_logging")
def test_module_loggers_follow_reconfiguration(tmp_path: Path) -> None:
    module_logger = structlog.get_logger("repo_snapshot")
    log_file = tmp_path / "later.log"

    setup_logging(log_file, level="INFO", force=True)
    module_logger.info("after_reconfigure")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "after_reconfigure" in log_file.read_text(encoding="utf-8")
