"""Tests for logging configuration."""

import logging
from collections.abc import Iterator
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from ccguard.config.models import LoggingSettings
from ccguard.diagnostics import configure_logging, debug_requested


@pytest.fixture(autouse=True)
def _restore_logger() -> Iterator[None]:
    logger = logging.getLogger("ccguard")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


@pytest.mark.parametrize(
    ("env", "debug", "expected"),
    [
        ({}, False, False),
        ({"CCGUARD_DEBUG": "1"}, False, True),
        ({"CCGUARD_DEBUG": "TRUE"}, False, True),
        ({"CCGUARD_DEBUG": "0"}, False, False),
        ({}, True, True),
    ],
)
def test_debug_requested(env: dict[str, str], debug: bool, expected: bool) -> None:
    assert debug_requested(LoggingSettings(debug=debug), env) is expected


def test_debug_env_forces_debug_level_and_writes_log(tmp_path: Path) -> None:
    log_path = configure_logging(LoggingSettings(), tmp_path / "state", env={"CCGUARD_DEBUG": "1"})

    logger = logging.getLogger("ccguard")
    assert log_path == tmp_path / "state" / "debug.log"
    assert logger.level == logging.DEBUG

    logging.getLogger("ccguard.hooks").debug("pre-operation snapshot taken")
    for handler in logger.handlers:
        handler.flush()
    assert "pre-operation snapshot taken" in log_path.read_text(encoding="utf-8")


def test_reconfiguring_replaces_file_handler(tmp_path: Path) -> None:
    configure_logging(LoggingSettings(level="info"), tmp_path, env={})
    configure_logging(LoggingSettings(level="info"), tmp_path, env={})

    logger = logging.getLogger("ccguard")
    handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(handlers) == 1
    assert logger.level == logging.INFO


def test_unknown_level_falls_back_to_warning(tmp_path: Path) -> None:
    configure_logging(LoggingSettings(level="chatty"), tmp_path, env={})

    assert logging.getLogger("ccguard").level == logging.WARNING


def test_unwritable_state_dir_returns_none(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")

    assert configure_logging(LoggingSettings(), blocker / "state", env={}) is None
