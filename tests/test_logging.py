"""Tests for logging setup."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import pytest

from tasktracker.core.logging import setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_creates_console_and_rotating_file_handlers(tmp_path: Path):
    log_file = setup_logging(level="debug", directory=tmp_path / "logs", max_size_mb=1, backup_count=2)

    root = logging.getLogger()
    file_handlers = [h for h in root.handlers if isinstance(h, RotatingFileHandler)]

    assert log_file == tmp_path / "logs" / "tasktracker.log"
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert len(file_handlers) == 1
    assert file_handlers[0].maxBytes == 1024 * 1024
    assert file_handlers[0].backupCount == 2


def test_messages_reach_the_log_file(tmp_path: Path):
    log_file = setup_logging(directory=tmp_path)

    logging.getLogger("tasktracker.test").info("hello from the store")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "hello from the store" in log_file.read_text(encoding="utf-8")
