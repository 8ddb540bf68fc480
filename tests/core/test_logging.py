"""Tests for courier/core/logging.py"""

import logging

import pytest

from courier.core.config import PathsConfig
from courier.core.logging import setup_logging


@pytest.fixture
def restore_logging():
    logger = logging.getLogger("courier")
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


def test_log_file_under_data_dir(tmp_path, restore_logging):
    paths = PathsConfig(data_dir=str(tmp_path / "data"))
    logger = setup_logging(paths)

    logging.getLogger("courier.scheduler.engine").debug("debug reaches the file")
    for handler in logger.handlers:
        handler.flush()

    files = list((tmp_path / "data" / "logs").glob("courier_*.log"))
    assert len(files) == 1
    assert "debug reaches the file" in files[0].read_text()


def test_repeated_setup_replaces_handlers(tmp_path, restore_logging):
    paths = PathsConfig(data_dir=str(tmp_path))
    setup_logging(paths)
    logger = setup_logging(paths, verbose=True)

    assert len(logger.handlers) == 2
    console = next(h for h in logger.handlers if not isinstance(h, logging.FileHandler))
    assert console.level == logging.DEBUG


def test_console_is_info_by_default(tmp_path, restore_logging):
    logger = setup_logging(PathsConfig(data_dir=str(tmp_path)))
    console = next(h for h in logger.handlers if not isinstance(h, logging.FileHandler))
    assert console.level == logging.INFO
