import logging
from logging.handlers import RotatingFileHandler

import pytest

from quizrunner.log import configure_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger("quizrunner")
    saved = logger.handlers[:]
    logger.handlers = []
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers = saved


def test_file_logging_creates_log_dir(tmp_path, package_logger):
    class Config:
        DEBUG = False
        LOG_TO_FILE = True
        LOG_DIR = str(tmp_path / "log")
        LOG_FILE = "quizrunner.log"

    configure_logging(Config())
    package_logger.info("hello")

    assert isinstance(package_logger.handlers[0], RotatingFileHandler)
    assert (tmp_path / "log" / "quizrunner.log").exists()


def test_configure_logging_is_idempotent(package_logger):
    class Config:
        DEBUG = True
        LOG_TO_FILE = False

    configure_logging(Config())
    configure_logging(Config())

    assert len(package_logger.handlers) == 1
    assert package_logger.level == logging.DEBUG
