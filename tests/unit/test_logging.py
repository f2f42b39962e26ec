import logging
from logging.handlers import RotatingFileHandler

import pytest

from appforge.telemetry.logging import ROOT_LOGGER, setup_logging


@pytest.fixture
def clean_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    saved = logger.handlers[:], logger.level
    logger.handlers = []
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.handlers, level = saved
    logger.setLevel(level)


def test_repeated_setup_does_not_duplicate_handlers(clean_logger):
    setup_logging("WARNING")
    setup_logging("DEBUG")

    assert len(clean_logger.handlers) == 1
    assert clean_logger.level == logging.DEBUG


def test_file_handler_when_log_dir_given(clean_logger, tmp_path):
    setup_logging("INFO", str(tmp_path / "logs"))

    file_handlers = [h for h in clean_logger.handlers if isinstance(h, RotatingFileHandler)]
    assert len(file_handlers) == 1
    logging.getLogger("appforge.workflows").debug("dispatching")
    file_handlers[0].flush()
    assert "dispatching" in (tmp_path / "logs" / "appforge.log").read_text(encoding="utf-8")
