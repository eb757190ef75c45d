import logging

import pytest

from core.logging_config import setup_logging


@pytest.fixture
def restore_beacon_logger():
    logger = logging.getLogger("beacon")
    saved = (logger.level, list(logger.handlers), logger.propagate)
    yield
    logger.setLevel(saved[0])
    logger.handlers[:] = saved[1]
    logger.propagate = saved[2]


def test_setup_logging_levels_and_handlers(restore_beacon_logger, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")
    logger = setup_logging()
    assert logger.name == "beacon"
    assert logger.level == logging.WARNING
    assert logger.propagate is False

    logger = setup_logging("debug")
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert logging.getLogger("PIL").level == logging.WARNING


def test_unknown_level_falls_back_to_info(restore_beacon_logger):
    assert setup_logging("chatty").level == logging.INFO
