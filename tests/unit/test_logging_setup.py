from __future__ import annotations

import logging

import pytest
from rich.logging import RichHandler

from offline_agent.logging_setup import configure_logging


@pytest.fixture
def root_logger():
    logger = logging.getLogger()
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logging.captureWarnings(False)


def test_configure_logging_installs_a_single_managed_handler(root_logger):
    configure_logging("debug")
    configure_logging("warning")

    managed = [h for h in root_logger.handlers if isinstance(h, RichHandler)]
    assert len(managed) == 1
    assert root_logger.level == logging.WARNING


def test_level_falls_back_to_environment(root_logger, monkeypatch):
    monkeypatch.setenv("OFFLINE_AGENT_LOG_LEVEL", "error")

    configure_logging()

    assert root_logger.level == logging.ERROR
    assert logging.getLogger("httpx").level == logging.ERROR
