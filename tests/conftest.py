"""Shared pytest fixtures."""

import logging

import pytest

from taskqueue.taskqueue_logging import ROOT_LOGGER


@pytest.fixture(autouse=True)
def clean_taskqueue_logger():
    """Drop handlers that setup_logging attached during a test."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
