"""Conftest for unit tests: keep the package logger pristine between tests.

``setup_logging`` (called by the CLI callback and the logging tests) installs
handlers and a level on the ``metricpush`` logger. Without cleanup those leak
into later tests, so console handlers bound to a closed CliRunner stream or a
deleted tmp file would be hit by unrelated log calls.
"""

from __future__ import annotations

import logging

import pytest

from metricpush.logging import ROOT_LOGGER


@pytest.fixture(autouse=True)
def _reset_package_logger():
    logger = logging.getLogger(ROOT_LOGGER)
    saved_handlers = list(logger.handlers)
    saved_level = logger.level
    yield
    for handler in logger.handlers:
        if handler not in saved_handlers:
            handler.close()
    logger.handlers[:] = saved_handlers
    logger.setLevel(saved_level)
