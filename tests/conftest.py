"""Shared pytest fixtures."""

from __future__ import annotations

import logging

import pytest


@pytest.fixture(autouse=True)
def _reset_manifestgen_logging():
    """Drop handlers installed by ``configure_logging`` so each test starts clean."""
    yield
    logger = logging.getLogger("manifestgen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
