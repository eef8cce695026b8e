"""Shared fixtures for semsearch tests."""

from __future__ import annotations

import logging

import pytest

from semsearch.utils.config import Config, set_config
from semsearch.utils.logging import ROOT_LOGGER_NAME
from tests.helpers import FakeBackend


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Run every test against the built-in defaults."""
    monkeypatch.delenv("SEMSEARCH_API_URL", raising=False)
    monkeypatch.delenv("SEMSEARCH_CONFIG", raising=False)
    config = Config()
    set_config(config)
    yield config
    set_config(None)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo setup_logging() so records reach pytest's capture handlers."""
    yield
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def backend():
    return FakeBackend()
