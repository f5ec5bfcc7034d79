"""Shared fixtures for event-reporter tests."""

import logging

import pytest

from event_reporter.config import StoreConfig
from event_reporter.eventstore import EventStore


@pytest.fixture
def store_path(tmp_path):
    """Path of a fresh store file inside a temporary directory."""
    return tmp_path / "store.db"


@pytest.fixture
def store(store_path):
    """An open store; closed at teardown (close is safe to repeat)."""
    s = EventStore.open(store_path)
    yield s
    s.close()


@pytest.fixture
def reopen(store_path):
    """Open further handles on ``store_path``, closing them at teardown."""
    opened = []

    def _open(config=None):
        s = EventStore.open(store_path, config=config)
        opened.append(s)
        return s

    yield _open
    for s in opened:
        s.close()


@pytest.fixture
def fast_lock_config():
    """Config that gives up on a held file lock almost immediately."""
    return StoreConfig(lock_timeout_seconds=0.1)


@pytest.fixture
def restore_logging():
    """Undo handler, level and propagation changes made by ``setup_logging``."""
    logger = logging.getLogger("event_reporter")
    saved_handlers = logger.handlers[:]
    saved_level = logger.level
    saved_propagate = logger.propagate
    yield
    for handler in logger.handlers[:]:
        if handler not in saved_handlers:
            logger.removeHandler(handler)
            handler.close()
    for handler in saved_handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)
    logger.setLevel(saved_level)
    logger.propagate = saved_propagate
