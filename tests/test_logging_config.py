"""Tests for logging setup."""

import logging

import pytest
from rich.logging import RichHandler

from event_reporter.logging_config import get_logger, setup_logging

pytestmark = pytest.mark.usefixtures("restore_logging")


class TestGetLogger:
    def test_root_logger(self):
        assert get_logger().name == "event_reporter"

    def test_module_names_are_namespaced(self):
        assert get_logger("event_reporter.eventstore.store").name == "event_reporter.eventstore.store"
        assert get_logger("tools").name == "event_reporter.tools"
        assert get_logger("event_reporterish").name == "event_reporter.event_reporterish"


class TestSetupLogging:
    @pytest.mark.parametrize(
        "verbosity, level",
        [("verbose", logging.DEBUG), ("normal", logging.WARNING), ("quiet", logging.ERROR)],
    )
    def test_levels_follow_verbosity(self, verbosity, level):
        assert setup_logging(verbosity).level == level

    def test_unknown_verbosity(self):
        with pytest.raises(ValueError):
            setup_logging("loud")

    def test_handlers_stay_on_package_logger(self):
        root_handlers = logging.getLogger().handlers[:]
        logger = setup_logging("normal")
        assert logging.getLogger().handlers == root_handlers
        assert not logger.propagate
        assert [type(h) for h in logger.handlers] == [RichHandler]

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        setup_logging("verbose", str(tmp_path / "a.log"))
        logger = setup_logging("verbose")
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "reporter.log"
        setup_logging("verbose", str(log_file))
        get_logger("eventstore.store").debug("queued event")
        text = log_file.read_text()
        assert "queued event" in text
        assert "event_reporter.eventstore.store" in text
