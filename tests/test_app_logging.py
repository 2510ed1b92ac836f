"""Tests for logging configuration."""
import logging

from src.app_logging import APP_LOGGER_NAME, configure_logging


class TestConfigureLogging:
    def test_single_handler_after_repeated_calls(self):
        configure_logging(logging.DEBUG)
        configure_logging(logging.WARNING)
        logger = logging.getLogger(APP_LOGGER_NAME)
        assert len(logger.handlers) == 1
        assert logger.level == logging.WARNING
        assert logger.propagate is False

    def test_module_loggers_inherit(self):
        configure_logging(logging.INFO)
        child = logging.getLogger("src.portioning.solver")
        assert child.getEffectiveLevel() == logging.INFO
