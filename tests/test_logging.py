"""Tests for logging setup."""

import logging

from hookrunner.logging_config import get_logger, setup_logging


class TestSetupLogging:
    def teardown_method(self):
        setup_logging()

    def test_levels(self):
        assert setup_logging().level == logging.WARNING
        assert setup_logging(verbose=True).level == logging.DEBUG
        assert setup_logging(verbose=True, quiet=True).level == logging.ERROR

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging()
        count = len(setup_logging().handlers)
        assert len(setup_logging().handlers) == count

    def test_log_file(self, tmp_path):
        path = tmp_path / "hookrunner.log"
        setup_logging(verbose=True, log_file=str(path))
        get_logger("hookrunner.runner").debug("spawning hook")
        for handler in get_logger().handlers:
            handler.flush()
        assert "hookrunner.runner: spawning hook" in path.read_text()


class TestGetLogger:
    def test_namespaced(self):
        assert get_logger("runner").name == "hookrunner.runner"
        assert get_logger("hookrunner.guard").name == "hookrunner.guard"
        assert get_logger().name == "hookrunner"
