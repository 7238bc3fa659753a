"""Unit tests for logging setup."""

import logging
from unittest.mock import patch

from tlsbench.shared.config import Config
from tlsbench.shared.logging import LoggingManager


class TestLogging:
    """Test logging setup functions."""

    @patch('tlsbench.shared.logging.logging')
    def test_setup_logging_default_level(self, mock_logging):
        """Test setup_logging with default INFO level."""
        LoggingManager.setup_logging()

        # Check that handler was added to root logger
        mock_logging.getLogger().addHandler.assert_called_once()
        # Check that setLevel was called (level is set)
        mock_logging.getLogger().setLevel.assert_called()

    @patch('tlsbench.shared.logging.logging')
    def test_setup_logging_invalid_level(self, mock_logging):
        """Test setup_logging with invalid level defaults to INFO."""
        LoggingManager.setup_logging("INVALID")

        mock_logging.getLogger().setLevel.assert_called()
        mock_logging.getLogger().addHandler.assert_called_once()

    def test_repeated_setup_keeps_one_handler(self):
        """Test calling setup twice does not duplicate output."""
        root = logging.getLogger()
        saved_level = root.level
        try:
            LoggingManager.setup_logging("DEBUG")
            LoggingManager.setup_logging("WARNING")
            ours = [h for h in root.handlers if getattr(h, "_tlsbench", False)]
            assert len(ours) == 1
            assert ours[0].level == logging.WARNING
            assert root.level == logging.WARNING
        finally:
            for handler in [h for h in root.handlers if getattr(h, "_tlsbench", False)]:
                root.removeHandler(handler)
            root.setLevel(saved_level)

    def test_library_levels_applied(self):
        """Test noisy libraries get their configured levels."""
        root = logging.getLogger()
        saved_level = root.level
        config = Config(library_log_levels={"tlsbench.test.noisy": "ERROR"})
        try:
            LoggingManager.setup_logging("DEBUG", config)
            assert logging.getLogger("tlsbench.test.noisy").level == logging.ERROR
        finally:
            for handler in [h for h in root.handlers if getattr(h, "_tlsbench", False)]:
                root.removeHandler(handler)
            root.setLevel(saved_level)

    def test_get_logger(self):
        """Test get_logger returns a logger instance."""
        logger = LoggingManager.get_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test_module"
